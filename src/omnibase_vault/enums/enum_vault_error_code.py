# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error code enumeration for omnibase_vault errors."""

from enum import Enum


class EnumVaultErrorCode(str, Enum):
    """Machine-readable error classification attached to every VaultInfraError."""

    OPERATION_FAILED = "OPERATION_FAILED"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    RENEWAL_ERROR = "RENEWAL_ERROR"


__all__ = ["EnumVaultErrorCode"]
