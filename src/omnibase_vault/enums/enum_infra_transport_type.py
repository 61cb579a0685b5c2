# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Transport Type Enumeration.

Defines the transport types the vault client talks over.
Used for error context and log fields.
"""

from enum import Enum


class EnumInfraTransportType(str, Enum):
    """Transport types used by omnibase_vault components.

    Attributes:
        VAULT: Vault / OpenBao HTTP API (logical reads, writes, auth)
        TRANSIT: Vault transit secrets engine (decrypt operations)
        METADATA: Cloud instance metadata services (AWS, GCP, Azure)
        FILESYSTEM: Local files (tokens, JWTs, CA bundles)
        RUNTIME: In-process resolution pipeline
    """

    VAULT = "vault"
    TRANSIT = "transit"
    METADATA = "metadata"
    FILESYSTEM = "filesystem"
    RUNTIME = "runtime"


__all__ = ["EnumInfraTransportType"]
