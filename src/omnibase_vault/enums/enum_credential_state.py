# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Credential lifecycle state enumeration."""

from enum import Enum


class EnumCredentialState(str, Enum):
    """States of the credential manager.

    ``UNAUTHENTICATED -> AUTHENTICATED`` when a token is supplied directly.
    ``UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED -> RENEWING`` for
    login-based credentials, falling back to ``AUTHENTICATING`` whenever the
    renewal watch finishes. ``CLOSED`` is terminal.
    """

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    RENEWING = "renewing"
    CLOSED = "closed"


__all__ = ["EnumCredentialState"]
