# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for keeping leased secrets alive.

The secret path store hands every leased secret it reads in daemon mode to a
renewer. The renewer owns the registration; the store only reports it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from omnibase_vault.models import ModelVaultSecret


@runtime_checkable
class ProtocolSecretRenewer(Protocol):
    """Receives leased secrets that must be renewed for the process lifetime.

    Implementations:
        - LeaseRenewer: renews every registered lease in a background task
    """

    def renew(self, path: str, secret: ModelVaultSecret) -> None:
        """Register ``secret`` read from ``path`` for renewal.

        Raises:
            Exception: Any failure; the caller wraps it in SecretRenewalError
        """
        ...


__all__ = ["ProtocolSecretRenewer"]
