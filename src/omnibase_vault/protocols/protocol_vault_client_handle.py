# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for an authenticated Vault client handle."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from omnibase_vault.client.vault_rpc_client import VaultRpcClient


@runtime_checkable
class ProtocolVaultClientHandle(Protocol):
    """What the resolution pipeline needs from the credential manager.

    Implementations:
        - VaultCredentialManager
    """

    @property
    def rpc_client(self) -> VaultRpcClient:
        """The authenticated RPC client, shared read-only after bootstrap."""
        ...

    @property
    def token(self) -> str:
        """The token currently installed on the client."""
        ...


__all__ = ["ProtocolVaultClientHandle"]
