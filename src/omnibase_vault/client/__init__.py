# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault Client Module.

Exports:
    VaultRpcClient: Blocking Vault operations over hvac
    TokenLifetimeWatcher / LeaseLifetimeWatcher: Background renewal watchers
    AUTH_RESOLVERS: Login resolver per auth method
    new_kv2_data: KV v2 write body helper
"""

from omnibase_vault.client.auth_strategies import AUTH_RESOLVERS, resolve_login
from omnibase_vault.client.lifetime_watcher import (
    LeaseLifetimeWatcher,
    LifetimeWatcher,
    TokenLifetimeWatcher,
)
from omnibase_vault.client.vault_rpc_client import (
    LATEST_VERSION,
    VaultRpcClient,
    new_kv2_data,
)

__all__: list[str] = [
    "AUTH_RESOLVERS",
    "LATEST_VERSION",
    "LeaseLifetimeWatcher",
    "LifetimeWatcher",
    "TokenLifetimeWatcher",
    "VaultRpcClient",
    "new_kv2_data",
    "resolve_login",
]
