# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault Runtime Module.

Exports:
    VaultCredentialManager: Token bootstrap, renewal and CA bundle rotation
    bootstrap: Convenience wrapper around VaultCredentialManager.bootstrap
    PollingFileWatcher: Stat-polling directory change stream
"""

from omnibase_vault.runtime.credential_manager import (
    VaultCredentialManager,
    bootstrap,
)
from omnibase_vault.runtime.file_watcher import PollingFileWatcher

__all__: list[str] = [
    "PollingFileWatcher",
    "VaultCredentialManager",
    "bootstrap",
]
