# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault Protocols Module.

Exports:
    ProtocolFileWatcher: Directory change stream capability
    ProtocolSecretRenewer: Lease renewal registration capability
    ProtocolTemplateRenderer: Key template rendering capability
    ProtocolVaultClientHandle: Authenticated client handle
"""

from omnibase_vault.protocols.protocol_file_watcher import ProtocolFileWatcher
from omnibase_vault.protocols.protocol_secret_renewer import ProtocolSecretRenewer
from omnibase_vault.protocols.protocol_template_renderer import (
    ProtocolTemplateRenderer,
)
from omnibase_vault.protocols.protocol_vault_client_handle import (
    ProtocolVaultClientHandle,
)

__all__: list[str] = [
    "ProtocolFileWatcher",
    "ProtocolSecretRenewer",
    "ProtocolTemplateRenderer",
    "ProtocolVaultClientHandle",
]
