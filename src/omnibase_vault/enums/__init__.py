# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault Enumerations Module.

Exports:
    EnumAuthMethod: Vault login method selected by configuration
    EnumCredentialState: Credential manager lifecycle state
    EnumFileChangeOp: File watcher change kinds
    EnumInfraTransportType: Transport type used in error context
    EnumLifetimeEventType: Token / lease lifetime watcher events
    EnumReferenceMode: Secret reference read or write mode
    EnumVaultErrorCode: Error classification codes
"""

from omnibase_vault.enums.enum_auth_method import EnumAuthMethod
from omnibase_vault.enums.enum_credential_state import EnumCredentialState
from omnibase_vault.enums.enum_file_change_op import EnumFileChangeOp
from omnibase_vault.enums.enum_infra_transport_type import EnumInfraTransportType
from omnibase_vault.enums.enum_lifetime_event_type import EnumLifetimeEventType
from omnibase_vault.enums.enum_reference_mode import EnumReferenceMode
from omnibase_vault.enums.enum_vault_error_code import EnumVaultErrorCode

__all__: list[str] = [
    "EnumAuthMethod",
    "EnumCredentialState",
    "EnumFileChangeOp",
    "EnumInfraTransportType",
    "EnumLifetimeEventType",
    "EnumReferenceMode",
    "EnumVaultErrorCode",
]
