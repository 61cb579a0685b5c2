# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault Models Module.

Exports:
    ModelVaultClientConfig: Credential manager configuration
    ModelInjectorConfig: Secret injector configuration
    ModelAuthParams: Login strategy parameters
    ModelCredential: Installed token and its lease
    ModelVaultSecret / ModelSecretAuth: Normalized Vault response envelope
    ModelLifetimeEvent: Token / lease watcher events
    ModelFileChangeEvent: File watcher events
    Model*Reference / ParsedReference: Parsed secret reference forms
"""

from omnibase_vault.models.model_auth_params import ModelAuthParams
from omnibase_vault.models.model_credential import ModelCredential
from omnibase_vault.models.model_file_change_event import ModelFileChangeEvent
from omnibase_vault.models.model_injector_config import ModelInjectorConfig
from omnibase_vault.models.model_lifetime_event import ModelLifetimeEvent
from omnibase_vault.models.model_secret_reference import (
    ModelInlineReference,
    ModelInlineSpan,
    ModelLiteralValue,
    ModelSecretReference,
    ModelTokenEcho,
    ModelTransitCiphertext,
    ParsedReference,
)
from omnibase_vault.models.model_vault_client_config import (
    DEFAULT_JWT_FILE,
    ModelVaultClientConfig,
    parse_duration_seconds,
)
from omnibase_vault.models.model_vault_secret import ModelSecretAuth, ModelVaultSecret

__all__: list[str] = [
    "DEFAULT_JWT_FILE",
    "ModelAuthParams",
    "ModelCredential",
    "ModelFileChangeEvent",
    "ModelInjectorConfig",
    "ModelInlineReference",
    "ModelInlineSpan",
    "ModelLifetimeEvent",
    "ModelLiteralValue",
    "ModelSecretAuth",
    "ModelSecretReference",
    "ModelTokenEcho",
    "ModelTransitCiphertext",
    "ModelVaultClientConfig",
    "ModelVaultSecret",
    "ParsedReference",
    "parse_duration_seconds",
]
