# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault - Vault credential bootstrap and secret reference resolution.

This package keeps a Vault (or OpenBao) token alive for the life of a process
and resolves secret references found in configuration values:

- VaultCredentialManager: login, token renewal and CA bundle rotation
- SecretInjector: ``vault:path#key`` reads, ``>>vault:`` writes, inline
  ``${vault:...}`` spans and transit ciphertext decryption
- Transport-aware error handling with ModelInfraErrorContext

Key Components:
    - runtime.VaultCredentialManager / runtime.bootstrap
    - injector.SecretInjector
    - client.VaultRpcClient: the single seam to the Vault HTTP API
"""

from omnibase_vault.injector import SecretInjector
from omnibase_vault.models import ModelInjectorConfig, ModelVaultClientConfig
from omnibase_vault.runtime import VaultCredentialManager, bootstrap

__all__: list[str] = [
    "ModelInjectorConfig",
    "ModelVaultClientConfig",
    "SecretInjector",
    "VaultCredentialManager",
    "bootstrap",
]
