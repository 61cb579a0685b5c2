# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault Errors Module.

Exports:
    ModelInfraErrorContext: Configuration model for bundled error context
    VaultInfraError: Base error class
    ProtocolConfigurationError: Invalid configuration or reference syntax
    InfraAuthenticationError: Login or authorization failures
    InfraConnectionError: Transport failures from the RPC client
    TransitDecryptError: Transit decrypt failures
    InfraTimeoutError: Bootstrap timeout
    SecretResolutionError: Secret path not found
    SecretKeyNotFoundError: Key absent under an existing path
    SecretValueTypeError: Secret value not castable to a string
    SecretRenewalError: Lease renewal registration failures

Error Sanitization Guidelines:
    NEVER include in error messages or context:
        - Tokens, secret values, decrypted plaintexts
        - JWTs or cloud credentials used for login

    SAFE to include:
        - Secret paths and key names
        - Variable names of the resolved mapping
        - Auth method, role and mount path
        - Correlation IDs, timeouts, batch sizes
"""

from omnibase_vault.errors.infra_errors import (
    InfraAuthenticationError,
    InfraConnectionError,
    InfraTimeoutError,
    ProtocolConfigurationError,
    SecretKeyNotFoundError,
    SecretRenewalError,
    SecretResolutionError,
    SecretValueTypeError,
    TransitDecryptError,
    VaultInfraError,
)
from omnibase_vault.errors.model_infra_error_context import ModelInfraErrorContext

__all__: list[str] = [
    "ModelInfraErrorContext",
    "VaultInfraError",
    "ProtocolConfigurationError",
    "InfraAuthenticationError",
    "InfraConnectionError",
    "TransitDecryptError",
    "InfraTimeoutError",
    "SecretResolutionError",
    "SecretKeyNotFoundError",
    "SecretValueTypeError",
    "SecretRenewalError",
]
