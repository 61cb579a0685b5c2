# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Vault Infrastructure Error Classes.

Error Hierarchy:
    VaultInfraError (base)
    ├── ProtocolConfigurationError
    ├── InfraAuthenticationError
    ├── InfraConnectionError
    │   └── TransitDecryptError
    ├── InfraTimeoutError
    ├── SecretResolutionError
    │   └── SecretKeyNotFoundError
    ├── SecretValueTypeError
    └── SecretRenewalError

All errors:
    - Carry an EnumVaultErrorCode classification
    - Support proper error chaining with `raise ... from e`
    - Accept ModelInfraErrorContext for bundled context parameters
    - Keep extra keyword context in ``context`` for logging
    - Never include secret values or tokens in their message
"""

from typing import Optional
from uuid import UUID

from omnibase_vault.enums import EnumVaultErrorCode
from omnibase_vault.errors.model_infra_error_context import ModelInfraErrorContext


class VaultInfraError(Exception):
    """Base error class for omnibase_vault.

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.VAULT,
        ...     operation="login",
        ...     target_name="credential_manager",
        ... )
        >>> raise VaultInfraError("Operation failed", context=context, retry_count=3)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[EnumVaultErrorCode] = None,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        """Initialize VaultInfraError with structured fields.

        Args:
            message: Human-readable error message
            error_code: Error code (defaults to OPERATION_FAILED)
            context: Bundled infrastructure context (transport_type, operation, etc.)
            **extra_context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or EnumVaultErrorCode.OPERATION_FAILED

        structured_context: dict[str, object] = dict(extra_context)
        self.correlation_id: Optional[UUID] = None
        if context is not None:
            if context.transport_type is not None:
                structured_context["transport_type"] = context.transport_type
            if context.operation is not None:
                structured_context["operation"] = context.operation
            if context.target_name is not None:
                structured_context["target_name"] = context.target_name
            self.correlation_id = context.correlation_id
        self.context = structured_context

    def __str__(self) -> str:
        return self.message


class ProtocolConfigurationError(VaultInfraError):
    """Raised when configuration or reference syntax is invalid.

    Used for missing transit key IDs, malformed write payloads, unparseable
    secret references and invalid client configuration.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumVaultErrorCode.INVALID_CONFIGURATION,
            context=context,
            **extra_context,
        )


class InfraAuthenticationError(VaultInfraError):
    """Raised when a login or an authenticated call is rejected.

    Post-bootstrap authentication failures are retried in the background and
    only logged; callers see this error from direct RPC use.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumVaultErrorCode.AUTHENTICATION_ERROR,
            context=context,
            **extra_context,
        )


class InfraConnectionError(VaultInfraError):
    """Raised when the Vault transport fails.

    Wraps hvac and HTTP errors propagated from the RPC client.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumVaultErrorCode.CONNECTION_ERROR,
            context=context,
            **extra_context,
        )


class TransitDecryptError(InfraConnectionError):
    """Raised when a transit decrypt call fails or a ciphertext stays undecrypted.

    Downgraded to a logged warning when ignore-missing-secrets is enabled.
    """


class InfraTimeoutError(VaultInfraError):
    """Raised when bootstrap does not receive its initial token in time."""

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumVaultErrorCode.TIMEOUT_ERROR,
            context=context,
            **extra_context,
        )


class SecretResolutionError(VaultInfraError):
    """Raised when a secret path does not exist.

    Example:
        >>> raise SecretResolutionError(
        ...     "path not found: secret/data/app",
        ...     context=context,
        ...     secret_path="secret/data/app",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumVaultErrorCode.RESOURCE_NOT_FOUND,
            context=context,
            **extra_context,
        )


class SecretKeyNotFoundError(SecretResolutionError):
    """Raised when a path exists but does not hold the requested key."""


class SecretValueTypeError(VaultInfraError):
    """Raised when a secret value cannot be represented as a scalar string."""

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumVaultErrorCode.TYPE_MISMATCH,
            context=context,
            **extra_context,
        )


class SecretRenewalError(VaultInfraError):
    """Raised when a leased secret cannot be registered for renewal."""

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumVaultErrorCode.RENEWAL_ERROR,
            context=context,
            **extra_context,
        )


__all__ = [
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
