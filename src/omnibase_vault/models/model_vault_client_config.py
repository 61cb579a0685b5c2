# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Vault Client Configuration Model.

This module provides the Pydantic configuration model consumed by the
credential manager. Every recognized option is an explicit field with its
default; environment-influenced defaults are read once, when the model is
constructed.

Environment Variables:
    VAULT_ADDR: Vault server URL
    VAULT_TOKEN: Token used directly (no login cycle)
    VAULT_TOKEN_PATH: Token file checked before ``~/.vault-token``
    VAULT_CLIENT_TIMEOUT: Bootstrap timeout (``10s``, ``500ms``, ``1m``, or seconds)
    VAULT_NAMESPACE: Vault Enterprise namespace
    VAULT_CACERT: CA bundle for TLS verification
    VAULT_CACERT_RELOAD: Set to ``false`` to disable CA bundle reloading
    KUBERNETES_SERVICE_ACCOUNT_TOKEN / VAULT_JWT_FILE: JWT file for login

Security Note:
    ``token`` and ``existing_secret`` use SecretStr to prevent accidental
    logging of credentials.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from omnibase_vault.enums import EnumAuthMethod, EnumInfraTransportType
from omnibase_vault.errors import ModelInfraErrorContext, ProtocolConfigurationError

DEFAULT_JWT_FILE: str = "/var/run/secrets/kubernetes.io/serviceaccount/token"
DEFAULT_TIMEOUT_SECONDS: float = 10.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration_seconds(value: str) -> float:
    """Parse a Go-style duration string (``1m30s``, ``250ms``) into seconds.

    A bare number is read as seconds.

    Raises:
        ProtocolConfigurationError: If the value is not a valid duration
    """
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if not text or position != len(text):
        raise ProtocolConfigurationError(
            "could not parse timeout duration",
            context=ModelInfraErrorContext(
                transport_type=EnumInfraTransportType.RUNTIME,
                operation="parse_config",
                target_name="vault_client_config",
            ),
            value=value,
        )
    return total


def _env_timeout() -> float:
    raw = os.environ.get("VAULT_CLIENT_TIMEOUT")
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    return parse_duration_seconds(raw)


def _env_token() -> SecretStr | None:
    raw = os.environ.get("VAULT_TOKEN")
    return SecretStr(raw) if raw else None


def _env_token_path() -> str:
    env = os.environ.get("VAULT_TOKEN_PATH")
    if env is not None:
        return env
    return str(Path(os.environ.get("HOME", "~")).expanduser() / ".vault-token")


def _env_jwt_file() -> str:
    return (
        os.environ.get("KUBERNETES_SERVICE_ACCOUNT_TOKEN")
        or os.environ.get("VAULT_JWT_FILE")
        or DEFAULT_JWT_FILE
    )


class ModelVaultClientConfig(BaseModel):
    """Configuration for the Vault credential manager.

    Credential source precedence:
        ``token`` (or VAULT_TOKEN) > ``token_path`` (explicit, else
        VAULT_TOKEN_PATH, else ``~/.vault-token``) > login via ``auth_method``.

    Example:
        >>> config = ModelVaultClientConfig(
        ...     url="https://vault.example.com:8200",
        ...     role="my-app",
        ...     auth_method=EnumAuthMethod.JWT,
        ...     timeout_seconds=5.0,
        ... )
        >>> config.token is None or "SecretStr" in repr(config.token)
        True
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        from_attributes=True,
    )

    url: str | None = Field(
        default_factory=lambda: os.environ.get("VAULT_ADDR"),
        description="Vault server URL (e.g., 'https://vault.example.com:8200')",
    )
    role: str = Field(
        default="default",
        min_length=1,
        description="Vault role requested at login",
    )
    auth_path: str = Field(
        default="kubernetes",
        min_length=1,
        description="Mount path of the auth method",
    )
    auth_method: EnumAuthMethod = Field(
        default=EnumAuthMethod.JWT,
        description="Login method used when no token is supplied",
    )
    token: SecretStr | None = Field(
        default_factory=_env_token,
        description="Token used directly, skipping login and renewal",
    )
    token_path: str = Field(
        default_factory=_env_token_path,
        description="File holding a token, used when no token is given",
    )
    jwt_file: str = Field(
        default_factory=_env_jwt_file,
        description="Service account JWT file used by JWT, Kubernetes and AWS EC2 login",
    )
    existing_secret: SecretStr | None = Field(
        default=None,
        description="Existing service account token for the namespaced auth method",
    )
    timeout_seconds: float = Field(
        default_factory=_env_timeout,
        gt=0.0,
        description="Maximum time bootstrap waits for the initial token",
    )
    namespace: str | None = Field(
        default_factory=lambda: os.environ.get("VAULT_NAMESPACE") or None,
        description="Vault Enterprise namespace",
    )
    ca_cert_path: str | None = Field(
        default_factory=lambda: os.environ.get("VAULT_CACERT") or None,
        description="CA bundle used to verify the Vault server certificate",
    )
    ca_cert_reload: bool = Field(
        default_factory=lambda: os.environ.get("VAULT_CACERT_RELOAD") != "false",
        description="Reload the CA bundle when its file changes",
    )
    verify_ssl: bool = Field(
        default=True,
        description="Whether to verify SSL certificates",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Per-request HTTP timeout of the Vault transport",
    )
    login_retry_interval_seconds: float = Field(
        default=1.0,
        gt=0.0,
        le=60.0,
        description="Fixed backoff between failed login attempts",
    )
    ca_cert_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0.0,
        description="Polling interval of the CA bundle watcher",
    )
    aws_region: str = Field(
        default="us-east-1",
        description="Region used to sign AWS IAM login requests",
    )

    @classmethod
    def from_mapping(cls, config: Mapping[str, object]) -> ModelVaultClientConfig:
        """Validate a raw configuration mapping.

        Raises:
            ProtocolConfigurationError: If validation fails
        """
        try:
            return cls.model_validate(dict(config))
        except ValidationError as e:
            raise ProtocolConfigurationError(
                f"Invalid Vault configuration: {e}",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="parse_config",
                    target_name="vault_client_config",
                ),
            ) from e


__all__: list[str] = [
    "DEFAULT_JWT_FILE",
    "ModelVaultClientConfig",
    "parse_duration_seconds",
]
