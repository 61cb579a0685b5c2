# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Secret Injector Configuration Model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelInjectorConfig(BaseModel):
    """Configuration for SecretInjector.

    Attributes:
        scheme: Reference prefix, ``vault`` gives ``vault:`` and ``>>vault:``
        token_variable: Variable name whose ``<scheme>:login`` value echoes the
            live token; defaults to ``<SCHEME>_TOKEN``
        transit_key_id: Transit key used to decrypt ciphertext values
        transit_path: Mount path of the transit secrets engine
        transit_batch_size: Maximum ciphertexts per batch decrypt call
        ignore_missing_secrets: Log and skip missing paths and failed decrypts
        daemon_mode: Register leased secrets with the renewer
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    scheme: str = Field(
        default="vault",
        pattern=r"^[a-z][a-z0-9-]*$",
        description="Reference scheme prefix without the trailing colon",
    )
    token_variable: str | None = Field(
        default=None,
        description="Variable name of the token echo pair",
    )
    transit_key_id: str = Field(
        default="",
        description="Transit key ID used for decrypting ciphertext values",
    )
    transit_path: str = Field(
        default="transit",
        min_length=1,
        description="Mount path of the transit secrets engine",
    )
    transit_batch_size: int = Field(
        default=25,
        ge=1,
        le=1000,
        description="Maximum ciphertexts per batch decrypt request",
    )
    ignore_missing_secrets: bool = Field(
        default=False,
        description="Downgrade missing paths and decrypt failures to warnings",
    )
    daemon_mode: bool = Field(
        default=False,
        description="Keep leased secrets alive through the renewer",
    )

    @property
    def effective_token_variable(self) -> str:
        """Variable name of the token echo pair (``VAULT_TOKEN`` for ``vault``)."""
        return self.token_variable or f"{self.scheme.upper().replace('-', '_')}_TOKEN"


__all__: list[str] = ["ModelInjectorConfig"]
