# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Credential model held by the credential manager."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from omnibase_vault.models.model_vault_secret import ModelVaultSecret


class ModelCredential(BaseModel):
    """The token currently installed on the Vault client.

    Owned by the credential manager and replaced only by the login/renewal
    loop. ``lease_id`` is empty and ``ttl_seconds`` is 0 for tokens supplied
    directly.
    """

    model_config = ConfigDict(frozen=True)

    token: SecretStr = Field(description="Vault token")
    lease_id: str = Field(default="", description="Lease ID of the login response")
    ttl_seconds: int = Field(default=0, ge=0, description="Token TTL at issue/renewal")
    renewable: bool = Field(default=False, description="Whether the token is renewable")

    @classmethod
    def from_login(cls, secret: ModelVaultSecret) -> ModelCredential:
        """Build a credential from a login response carrying an ``auth`` block."""
        if secret.auth is None:
            raise ValueError("login response carries no auth block")
        return cls(
            token=secret.auth.client_token,
            lease_id=secret.lease_id,
            ttl_seconds=secret.auth.lease_duration,
            renewable=secret.auth.renewable,
        )

    def with_ttl(self, ttl_seconds: int) -> ModelCredential:
        """Return a copy with a refreshed TTL."""
        return self.model_copy(update={"ttl_seconds": ttl_seconds})


__all__: list[str] = ["ModelCredential"]
