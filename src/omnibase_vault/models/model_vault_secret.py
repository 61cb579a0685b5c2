# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Normalized Vault API response models.

Vault answers logical reads, writes, logins and renewals with the same
envelope (``lease_id``, ``lease_duration``, ``renewable``, ``data``,
``warnings``, ``auth``). These models give that envelope a typed shape so
the rest of the package never digs through raw hvac dictionaries.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ModelSecretAuth(BaseModel):
    """The ``auth`` block of a login or token renewal response."""

    model_config = ConfigDict(frozen=True)

    client_token: SecretStr = Field(description="Issued Vault token")
    accessor: str = Field(default="", description="Token accessor")
    lease_duration: int = Field(default=0, ge=0, description="Token TTL in seconds")
    renewable: bool = Field(default=False, description="Whether the token is renewable")
    policies: tuple[str, ...] = Field(default=(), description="Attached policies")


class ModelVaultSecret(BaseModel):
    """A Vault API response envelope."""

    model_config = ConfigDict(frozen=True)

    request_id: str = Field(default="")
    lease_id: str = Field(default="")
    lease_duration: int = Field(default=0, ge=0)
    renewable: bool = Field(default=False)
    data: dict[str, Any] | None = Field(default=None)
    warnings: tuple[str, ...] = Field(default=())
    auth: ModelSecretAuth | None = Field(default=None)

    @classmethod
    def from_response(cls, response: Mapping[str, Any]) -> ModelVaultSecret:
        """Build a model from a decoded JSON response, tolerating ``null`` fields."""
        auth_raw = response.get("auth")
        auth = None
        if isinstance(auth_raw, Mapping) and auth_raw.get("client_token"):
            auth = ModelSecretAuth(
                client_token=SecretStr(str(auth_raw["client_token"])),
                accessor=str(auth_raw.get("accessor") or ""),
                lease_duration=int(auth_raw.get("lease_duration") or 0),
                renewable=bool(auth_raw.get("renewable")),
                policies=tuple(auth_raw.get("policies") or ()),
            )

        data = response.get("data")
        return cls(
            request_id=str(response.get("request_id") or ""),
            lease_id=str(response.get("lease_id") or ""),
            lease_duration=int(response.get("lease_duration") or 0),
            renewable=bool(response.get("renewable")),
            data=dict(data) if isinstance(data, Mapping) else None,
            warnings=tuple(str(w) for w in response.get("warnings") or ()),
            auth=auth,
        )

    @property
    def token_ttl(self) -> int:
        """TTL of the token carried in ``auth``, 0 when there is none."""
        return self.auth.lease_duration if self.auth is not None else 0


__all__: list[str] = ["ModelSecretAuth", "ModelVaultSecret"]
