# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Parameters shared by every login strategy."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from omnibase_vault.enums import EnumAuthMethod


class ModelAuthParams(BaseModel):
    """Everything a login strategy needs to perform one login call.

    Built once from ModelVaultClientConfig; each strategy reads the fields it
    needs and ignores the others.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: EnumAuthMethod
    role: str
    mount_path: str
    jwt_file: str
    existing_secret: SecretStr | None = Field(default=None)
    aws_region: str = Field(default="us-east-1")
    metadata_timeout_seconds: float = Field(default=5.0, gt=0.0)


__all__: list[str] = ["ModelAuthParams"]
