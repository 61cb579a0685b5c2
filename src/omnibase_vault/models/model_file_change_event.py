# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""File watcher change event model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from omnibase_vault.enums import EnumFileChangeOp


class ModelFileChangeEvent(BaseModel):
    """A change observed in a watched directory."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Path of the changed entry")
    op: EnumFileChangeOp = Field(description="Kind of change")
    error: str | None = Field(default=None, description="Set for ERROR events")


__all__: list[str] = ["ModelFileChangeEvent"]
