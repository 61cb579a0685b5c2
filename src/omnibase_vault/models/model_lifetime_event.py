# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Lifetime watcher event model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from omnibase_vault.enums import EnumLifetimeEventType


class ModelLifetimeEvent(BaseModel):
    """One event of a token or lease lifetime watcher.

    Attributes:
        event_type: RENEWED or DONE
        ttl_seconds: New TTL for RENEWED events
        error: Failure description for DONE events that stopped on an error
    """

    model_config = ConfigDict(frozen=True)

    event_type: EnumLifetimeEventType
    ttl_seconds: int = Field(default=0, ge=0)
    error: str | None = Field(default=None)

    @classmethod
    def renewed(cls, ttl_seconds: int) -> ModelLifetimeEvent:
        return cls(event_type=EnumLifetimeEventType.RENEWED, ttl_seconds=ttl_seconds)

    @classmethod
    def done(cls, error: str | None = None) -> ModelLifetimeEvent:
        return cls(event_type=EnumLifetimeEventType.DONE, error=error)


__all__: list[str] = ["ModelLifetimeEvent"]
