# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for directory change streams."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from omnibase_vault.models import ModelFileChangeEvent


@runtime_checkable
class ProtocolFileWatcher(Protocol):
    """An async stream of change events for one directory.

    Implementations:
        - PollingFileWatcher: stat-based polling watcher

    Iteration ends after ``close()``.
    """

    def __aiter__(self) -> AsyncIterator[ModelFileChangeEvent]: ...

    def close(self) -> None:
        """Stop producing events."""
        ...


__all__ = ["ProtocolFileWatcher"]
