# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""File change operation enumeration for file watchers."""

from enum import Enum


class EnumFileChangeOp(str, Enum):
    """Kinds of change reported by a file watcher.

    ERROR events carry no path change; the watcher reports a failure to
    inspect the watched directory.
    """

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    ERROR = "error"


__all__ = ["EnumFileChangeOp"]
