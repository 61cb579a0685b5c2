# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Secret reference mode enumeration."""

from enum import Enum


class EnumReferenceMode(str, Enum):
    """Whether a secret reference reads from or writes to its path."""

    READ = "read"
    WRITE = "write"


__all__ = ["EnumReferenceMode"]
