# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Lifetime watcher event type enumeration."""

from enum import Enum


class EnumLifetimeEventType(str, Enum):
    """Events emitted by a lifetime watcher.

    Attributes:
        RENEWED: The token or lease was renewed; the event carries the new TTL
        DONE: The watcher stopped, optionally with an error
    """

    RENEWED = "renewed"
    DONE = "done"


__all__ = ["EnumLifetimeEventType"]
