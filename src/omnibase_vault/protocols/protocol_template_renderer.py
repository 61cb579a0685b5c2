# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for rendering templated secret keys."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ProtocolTemplateRenderer(Protocol):
    """Renders a key template against the attributes of one secret.

    Implementations:
        - JinjaTemplateRenderer: sandboxed jinja2 with ``${ ... }`` markers
    """

    def is_template(self, value: str) -> bool:
        """Return True when ``value`` contains the template markers."""
        ...

    def render(self, template: str, data: Mapping[str, Any]) -> str:
        """Render ``template`` with ``data`` as its variables."""
        ...


__all__ = ["ProtocolTemplateRenderer"]
