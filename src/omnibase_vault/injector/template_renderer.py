# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Key templates rendered with sandboxed jinja2.

A secret key containing ``${`` is a template rendered against every attribute
of the secret, e.g. ``vault:secret/data/db#${ username }:${ password }``.
Expressions use jinja2 syntax between ``${`` and ``}``; filters are
available (``${ password | b64encode }``). Undefined attributes are an error.
"""

from __future__ import annotations

import base64
import logging
import threading
from collections.abc import Mapping
from typing import Any

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from omnibase_vault.enums import EnumInfraTransportType
from omnibase_vault.errors import ModelInfraErrorContext, ProtocolConfigurationError

logger = logging.getLogger(__name__)

LEFT_DELIMITER: str = "${"
RIGHT_DELIMITER: str = "}"


def _b64encode(value: object) -> str:
    raw = value if isinstance(value, bytes) else str(value).encode()
    return base64.b64encode(raw).decode("ascii")


def _b64decode(value: object) -> str:
    return base64.b64decode(str(value)).decode("utf-8", errors="replace")


class JinjaTemplateRenderer:
    """ProtocolTemplateRenderer backed by a jinja2 SandboxedEnvironment.

    Compiled templates are kept per template string.
    """

    def __init__(
        self,
        left_delimiter: str = LEFT_DELIMITER,
        right_delimiter: str = RIGHT_DELIMITER,
    ) -> None:
        self._left_delimiter = left_delimiter
        self._environment = SandboxedEnvironment(
            variable_start_string=left_delimiter,
            variable_end_string=right_delimiter,
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._environment.filters["b64encode"] = _b64encode
        self._environment.filters["b64decode"] = _b64decode
        self._lock = threading.Lock()
        self._templates: dict[str, jinja2.Template] = {}

    def is_template(self, value: str) -> bool:
        return self._left_delimiter in value

    def _compile(self, template: str) -> jinja2.Template:
        with self._lock:
            compiled = self._templates.get(template)
            if compiled is None:
                compiled = self._environment.from_string(template)
                self._templates[template] = compiled
            return compiled

    def render(self, template: str, data: Mapping[str, Any]) -> str:
        """Render ``template`` with the secret attributes as variables.

        Raises:
            ProtocolConfigurationError: If the template does not compile or
                refers to an attribute the secret does not have
        """
        try:
            return self._compile(template).render(dict(data))
        except jinja2.TemplateError as e:
            raise ProtocolConfigurationError(
                f"failed to interpolate template key with vault data: {template}",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="render_template",
                    target_name="template_renderer",
                ),
                template_error=type(e).__name__,
            ) from e


__all__: list[str] = ["JinjaTemplateRenderer", "LEFT_DELIMITER", "RIGHT_DELIMITER"]
