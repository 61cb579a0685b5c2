# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Conversion of decoded secret attributes to the strings handed to sinks."""

from __future__ import annotations

import math
from decimal import Decimal

from omnibase_vault.enums import EnumInfraTransportType
from omnibase_vault.errors import ModelInfraErrorContext, SecretValueTypeError


def _format_float(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    # shortest round-trip digits, never exponent notation
    return format(Decimal(repr(value)), "f")


def to_string(value: object, *, key: str | None = None) -> str:
    """Render a scalar secret attribute as a string.

    ``None`` becomes the empty string, booleans ``true``/``false``, integral
    floats drop their fraction and bytes are decoded as UTF-8.

    Raises:
        SecretValueTypeError: If ``value`` is a mapping, a list or another
            non-scalar type
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")

    message = "value can't be cast to a string"
    if key is not None:
        message = f"{message} for key: {key}"
    raise SecretValueTypeError(
        message,
        context=ModelInfraErrorContext.with_correlation(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation="cast_value",
            target_name="secret_injector",
        ),
        value_type=type(value).__name__,
    )


__all__: list[str] = ["to_string"]
