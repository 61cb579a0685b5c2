# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Parsed forms of secret reference strings.

A raw configuration value parses into exactly one of:

    ModelLiteralValue       plain text, passed through unchanged
    ModelTokenEcho          ``<scheme>:login`` under the token variable name
    ModelTransitCiphertext  ``vault:v<N>:...`` transit ciphertext
    ModelSecretReference    ``[>>]<scheme>:path#key[#version|#json]``
    ModelInlineReference    text embedding one or more ``${...}`` references

These are created per resolution call and never persisted.
"""

from __future__ import annotations

import json
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from omnibase_vault.enums import EnumInfraTransportType, EnumReferenceMode
from omnibase_vault.errors import ModelInfraErrorContext, ProtocolConfigurationError


class ModelLiteralValue(BaseModel):
    """A value without any recognized prefix."""

    model_config = ConfigDict(frozen=True)

    value: str


class ModelTokenEcho(BaseModel):
    """The reserved pair that resolves to the live Vault token."""

    model_config = ConfigDict(frozen=True)

    raw: str


class ModelTransitCiphertext(BaseModel):
    """A transit engine ciphertext to be decrypted."""

    model_config = ConfigDict(frozen=True)

    ciphertext: str


class ModelSecretReference(BaseModel):
    """A read or write against a secret path.

    Attributes:
        mode: READ or WRITE
        path: Logical path of the secret (``secret/data/app``)
        key: Attribute name or template rendered against the attributes
        version_or_data: Version to read (``-1`` is latest) or JSON write payload
        raw: The original reference string
    """

    model_config = ConfigDict(frozen=True)

    mode: EnumReferenceMode
    path: str
    key: str
    version_or_data: str
    raw: str = Field(default="")

    @property
    def is_write(self) -> bool:
        return self.mode is EnumReferenceMode.WRITE

    @property
    def cache_key(self) -> str:
        """Key of the secret cache entry for this path and version or payload."""
        return f"{self.path}#{self.version_or_data}"

    def write_payload(self) -> dict[str, Any]:
        """Decode the JSON write payload.

        Raises:
            ProtocolConfigurationError: If the payload is not a JSON object
        """
        try:
            payload = json.loads(self.version_or_data)
        except json.JSONDecodeError as e:
            raise ProtocolConfigurationError(
                "failed to unmarshal data for writing",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="parse_reference",
                    target_name="reference_parser",
                ),
                secret_path=self.path,
            ) from e
        if not isinstance(payload, dict):
            raise ProtocolConfigurationError(
                "failed to unmarshal data for writing: payload must be a JSON object",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="parse_reference",
                    target_name="reference_parser",
                ),
                secret_path=self.path,
            )
        return payload


class ModelInlineSpan(BaseModel):
    """One ``${...}`` occurrence inside an inline reference.

    Attributes:
        literal: The exact matched text, including the ``${`` and ``}`` markers
        inner: The nested reference string between the markers
    """

    model_config = ConfigDict(frozen=True)

    literal: str
    inner: str


class ModelInlineReference(BaseModel):
    """A literal string with embedded references substituted in place."""

    model_config = ConfigDict(frozen=True)

    raw: str
    spans: tuple[ModelInlineSpan, ...]

    def substitute(self, values: dict[str, str]) -> str:
        """Replace each span literal that has a value in ``values``."""
        result = self.raw
        for span in self.spans:
            if span.literal in values:
                result = result.replace(span.literal, values[span.literal])
        return result


ParsedReference = Union[
    ModelLiteralValue,
    ModelTokenEcho,
    ModelTransitCiphertext,
    ModelSecretReference,
    ModelInlineReference,
]


__all__: list[str] = [
    "ModelInlineReference",
    "ModelInlineSpan",
    "ModelLiteralValue",
    "ModelSecretReference",
    "ModelTokenEcho",
    "ModelTransitCiphertext",
    "ParsedReference",
]
