# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Secret reference parser.

Grammar (``<scheme>`` is ``vault`` by default, ``bao`` for OpenBao):

    <scheme>:<path>#<key>[#<version>]        read, version defaults to -1 (latest)
    >><scheme>:<path>#<key>[#<json-object>]  write, payload defaults to {}
    ...${<scheme>:<path>#<key>}...           inline, any number of spans
    ...${>><scheme>:<path>#<key>#{...}}...   inline write, JSON payload braces kept
    vault:v<N>:<ciphertext>                  transit ciphertext

Anything else is a literal. The body is split on at most two ``#`` so a JSON
payload or a template key may itself contain ``#``.

``<scheme>:login`` under the token variable name (``VAULT_TOKEN``,
``BAO_TOKEN``) is reserved: it echoes the live token instead of reading a
path named ``login``.
"""

from __future__ import annotations

import re

from omnibase_vault.enums import EnumInfraTransportType, EnumReferenceMode
from omnibase_vault.errors import ModelInfraErrorContext, ProtocolConfigurationError
from omnibase_vault.models import (
    ModelInlineReference,
    ModelInlineSpan,
    ModelLiteralValue,
    ModelSecretReference,
    ModelTokenEcho,
    ModelTransitCiphertext,
    ParsedReference,
)

WRITE_MARKER: str = ">>"
LATEST_VERSION: str = "-1"
EMPTY_WRITE_PAYLOAD: str = "{}"
TOKEN_ECHO_PATH: str = "login"

# Transit ciphertext keeps the ``vault:`` prefix on OpenBao too.
_TRANSIT_CIPHERTEXT = re.compile(r"^vault:v\d+:")


def is_encrypted(value: str) -> bool:
    """Return True when ``value`` is transit engine ciphertext."""
    return _TRANSIT_CIPHERTEXT.match(value) is not None


class ReferenceParser:
    """Parses raw configuration values into ParsedReference models.

    Example:
        >>> parser = ReferenceParser("vault")
        >>> parser.parse("vault:secret/data/app#password")
        ModelSecretReference(mode=<EnumReferenceMode.READ: 'read'>, path='secret/data/app', ...)
        >>> parser.parse("postgres://${vault:secret/data/db#user}@db")
        ModelInlineReference(raw='postgres://${vault:secret/data/db#user}@db', ...)
    """

    def __init__(self, scheme: str = "vault", token_variable: str | None = None) -> None:
        self._scheme = scheme
        self._read_prefix = f"{scheme}:"
        self._write_prefix = f"{WRITE_MARKER}{scheme}:"
        self._token_variable = (
            token_variable or f"{scheme.upper().replace('-', '_')}_TOKEN"
        )
        self._inline_pattern = re.compile(
            r"\$\{(>{0,2}" + re.escape(scheme) + r":.*?#*\}?)\}"
        )

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def token_variable(self) -> str:
        return self._token_variable

    def is_encrypted(self, value: str) -> bool:
        return is_encrypted(value)

    def is_reference(self, value: str) -> bool:
        """Return True when ``value`` starts with the read or write prefix."""
        return value.startswith(self._read_prefix) or value.startswith(self._write_prefix)

    def has_inline_references(self, value: str) -> bool:
        return self._inline_pattern.search(value) is not None

    def find_inline_references(self, value: str) -> tuple[ModelInlineSpan, ...]:
        """Return every inline span of ``value`` in order of appearance."""
        return tuple(
            ModelInlineSpan(literal=match.group(0), inner=match.group(1))
            for match in self._inline_pattern.finditer(value)
        )

    def parse(self, raw: str, name: str | None = None) -> ParsedReference:
        """Classify and parse ``raw``.

        Args:
            raw: The configuration value
            name: The variable name, needed to recognize the token echo pair

        Raises:
            ProtocolConfigurationError: If a reference has no key segment
        """
        spans = self.find_inline_references(raw)
        if spans:
            return ModelInlineReference(raw=raw, spans=spans)

        if is_encrypted(raw):
            return ModelTransitCiphertext(ciphertext=raw)

        if raw.startswith(self._write_prefix):
            mode = EnumReferenceMode.WRITE
            body = raw[len(self._write_prefix):]
        elif raw.startswith(self._read_prefix):
            mode = EnumReferenceMode.READ
            body = raw[len(self._read_prefix):]
        else:
            return ModelLiteralValue(value=raw)

        if name == self._token_variable and body == TOKEN_ECHO_PATH:
            return ModelTokenEcho(raw=raw)

        return self.parse_secret_reference(body, mode, raw=raw)

    def parse_secret_reference(
        self,
        body: str,
        mode: EnumReferenceMode = EnumReferenceMode.READ,
        *,
        raw: str = "",
    ) -> ModelSecretReference:
        """Split ``path#key[#version|#payload]`` into a ModelSecretReference.

        Raises:
            ProtocolConfigurationError: If there is no ``#key`` segment
        """
        parts = body.split("#", 2)
        if len(parts) < 2:
            raise ProtocolConfigurationError(
                "secret data key or template not defined",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="parse_reference",
                    target_name="reference_parser",
                ),
                secret_path=parts[0],
            )

        if len(parts) == 3:
            version_or_data = parts[2]
        elif mode is EnumReferenceMode.WRITE:
            version_or_data = EMPTY_WRITE_PAYLOAD
        else:
            version_or_data = LATEST_VERSION

        return ModelSecretReference(
            mode=mode,
            path=parts[0],
            key=parts[1],
            version_or_data=version_or_data,
            raw=raw or body,
        )


def parse_reference(
    raw: str,
    *,
    scheme: str = "vault",
    name: str | None = None,
    token_variable: str | None = None,
) -> ParsedReference:
    """Parse one value with a throwaway ReferenceParser."""
    return ReferenceParser(scheme, token_variable).parse(raw, name)


__all__: list[str] = [
    "EMPTY_WRITE_PAYLOAD",
    "LATEST_VERSION",
    "ReferenceParser",
    "TOKEN_ECHO_PATH",
    "WRITE_MARKER",
    "is_encrypted",
    "parse_reference",
]
