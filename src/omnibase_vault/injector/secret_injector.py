# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Secret Injector.

SecretInjector resolves a mapping of names to raw configuration values and
delivers every resolved value to a caller-supplied sink, ``sink(name, value)``.

Resolution Order (one ``resolve`` call):
    1. Collect transit ciphertext, top-level or inside inline spans, that is
       not cached yet and decrypt it in batches of ``transit_batch_size``.
    2. Inline values with at least one span answered from the transit cache
       are completed (remaining spans resolved as nested references), sunk,
       and removed from further processing.
    3. Every other value is resolved on its own: literals pass through, the
       token echo pair yields the live token, ciphertext comes from the
       transit cache, and references are read or written through the secret
       path store, memoized per ``path#version`` (or ``path#payload``).
    4. A path Vault does not know is an error, or a logged skip when
       ``ignore_missing_secrets`` is set.
    5. The key is rendered as a template against all attributes of the
       secret when it contains ``${``; otherwise it is looked up and cast to
       a string.

Error Policy:
    With ``ignore_missing_secrets`` only missing paths and decrypt failures
    are downgraded to warnings; the affected name is then never sunk. All
    other errors abort the call.

Thread Safety:
    ``resolve`` keeps no per-call state on the instance; concurrent calls
    share the SecretCache only.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Iterable, Mapping

from omnibase_vault.client import LATEST_VERSION
from omnibase_vault.enums import EnumInfraTransportType
from omnibase_vault.errors import (
    InfraAuthenticationError,
    ModelInfraErrorContext,
    SecretKeyNotFoundError,
    SecretResolutionError,
    TransitDecryptError,
)
from omnibase_vault.injector.reference_parser import ReferenceParser, is_encrypted
from omnibase_vault.injector.secret_cache import SecretCache, SecretData
from omnibase_vault.injector.secret_path_store import SecretPathStore
from omnibase_vault.injector.template_renderer import JinjaTemplateRenderer
from omnibase_vault.injector.transit_decryptor import TransitDecryptor, paginate
from omnibase_vault.injector.value_cast import to_string
from omnibase_vault.models import (
    ModelInjectorConfig,
    ModelInlineReference,
    ModelLiteralValue,
    ModelSecretReference,
    ModelTokenEcho,
    ModelTransitCiphertext,
)
from omnibase_vault.protocols import (
    ProtocolSecretRenewer,
    ProtocolTemplateRenderer,
    ProtocolVaultClientHandle,
)

logger = logging.getLogger(__name__)

SecretSink = Callable[[str, str], None]

# Transit failures that ignore_missing_secrets may downgrade.
_DECRYPT_FAILURES = (TransitDecryptError, InfraAuthenticationError)


def _context(operation: str) -> ModelInfraErrorContext:
    return ModelInfraErrorContext.with_correlation(
        transport_type=EnumInfraTransportType.VAULT,
        operation=operation,
        target_name="secret_injector",
    )


class SecretInjector:
    """Resolves secret references into plain values.

    Example:
        >>> manager = await VaultCredentialManager.bootstrap(ModelVaultClientConfig())
        >>> injector = SecretInjector(ModelInjectorConfig(transit_key_id="app"), manager)
        >>> env = injector.get_data({
        ...     "DB_PASS": "vault:secret/data/app#password",
        ...     "DSN": "postgres://${vault:secret/data/app#user}@db/app",
        ... })
    """

    def __init__(
        self,
        config: ModelInjectorConfig,
        handle: ProtocolVaultClientHandle,
        renewer: ProtocolSecretRenewer | None = None,
        *,
        cache: SecretCache | None = None,
        renderer: ProtocolTemplateRenderer | None = None,
    ) -> None:
        self._config = config
        self._handle = handle
        self._cache = cache if cache is not None else SecretCache()
        self._renderer = renderer or JinjaTemplateRenderer()
        self._parser = ReferenceParser(config.scheme, config.effective_token_variable)
        self._decryptor = TransitDecryptor(handle.rpc_client, self._cache)
        self._store = SecretPathStore(
            handle.rpc_client, renewer, daemon_mode=config.daemon_mode
        )

    @property
    def config(self) -> ModelInjectorConfig:
        return self._config

    @property
    def cache(self) -> SecretCache:
        return self._cache

    @property
    def parser(self) -> ReferenceParser:
        return self._parser

    # -------------------------------------------------------------------------
    # Public surface
    # -------------------------------------------------------------------------

    def resolve(self, references: Mapping[str, str], sink: SecretSink) -> None:
        """Resolve every value of ``references`` and sink it under its name.

        Inline values completed from the transit cache are sunk first; no
        other ordering is guaranteed.

        Raises:
            ProtocolConfigurationError: On malformed references, write payloads
                or templates, or ciphertext without a transit key ID
            SecretResolutionError: If a path is missing (unless ignored)
            SecretKeyNotFoundError: If a path lacks the requested key
            SecretValueTypeError: If a value is not a scalar
            TransitDecryptError: If decryption fails (unless ignored)
            SecretRenewalError: If a lease cannot be registered in daemon mode
            InfraConnectionError / InfraAuthenticationError: On transport failures
        """
        remaining = dict(references)
        self._decrypt_transit(remaining.values())
        self._sink_transit_inline(remaining, sink)

        for name, raw in remaining.items():
            value = self._resolve_value(name, raw)
            if value is not None:
                sink(name, value)

    async def resolve_async(self, references: Mapping[str, str], sink: SecretSink) -> None:
        """Run ``resolve`` in a worker thread; ``sink`` is called from that thread."""
        await asyncio.to_thread(self.resolve, references, sink)

    def get_data(self, references: Mapping[str, str]) -> dict[str, str]:
        """Resolve ``references`` into a new dict."""
        data: dict[str, str] = {}
        self.resolve(references, data.__setitem__)
        return data

    def resolve_paths(self, paths: str, sink: SecretSink) -> None:
        """Sink every attribute of each path in a comma-separated list.

        Each entry is ``path`` or ``path#version``; attributes are sunk under
        their own names.
        """
        for entry in paths.split(","):
            entry = entry.strip()
            if not entry:
                continue
            path, separator, version = entry.partition("#")
            if not separator:
                version = LATEST_VERSION

            data = self._cache.get_or_load(
                f"{path}#{version}", functools.partial(self._store.read, path, version)
            )
            if data is None:
                self._missing_path(path, variable=None)
                continue

            for key, value in data.items():
                sink(key, to_string(value, key=key))

    # -------------------------------------------------------------------------
    # Step 1: transit pre-decryption
    # -------------------------------------------------------------------------

    def _decrypt_transit(self, values: Iterable[str]) -> None:
        ciphertexts: list[str] = []
        for value in values:
            spans = self._parser.find_inline_references(value)
            if spans:
                ciphertexts.extend(s.inner for s in spans if is_encrypted(s.inner))
            elif is_encrypted(value):
                ciphertexts.append(value)

        missing = self._cache.missing_transit(ciphertexts)
        if not missing:
            return

        for chunk in paginate(missing, self._config.transit_batch_size):
            try:
                self._decryptor.decrypt_batch(
                    self._config.transit_path, self._config.transit_key_id, chunk
                )
            except _DECRYPT_FAILURES as e:
                if not self._config.ignore_missing_secrets:
                    raise
                logger.warning(
                    "Failed to decrypt transit batch, skipping",
                    extra={"error": str(e), "batch_size": len(chunk)},
                )

    # -------------------------------------------------------------------------
    # Step 2: inline values completed from the transit cache
    # -------------------------------------------------------------------------

    def _sink_transit_inline(self, remaining: dict[str, str], sink: SecretSink) -> None:
        for name, raw in list(remaining.items()):
            spans = self._parser.find_inline_references(raw)
            if not spans:
                continue

            decrypted: dict[str, str] = {}
            for span in spans:
                if not is_encrypted(span.inner):
                    continue
                plaintext = self._cache.get_transit(span.inner)
                if plaintext is not None:
                    decrypted[span.literal] = to_string(plaintext)
            if not decrypted:
                continue

            del remaining[name]
            value = self._resolve_inline(
                name, ModelInlineReference(raw=raw, spans=spans), decrypted
            )
            if value is not None:
                sink(name, value)

    # -------------------------------------------------------------------------
    # Step 3: single values
    # -------------------------------------------------------------------------

    def _resolve_value(self, name: str, raw: str) -> str | None:
        """Resolve one raw value; ``None`` means it was skipped."""
        parsed = self._parser.parse(raw, name)

        if isinstance(parsed, ModelLiteralValue):
            return parsed.value
        if isinstance(parsed, ModelTokenEcho):
            return self._handle.token
        if isinstance(parsed, ModelTransitCiphertext):
            return self._cached_plaintext(name, parsed)
        if isinstance(parsed, ModelInlineReference):
            return self._resolve_inline(name, parsed, {})
        return self._resolve_reference(name, parsed)

    def _resolve_inline(
        self,
        name: str,
        reference: ModelInlineReference,
        resolved: dict[str, str],
    ) -> str | None:
        values = dict(resolved)
        for span in reference.spans:
            if span.literal in values:
                continue
            value = self._resolve_value(name, span.inner)
            if value is None:
                return None
            values[span.literal] = value
        return reference.substitute(values)

    def _cached_plaintext(self, name: str, parsed: ModelTransitCiphertext) -> str | None:
        self._decryptor.require_key_id(self._config.transit_key_id, "decrypt")

        plaintext = self._cache.get_transit(parsed.ciphertext)
        if plaintext is not None:
            return to_string(plaintext)

        if not self._config.ignore_missing_secrets:
            raise TransitDecryptError(
                f"failed to decrypt variable: {name}",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=EnumInfraTransportType.TRANSIT,
                    operation="decrypt",
                    target_name="secret_injector",
                ),
                variable=name,
            )
        logger.warning("Failed to decrypt variable, skipping", extra={"variable": name})
        return None

    def _resolve_reference(self, name: str, reference: ModelSecretReference) -> str | None:
        data = self._cache.get_or_load(
            reference.cache_key, functools.partial(self._store.fetch, reference)
        )
        if data is None:
            self._missing_path(reference.path, variable=name)
            return None
        return self._render_key(reference, data)

    def _missing_path(self, path: str, variable: str | None) -> None:
        """Raise for a missing path, or log it when missing paths are ignored."""
        if not self._config.ignore_missing_secrets:
            raise SecretResolutionError(
                f"path not found: {path}",
                context=_context("read_secret"),
                secret_path=path,
            )
        logger.warning(
            "Path not found, skipping",
            extra={"secret_path": path, "variable": variable},
        )

    # -------------------------------------------------------------------------
    # Step 5: key lookup or template rendering
    # -------------------------------------------------------------------------

    def _render_key(self, reference: ModelSecretReference, data: SecretData) -> str:
        key = reference.key
        if self._renderer.is_template(key):
            return self._renderer.render(key, data)

        if key not in data:
            raise SecretKeyNotFoundError(
                f"key '{key}' not found under path: {reference.path}",
                context=_context("read_secret"),
                secret_path=reference.path,
            )
        return to_string(data[key])


__all__: list[str] = ["SecretInjector", "SecretSink"]
