# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Transit and secret caches shared by resolution calls.

Both maps only grow: an entry, once stored, is never replaced or evicted for
the lifetime of the cache object.

Thread Safety:
    ``_lock`` guards both maps and is held only for dictionary operations.
    Per-key locks serialize loads of the same secret cache key so concurrent
    misses perform the underlying Vault call once; loads of different keys
    run in parallel.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

logger = logging.getLogger(__name__)

SecretData = dict[str, Any]


class SecretCache:
    """Ciphertext -> plaintext and ``path#version`` -> attributes maps."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._transit: dict[str, bytes] = {}
        self._secrets: dict[str, SecretData] = {}
        self._key_locks: dict[str, threading.Lock] = {}

    # -------------------------------------------------------------------------
    # Transit
    # -------------------------------------------------------------------------

    def get_transit(self, ciphertext: str) -> bytes | None:
        with self._lock:
            return self._transit.get(ciphertext)

    def put_transit(self, ciphertext: str, plaintext: bytes) -> None:
        with self._lock:
            self._transit.setdefault(ciphertext, plaintext)

    def put_transit_many(self, decrypted: dict[str, bytes]) -> None:
        with self._lock:
            for ciphertext, plaintext in decrypted.items():
                self._transit.setdefault(ciphertext, plaintext)

    def missing_transit(self, ciphertexts: Iterable[str]) -> list[str]:
        """Deduplicated ciphertexts without a cached plaintext, in first-seen order."""
        with self._lock:
            return [
                c
                for c in dict.fromkeys(ciphertexts)
                if c not in self._transit
            ]

    # -------------------------------------------------------------------------
    # Secrets
    # -------------------------------------------------------------------------

    def get_secret(self, cache_key: str) -> SecretData | None:
        with self._lock:
            return self._secrets.get(cache_key)

    def put_secret(self, cache_key: str, data: SecretData) -> None:
        with self._lock:
            self._secrets.setdefault(cache_key, data)

    def _get_key_lock(self, cache_key: str) -> threading.Lock:
        with self._lock:
            if cache_key not in self._key_locks:
                self._key_locks[cache_key] = threading.Lock()
            return self._key_locks[cache_key]

    def get_or_load(
        self, cache_key: str, loader: Callable[[], SecretData | None]
    ) -> SecretData | None:
        """Return the cached attributes for ``cache_key``, loading them on a miss.

        ``None`` from the loader (path not found) is not cached, so a later
        call retries the load.
        """
        data = self.get_secret(cache_key)
        if data is not None:
            return data

        with self._get_key_lock(cache_key):
            # another caller may have loaded it while we waited
            data = self.get_secret(cache_key)
            if data is not None:
                return data

            data = loader()
            if data is not None:
                self.put_secret(cache_key, data)
                logger.debug(
                    "Cached secret data",
                    extra={"secret_path": cache_key.split("#", 1)[0]},
                )
            return data

    @property
    def transit_size(self) -> int:
        with self._lock:
            return len(self._transit)

    @property
    def secret_size(self) -> int:
        with self._lock:
            return len(self._secrets)


__all__: list[str] = ["SecretCache", "SecretData"]
