# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Transit engine decryption with result caching.

Every plaintext returned by TransitDecryptor has already been stored in the
shared SecretCache, so later resolution steps read it from there.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from omnibase_vault.client import VaultRpcClient
from omnibase_vault.enums import EnumInfraTransportType
from omnibase_vault.errors import ModelInfraErrorContext, ProtocolConfigurationError
from omnibase_vault.injector.reference_parser import is_encrypted
from omnibase_vault.injector.secret_cache import SecretCache

logger = logging.getLogger(__name__)


def paginate(values: Sequence[str], batch_size: int) -> list[list[str]]:
    """Split ``values`` into consecutive chunks of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    return [list(values[i : i + batch_size]) for i in range(0, len(values), batch_size)]


class TransitDecryptor:
    """Decrypts transit ciphertext through the RPC client and caches the result."""

    def __init__(self, rpc_client: VaultRpcClient, cache: SecretCache) -> None:
        self._rpc_client = rpc_client
        self._cache = cache

    is_encrypted = staticmethod(is_encrypted)
    paginate = staticmethod(paginate)

    @staticmethod
    def require_key_id(key_id: str, operation: str) -> None:
        """Raise unless a transit key ID is configured."""
        if not key_id:
            raise ProtocolConfigurationError(
                "found encrypted variable, but transit key ID is empty",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=EnumInfraTransportType.TRANSIT,
                    operation=operation,
                    target_name="transit_decryptor",
                ),
            )

    def decrypt(self, mount_path: str, key_id: str, value: str) -> bytes:
        """Decrypt one ciphertext.

        Raises:
            ProtocolConfigurationError: If ``key_id`` is empty
            TransitDecryptError: If the transit engine rejects the ciphertext
        """
        self.require_key_id(key_id, "decrypt")
        plaintext = self._rpc_client.decrypt(mount_path, key_id, value)
        self._cache.put_transit(value, plaintext)
        return plaintext

    def decrypt_batch(
        self, mount_path: str, key_id: str, values: Sequence[str]
    ) -> dict[str, bytes]:
        """Decrypt ``values`` in a single transit call.

        Ciphertexts the engine fails individually are absent from the result.

        Raises:
            ProtocolConfigurationError: If ``key_id`` is empty
            TransitDecryptError: If the batch call fails
        """
        self.require_key_id(key_id, "decrypt_batch")
        if not values:
            return {}

        decrypted = self._rpc_client.decrypt_batch(mount_path, key_id, values)
        self._cache.put_transit_many(decrypted)
        logger.debug(
            "Decrypted transit batch",
            extra={
                "key_id": key_id,
                "requested": len(values),
                "decrypted": len(decrypted),
            },
        )
        return decrypted


__all__: list[str] = ["TransitDecryptor", "paginate"]
