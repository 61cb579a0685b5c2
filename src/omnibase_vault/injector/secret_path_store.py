# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Secret path reads and writes with response normalization.

SecretPathStore turns a parsed reference into the attribute mapping of one
secret:

    READ   GET  /v1/<path>?version=<version>
    WRITE  POST /v1/<path> with the reference's JSON payload

KV version 2 responses nest the attributes under ``data`` next to a
``metadata`` map; those attributes are unwrapped. A destroyed or deleted
version is logged and returned with whatever attributes remain (usually
none). ``None`` means Vault answered without a secret: the path does not
exist.

In daemon mode every secret carrying a lease is handed to the renewer before
it is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from omnibase_vault.client import LATEST_VERSION, VaultRpcClient
from omnibase_vault.enums import EnumInfraTransportType
from omnibase_vault.errors import (
    ModelInfraErrorContext,
    SecretRenewalError,
    SecretResolutionError,
    SecretValueTypeError,
)
from omnibase_vault.models import ModelSecretReference, ModelVaultSecret
from omnibase_vault.protocols import ProtocolSecretRenewer

logger = logging.getLogger(__name__)


def _context(operation: str) -> ModelInfraErrorContext:
    return ModelInfraErrorContext.with_correlation(
        transport_type=EnumInfraTransportType.VAULT,
        operation=operation,
        target_name="secret_path_store",
    )


class SecretPathStore:
    """Reads and writes secret paths through the RPC client."""

    def __init__(
        self,
        rpc_client: VaultRpcClient,
        renewer: ProtocolSecretRenewer | None = None,
        *,
        daemon_mode: bool = False,
    ) -> None:
        self._rpc_client = rpc_client
        self._renewer = renewer
        self._daemon_mode = daemon_mode

    def fetch(self, reference: ModelSecretReference) -> dict[str, Any] | None:
        """Perform the read or write ``reference`` describes.

        Raises:
            ProtocolConfigurationError: If a write payload is not a JSON object
            SecretRenewalError: If a leased secret cannot be registered
            SecretResolutionError: If a KV v2 response lacks its metadata
            InfraConnectionError / InfraAuthenticationError: On transport failures
        """
        if reference.is_write:
            return self.write(reference.path, reference.write_payload())
        return self.read(reference.path, reference.version_or_data)

    def read(self, path: str, version: str = LATEST_VERSION) -> dict[str, Any] | None:
        secret = self._rpc_client.read(path, version)
        return self._normalize(path, version, secret)

    def write(self, path: str, payload: Mapping[str, Any]) -> dict[str, Any] | None:
        secret = self._rpc_client.write(path, payload)
        # payload is never logged
        return self._normalize(path, "write", secret)

    def _register_lease(self, path: str, secret: ModelVaultSecret) -> None:
        logger.info(
            "Secret has a lease duration, starting renewal",
            extra={"secret_path": path, "lease_duration": secret.lease_duration},
        )
        if self._renewer is None:
            raise SecretRenewalError(
                "secret renewal can't be established: no renewer configured",
                context=_context("register_lease"),
                secret_path=path,
            )
        try:
            self._renewer.renew(path, secret)
        except Exception as e:
            raise SecretRenewalError(
                "secret renewal can't be established",
                context=_context("register_lease"),
                secret_path=path,
            ) from e

    def _normalize(
        self, path: str, version: str, secret: ModelVaultSecret | None
    ) -> dict[str, Any] | None:
        if secret is None:
            return None

        if self._daemon_mode and secret.lease_duration > 0:
            self._register_lease(path, secret)

        for warning in secret.warnings:
            logger.warning(warning, extra={"secret_path": path})

        data = secret.data or {}
        if "data" not in data:
            return dict(data)

        metadata = data.get("metadata")
        if metadata is None:
            raise SecretResolutionError(
                "metadata key not found or is nil in secret",
                context=_context("read_secret"),
                secret_path=path,
            )
        if not isinstance(metadata, Mapping):
            raise SecretValueTypeError(
                "metadata has an unexpected type",
                context=_context("read_secret"),
                secret_path=path,
            )

        if metadata.get("destroyed") is True:
            logger.warning(
                "Version of secret has been permanently destroyed",
                extra={"secret_path": path, "version": version},
            )
        deletion_time = metadata.get("deletion_time")
        if isinstance(deletion_time, str) and deletion_time:
            logger.warning(
                "Cannot find data for path, given version has been deleted",
                extra={
                    "secret_path": path,
                    "version": version,
                    "deletion_time": deletion_time,
                },
            )

        attributes = data["data"]
        return dict(attributes) if isinstance(attributes, Mapping) else {}


__all__: list[str] = ["SecretPathStore"]
