# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Vault RPC client built on the hvac synchronous client.

VaultRpcClient is the single seam between omnibase_vault and the Vault HTTP
API. It exposes the handful of operations the credential manager and the
resolution pipeline need (login, read, write, renew, transit decrypt, CA
reload) and translates hvac / requests failures into the omnibase_vault
error hierarchy.

All methods are blocking. Async callers run them with
``loop.run_in_executor``.

Error Translation:
    hvac.exceptions.InvalidPath          -> ``None`` for reads (path not found)
    hvac.exceptions.Forbidden/Unauthorized -> InfraAuthenticationError
    other hvac.exceptions.VaultError     -> InfraConnectionError
    requests.exceptions.RequestException -> InfraConnectionError
    Transit failures raise TransitDecryptError instead.
"""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import httpx
import hvac
import requests

from omnibase_vault.client.auth_strategies import resolve_login
from omnibase_vault.enums import EnumInfraTransportType
from omnibase_vault.errors import (
    InfraAuthenticationError,
    InfraConnectionError,
    ModelInfraErrorContext,
    ProtocolConfigurationError,
    TransitDecryptError,
    VaultInfraError,
)
from omnibase_vault.models import (
    ModelAuthParams,
    ModelVaultClientConfig,
    ModelVaultSecret,
)

logger = logging.getLogger(__name__)

LATEST_VERSION: str = "-1"


def new_kv2_data(cas: int, data: Mapping[str, Any]) -> dict[str, Any]:
    """Build a KV version 2 write body with a check-and-set option."""
    return {"options": {"cas": cas}, "data": dict(data)}


class VaultRpcClient:
    """Blocking Vault operations over an hvac.Client.

    The wrapped client is shared by every component after bootstrap; only
    its token changes, and only through the ``token`` setter.

    Example:
        >>> rpc = VaultRpcClient.from_config(ModelVaultClientConfig(url="http://127.0.0.1:8200"))
        >>> secret = rpc.read("secret/data/app")
        >>> secret.data["data"]["password"] if secret else None
    """

    def __init__(self, client: hvac.Client) -> None:
        self._client = client
        self._token_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ModelVaultClientConfig) -> VaultRpcClient:
        """Create a client for ``config`` without any token installed."""
        verify: bool | str = config.verify_ssl
        if config.verify_ssl and config.ca_cert_path:
            verify = config.ca_cert_path
        client = hvac.Client(
            url=config.url,
            token="",
            namespace=config.namespace,
            verify=verify,
            timeout=config.request_timeout_seconds,
        )
        return cls(client)

    @staticmethod
    def create_raw_client(
        url: str | None = None,
        *,
        insecure: bool = False,
        namespace: str | None = None,
        timeout: float = 30.0,
    ) -> hvac.Client:
        """Create a plain hvac client.

        With ``insecure=True`` TLS certificate verification is disabled.
        """
        return hvac.Client(
            url=url,
            namespace=namespace,
            verify=not insecure,
            timeout=timeout,
        )

    @property
    def raw_client(self) -> hvac.Client:
        """The underlying hvac client."""
        return self._client

    @property
    def token(self) -> str:
        with self._token_lock:
            return self._client.token or ""

    @token.setter
    def token(self, value: str) -> None:
        with self._token_lock:
            self._client.token = value

    # -------------------------------------------------------------------------
    # Error translation
    # -------------------------------------------------------------------------

    @contextmanager
    def _translate_errors(
        self,
        operation: str,
        message: str,
        transport_type: EnumInfraTransportType = EnumInfraTransportType.VAULT,
        error_cls: type[InfraConnectionError] = InfraConnectionError,
        **extra_context: object,
    ) -> Iterator[None]:
        try:
            yield
        except VaultInfraError:
            raise
        except (hvac.exceptions.Forbidden, hvac.exceptions.Unauthorized) as e:
            raise InfraAuthenticationError(
                f"{message}: permission denied",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=transport_type,
                    operation=operation,
                    target_name="vault_rpc_client",
                ),
                **extra_context,
            ) from e
        except (hvac.exceptions.VaultError, requests.exceptions.RequestException) as e:
            raise error_cls(
                f"{message}: {type(e).__name__}",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=transport_type,
                    operation=operation,
                    target_name="vault_rpc_client",
                ),
                **extra_context,
            ) from e

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def login(self, params: ModelAuthParams) -> ModelVaultSecret | None:
        """Perform one login with the strategy selected by ``params.method``.

        Returns:
            The login response, or None when Vault answered without a token

        Raises:
            InfraAuthenticationError: If Vault rejects the login
            InfraConnectionError: If Vault or a metadata service is unreachable
        """
        resolver = resolve_login(params.method)
        with self._translate_errors(
            "login",
            f"failed to log in with auth method {params.method.value}",
            auth_method=params.method.value,
            role=params.role,
            mount_path=params.mount_path,
        ):
            with httpx.Client(timeout=params.metadata_timeout_seconds) as http:
                response = resolver(self._client, params, http)

        if not isinstance(response, Mapping):
            return None
        secret = ModelVaultSecret.from_response(response)
        if secret.auth is None:
            return None
        return secret

    def lookup_self(self) -> ModelVaultSecret:
        """Look up the installed token."""
        with self._translate_errors("lookup_self", "failed to look up token"):
            response = self._client.auth.token.lookup_self()
        return ModelVaultSecret.from_response(response)

    def renew_self(self, increment: int | None = None) -> ModelVaultSecret:
        """Renew the installed token."""
        with self._translate_errors("renew_self", "failed to renew token"):
            response = self._client.auth.token.renew_self(increment=increment)
        return ModelVaultSecret.from_response(response)

    def renew_lease(self, lease_id: str, increment: int | None = None) -> ModelVaultSecret:
        """Renew a secret lease."""
        with self._translate_errors(
            "renew_lease", "failed to renew lease", lease_id=lease_id
        ):
            response = self._client.sys.renew_lease(lease_id=lease_id, increment=increment)
        return ModelVaultSecret.from_response(response)

    # -------------------------------------------------------------------------
    # Logical reads and writes
    # -------------------------------------------------------------------------

    def read(self, path: str, version: str = LATEST_VERSION) -> ModelVaultSecret | None:
        """Read ``path``, requesting ``version`` (KV v2; ignored by other engines).

        Returns:
            The secret, or None when the path does not exist. A KV v2 version
            that was deleted answers 404 with its metadata; that body is
            returned as a secret so callers can inspect ``deletion_time``.
        """
        with self._translate_errors(
            "read_secret",
            f"failed to read secret from path: {path}",
            secret_path=path,
        ):
            try:
                response = self._client.adapter.get(
                    f"/v1/{path}", params={"version": version}
                )
            except hvac.exceptions.InvalidPath as e:
                body = getattr(e, "json", None)
                if isinstance(body, Mapping) and isinstance(body.get("data"), Mapping):
                    return ModelVaultSecret.from_response(body)
                return None

        if not isinstance(response, Mapping):
            return None
        return ModelVaultSecret.from_response(response)

    def write(self, path: str, payload: Mapping[str, Any]) -> ModelVaultSecret | None:
        """Write ``payload`` to ``path``.

        Returns:
            The response secret, or None when Vault answered 204 No Content
        """
        with self._translate_errors(
            "write_secret",
            f"failed to write secret to path: {path}",
            secret_path=path,
        ):
            response = self._client.adapter.post(f"/v1/{path}", json=dict(payload))

        if not isinstance(response, Mapping):
            return None
        return ModelVaultSecret.from_response(response)

    # -------------------------------------------------------------------------
    # Transit
    # -------------------------------------------------------------------------

    def decrypt(self, mount_path: str, key_id: str, ciphertext: str) -> bytes:
        """Decrypt one transit ciphertext."""
        with self._translate_errors(
            "decrypt",
            "failed to decrypt value",
            transport_type=EnumInfraTransportType.TRANSIT,
            error_cls=TransitDecryptError,
            key_id=key_id,
        ):
            response = self._client.secrets.transit.decrypt_data(
                name=key_id,
                ciphertext=ciphertext,
                mount_point=mount_path,
            )
        plaintext = (response.get("data") or {}).get("plaintext")
        return self._decode_plaintext(plaintext, key_id)

    def decrypt_batch(
        self, mount_path: str, key_id: str, ciphertexts: Sequence[str]
    ) -> dict[str, bytes]:
        """Decrypt a batch of ciphertexts in one call.

        Items the engine reports individually as failed are left out of the
        result and logged.
        """
        with self._translate_errors(
            "decrypt_batch",
            "failed to decrypt batch",
            transport_type=EnumInfraTransportType.TRANSIT,
            error_cls=TransitDecryptError,
            key_id=key_id,
            batch_size=len(ciphertexts),
        ):
            response = self._client.secrets.transit.decrypt_data(
                name=key_id,
                ciphertext=None,
                batch_input=[{"ciphertext": c} for c in ciphertexts],
                mount_point=mount_path,
            )

        results = (response.get("data") or {}).get("batch_results") or []
        decrypted: dict[str, bytes] = {}
        for ciphertext, result in zip(ciphertexts, results):
            if result.get("error"):
                logger.error(
                    "Transit engine failed to decrypt batch item",
                    extra={"key_id": key_id, "error": result["error"]},
                )
                continue
            decrypted[ciphertext] = self._decode_plaintext(result.get("plaintext"), key_id)
        return decrypted

    @staticmethod
    def _decode_plaintext(plaintext: object, key_id: str) -> bytes:
        if not isinstance(plaintext, str):
            raise TransitDecryptError(
                "transit response carries no plaintext",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=EnumInfraTransportType.TRANSIT,
                    operation="decrypt",
                    target_name="vault_rpc_client",
                ),
                key_id=key_id,
            )
        try:
            return base64.b64decode(plaintext, validate=True)
        except binascii.Error as e:
            raise TransitDecryptError(
                "transit plaintext is not valid base64",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=EnumInfraTransportType.TRANSIT,
                    operation="decrypt",
                    target_name="vault_rpc_client",
                ),
                key_id=key_id,
            ) from e

    # -------------------------------------------------------------------------
    # Transport trust material
    # -------------------------------------------------------------------------

    def reload_ca_cert(self, ca_cert_path: str) -> None:
        """Point the transport at the current content of ``ca_cert_path``.

        hvac passes the adapter's own ``verify`` keyword on every request,
        which takes precedence over ``session.verify``, so both are pointed at
        the bundle. Pooled connections are dropped so the next request
        verifies the server against the reloaded bundle.

        Raises:
            ProtocolConfigurationError: If the bundle cannot be read
        """
        try:
            if not Path(ca_cert_path).read_bytes().strip():
                raise ValueError("CA bundle is empty")
        except (OSError, ValueError) as e:
            raise ProtocolConfigurationError(
                f"failed to load CA certificate: {ca_cert_path}",
                context=ModelInfraErrorContext.with_correlation(
                    transport_type=EnumInfraTransportType.FILESYSTEM,
                    operation="reload_ca_cert",
                    target_name="vault_rpc_client",
                ),
            ) from e

        adapter = self._client.adapter
        adapter._kwargs["verify"] = ca_cert_path
        session = adapter.session
        session.verify = ca_cert_path
        for transport in session.adapters.values():
            transport.close()


__all__: list[str] = ["LATEST_VERSION", "VaultRpcClient", "new_kv2_data"]
