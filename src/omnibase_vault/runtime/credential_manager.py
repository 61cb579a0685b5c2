# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Vault credential lifecycle manager.

VaultCredentialManager obtains a Vault token, keeps it alive for the life of
the process and keeps the transport's CA bundle current.

Credential Sources (first match wins):
    1. ``config.token`` (or VAULT_TOKEN) used as is
    2. The token file at ``config.token_path``
    3. Login through ``config.auth_method``, retried until it succeeds

A token from (1) or (2) is installed immediately; nothing renews it.

Login Cycle:
    A background task logs in, installs the token, signals bootstrap once,
    then follows a TokenLifetimeWatcher until it reports DONE and logs in
    again. Failed logins are logged and retried after
    ``login_retry_interval_seconds``; they never surface to callers.

CA Bundle Rotation:
    With ``ca_cert_path`` set and ``ca_cert_reload`` enabled, a second task
    watches the bundle's directory and reloads the transport whenever the
    bundle file or a Kubernetes ``..data`` swap marker is written or created.

Thread Safety:
    The closed flag, the state and the credential are guarded by one
    ``threading.Lock``; ``token`` may be read from any thread. ``close()``
    must be awaited on the event loop that ran ``bootstrap()``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path

from pydantic import SecretStr

from omnibase_vault.client import TokenLifetimeWatcher, VaultRpcClient
from omnibase_vault.enums import (
    EnumCredentialState,
    EnumFileChangeOp,
    EnumInfraTransportType,
    EnumLifetimeEventType,
)
from omnibase_vault.errors import (
    InfraTimeoutError,
    ModelInfraErrorContext,
    VaultInfraError,
)
from omnibase_vault.models import (
    ModelAuthParams,
    ModelCredential,
    ModelVaultClientConfig,
)
from omnibase_vault.protocols import ProtocolFileWatcher
from omnibase_vault.runtime.file_watcher import PollingFileWatcher

logger = logging.getLogger(__name__)

# Base name of the symlink Kubernetes swaps atomically when a mounted secret changes.
KUBERNETES_DATA_MARKER: str = "..data"

# Upper bound on how long close() waits for background tasks.
CLOSE_GRACE_SECONDS: float = 5.0

FileWatcherFactory = Callable[[str], ProtocolFileWatcher]


def format_duration(seconds: float) -> str:
    """Render seconds the way durations appear in configuration (``10s``, ``200ms``)."""
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    if float(seconds).is_integer():
        return f"{int(seconds)}s"
    return f"{seconds:g}s"


class VaultCredentialManager:
    """Owns the Vault token and the background tasks that keep it valid.

    Use ``bootstrap()`` rather than the constructor; it returns only once a
    token is installed.

    Example:
        >>> config = ModelVaultClientConfig(url="https://vault:8200", role="app")
        >>> manager = await VaultCredentialManager.bootstrap(config)
        >>> injector = SecretInjector(ModelInjectorConfig(), manager)
        >>> ...
        >>> await manager.close()
    """

    def __init__(
        self,
        config: ModelVaultClientConfig,
        rpc_client: VaultRpcClient | None = None,
        *,
        file_watcher_factory: FileWatcherFactory | None = None,
    ) -> None:
        self._config = config
        self._rpc_client = rpc_client or VaultRpcClient.from_config(config)
        self._file_watcher_factory = file_watcher_factory or self._default_file_watcher
        self._auth_params = ModelAuthParams(
            method=config.auth_method,
            role=config.role,
            mount_path=config.auth_path,
            jwt_file=config.jwt_file,
            existing_secret=config.existing_secret,
            aws_region=config.aws_region,
        )

        self._lock = threading.Lock()
        self._closed = False
        self._state = EnumCredentialState.UNAUTHENTICATED
        self._credential: ModelCredential | None = None
        self._initial_token_sent = False

        self._initial_token = asyncio.Event()
        self._stop_event = asyncio.Event()
        self._token_watcher: TokenLifetimeWatcher | None = None
        self._file_watcher: ProtocolFileWatcher | None = None
        self._tasks: list[asyncio.Task[None]] = []

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    async def bootstrap(
        cls,
        config: ModelVaultClientConfig,
        *,
        rpc_client: VaultRpcClient | None = None,
        file_watcher_factory: FileWatcherFactory | None = None,
    ) -> VaultCredentialManager:
        """Create a manager and wait until it holds a token.

        Raises:
            InfraTimeoutError: If no token arrives within ``config.timeout_seconds``
        """
        manager = cls(config, rpc_client, file_watcher_factory=file_watcher_factory)
        await manager._start()
        return manager

    async def _start(self) -> None:
        token = self._direct_token()
        if token:
            self._install(ModelCredential(token=SecretStr(token)))
            logger.info("Using supplied Vault token", extra={"addr": self._config.url})
        else:
            self._tasks.append(
                asyncio.create_task(self._login_loop(), name="vault-login-loop")
            )
            try:
                await asyncio.wait_for(
                    self._initial_token.wait(), timeout=self._config.timeout_seconds
                )
            except asyncio.TimeoutError as e:
                await self.close()
                raise InfraTimeoutError(
                    f"timeout [{format_duration(self._config.timeout_seconds)}] "
                    "during waiting for Vault token",
                    context=ModelInfraErrorContext.with_correlation(
                        transport_type=EnumInfraTransportType.VAULT,
                        operation="bootstrap",
                        target_name="credential_manager",
                    ),
                    timeout_seconds=self._config.timeout_seconds,
                ) from e
            logger.info("Initial Vault token arrived")

        if self._config.ca_cert_path and self._config.ca_cert_reload:
            self._tasks.append(
                asyncio.create_task(self._ca_watch_loop(), name="vault-ca-watch")
            )

    def _direct_token(self) -> str:
        if self._config.token is not None:
            token = self._config.token.get_secret_value()
            if token:
                return token
        try:
            return Path(self._config.token_path).read_text().strip()
        except OSError:
            return ""

    def _default_file_watcher(self, directory: str) -> ProtocolFileWatcher:
        return PollingFileWatcher(
            directory, poll_interval=self._config.ca_cert_poll_interval_seconds
        )

    # -------------------------------------------------------------------------
    # Public surface
    # -------------------------------------------------------------------------

    @property
    def rpc_client(self) -> VaultRpcClient:
        return self._rpc_client

    @property
    def token(self) -> str:
        """The token currently installed, empty once closed."""
        with self._lock:
            if self._closed:
                return ""
            return self._rpc_client.token

    @property
    def credential(self) -> ModelCredential | None:
        with self._lock:
            return self._credential

    @property
    def state(self) -> EnumCredentialState:
        with self._lock:
            return self._state

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    async def close(self) -> None:
        """Stop the login loop, the token watcher and the CA watch.

        Idempotent. In-flight Vault calls complete before their task exits;
        tasks still running after CLOSE_GRACE_SECONDS are cancelled.
        """
        with self._lock:
            already_closed = self._closed
            self._closed = True
            self._state = EnumCredentialState.CLOSED
            self._credential = None
            token_watcher = self._token_watcher
            file_watcher = self._file_watcher

        if not already_closed:
            self._stop_event.set()
            if token_watcher is not None:
                token_watcher.stop()
            if file_watcher is not None:
                file_watcher.close()
            logger.info("Vault credential manager closed")

        pending = [task for task in self._tasks if not task.done()]
        if pending:
            _, still_running = await asyncio.wait(pending, timeout=CLOSE_GRACE_SECONDS)
            for task in still_running:
                task.cancel()

    # -------------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------------

    def _set_state(self, state: EnumCredentialState) -> bool:
        """Move to ``state`` unless closed; return False when closed."""
        with self._lock:
            if self._closed:
                return False
            self._state = state
            return True

    def _install(self, credential: ModelCredential) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._rpc_client.token = credential.token.get_secret_value()
            self._credential = credential
            self._state = EnumCredentialState.AUTHENTICATED
            return True

    # -------------------------------------------------------------------------
    # Login and renewal
    # -------------------------------------------------------------------------

    async def _retry_wait(self) -> bool:
        """Sleep the retry interval; return True when closed meanwhile."""
        try:
            await asyncio.wait_for(
                self._stop_event.wait(),
                timeout=self._config.login_retry_interval_seconds,
            )
        except asyncio.TimeoutError:
            return False
        return True

    async def _login_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._set_state(EnumCredentialState.AUTHENTICATING):
            try:
                secret = await loop.run_in_executor(
                    None, self._rpc_client.login, self._auth_params
                )
                credential = (
                    None if secret is None else ModelCredential.from_login(secret)
                )
            except VaultInfraError as e:
                logger.error(
                    "Failed to request new Vault token",
                    extra={
                        "error": str(e),
                        "auth_method": self._auth_params.method.value,
                        "correlation_id": str(e.correlation_id),
                    },
                )
                if await self._retry_wait():
                    break
                continue
            except Exception as e:
                logger.exception(
                    "Unexpected error while requesting new Vault token",
                    extra={
                        "error": f"{type(e).__name__}: {e}",
                        "auth_method": self._auth_params.method.value,
                    },
                )
                if await self._retry_wait():
                    break
                continue

            if credential is None:
                logger.debug("Received empty answer from Vault, retrying")
                if await self._retry_wait():
                    break
                continue

            if not self._install(credential):
                break
            logger.info(
                "Received new Vault token",
                extra={
                    "addr": self._config.url,
                    "role": self._config.role,
                    "path": self._config.auth_path,
                    "ttl": credential.ttl_seconds,
                },
            )

            if not self._initial_token_sent:
                self._initial_token_sent = True
                self._initial_token.set()

            try:
                await self._watch_token(credential)
            except Exception as e:
                logger.exception(
                    "Vault token renewal failed",
                    extra={"error": f"{type(e).__name__}: {e}"},
                )

        logger.info("Vault token renewal closed")

    async def _watch_token(self, credential: ModelCredential) -> None:
        watcher = TokenLifetimeWatcher(
            self._rpc_client, credential.ttl_seconds, credential.renewable
        )
        with self._lock:
            if self._closed:
                return
            self._token_watcher = watcher
            self._state = EnumCredentialState.RENEWING
        watcher.start()

        try:
            while True:
                event = await watcher.events.get()
                if event.event_type is EnumLifetimeEventType.RENEWED:
                    with self._lock:
                        if self._credential is not None:
                            self._credential = self._credential.with_ttl(event.ttl_seconds)
                    logger.info("Renewed Vault token", extra={"ttl": event.ttl_seconds})
                    continue
                if event.error:
                    logger.error(
                        "Error in Vault token renewal", extra={"error": event.error}
                    )
                return
        finally:
            watcher.stop()
            await watcher.wait_closed()
            with self._lock:
                if self._token_watcher is watcher:
                    self._token_watcher = None

    # -------------------------------------------------------------------------
    # CA bundle rotation
    # -------------------------------------------------------------------------

    async def _ca_watch_loop(self) -> None:
        ca_cert_file = os.path.normpath(self._config.ca_cert_path or "")
        watcher = self._file_watcher_factory(os.path.dirname(ca_cert_file) or ".")
        with self._lock:
            if self._closed:
                watcher.close()
                return
            self._file_watcher = watcher

        loop = asyncio.get_running_loop()
        async for event in watcher:
            if self.closed:
                break
            if event.op is EnumFileChangeOp.ERROR:
                logger.error("Watcher error", extra={"error": event.error})
                continue
            if event.op not in (EnumFileChangeOp.WRITE, EnumFileChangeOp.CREATE):
                continue
            changed = os.path.normpath(event.path)
            if changed != ca_cert_file and os.path.basename(changed) != KUBERNETES_DATA_MARKER:
                continue
            try:
                await loop.run_in_executor(None, self._rpc_client.reload_ca_cert, ca_cert_file)
            except VaultInfraError as e:
                logger.error(
                    "Failed to reload Vault config",
                    extra={"error": str(e), "ca_cert_path": ca_cert_file},
                )
            else:
                logger.info("CA certificate reloaded", extra={"ca_cert_path": ca_cert_file})


async def bootstrap(
    config: ModelVaultClientConfig | None = None,
    *,
    rpc_client: VaultRpcClient | None = None,
    file_watcher_factory: FileWatcherFactory | None = None,
) -> VaultCredentialManager:
    """Bootstrap a credential manager; ``config`` defaults to the environment."""
    return await VaultCredentialManager.bootstrap(
        config or ModelVaultClientConfig(),
        rpc_client=rpc_client,
        file_watcher_factory=file_watcher_factory,
    )


__all__: list[str] = [
    "CLOSE_GRACE_SECONDS",
    "KUBERNETES_DATA_MARKER",
    "VaultCredentialManager",
    "bootstrap",
    "format_duration",
]
