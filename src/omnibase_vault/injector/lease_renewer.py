# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Lease renewal for secrets resolved in daemon mode.

LeaseRenewer is the ProtocolSecretRenewer the secret path store reports
leased secrets to. Each registered lease gets its own LeaseLifetimeWatcher
task on the renewer's event loop: the ``loop`` argument, else the loop
running when the renewer is built, else the loop of the first ``renew``
call. ``renew`` may be called from the loop thread or from worker threads
(``SecretInjector.resolve_async``).

When a lease can no longer be renewed, the ``on_expired`` callback receives
the secret path and the renewal error, if any. Long-running consumers
usually restart or re-resolve their configuration there.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable

from omnibase_vault.client import LeaseLifetimeWatcher, VaultRpcClient
from omnibase_vault.enums import EnumInfraTransportType, EnumLifetimeEventType
from omnibase_vault.errors import ModelInfraErrorContext, SecretRenewalError
from omnibase_vault.models import ModelVaultSecret

logger = logging.getLogger(__name__)

ExpiredCallback = Callable[[str, str | None], None]


def _log_expired(path: str, error: str | None) -> None:
    logger.warning(
        "Secret lease can no longer be renewed",
        extra={"secret_path": path, "error": error},
    )


class LeaseRenewer:
    """Keeps every registered secret lease alive until ``close()``."""

    def __init__(
        self,
        rpc_client: VaultRpcClient,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        on_expired: ExpiredCallback | None = None,
    ) -> None:
        self._rpc_client = rpc_client
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        self._loop = loop
        self._on_expired = on_expired or _log_expired
        self._lock = threading.Lock()
        self._closed = False
        self._watchers: dict[str, LeaseLifetimeWatcher] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def active_leases(self) -> int:
        with self._lock:
            return len(self._watchers)

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise SecretRenewalError(
                    "lease renewal requires a running event loop",
                    context=ModelInfraErrorContext.with_correlation(
                        transport_type=EnumInfraTransportType.VAULT,
                        operation="renew",
                        target_name="lease_renewer",
                    ),
                ) from e
        return self._loop

    def renew(self, path: str, secret: ModelVaultSecret) -> None:
        """Start renewing ``secret``; a lease already being renewed is ignored."""
        with self._lock:
            if self._closed:
                raise SecretRenewalError(
                    "lease renewer is closed",
                    context=ModelInfraErrorContext.with_correlation(
                        transport_type=EnumInfraTransportType.VAULT,
                        operation="renew",
                        target_name="lease_renewer",
                    ),
                    secret_path=path,
                )

        loop = self._resolve_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._spawn(path, secret)
        else:
            loop.call_soon_threadsafe(self._spawn, path, secret)

    def _spawn(self, path: str, secret: ModelVaultSecret) -> None:
        task = asyncio.get_running_loop().create_task(
            self._watch(path, secret), name=f"lease-renewer:{path}"
        )
        with self._lock:
            self._tasks.add(task)
        task.add_done_callback(self._forget_task)

    def _forget_task(self, task: asyncio.Task[None]) -> None:
        with self._lock:
            self._tasks.discard(task)

    async def _watch(self, path: str, secret: ModelVaultSecret) -> None:
        lease_key = secret.lease_id or path
        watcher = LeaseLifetimeWatcher(self._rpc_client, secret)
        with self._lock:
            if self._closed or lease_key in self._watchers:
                return
            self._watchers[lease_key] = watcher

        watcher.start()
        try:
            while True:
                event = await watcher.events.get()
                if event.event_type is EnumLifetimeEventType.RENEWED:
                    logger.info(
                        "Renewed secret lease",
                        extra={"secret_path": path, "ttl": event.ttl_seconds},
                    )
                    continue
                if event.error:
                    logger.error(
                        "Error in secret lease renewal",
                        extra={"secret_path": path, "error": event.error},
                    )
                break
        finally:
            watcher.stop()
            await watcher.wait_closed()
            with self._lock:
                self._watchers.pop(lease_key, None)
                closed = self._closed

        if not closed:
            self._on_expired(path, event.error)

    async def close(self) -> None:
        """Stop every lease watcher and wait for their tasks."""
        with self._lock:
            self._closed = True
            watchers = list(self._watchers.values())
            tasks = list(self._tasks)

        for watcher in watchers:
            watcher.stop()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


__all__: list[str] = ["LeaseRenewer"]
