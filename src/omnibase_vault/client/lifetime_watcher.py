# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Token and lease lifetime watchers.

A lifetime watcher keeps one renewable credential alive. It sleeps for two
thirds of the remaining TTL, renews, and publishes the outcome on an
``asyncio.Queue``:

    RENEWED(ttl)   renewal succeeded; the watcher keeps going
    DONE(error)    the watcher stopped; ``error`` is set when renewal failed

A watcher also finishes with DONE when the credential is not renewable
(after its TTL has mostly elapsed), when Vault stops extending the TTL
(the max TTL is near), or when ``stop()`` is called. Consumers re-acquire
the credential after DONE.

Blocking renew calls run in the default executor; stopping is cooperative,
an in-flight renewal completes before the watcher exits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from omnibase_vault.client.vault_rpc_client import VaultRpcClient
from omnibase_vault.errors import VaultInfraError
from omnibase_vault.models import ModelLifetimeEvent, ModelVaultSecret

logger = logging.getLogger(__name__)

# Fraction of the TTL to wait before renewing.
RENEW_FRACTION: float = 2.0 / 3.0

# Below this TTL the credential is treated as expiring and the watcher stops.
DEFAULT_GRACE_SECONDS: int = 10

RenewFunc = Callable[[], ModelVaultSecret]


class LifetimeWatcher:
    """Renews one credential until it can no longer be renewed."""

    def __init__(
        self,
        renew_func: RenewFunc,
        ttl_seconds: int,
        renewable: bool,
        *,
        name: str,
        ttl_of: Callable[[ModelVaultSecret], int],
        grace_seconds: int = DEFAULT_GRACE_SECONDS,
    ) -> None:
        self._renew_func = renew_func
        self._ttl = ttl_seconds
        self._renewable = renewable
        self._name = name
        self._ttl_of = ttl_of
        self._grace = grace_seconds
        self._stop_event = asyncio.Event()
        self._events: asyncio.Queue[ModelLifetimeEvent] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    @property
    def events(self) -> asyncio.Queue[ModelLifetimeEvent]:
        """Queue of RENEWED / DONE events; DONE is always the last one."""
        return self._events

    @property
    def name(self) -> str:
        return self._name

    def start(self) -> None:
        """Start the renewal task. Safe to call multiple times."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run(), name=f"lifetime-watcher:{self._name}")

    def stop(self) -> None:
        """Ask the watcher to finish; it emits DONE without an error."""
        self._stop_event.set()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await self._task

    async def _sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True when stopped meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=max(seconds, 0.0))
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        error: str | None = None
        try:
            error = await self._renew_loop()
        finally:
            self._events.put_nowait(ModelLifetimeEvent.done(error))
            logger.debug(
                "Lifetime watcher finished",
                extra={"watcher": self._name, "error": error},
            )

    async def _renew_loop(self) -> str | None:
        loop = asyncio.get_running_loop()
        while not self._stop_event.is_set():
            if self._ttl == 0:
                # non-expiring credential
                await self._stop_event.wait()
                return None

            if not self._renewable or self._ttl <= self._grace:
                await self._sleep(self._ttl * RENEW_FRACTION)
                return None

            if await self._sleep(self._ttl * RENEW_FRACTION):
                return None

            try:
                secret = await loop.run_in_executor(None, self._renew_func)
                new_ttl = self._ttl_of(secret)
            except VaultInfraError as e:
                return str(e)
            except Exception as e:
                logger.exception(
                    "Unexpected renewal error", extra={"watcher": self._name}
                )
                return f"{type(e).__name__}: {e}"

            self._events.put_nowait(ModelLifetimeEvent.renewed(new_ttl))
            self._ttl = new_ttl
        return None


class TokenLifetimeWatcher(LifetimeWatcher):
    """Lifetime watcher for the client token (``auth/token/renew-self``)."""

    def __init__(
        self,
        rpc_client: VaultRpcClient,
        ttl_seconds: int,
        renewable: bool,
        *,
        grace_seconds: int = DEFAULT_GRACE_SECONDS,
    ) -> None:
        super().__init__(
            rpc_client.renew_self,
            ttl_seconds,
            renewable,
            name="token",
            ttl_of=lambda secret: secret.token_ttl,
            grace_seconds=grace_seconds,
        )


class LeaseLifetimeWatcher(LifetimeWatcher):
    """Lifetime watcher for a secret lease (``sys/leases/renew``)."""

    def __init__(
        self,
        rpc_client: VaultRpcClient,
        secret: ModelVaultSecret,
        *,
        grace_seconds: int = DEFAULT_GRACE_SECONDS,
    ) -> None:
        lease_id = secret.lease_id
        super().__init__(
            lambda: rpc_client.renew_lease(lease_id),
            secret.lease_duration,
            secret.renewable,
            name=f"lease:{lease_id}",
            ttl_of=lambda renewed: renewed.lease_duration,
            grace_seconds=grace_seconds,
        )


__all__: list[str] = [
    "DEFAULT_GRACE_SECONDS",
    "LeaseLifetimeWatcher",
    "LifetimeWatcher",
    "TokenLifetimeWatcher",
]
