# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Stat-polling directory watcher.

PollingFileWatcher turns periodic ``os.scandir`` snapshots of one directory
into a stream of ModelFileChangeEvent. Each entry is fingerprinted by its own
``lstat`` and by the ``stat`` of what it points to, so a Kubernetes secret
mount rotating its ``..data`` symlink shows up as a WRITE of ``..data`` and
of every file reached through it.

Polling keeps the package free of native notification backends; at the
default interval a rotated CA bundle is picked up within a few seconds.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator

from omnibase_vault.enums import EnumFileChangeOp
from omnibase_vault.models import ModelFileChangeEvent

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL: float = 2.0

# (lstat mtime, lstat inode, (target mtime, target size, target inode) or None)
_Fingerprint = tuple[int, int, tuple[int, int, int] | None]


def _fingerprint(path: str) -> _Fingerprint:
    link = os.lstat(path)
    try:
        target = os.stat(path)
    except OSError:
        resolved = None
    else:
        resolved = (target.st_mtime_ns, target.st_size, target.st_ino)
    return (link.st_mtime_ns, link.st_ino, resolved)


class PollingFileWatcher:
    """Async iterator of change events for one directory.

    The first snapshot is taken when iteration starts; only changes after
    that point are reported. Failures to list the directory are reported as
    ERROR events and polling continues. Iteration ends after ``close()``.

    Example:
        >>> watcher = PollingFileWatcher("/etc/vault/tls", poll_interval=1.0)
        >>> async for event in watcher:
        ...     if event.op is EnumFileChangeOp.WRITE:
        ...         reload(event.path)
    """

    def __init__(self, directory: str, *, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._directory = directory or "."
        self._poll_interval = poll_interval
        self._stop_event = asyncio.Event()

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def closed(self) -> bool:
        return self._stop_event.is_set()

    def close(self) -> None:
        self._stop_event.set()

    def __aiter__(self) -> AsyncIterator[ModelFileChangeEvent]:
        return self._events()

    def _scan(self) -> dict[str, _Fingerprint]:
        snapshot: dict[str, _Fingerprint] = {}
        with os.scandir(self._directory) as entries:
            for entry in entries:
                try:
                    snapshot[entry.path] = _fingerprint(entry.path)
                except FileNotFoundError:
                    # removed between listing and stat
                    continue
        return snapshot

    def _error_event(self, error: OSError) -> ModelFileChangeEvent:
        return ModelFileChangeEvent(
            path=self._directory,
            op=EnumFileChangeOp.ERROR,
            error=f"{type(error).__name__}: {error.strerror or error}",
        )

    async def _wait(self) -> bool:
        """Wait one poll interval; return True when closed meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
        except asyncio.TimeoutError:
            return False
        return True

    async def _events(self) -> AsyncIterator[ModelFileChangeEvent]:
        try:
            previous = self._scan()
        except OSError as e:
            yield self._error_event(e)
            previous = {}

        while not self._stop_event.is_set():
            if await self._wait():
                return

            try:
                current = self._scan()
            except OSError as e:
                logger.debug(
                    "Failed to scan watched directory",
                    extra={"directory": self._directory, "error": str(e)},
                )
                yield self._error_event(e)
                continue

            for path in sorted(current.keys() - previous.keys()):
                yield ModelFileChangeEvent(path=path, op=EnumFileChangeOp.CREATE)
            for path in sorted(current.keys() & previous.keys()):
                if current[path] != previous[path]:
                    yield ModelFileChangeEvent(path=path, op=EnumFileChangeOp.WRITE)
            for path in sorted(previous.keys() - current.keys()):
                yield ModelFileChangeEvent(path=path, op=EnumFileChangeOp.REMOVE)

            previous = current


__all__: list[str] = ["DEFAULT_POLL_INTERVAL", "PollingFileWatcher"]
