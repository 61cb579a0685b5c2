# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for VaultCredentialManager.

The RPC client is a MagicMock; file system events come from FakeFileWatcher.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr

from omnibase_vault.client import lifetime_watcher
from omnibase_vault.enums import EnumCredentialState, EnumFileChangeOp
from omnibase_vault.errors import (
    InfraConnectionError,
    InfraTimeoutError,
    ProtocolConfigurationError,
)
from omnibase_vault.models import ModelFileChangeEvent, ModelVaultClientConfig
from omnibase_vault.runtime import VaultCredentialManager, bootstrap
from omnibase_vault.runtime.credential_manager import format_duration
from tests.helpers.vault_helpers import FakeFileWatcher, make_login_secret

pytestmark = pytest.mark.usefixtures("clean_vault_env")


async def _eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def _login_config(**overrides: object) -> ModelVaultClientConfig:
    values: dict[str, object] = {
        "url": "https://vault:8200",
        "role": "app",
        "timeout_seconds": 2.0,
        "login_retry_interval_seconds": 0.01,
    }
    values.update(overrides)
    return ModelVaultClientConfig(**values)


class TestFormatDuration:
    """Test duration rendering in timeout messages."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0.2, "200ms"), (0.05, "50ms"), (10, "10s"), (10.0, "10s"), (1.5, "1.5s")],
    )
    def test_format_duration(self, seconds: float, expected: str) -> None:
        assert format_duration(seconds) == expected


class TestDirectToken:
    """Test tokens supplied without login."""

    @pytest.mark.asyncio
    async def test_configured_token(self, mock_rpc_client: MagicMock) -> None:
        config = ModelVaultClientConfig(token=SecretStr("s.direct"))

        manager = await VaultCredentialManager.bootstrap(config, rpc_client=mock_rpc_client)

        assert manager.state is EnumCredentialState.AUTHENTICATED
        assert manager.token == "s.direct"
        assert mock_rpc_client.token == "s.direct"
        mock_rpc_client.login.assert_not_called()

        await manager.close()

        assert manager.state is EnumCredentialState.CLOSED
        assert manager.token == ""
        assert manager.credential is None

    @pytest.mark.asyncio
    async def test_token_file(self, mock_rpc_client: MagicMock, tmp_path: Path) -> None:
        token_file = tmp_path / ".vault-token"
        token_file.write_text("  s.from-file\n")
        config = ModelVaultClientConfig(token_path=str(token_file))

        manager = await VaultCredentialManager.bootstrap(config, rpc_client=mock_rpc_client)

        assert manager.token == "s.from-file"
        mock_rpc_client.login.assert_not_called()
        await manager.close()

    @pytest.mark.asyncio
    async def test_configured_token_wins_over_file(
        self, mock_rpc_client: MagicMock, tmp_path: Path
    ) -> None:
        token_file = tmp_path / ".vault-token"
        token_file.write_text("s.from-file")
        config = ModelVaultClientConfig(
            token=SecretStr("s.direct"), token_path=str(token_file)
        )

        manager = await VaultCredentialManager.bootstrap(config, rpc_client=mock_rpc_client)

        assert manager.token == "s.direct"
        await manager.close()


class TestLogin:
    """Test login, retry and renewal."""

    @pytest.mark.asyncio
    async def test_login_installs_token(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.login.return_value = make_login_secret("s.login", ttl=3600)

        manager = await VaultCredentialManager.bootstrap(
            _login_config(), rpc_client=mock_rpc_client
        )

        assert manager.token == "s.login"
        assert manager.state is EnumCredentialState.RENEWING
        assert manager.credential is not None
        assert manager.credential.ttl_seconds == 3600
        params = mock_rpc_client.login.call_args.args[0]
        assert params.role == "app"
        assert params.mount_path == "kubernetes"

        await manager.close()

        assert manager.state is EnumCredentialState.CLOSED
        assert manager.closed

    @pytest.mark.asyncio
    async def test_login_retries_until_token(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.login.side_effect = [
            InfraConnectionError("connection refused"),
            None,
            make_login_secret("s.third-time"),
        ]

        manager = await VaultCredentialManager.bootstrap(
            _login_config(), rpc_client=mock_rpc_client
        )

        assert manager.token == "s.third-time"
        assert mock_rpc_client.login.call_count == 3
        await manager.close()

    @pytest.mark.asyncio
    async def test_login_retries_after_unexpected_error(
        self, mock_rpc_client: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_rpc_client.login.side_effect = [
            ValueError("metadata response is not JSON"),
            make_login_secret("s.second"),
        ]

        with caplog.at_level(logging.ERROR):
            manager = await VaultCredentialManager.bootstrap(
                _login_config(), rpc_client=mock_rpc_client
            )

        assert manager.token == "s.second"
        assert mock_rpc_client.login.call_count == 2
        assert "Unexpected error while requesting new Vault token" in caplog.messages
        await manager.close()

    @pytest.mark.asyncio
    async def test_bootstrap_timeout(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.login.side_effect = InfraConnectionError("connection refused")
        config = _login_config(timeout_seconds=0.2, login_retry_interval_seconds=0.05)

        started = time.monotonic()
        with pytest.raises(InfraTimeoutError) as exc_info:
            await VaultCredentialManager.bootstrap(config, rpc_client=mock_rpc_client)
        elapsed = time.monotonic() - started

        assert str(exc_info.value) == "timeout [200ms] during waiting for Vault token"
        assert elapsed < 1.0

        attempts = mock_rpc_client.login.call_count
        await asyncio.sleep(0.15)
        assert mock_rpc_client.login.call_count == attempts

    @pytest.mark.asyncio
    async def test_relogin_after_watch_ends(
        self, mock_rpc_client: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(lifetime_watcher, "RENEW_FRACTION", 0.001)
        mock_rpc_client.login.side_effect = [
            make_login_secret("s.first", ttl=1, renewable=False),
            make_login_secret("s.second", ttl=3600),
        ]

        manager = await VaultCredentialManager.bootstrap(
            _login_config(), rpc_client=mock_rpc_client
        )
        await _eventually(lambda: manager.token == "s.second")

        assert mock_rpc_client.login.call_count == 2
        await manager.close()

    @pytest.mark.asyncio
    async def test_relogin_after_unexpected_renewal_error(
        self, mock_rpc_client: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(lifetime_watcher, "RENEW_FRACTION", 0.001)
        mock_rpc_client.login.side_effect = [
            make_login_secret("s.first", ttl=60),
            make_login_secret("s.second", ttl=3600),
        ]
        mock_rpc_client.renew_self.side_effect = [
            KeyError("auth"),
            make_login_secret("s.second", ttl=3600),
        ]

        manager = await VaultCredentialManager.bootstrap(
            _login_config(), rpc_client=mock_rpc_client
        )
        await _eventually(lambda: manager.token == "s.second")

        assert mock_rpc_client.login.call_count == 2
        await _eventually(lambda: manager.state is EnumCredentialState.RENEWING)
        await manager.close()

    @pytest.mark.asyncio
    async def test_renewal_updates_ttl(
        self, mock_rpc_client: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(lifetime_watcher, "RENEW_FRACTION", 0.001)
        mock_rpc_client.login.return_value = make_login_secret("s.login", ttl=60)
        mock_rpc_client.renew_self.return_value = make_login_secret("s.login", ttl=120)

        manager = await VaultCredentialManager.bootstrap(
            _login_config(), rpc_client=mock_rpc_client
        )
        await _eventually(
            lambda: manager.credential is not None and manager.credential.ttl_seconds == 120
        )

        assert manager.token == "s.login"
        mock_rpc_client.login.assert_called_once()
        await manager.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.login.return_value = make_login_secret()
        manager = await VaultCredentialManager.bootstrap(
            _login_config(), rpc_client=mock_rpc_client
        )

        await manager.close()
        await manager.close()

        assert manager.state is EnumCredentialState.CLOSED
        assert manager.token == ""

    @pytest.mark.asyncio
    async def test_module_bootstrap(self, mock_rpc_client: MagicMock) -> None:
        manager = await bootstrap(
            ModelVaultClientConfig(token=SecretStr("s.direct")),
            rpc_client=mock_rpc_client,
        )

        assert isinstance(manager, VaultCredentialManager)
        assert manager.rpc_client is mock_rpc_client
        await manager.close()


class TestCaReload:
    """Test CA bundle reloading on file changes."""

    @pytest.fixture
    def watchers(self) -> list[FakeFileWatcher]:
        return []

    @pytest.fixture
    def factory(self, watchers: list[FakeFileWatcher]) -> Callable[[str], FakeFileWatcher]:
        def create(directory: str) -> FakeFileWatcher:
            watcher = FakeFileWatcher(directory)
            watchers.append(watcher)
            return watcher

        return create

    @pytest.mark.asyncio
    async def test_reload_on_bundle_and_data_swap(
        self,
        mock_rpc_client: MagicMock,
        tmp_path: Path,
        watchers: list[FakeFileWatcher],
        factory: Callable[[str], FakeFileWatcher],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO)
        tls_dir = tmp_path / "tls"
        ca_cert = tls_dir / "ca.pem"
        config = ModelVaultClientConfig(token=SecretStr("s.direct"), ca_cert_path=str(ca_cert))

        manager = await VaultCredentialManager.bootstrap(
            config, rpc_client=mock_rpc_client, file_watcher_factory=factory
        )
        await _eventually(lambda: len(watchers) == 1)
        watcher = watchers[0]
        assert watcher.directory == str(tls_dir)

        watcher.emit(
            ModelFileChangeEvent(path=str(tls_dir / "other.pem"), op=EnumFileChangeOp.WRITE)
        )
        watcher.emit(ModelFileChangeEvent(path=str(ca_cert), op=EnumFileChangeOp.REMOVE))
        watcher.emit(
            ModelFileChangeEvent(
                path=str(tls_dir), op=EnumFileChangeOp.ERROR, error="PermissionError"
            )
        )
        watcher.emit(ModelFileChangeEvent(path=str(ca_cert), op=EnumFileChangeOp.WRITE))
        watcher.emit(
            ModelFileChangeEvent(path=str(tls_dir / "..data"), op=EnumFileChangeOp.CREATE)
        )
        await _eventually(lambda: mock_rpc_client.reload_ca_cert.call_count == 2)

        mock_rpc_client.reload_ca_cert.assert_called_with(os.path.normpath(str(ca_cert)))
        messages = [record.getMessage() for record in caplog.records]
        assert "Watcher error" in messages
        assert messages.count("CA certificate reloaded") == 2

        await manager.close()
        assert watcher.closed

    @pytest.mark.asyncio
    async def test_reload_failure_is_logged(
        self,
        mock_rpc_client: MagicMock,
        tmp_path: Path,
        watchers: list[FakeFileWatcher],
        factory: Callable[[str], FakeFileWatcher],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        ca_cert = tmp_path / "ca.pem"
        mock_rpc_client.reload_ca_cert.side_effect = [
            ProtocolConfigurationError("failed to load CA certificate"),
            None,
        ]
        config = ModelVaultClientConfig(token=SecretStr("s.direct"), ca_cert_path=str(ca_cert))

        manager = await VaultCredentialManager.bootstrap(
            config, rpc_client=mock_rpc_client, file_watcher_factory=factory
        )
        await _eventually(lambda: len(watchers) == 1)
        watchers[0].emit(ModelFileChangeEvent(path=str(ca_cert), op=EnumFileChangeOp.WRITE))
        watchers[0].emit(ModelFileChangeEvent(path=str(ca_cert), op=EnumFileChangeOp.WRITE))
        await _eventually(lambda: mock_rpc_client.reload_ca_cert.call_count == 2)

        assert "Failed to reload Vault config" in [r.getMessage() for r in caplog.records]
        await manager.close()

    @pytest.mark.asyncio
    async def test_reload_disabled(
        self,
        mock_rpc_client: MagicMock,
        tmp_path: Path,
        watchers: list[FakeFileWatcher],
        factory: Callable[[str], FakeFileWatcher],
    ) -> None:
        config = ModelVaultClientConfig(
            token=SecretStr("s.direct"),
            ca_cert_path=str(tmp_path / "ca.pem"),
            ca_cert_reload=False,
        )

        manager = await VaultCredentialManager.bootstrap(
            config, rpc_client=mock_rpc_client, file_watcher_factory=factory
        )
        await asyncio.sleep(0.05)

        assert watchers == []
        await manager.close()
