# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for SecretPathStore response normalization."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from omnibase_vault.errors import (
    SecretRenewalError,
    SecretResolutionError,
    SecretValueTypeError,
)
from omnibase_vault.injector import ReferenceParser, SecretPathStore
from tests.helpers.vault_helpers import kv2_secret, make_secret


@pytest.fixture
def parser() -> ReferenceParser:
    return ReferenceParser("vault")


class TestSecretPathStoreRead:
    """Test reads and KV version handling."""

    def test_kv2_attributes_unwrapped(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = kv2_secret(
            {"password": "hunter2"}, version=3, destroyed=False, deletion_time=""
        )
        store = SecretPathStore(mock_rpc_client)

        assert store.read("secret/data/app", "3") == {"password": "hunter2"}
        mock_rpc_client.read.assert_called_once_with("secret/data/app", "3")

    def test_kv1_passthrough(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = make_secret({"password": "hunter2", "port": 5432})

        assert SecretPathStore(mock_rpc_client).read("kv/app") == {
            "password": "hunter2",
            "port": 5432,
        }

    def test_missing_path(self, mock_rpc_client: MagicMock) -> None:
        assert SecretPathStore(mock_rpc_client).read("missing/path") is None

    def test_secret_without_data(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = make_secret(None)

        assert SecretPathStore(mock_rpc_client).read("sys/thing") == {}

    def test_missing_metadata(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = make_secret({"data": {"password": "x"}})

        with pytest.raises(SecretResolutionError) as exc_info:
            SecretPathStore(mock_rpc_client).read("secret/data/app")

        assert str(exc_info.value) == "metadata key not found or is nil in secret"

    def test_null_metadata(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = make_secret(
            {"data": {"password": "x"}, "metadata": None}
        )

        with pytest.raises(SecretResolutionError):
            SecretPathStore(mock_rpc_client).read("secret/data/app")

    def test_metadata_wrong_type(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = make_secret(
            {"data": {"password": "x"}, "metadata": "v1"}
        )

        with pytest.raises(SecretValueTypeError) as exc_info:
            SecretPathStore(mock_rpc_client).read("secret/data/app")

        assert str(exc_info.value) == "metadata has an unexpected type"

    def test_deleted_version(
        self, mock_rpc_client: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_rpc_client.read.return_value = make_secret(
            {"data": None, "metadata": {"deletion_time": "2024-01-01T00:00:00Z"}}
        )

        with caplog.at_level(logging.WARNING):
            data = SecretPathStore(mock_rpc_client).read("secret/data/app", "2")

        assert data == {}
        assert "Cannot find data for path, given version has been deleted" in caplog.messages

    def test_destroyed_version(
        self, mock_rpc_client: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_rpc_client.read.return_value = kv2_secret({}, destroyed=True, deletion_time="")

        with caplog.at_level(logging.WARNING):
            SecretPathStore(mock_rpc_client).read("secret/data/app", "1")

        assert "Version of secret has been permanently destroyed" in caplog.messages
        assert "Cannot find data for path, given version has been deleted" not in caplog.messages

    def test_vault_warnings_logged(
        self, mock_rpc_client: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_rpc_client.read.return_value = make_secret(
            {"k": "v"}, warnings=("Endpoint ignored these unrecognized parameters: [version]",)
        )

        with caplog.at_level(logging.WARNING):
            SecretPathStore(mock_rpc_client).read("kv/app")

        assert "Endpoint ignored these unrecognized parameters: [version]" in caplog.messages


class TestSecretPathStoreFetch:
    """Test reference dispatch and writes."""

    def test_fetch_read(self, mock_rpc_client: MagicMock, parser: ReferenceParser) -> None:
        mock_rpc_client.read.return_value = kv2_secret({"password": "x"})

        SecretPathStore(mock_rpc_client).fetch(
            parser.parse_secret_reference("secret/data/app#password#4")
        )

        mock_rpc_client.read.assert_called_once_with("secret/data/app", "4")
        mock_rpc_client.write.assert_not_called()

    def test_fetch_write(self, mock_rpc_client: MagicMock, parser: ReferenceParser) -> None:
        mock_rpc_client.write.return_value = make_secret({"certificate": "PEM"})
        reference = parser.parse('>>vault:pki/issue/app#certificate#{"common_name": "app"}')

        data = SecretPathStore(mock_rpc_client).fetch(reference)

        assert data == {"certificate": "PEM"}
        mock_rpc_client.write.assert_called_once_with(
            "pki/issue/app", {"common_name": "app"}
        )

    def test_write_no_content(self, mock_rpc_client: MagicMock) -> None:
        assert SecretPathStore(mock_rpc_client).write("sys/thing", {}) is None


class TestSecretPathStoreDaemonMode:
    """Test lease registration in daemon mode."""

    def _leased(self) -> object:
        return make_secret(
            {"username": "v-app", "password": "pw"},
            lease_id="database/creds/app/abc",
            lease_duration=3600,
            renewable=True,
        )

    def test_leased_secret_registered(self, mock_rpc_client: MagicMock) -> None:
        secret = self._leased()
        mock_rpc_client.read.return_value = secret
        renewer = MagicMock()

        data = SecretPathStore(mock_rpc_client, renewer, daemon_mode=True).read(
            "database/creds/app"
        )

        assert data == {"username": "v-app", "password": "pw"}
        renewer.renew.assert_called_once_with("database/creds/app", secret)

    def test_not_registered_outside_daemon_mode(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = self._leased()
        renewer = MagicMock()

        SecretPathStore(mock_rpc_client, renewer).read("database/creds/app")

        renewer.renew.assert_not_called()

    def test_unleased_secret_not_registered(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = kv2_secret({"password": "x"})
        renewer = MagicMock()

        SecretPathStore(mock_rpc_client, renewer, daemon_mode=True).read("secret/data/app")

        renewer.renew.assert_not_called()

    def test_renewer_failure(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = self._leased()
        renewer = MagicMock()
        renewer.renew.side_effect = RuntimeError("loop is closed")

        with pytest.raises(SecretRenewalError) as exc_info:
            SecretPathStore(mock_rpc_client, renewer, daemon_mode=True).read(
                "database/creds/app"
            )

        assert str(exc_info.value) == "secret renewal can't be established"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_no_renewer(self, mock_rpc_client: MagicMock) -> None:
        mock_rpc_client.read.return_value = self._leased()

        with pytest.raises(SecretRenewalError):
            SecretPathStore(mock_rpc_client, daemon_mode=True).read("database/creds/app")
