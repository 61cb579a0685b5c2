# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pytest configuration and shared fixtures for omnibase_vault tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from omnibase_vault.client import VaultRpcClient
from tests.helpers.vault_helpers import FakeVaultHandle

# Environment variables read by the configuration models.
VAULT_ENV_VARS: tuple[str, ...] = (
    "VAULT_ADDR",
    "VAULT_TOKEN",
    "VAULT_TOKEN_PATH",
    "VAULT_CLIENT_TIMEOUT",
    "VAULT_NAMESPACE",
    "VAULT_CACERT",
    "VAULT_CACERT_RELOAD",
    "VAULT_JWT_FILE",
    "KUBERNETES_SERVICE_ACCOUNT_TOKEN",
)


@pytest.fixture
def clean_vault_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove Vault environment variables and point the token path at nothing."""
    for name in VAULT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VAULT_TOKEN_PATH", str(tmp_path / "no-such-token"))


@pytest.fixture
def mock_hvac_client() -> MagicMock:
    """Provide mocked hvac.Client."""
    client = MagicMock()
    client.token = ""
    client.adapter = MagicMock()
    client.secrets.transit = MagicMock()
    client.auth.token = MagicMock()
    client.sys = MagicMock()
    return client


@pytest.fixture
def rpc_client(mock_hvac_client: MagicMock) -> VaultRpcClient:
    """Provide a VaultRpcClient over the mocked hvac client."""
    return VaultRpcClient(mock_hvac_client)


@pytest.fixture
def mock_rpc_client() -> MagicMock:
    """Provide a mocked VaultRpcClient that knows no secrets."""
    rpc = MagicMock(spec=VaultRpcClient)
    rpc.read.return_value = None
    rpc.write.return_value = None
    rpc.decrypt_batch.return_value = {}
    rpc.token = "s.live-token"
    return rpc


@pytest.fixture
def vault_handle(mock_rpc_client: MagicMock) -> FakeVaultHandle:
    """Provide an authenticated handle over the mocked RPC client."""
    return FakeVaultHandle(mock_rpc_client)
