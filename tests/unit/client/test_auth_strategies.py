# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for the Vault login strategies.

Metadata services are replaced with httpx.MockTransport; hvac and boto3 are
mocked.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, patch

import botocore.exceptions
import httpx
import pytest
from pydantic import SecretStr

from omnibase_vault.client import AUTH_RESOLVERS, resolve_login
from omnibase_vault.client.auth_strategies import (
    login_aws_ec2,
    login_aws_iam,
    login_azure_msi,
    login_gcp_gce,
    login_gcp_iam,
    login_jwt,
    login_namespaced,
    read_jwt_file,
)
from omnibase_vault.enums import EnumAuthMethod
from omnibase_vault.errors import InfraAuthenticationError, InfraConnectionError
from omnibase_vault.models import ModelAuthParams

LOGIN_RESPONSE = {"auth": {"client_token": "s.login", "lease_duration": 60}}


def _http(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _params(
    method: EnumAuthMethod, jwt_file: Path | str = "/nonexistent/token", **kwargs: object
) -> ModelAuthParams:
    return ModelAuthParams(
        method=method,
        role="app",
        mount_path="auth-mount",
        jwt_file=str(jwt_file),
        **kwargs,
    )


@pytest.fixture
def jwt_file(tmp_path: Path) -> Path:
    path = tmp_path / "token"
    path.write_text("header.payload.signature\n")
    return path


@pytest.fixture
def hvac_client() -> MagicMock:
    client = MagicMock()
    client.auth.kubernetes.login.return_value = LOGIN_RESPONSE
    client.auth.aws.ec2_login.return_value = LOGIN_RESPONSE
    client.auth.aws.iam_login.return_value = LOGIN_RESPONSE
    client.auth.gcp.login.return_value = LOGIN_RESPONSE
    client.auth.azure.login.return_value = LOGIN_RESPONSE
    return client


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request: {request.url}")


class TestResolverTable:
    """Test the method to resolver mapping."""

    def test_every_method_has_a_resolver(self) -> None:
        assert set(AUTH_RESOLVERS) == set(EnumAuthMethod)

    @pytest.mark.parametrize(
        ("method", "resolver"),
        [
            (EnumAuthMethod.JWT, login_jwt),
            (EnumAuthMethod.NAMESPACED, login_namespaced),
            (EnumAuthMethod.AWS_EC2, login_aws_ec2),
            (EnumAuthMethod.AWS_IAM, login_aws_iam),
            (EnumAuthMethod.GCP_GCE, login_gcp_gce),
            (EnumAuthMethod.GCP_IAM, login_gcp_iam),
            (EnumAuthMethod.AZURE_MSI, login_azure_msi),
        ],
    )
    def test_resolve_login(self, method: EnumAuthMethod, resolver: object) -> None:
        assert resolve_login(method) is resolver


class TestJwtLogin:
    """Test Kubernetes / JWT logins."""

    def test_read_jwt_file_strips_whitespace(self, jwt_file: Path) -> None:
        assert read_jwt_file(str(jwt_file)) == "header.payload.signature"

    def test_read_jwt_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(InfraAuthenticationError) as exc_info:
            read_jwt_file(str(tmp_path / "absent"))

        assert "failed to read JWT file" in str(exc_info.value)

    def test_login_jwt(self, hvac_client: MagicMock, jwt_file: Path) -> None:
        with _http(_unreachable) as http:
            response = login_jwt(hvac_client, _params(EnumAuthMethod.JWT, jwt_file), http)

        assert response == LOGIN_RESPONSE
        hvac_client.auth.kubernetes.login.assert_called_once_with(
            role="app",
            jwt="header.payload.signature",
            use_token=False,
            mount_point="auth-mount",
        )

    def test_namespaced_uses_existing_secret(self, hvac_client: MagicMock) -> None:
        params = _params(EnumAuthMethod.NAMESPACED, existing_secret=SecretStr("sa-token"))

        with _http(_unreachable) as http:
            login_namespaced(hvac_client, params, http)

        assert hvac_client.auth.kubernetes.login.call_args.kwargs["jwt"] == "sa-token"

    def test_namespaced_falls_back_to_jwt_file(
        self, hvac_client: MagicMock, jwt_file: Path
    ) -> None:
        with _http(_unreachable) as http:
            login_namespaced(hvac_client, _params(EnumAuthMethod.NAMESPACED, jwt_file), http)

        assert (
            hvac_client.auth.kubernetes.login.call_args.kwargs["jwt"]
            == "header.payload.signature"
        )


class TestAwsLogin:
    """Test AWS EC2 and IAM logins."""

    def test_ec2_login(self, hvac_client: MagicMock, jwt_file: Path) -> None:
        seen: list[tuple[str, str, dict[str, str]]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, dict(request.headers)))
            if request.url.path == "/latest/api/token":
                return httpx.Response(200, text="imds-token")
            return httpx.Response(200, text="MIIB\nPKCS7\n")

        with _http(handler) as http:
            login_aws_ec2(hvac_client, _params(EnumAuthMethod.AWS_EC2, jwt_file), http)

        assert [(m, p) for m, p, _ in seen] == [
            ("PUT", "/latest/api/token"),
            ("GET", "/latest/dynamic/instance-identity/pkcs7"),
        ]
        assert seen[1][2]["x-aws-ec2-metadata-token"] == "imds-token"
        hvac_client.auth.aws.ec2_login.assert_called_once_with(
            pkcs7="MIIBPKCS7",
            nonce=hashlib.sha256(b"header.payload.signature").hexdigest(),
            role="app",
            use_token=False,
            mount_point="auth-mount",
        )

    def test_ec2_metadata_failure(self, hvac_client: MagicMock, jwt_file: Path) -> None:
        with _http(lambda request: httpx.Response(500)) as http:
            with pytest.raises(InfraConnectionError) as exc_info:
                login_aws_ec2(hvac_client, _params(EnumAuthMethod.AWS_EC2, jwt_file), http)

        assert "metadata request failed" in str(exc_info.value)
        hvac_client.auth.aws.ec2_login.assert_not_called()

    def test_ec2_metadata_unreachable(self, hvac_client: MagicMock, jwt_file: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route to host", request=request)

        with _http(handler) as http:
            with pytest.raises(InfraConnectionError):
                login_aws_ec2(hvac_client, _params(EnumAuthMethod.AWS_EC2, jwt_file), http)

    def test_iam_login(self, hvac_client: MagicMock) -> None:
        frozen = MagicMock(access_key="AKIA", secret_key="secret", token="session")
        session = MagicMock()
        session.get_credentials.return_value.get_frozen_credentials.return_value = frozen
        params = _params(EnumAuthMethod.AWS_IAM, aws_region="eu-west-1")

        with patch(
            "omnibase_vault.client.auth_strategies.boto3.session.Session",
            return_value=session,
        ):
            with _http(_unreachable) as http:
                login_aws_iam(hvac_client, params, http)

        hvac_client.auth.aws.iam_login.assert_called_once_with(
            access_key="AKIA",
            secret_key="secret",
            session_token="session",
            role="app",
            use_token=False,
            region="eu-west-1",
            mount_point="auth-mount",
        )

    def test_iam_login_without_credentials(self, hvac_client: MagicMock) -> None:
        session = MagicMock()
        session.get_credentials.return_value = None

        with patch(
            "omnibase_vault.client.auth_strategies.boto3.session.Session",
            return_value=session,
        ):
            with _http(_unreachable) as http:
                with pytest.raises(InfraAuthenticationError):
                    login_aws_iam(hvac_client, _params(EnumAuthMethod.AWS_IAM), http)

    def test_iam_login_credential_chain_error(self, hvac_client: MagicMock) -> None:
        session = MagicMock()
        session.get_credentials.side_effect = botocore.exceptions.NoCredentialsError()

        with patch(
            "omnibase_vault.client.auth_strategies.boto3.session.Session",
            return_value=session,
        ):
            with _http(_unreachable) as http:
                with pytest.raises(InfraAuthenticationError) as exc_info:
                    login_aws_iam(hvac_client, _params(EnumAuthMethod.AWS_IAM), http)

        assert str(exc_info.value) == "failed to load AWS credentials: NoCredentialsError"
        hvac_client.auth.aws.iam_login.assert_not_called()


class TestGcpLogin:
    """Test GCP GCE and IAM logins."""

    def test_gce_login(self, hvac_client: MagicMock) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, text="gce-identity-jwt")

        with _http(handler) as http:
            login_gcp_gce(hvac_client, _params(EnumAuthMethod.GCP_GCE), http)

        request = captured[0]
        assert request.headers["Metadata-Flavor"] == "Google"
        assert request.url.params["audience"] == "http://vault/app"
        assert request.url.params["format"] == "full"
        hvac_client.auth.gcp.login.assert_called_once_with(
            role="app", jwt="gce-identity-jwt", use_token=False, mount_point="auth-mount"
        )

    def test_iam_login_signs_jwt(self, hvac_client: MagicMock) -> None:
        sign_bodies: list[dict[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path.endswith("/email"):
                return httpx.Response(200, text="app@project.iam.gserviceaccount.com\n")
            if path.endswith("/token"):
                return httpx.Response(200, json={"access_token": "ya29.token"})
            assert request.headers["Authorization"] == "Bearer ya29.token"
            sign_bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"signedJwt": "signed.jwt.value"})

        with _http(handler) as http:
            login_gcp_iam(hvac_client, _params(EnumAuthMethod.GCP_IAM), http)

        claims = json.loads(sign_bodies[0]["payload"])
        assert claims["aud"] == "vault/app"
        assert claims["sub"] == "app@project.iam.gserviceaccount.com"
        assert hvac_client.auth.gcp.login.call_args.kwargs["jwt"] == "signed.jwt.value"

    def test_iam_login_without_signed_jwt(self, hvac_client: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path.endswith("/email"):
                return httpx.Response(200, text="app@project.iam.gserviceaccount.com")
            if path.endswith("/token"):
                return httpx.Response(200, json={"access_token": "ya29.token"})
            return httpx.Response(200, json={"error": "denied"})

        with _http(handler) as http:
            with pytest.raises(InfraAuthenticationError) as exc_info:
                login_gcp_iam(hvac_client, _params(EnumAuthMethod.GCP_IAM), http)

        assert str(exc_info.value) == "metadata response has no signedJwt"
        hvac_client.auth.gcp.login.assert_not_called()


class TestAzureLogin:
    """Test Azure managed identity logins."""

    def _handler(self, compute: dict[str, str]) -> Callable[[httpx.Request], httpx.Response]:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Metadata"] == "true"
            if request.url.path.endswith("/oauth2/token"):
                return httpx.Response(200, json={"access_token": "azure-token"})
            return httpx.Response(200, json={"compute": compute})

        return handler

    def test_vm_login(self, hvac_client: MagicMock) -> None:
        compute = {
            "subscriptionId": "sub-1",
            "resourceGroupName": "rg-1",
            "name": "vm-1",
            "vmScaleSetName": "",
        }

        with _http(self._handler(compute)) as http:
            login_azure_msi(hvac_client, _params(EnumAuthMethod.AZURE_MSI), http)

        hvac_client.auth.azure.login.assert_called_once_with(
            role="app",
            jwt="azure-token",
            subscription_id="sub-1",
            resource_group_name="rg-1",
            vm_name="vm-1",
            vmss_name=None,
            use_token=False,
            mount_point="auth-mount",
        )

    def test_scale_set_login(self, hvac_client: MagicMock) -> None:
        compute = {
            "subscriptionId": "sub-1",
            "resourceGroupName": "rg-1",
            "name": "vmss-1_0",
            "vmScaleSetName": "vmss-1",
        }

        with _http(self._handler(compute)) as http:
            login_azure_msi(hvac_client, _params(EnumAuthMethod.AZURE_MSI), http)

        kwargs = hvac_client.auth.azure.login.call_args.kwargs
        assert kwargs["vm_name"] is None
        assert kwargs["vmss_name"] == "vmss-1"

    def test_non_json_token_response(self, hvac_client: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        with _http(handler) as http:
            with pytest.raises(InfraConnectionError) as exc_info:
                login_azure_msi(hvac_client, _params(EnumAuthMethod.AZURE_MSI), http)

        assert str(exc_info.value) == "metadata response is not valid JSON"
        hvac_client.auth.azure.login.assert_not_called()

    def test_token_response_without_access_token(self, hvac_client: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"expires_in": "3599"})

        with _http(handler) as http:
            with pytest.raises(InfraAuthenticationError):
                login_azure_msi(hvac_client, _params(EnumAuthMethod.AZURE_MSI), http)
