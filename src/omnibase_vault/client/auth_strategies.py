# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Vault login strategies.

One resolver function per EnumAuthMethod. Every resolver gathers the
credential material its method needs (a service account JWT, an instance
identity document, cloud credentials) and performs exactly one hvac login
call with ``use_token=False``, returning the raw response. Installing the
token is left to the credential manager.

Cloud metadata endpoints are queried with httpx; AWS IAM credentials come
from the boto3 credential chain.

Security:
    JWTs, access tokens and signed documents are never logged and never
    included in error messages.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import boto3
import botocore.exceptions
import httpx
import hvac

from omnibase_vault.enums import EnumAuthMethod, EnumInfraTransportType
from omnibase_vault.errors import (
    InfraAuthenticationError,
    InfraConnectionError,
    ModelInfraErrorContext,
    ProtocolConfigurationError,
)
from omnibase_vault.models import ModelAuthParams

logger = logging.getLogger(__name__)

AWS_METADATA_URL: str = "http://169.254.169.254/latest"
GCP_METADATA_URL: str = "http://metadata.google.internal/computeMetadata/v1"
GCP_IAM_CREDENTIALS_URL: str = "https://iamcredentials.googleapis.com/v1"
AZURE_METADATA_URL: str = "http://169.254.169.254/metadata"
AZURE_MANAGEMENT_RESOURCE: str = "https://management.azure.com/"

# Lifetime of the self-signed JWT used for GCP IAM login.
GCP_IAM_JWT_TTL_SECONDS: int = 900

LoginResolver = Callable[[hvac.Client, ModelAuthParams, httpx.Client], Mapping[str, Any]]


def _metadata_context(operation: str) -> ModelInfraErrorContext:
    return ModelInfraErrorContext.with_correlation(
        transport_type=EnumInfraTransportType.METADATA,
        operation=operation,
        target_name="auth_strategies",
    )


def read_jwt_file(path: str) -> str:
    """Read a service account JWT.

    Raises:
        InfraAuthenticationError: If the file cannot be read
    """
    try:
        return Path(path).read_text().strip()
    except OSError as e:
        raise InfraAuthenticationError(
            f"failed to read JWT file: {path}",
            context=ModelInfraErrorContext.with_correlation(
                transport_type=EnumInfraTransportType.FILESYSTEM,
                operation="read_jwt",
                target_name="auth_strategies",
            ),
        ) from e


def _fetch(
    http: httpx.Client,
    method: str,
    url: str,
    operation: str,
    **kwargs: Any,
) -> httpx.Response:
    try:
        response = http.request(method, url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise InfraConnectionError(
            f"metadata request failed: {type(e).__name__}",
            context=_metadata_context(operation),
            url=url,
        ) from e
    return response


def _fetch_json(
    http: httpx.Client,
    method: str,
    url: str,
    operation: str,
    **kwargs: Any,
) -> Mapping[str, Any]:
    response = _fetch(http, method, url, operation, **kwargs)
    try:
        payload = response.json()
    except ValueError as e:
        raise InfraConnectionError(
            "metadata response is not valid JSON",
            context=_metadata_context(operation),
            url=url,
        ) from e
    if not isinstance(payload, Mapping):
        raise InfraConnectionError(
            "metadata response is not a JSON object",
            context=_metadata_context(operation),
            url=url,
        )
    return payload


def _require_field(payload: Mapping[str, Any], key: str, operation: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise InfraAuthenticationError(
            f"metadata response has no {key}",
            context=_metadata_context(operation),
        )
    return value


def login_jwt(
    client: hvac.Client, params: ModelAuthParams, http: httpx.Client
) -> Mapping[str, Any]:
    """JWT / Kubernetes login with the service account token file."""
    jwt = read_jwt_file(params.jwt_file)
    return client.auth.kubernetes.login(
        role=params.role,
        jwt=jwt,
        use_token=False,
        mount_point=params.mount_path,
    )


def login_namespaced(
    client: hvac.Client, params: ModelAuthParams, http: httpx.Client
) -> Mapping[str, Any]:
    """Kubernetes login with an existing token, falling back to the JWT file."""
    if params.existing_secret is None or not params.existing_secret.get_secret_value():
        logger.debug(
            "No existing secret configured, using JWT file login",
            extra={"role": params.role, "mount_path": params.mount_path},
        )
        return login_jwt(client, params, http)
    return client.auth.kubernetes.login(
        role=params.role,
        jwt=params.existing_secret.get_secret_value(),
        use_token=False,
        mount_point=params.mount_path,
    )


def login_aws_ec2(
    client: hvac.Client, params: ModelAuthParams, http: httpx.Client
) -> Mapping[str, Any]:
    """AWS EC2 login with the PKCS7 instance identity document.

    The nonce is the SHA-256 of the service account JWT, so the same
    workload always presents the same nonce.
    """
    jwt = read_jwt_file(params.jwt_file)
    nonce = hashlib.sha256(jwt.encode()).hexdigest()

    imds_token = _fetch(
        http,
        "PUT",
        f"{AWS_METADATA_URL}/api/token",
        "aws_imds_token",
        headers={"X-aws-ec2-metadata-token-ttl-seconds": "21600"},
    ).text
    pkcs7 = _fetch(
        http,
        "GET",
        f"{AWS_METADATA_URL}/dynamic/instance-identity/pkcs7",
        "aws_identity_document",
        headers={"X-aws-ec2-metadata-token": imds_token},
    ).text.replace("\n", "")

    return client.auth.aws.ec2_login(
        pkcs7=pkcs7,
        nonce=nonce,
        role=params.role,
        use_token=False,
        mount_point=params.mount_path,
    )


def login_aws_iam(
    client: hvac.Client, params: ModelAuthParams, http: httpx.Client
) -> Mapping[str, Any]:
    """AWS IAM login with credentials from the boto3 credential chain."""
    try:
        credentials = boto3.session.Session().get_credentials()
        frozen = credentials.get_frozen_credentials() if credentials else None
    except botocore.exceptions.BotoCoreError as e:
        raise InfraAuthenticationError(
            f"failed to load AWS credentials: {type(e).__name__}",
            context=_metadata_context("aws_credentials"),
        ) from e
    if frozen is None:
        raise InfraAuthenticationError(
            "no AWS credentials available for IAM login",
            context=_metadata_context("aws_credentials"),
        )
    return client.auth.aws.iam_login(
        access_key=frozen.access_key,
        secret_key=frozen.secret_key,
        session_token=frozen.token,
        role=params.role,
        use_token=False,
        region=params.aws_region,
        mount_point=params.mount_path,
    )


def login_gcp_gce(
    client: hvac.Client, params: ModelAuthParams, http: httpx.Client
) -> Mapping[str, Any]:
    """GCP login with an instance identity token from the GCE metadata server."""
    jwt = _fetch(
        http,
        "GET",
        f"{GCP_METADATA_URL}/instance/service-accounts/default/identity",
        "gce_identity",
        params={"audience": f"http://vault/{params.role}", "format": "full"},
        headers={"Metadata-Flavor": "Google"},
    ).text
    return client.auth.gcp.login(
        role=params.role,
        jwt=jwt,
        use_token=False,
        mount_point=params.mount_path,
    )


def login_gcp_iam(
    client: hvac.Client, params: ModelAuthParams, http: httpx.Client
) -> Mapping[str, Any]:
    """GCP login with a JWT signed through the IAM credentials API."""
    headers = {"Metadata-Flavor": "Google"}
    email = _fetch(
        http,
        "GET",
        f"{GCP_METADATA_URL}/instance/service-accounts/default/email",
        "gce_service_account",
        headers=headers,
    ).text.strip()
    access_token = _require_field(
        _fetch_json(
            http,
            "GET",
            f"{GCP_METADATA_URL}/instance/service-accounts/default/token",
            "gce_access_token",
            headers=headers,
        ),
        "access_token",
        "gce_access_token",
    )

    claims = {
        "aud": f"vault/{params.role}",
        "sub": email,
        "exp": int(time.time()) + GCP_IAM_JWT_TTL_SECONDS,
    }
    signed = _fetch_json(
        http,
        "POST",
        f"{GCP_IAM_CREDENTIALS_URL}/projects/-/serviceAccounts/{email}:signJwt",
        "gcp_sign_jwt",
        headers={"Authorization": f"Bearer {access_token}"},
        json={"payload": json.dumps(claims)},
    )

    return client.auth.gcp.login(
        role=params.role,
        jwt=_require_field(signed, "signedJwt", "gcp_sign_jwt"),
        use_token=False,
        mount_point=params.mount_path,
    )


def login_azure_msi(
    client: hvac.Client, params: ModelAuthParams, http: httpx.Client
) -> Mapping[str, Any]:
    """Azure login with a managed identity token and the instance metadata."""
    headers = {"Metadata": "true"}
    access_token = _require_field(
        _fetch_json(
            http,
            "GET",
            f"{AZURE_METADATA_URL}/identity/oauth2/token",
            "azure_msi_token",
            params={"api-version": "2018-02-01", "resource": AZURE_MANAGEMENT_RESOURCE},
            headers=headers,
        ),
        "access_token",
        "azure_msi_token",
    )
    compute = _fetch_json(
        http,
        "GET",
        f"{AZURE_METADATA_URL}/instance",
        "azure_instance",
        params={"api-version": "2017-08-01"},
        headers=headers,
    ).get("compute") or {}

    vmss_name = compute.get("vmScaleSetName") or None
    return client.auth.azure.login(
        role=params.role,
        jwt=access_token,
        subscription_id=compute.get("subscriptionId"),
        resource_group_name=compute.get("resourceGroupName"),
        vm_name=None if vmss_name else compute.get("name"),
        vmss_name=vmss_name,
        use_token=False,
        mount_point=params.mount_path,
    )


AUTH_RESOLVERS: dict[EnumAuthMethod, LoginResolver] = {
    EnumAuthMethod.AWS_EC2: login_aws_ec2,
    EnumAuthMethod.AWS_IAM: login_aws_iam,
    EnumAuthMethod.GCP_GCE: login_gcp_gce,
    EnumAuthMethod.GCP_IAM: login_gcp_iam,
    EnumAuthMethod.AZURE_MSI: login_azure_msi,
    EnumAuthMethod.NAMESPACED: login_namespaced,
    EnumAuthMethod.JWT: login_jwt,
}


def resolve_login(method: EnumAuthMethod) -> LoginResolver:
    """Return the login resolver for ``method``.

    Raises:
        ProtocolConfigurationError: If no resolver is registered
    """
    resolver = AUTH_RESOLVERS.get(method)
    if resolver is None:
        raise ProtocolConfigurationError(
            f"unsupported auth method: {method}",
            context=ModelInfraErrorContext.with_correlation(
                transport_type=EnumInfraTransportType.VAULT,
                operation="login",
                target_name="auth_strategies",
            ),
        )
    return resolver


__all__: list[str] = [
    "AUTH_RESOLVERS",
    "LoginResolver",
    "login_aws_ec2",
    "login_aws_iam",
    "login_azure_msi",
    "login_gcp_gce",
    "login_gcp_iam",
    "login_jwt",
    "login_namespaced",
    "read_jwt_file",
    "resolve_login",
]
