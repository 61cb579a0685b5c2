# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Vault Authentication Method Enumeration.

Each member names one login flow supported by the credential manager. The
string values match the values accepted in configuration files and
environment variables.
"""

from enum import Enum


class EnumAuthMethod(str, Enum):
    """Supported Vault authentication methods.

    Attributes:
        AWS_EC2: AWS EC2 auth with the instance identity PKCS7 document
        AWS_IAM: AWS IAM auth with signed ``sts:GetCallerIdentity``
        GCP_GCE: GCP auth with a GCE metadata identity token
        GCP_IAM: GCP auth with a JWT signed by the IAM credentials API
        AZURE_MSI: Azure auth with a managed identity access token
        NAMESPACED: Kubernetes auth with an existing per-namespace service account token
        JWT: JWT / Kubernetes auth with a service account token file
    """

    AWS_EC2 = "aws-ec2"
    AWS_IAM = "aws-iam"
    GCP_GCE = "gcp-gce"
    GCP_IAM = "gcp-iam"
    AZURE_MSI = "azure"
    NAMESPACED = "namespaced"
    JWT = "jwt"


__all__ = ["EnumAuthMethod"]
