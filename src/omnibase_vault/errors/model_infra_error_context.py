# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Error Context Configuration Model.

This module defines the model bundling the structured fields attached to
every omnibase_vault error, keeping error constructors short while the
fields stay strongly typed.
"""

from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from omnibase_vault.enums import EnumInfraTransportType


class ModelInfraErrorContext(BaseModel):
    """Structured context for omnibase_vault errors.

    Attributes:
        transport_type: Transport the failing operation used (VAULT, TRANSIT, ...)
        operation: Operation being performed (login, read_secret, decrypt, ...)
        target_name: Component or resource name
        correlation_id: Correlation ID shared by all errors and logs of one call

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.VAULT,
        ...     operation="read_secret",
        ...     target_name="secret_path_store",
        ...     correlation_id=uuid4(),
        ... )
        >>> raise SecretResolutionError("path not found: secret/app", context=context)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    transport_type: Optional[EnumInfraTransportType] = Field(
        default=None,
        description="Transport used by the failing operation",
    )
    operation: Optional[str] = Field(
        default=None,
        description="Operation being performed",
    )
    target_name: Optional[str] = Field(
        default=None,
        description="Component or resource name",
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Correlation ID for tracing one resolution or login cycle",
    )

    @classmethod
    def with_correlation(
        cls,
        transport_type: Optional[EnumInfraTransportType] = None,
        operation: Optional[str] = None,
        target_name: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> "ModelInfraErrorContext":
        """Build a context, generating a correlation ID when none is given."""
        return cls(
            transport_type=transport_type,
            operation=operation,
            target_name=target_name,
            correlation_id=correlation_id or uuid4(),
        )


__all__ = ["ModelInfraErrorContext"]
