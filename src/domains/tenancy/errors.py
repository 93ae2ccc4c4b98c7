# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the tenancy domain.

The API and CLI map these onto status codes and messages:
- TenantNotFoundError: unknown tenant id (404)
- SubdomainConflictError: subdomain already in use (409)
- TenantValidationError: malformed create/update input (422)
- ProvisioningError: a DDL or policy statement failed (503)
- DependencyError: the shared database is unreachable (503)
"""

from typing import Any
from uuid import UUID

from pydantic import ValidationError

from src.infrastructure.database.connection import DependencyError


class TenancyError(Exception):
    """Base exception for tenancy errors."""

    pass


class TenantNotFoundError(TenancyError):
    """Raised when a tenant does not exist.

    Attributes:
        tenant_id: The id that was looked up, as given by the caller.
    """

    def __init__(self, tenant_id: UUID | str) -> None:
        super().__init__(f"Tenant not found: {tenant_id}")
        self.tenant_id = tenant_id


class SubdomainConflictError(TenancyError):
    """Raised when a subdomain is already used by another tenant."""

    def __init__(self, subdomain: str) -> None:
        super().__init__(f"Subdomain '{subdomain}' is already in use")
        self.subdomain = subdomain


class ProvisioningError(TenancyError):
    """Raised when a provisioning step fails.

    The message is a single line naming the failed step, e.g.
    ``"schema error: permission denied for database iep_platform"``.

    Attributes:
        step: The failed step (schema, policies, teardown, admin).
        detail: Underlying error description.
    """

    def __init__(self, step: str, detail: str) -> None:
        super().__init__(f"{step} error: {detail}")
        self.step = step
        self.detail = detail


class TenantValidationError(TenancyError):
    """Raised when tenant input is malformed.

    Attributes:
        errors: One dict per problem with ``field`` and ``message`` keys.
    """

    def __init__(self, errors: list[dict[str, Any]], message: str | None = None) -> None:
        if message is None:
            message = "; ".join(f"{e['field']}: {e['message']}" for e in errors) or "Invalid input"
        super().__init__(message)
        self.errors = errors

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "TenantValidationError":
        """Convert a pydantic ValidationError.

        Args:
            exc: The pydantic error.

        Returns:
            Equivalent TenantValidationError.
        """
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]) or "__root__",
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return cls(errors)

    @classmethod
    def single(cls, field: str, message: str) -> "TenantValidationError":
        """Build an error for one field."""
        return cls([{"field": field, "message": message}])


__all__ = [
    "DependencyError",
    "ProvisioningError",
    "SubdomainConflictError",
    "TenancyError",
    "TenantNotFoundError",
    "TenantValidationError",
]
