# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant schema naming.

A tenant's schema name is derived from its id and can be turned back into
the id:

    1f0c6f7e-8a3b-4c55-9d2e-0b6a4f1e2d3c
    tenant_1f0c6f7e_8a3b_4c55_9d2e_0b6a4f1e2d3c

Only canonical lowercase hyphenated UUIDs are accepted, so a schema name
can never carry anything but hex digits and underscores.
"""

import re
from uuid import UUID

from src.domains.tenancy.errors import TenantValidationError

SCHEMA_PREFIX = "tenant_"

_TENANT_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)
_SCHEMA_NAME_PATTERN = re.compile(
    r"^tenant_[0-9a-f]{8}_[0-9a-f]{4}_[0-9a-f]{4}_[0-9a-f]{4}_[0-9a-f]{12}$"
)


def validate_tenant_id(tenant_id: UUID | str) -> UUID:
    """Validate a tenant id.

    Args:
        tenant_id: UUID instance or canonical lowercase UUID string.

    Returns:
        The id as UUID.

    Raises:
        TenantValidationError: If the id is not a canonical UUID.
    """
    if isinstance(tenant_id, UUID):
        return tenant_id
    if not isinstance(tenant_id, str) or not _TENANT_ID_PATTERN.match(tenant_id):
        raise TenantValidationError.single(
            "tenant_id", f"Invalid tenant id: {tenant_id!r}"
        )
    return UUID(tenant_id)


def schema_name_for(tenant_id: UUID | str) -> str:
    """Get the schema name for a tenant.

    Args:
        tenant_id: Tenant id.

    Returns:
        ``tenant_`` followed by the id with hyphens replaced by underscores.

    Raises:
        TenantValidationError: If the id is not a canonical UUID.
    """
    return SCHEMA_PREFIX + str(validate_tenant_id(tenant_id)).replace("-", "_")


def tenant_id_from_schema(schema_name: str) -> UUID:
    """Recover the tenant id from a schema name.

    Args:
        schema_name: Name produced by schema_name_for.

    Returns:
        The tenant id.

    Raises:
        TenantValidationError: If the name was not produced by schema_name_for.
    """
    if not _SCHEMA_NAME_PATTERN.match(schema_name):
        raise TenantValidationError.single(
            "schema", f"Not a tenant schema name: {schema_name!r}"
        )
    return UUID(schema_name[len(SCHEMA_PREFIX):].replace("_", "-"))


def is_tenant_schema(schema_name: str) -> bool:
    """Check whether a schema name belongs to a tenant."""
    return bool(_SCHEMA_NAME_PATTERN.match(schema_name))
