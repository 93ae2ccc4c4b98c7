# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL.

This package provides:
- connection: The CentralDatabase connection object and error types
- models: ORM models for the shared relations (tenants, accounts, memberships)
- tenant_schema: Core table definitions provisioned inside each tenant schema
- ddl: Row-level security DDL constructs

Example:
    from src.infrastructure.database import CentralDatabase

    database = CentralDatabase.from_settings(settings)
    async with database.session() as session:
        result = await session.execute(select(Tenant))
"""

from src.infrastructure.database.connection import (
    CentralDatabase,
    DatabaseError,
    DependencyError,
    is_connectivity_error,
    set_request_identity,
)
from src.infrastructure.database.ddl import (
    CreatePolicy,
    DropPolicy,
    EnableRowLevelSecurity,
    ForceRowLevelSecurity,
)
from src.infrastructure.database.tenant_schema import (
    TENANT_RELATION_NAMES,
    TENANT_RELATIONS,
    RelationDefinition,
    build_tenant_tables,
    relation_batches,
)

__all__ = [
    # Connection
    "CentralDatabase",
    "DatabaseError",
    "DependencyError",
    "is_connectivity_error",
    "set_request_identity",
    # Tenant relations
    "RelationDefinition",
    "TENANT_RELATIONS",
    "TENANT_RELATION_NAMES",
    "build_tenant_tables",
    "relation_batches",
    # Row-level security
    "CreatePolicy",
    "DropPolicy",
    "EnableRowLevelSecurity",
    "ForceRowLevelSecurity",
]
