# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant schema provisioning.

Creates a tenant's schema and its six relations, and drops it again on
teardown. Every statement is idempotent (IF NOT EXISTS / IF EXISTS), so
provisioning can be re-run to repair a tenant.

Relations are created batch by batch in dependency order (see
relation_batches). All statements run in one transaction: PostgreSQL DDL
is transactional, so a failed provisioning leaves nothing behind.
"""

import logging
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateIndex, CreateSchema, CreateTable, DropSchema, ExecutableDDLElement

from src.domains.tenancy.errors import ProvisioningError
from src.domains.tenancy.naming import schema_name_for
from src.infrastructure.database.connection import CentralDatabase
from src.infrastructure.database.tenant_schema import build_tenant_tables, relation_batches

logger = logging.getLogger(__name__)


def _detail(error: SQLAlchemyError) -> str:
    return str(getattr(error, "orig", None) or error).strip()


class SchemaProvisioner:
    """Creates and drops tenant schemas.

    Attributes:
        _database: Shared database the schemas live in.
    """

    def __init__(self, database: CentralDatabase) -> None:
        self._database = database

    def build_statements(self, tenant_id: UUID | str) -> list[ExecutableDDLElement]:
        """Build the provisioning DDL for a tenant, in execution order.

        Args:
            tenant_id: Tenant id. Validated before any statement is built.

        Returns:
            CREATE SCHEMA, then per relation (in dependency order) its
            CREATE TABLE followed by its CREATE INDEX statements.

        Raises:
            TenantValidationError: If the tenant id is malformed.
        """
        schema = schema_name_for(tenant_id)
        tables = build_tenant_tables(schema)

        statements: list[ExecutableDDLElement] = [CreateSchema(schema, if_not_exists=True)]
        for batch in relation_batches():
            for definition in batch:
                table = tables[definition.name]
                statements.append(CreateTable(table, if_not_exists=True))
                for index in sorted(table.indexes, key=lambda i: i.name):
                    statements.append(CreateIndex(index, if_not_exists=True))

        return statements

    async def provision(self, tenant_id: UUID | str) -> str:
        """Create the tenant schema and its relations.

        Safe to call again on an already provisioned tenant.

        Args:
            tenant_id: Tenant id.

        Returns:
            The schema name.

        Raises:
            TenantValidationError: If the tenant id is malformed.
            ProvisioningError: If a DDL statement fails.
            DependencyError: If the database is unreachable.
        """
        schema = schema_name_for(tenant_id)
        statements = self.build_statements(tenant_id)

        try:
            async with self._database.begin() as conn:
                for statement in statements:
                    await conn.execute(statement)
        except SQLAlchemyError as e:
            logger.error("Schema creation failed for %s: %s", schema, _detail(e))
            raise ProvisioningError("schema", _detail(e)) from e

        logger.info("Provisioned schema %s (%d statements)", schema, len(statements))
        return schema

    async def teardown(self, tenant_id: UUID | str) -> str:
        """Drop the tenant schema and everything in it.

        Dropping a schema that does not exist is not an error.

        Args:
            tenant_id: Tenant id.

        Returns:
            The schema name.

        Raises:
            TenantValidationError: If the tenant id is malformed.
            ProvisioningError: If the drop fails.
            DependencyError: If the database is unreachable.
        """
        schema = schema_name_for(tenant_id)

        try:
            async with self._database.begin() as conn:
                await conn.execute(DropSchema(schema, cascade=True, if_exists=True))
        except SQLAlchemyError as e:
            logger.error("Schema teardown failed for %s: %s", schema, _detail(e))
            raise ProvisioningError("teardown", _detail(e)) from e

        logger.info("Dropped schema %s", schema)
        return schema

    async def exists(self, tenant_id: UUID | str) -> bool:
        """Check whether the tenant schema exists."""
        schema = schema_name_for(tenant_id)
        async with self._database.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_schema(schema))

    async def list_relations(self, tenant_id: UUID | str) -> list[str]:
        """List the tables present in the tenant schema.

        Returns:
            Sorted table names; empty if the schema does not exist.
        """
        schema = schema_name_for(tenant_id)
        async with self._database.connect() as conn:
            names = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names(schema=schema)
            )
        return sorted(names)
