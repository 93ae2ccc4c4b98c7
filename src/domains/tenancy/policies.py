# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Row-level access policies for tenant relations.

Every relation in a tenant schema gets row-level security, forced so the
owning role is filtered too, and one policy: a row is visible only to
identities that have a membership for the tenant. Roles that need
unfiltered access (stats, maintenance) must be superusers or have
BYPASSRLS. The predicate is built as a SQLAlchemy expression:

    <identity> IN (SELECT user_id FROM public.tenant_users
                   WHERE tenant_id = CAST('<tenant id>' AS UUID))

The tenant id embedded in the predicate is recovered from the validated
schema name, never taken from caller-supplied text. ``<identity>`` is the
configured identity expression (TenancySettings.identity_expression).
"""

import logging
from uuid import UUID

from sqlalchemy import ColumnElement, cast, literal, literal_column, select
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import ExecutableDDLElement

from src.core.config.settings import TenancySettings
from src.domains.tenancy.errors import ProvisioningError
from src.domains.tenancy.naming import schema_name_for, tenant_id_from_schema
from src.infrastructure.database.connection import CentralDatabase
from src.infrastructure.database.ddl import (
    CreatePolicy,
    DropPolicy,
    EnableRowLevelSecurity,
    ForceRowLevelSecurity,
)
from src.infrastructure.database.models.central import membership_table
from src.infrastructure.database.tenant_schema import TENANT_RELATION_NAMES, build_tenant_tables

logger = logging.getLogger(__name__)


class AccessPolicyInstaller:
    """Installs the tenant isolation policy on every tenant relation.

    Installing is idempotent: the policy is dropped (if present) and
    recreated, and enabling row-level security twice is a no-op.
    """

    def __init__(self, database: CentralDatabase, settings: TenancySettings) -> None:
        """Initialize the installer.

        Args:
            database: Shared database.
            settings: Tenancy settings (policy name, identity expression,
                membership schema).
        """
        self._database = database
        self._settings = settings

    def build_predicate(self, tenant_id: UUID) -> ColumnElement[bool]:
        """Build the row visibility predicate for a tenant.

        Args:
            tenant_id: Validated tenant id.

        Returns:
            Boolean expression for the policy's USING clause.
        """
        members = membership_table(self._settings.membership_schema)
        member_ids = select(members.c.user_id).where(
            members.c.tenant_id == cast(literal(str(tenant_id)), PG_UUID(as_uuid=True))
        )
        return literal_column(self._settings.identity_expression).in_(member_ids)

    def build_statements(self, tenant_id: UUID | str) -> list[ExecutableDDLElement]:
        """Build the policy DDL for a tenant, in execution order.

        Raises:
            TenantValidationError: If the tenant id is malformed.
        """
        schema = schema_name_for(tenant_id)
        predicate = self.build_predicate(tenant_id_from_schema(schema))
        tables = build_tenant_tables(schema)
        policy_name = self._settings.policy_name

        statements: list[ExecutableDDLElement] = []
        for name in TENANT_RELATION_NAMES:
            table = tables[name]
            statements.extend(
                [
                    EnableRowLevelSecurity(table),
                    ForceRowLevelSecurity(table),
                    DropPolicy(policy_name, table),
                    CreatePolicy(policy_name, table, predicate),
                ]
            )
        return statements

    async def install(self, tenant_id: UUID | str) -> str:
        """Enable and force row-level security and install the policy on all relations.

        Args:
            tenant_id: Tenant id. The schema must already be provisioned.

        Returns:
            The schema name.

        Raises:
            TenantValidationError: If the tenant id is malformed.
            ProvisioningError: If a policy statement fails.
            DependencyError: If the database is unreachable.
        """
        schema = schema_name_for(tenant_id)
        statements = self.build_statements(tenant_id)

        try:
            async with self._database.begin() as conn:
                for statement in statements:
                    await conn.execute(statement)
        except SQLAlchemyError as e:
            detail = str(getattr(e, "orig", None) or e).strip()
            logger.error("Policy installation failed for %s: %s", schema, detail)
            raise ProvisioningError("policies", detail) from e

        logger.info(
            "Installed %s on %d relations in %s",
            self._settings.policy_name,
            len(TENANT_RELATION_NAMES),
            schema,
        )
        return schema
