# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort usage counts for tenants.

Counts are read independently, each on its own connection. A count that
cannot be read (missing schema, dropped table, unreachable database) is
reported as 0 with a warning, so a stats lookup never fails.
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError

from src.core.config.settings import TenancySettings
from src.domains.tenancy.errors import TenantValidationError
from src.domains.tenancy.naming import schema_name_for, validate_tenant_id
from src.domains.tenancy.schemas import TenantStats
from src.infrastructure.database.connection import CentralDatabase, DatabaseError
from src.infrastructure.database.models.central import membership_table
from src.infrastructure.database.tenant_schema import build_tenant_tables

logger = logging.getLogger(__name__)


class StatsAggregator:
    """Computes member, learner and cohort counts for a tenant.

    Example:
        >>> aggregator = StatsAggregator(database, settings.tenancy)
        >>> stats = await aggregator.stats(tenant_id)
        >>> stats.learner_count
        0
    """

    def __init__(self, database: CentralDatabase, settings: TenancySettings) -> None:
        """Initialize the aggregator.

        Args:
            database: Shared database.
            settings: Tenancy settings (membership schema).
        """
        self._database = database
        self._settings = settings

    async def stats(self, tenant_id: UUID | str) -> TenantStats:
        """Get usage counts for a tenant.

        Never raises for database problems; failed counts are 0.

        Args:
            tenant_id: Tenant id.

        Returns:
            TenantStats with member, learner and cohort counts.
        """
        try:
            tid = validate_tenant_id(tenant_id)
        except TenantValidationError:
            logger.warning("Stats requested for malformed tenant id %r", tenant_id)
            return TenantStats()

        members = membership_table(self._settings.membership_schema)
        tables = build_tenant_tables(schema_name_for(tid))

        member_count, learner_count, cohort_count = await asyncio.gather(
            self._count(
                "member_count",
                tid,
                select(func.count()).select_from(members).where(members.c.tenant_id == tid),
            ),
            self._count("learner_count", tid, select(func.count()).select_from(tables["students"])),
            self._count("cohort_count", tid, select(func.count()).select_from(tables["classes"])),
        )

        return TenantStats(
            member_count=member_count,
            learner_count=learner_count,
            cohort_count=cohort_count,
        )

    async def _count(self, label: str, tenant_id: UUID, statement: Select) -> int:
        try:
            async with self._database.connect() as conn:
                result = await conn.execute(statement)
                return int(result.scalar_one())
        except (SQLAlchemyError, DatabaseError, OSError) as e:
            logger.warning(
                "Could not read %s for tenant %s: %s",
                label,
                tenant_id,
                str(e),
            )
            return 0
