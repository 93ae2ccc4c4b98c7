# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant registry.

CRUD over the canonical tenant records in the shared ``tenants`` table.
The registry knows nothing about tenant schemas; orchestration with
provisioning and teardown lives in TenantLifecycleManager.

Subdomain uniqueness is checked before writing for a friendly error, and
enforced by the unique constraint on ``tenants.subdomain``: an integrity
violation on insert or update is reported as SubdomainConflictError too.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import TenancySettings
from src.domains.tenancy.errors import (
    SubdomainConflictError,
    TenantNotFoundError,
    TenantValidationError,
)
from src.domains.tenancy.naming import validate_tenant_id
from src.domains.tenancy.schemas import (
    TenantConfig,
    TenantPlan,
    TenantRecord,
    TenantStatus,
    TenantUpdateRequest,
)
from src.domains.tenancy.stats import StatsAggregator
from src.infrastructure.database.connection import CentralDatabase
from src.infrastructure.database.models.central import Tenant
from src.utils.datetime import utc_now_after

logger = logging.getLogger(__name__)


class TenantRegistry:
    """Service for tenant records.

    Attributes:
        _database: Shared database.
        _settings: Tenancy settings (list limits).
        _stats: Aggregator used to attach stats to detail lookups.

    Example:
        >>> registry = TenantRegistry(database, settings.tenancy, stats)
        >>> record = await registry.create("Ataturk Ortaokulu", "ataturk")
        >>> records = await registry.list(status="active", limit=20)
    """

    def __init__(
        self,
        database: CentralDatabase,
        settings: TenancySettings,
        stats: StatsAggregator | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            database: Shared database.
            settings: Tenancy settings.
            stats: Stats aggregator; when omitted, get() returns no stats.
        """
        self._database = database
        self._settings = settings
        self._stats = stats

    async def create(
        self,
        name: str,
        subdomain: str,
        *,
        status: TenantStatus = TenantStatus.ACTIVE,
        plan: TenantPlan = TenantPlan.FREE,
        features: Sequence[str] = (),
        config: TenantConfig | None = None,
    ) -> TenantRecord:
        """Insert a new tenant record.

        Args:
            name: Display name.
            subdomain: Normalized, validated subdomain.
            status: Initial status.
            plan: Subscription plan.
            features: Enabled capability flags.
            config: Configuration document; defaults to the default theme.

        Returns:
            The created record.

        Raises:
            SubdomainConflictError: If the subdomain is taken.
            DependencyError: If the database is unreachable.
        """
        config = config or TenantConfig()

        async with self._database.session() as session:
            if await self._subdomain_taken(session, subdomain):
                raise SubdomainConflictError(subdomain)

            tenant = Tenant(
                name=name,
                subdomain=subdomain,
                status=TenantStatus(status).value,
                plan=TenantPlan(plan).value,
                features=[str(getattr(f, "value", f)) for f in features],
                config=config.model_dump(mode="json"),
            )
            session.add(tenant)
            try:
                await session.flush()
            except IntegrityError as e:
                raise SubdomainConflictError(subdomain) from e

            record = TenantRecord.model_validate(tenant)

        logger.info("Tenant record created: %s (%s)", record.subdomain, record.id)
        return record

    async def get(self, tenant_id: UUID | str, *, with_stats: bool = True) -> TenantRecord:
        """Get a tenant record.

        Stats are attached on a best-effort basis and never make the
        lookup fail.

        Args:
            tenant_id: Tenant id.
            with_stats: Attach usage counts.

        Returns:
            The record.

        Raises:
            TenantNotFoundError: If no tenant has this id (or the id is malformed).
            DependencyError: If the database is unreachable.
        """
        tid = self._lookup_id(tenant_id)

        async with self._database.session() as session:
            tenant = await session.get(Tenant, tid)
            if tenant is None:
                raise TenantNotFoundError(tenant_id)
            record = TenantRecord.model_validate(tenant)

        if with_stats and self._stats is not None:
            try:
                record.stats = await self._stats.stats(tid)
            except Exception as e:
                logger.warning("Stats unavailable for tenant %s: %s", tid, str(e))

        return record

    async def get_by_subdomain(self, subdomain: str) -> TenantRecord | None:
        """Get a tenant by subdomain.

        Args:
            subdomain: Subdomain; normalized before lookup.

        Returns:
            The record or None.
        """
        async with self._database.session() as session:
            result = await session.execute(
                select(Tenant).where(Tenant.subdomain == subdomain.strip().lower())
            )
            tenant = result.scalar_one_or_none()
            return TenantRecord.model_validate(tenant) if tenant else None

    async def update(
        self,
        tenant_id: UUID | str,
        patch: TenantUpdateRequest | Mapping[str, Any],
    ) -> TenantRecord:
        """Merge a partial update into a tenant record.

        The theme is merged key by key; updated_at always moves forward.

        Args:
            tenant_id: Tenant id.
            patch: Fields to change.

        Returns:
            The updated record.

        Raises:
            TenantNotFoundError: If the tenant does not exist.
            TenantValidationError: If the patch is invalid.
            SubdomainConflictError: If the new subdomain is taken.
        """
        tid = self._lookup_id(tenant_id)
        changes = TenantUpdateRequest.coerce(patch).changes()
        theme = changes.pop("theme", None)

        async with self._database.session() as session:
            result = await session.execute(select(Tenant).where(Tenant.id == tid).with_for_update())
            tenant = result.scalar_one_or_none()
            if tenant is None:
                raise TenantNotFoundError(tenant_id)

            subdomain = changes.get("subdomain")
            if subdomain and subdomain != tenant.subdomain:
                if await self._subdomain_taken(session, subdomain):
                    raise SubdomainConflictError(subdomain)

            for field, value in changes.items():
                setattr(tenant, field, value)

            if theme:
                config = dict(tenant.config or {})
                config["theme"] = {**(config.get("theme") or {}), **theme}
                try:
                    merged = TenantConfig.model_validate(config)
                except ValidationError as e:
                    raise TenantValidationError.from_pydantic(e) from e
                tenant.config = merged.model_dump(mode="json")

            tenant.updated_at = utc_now_after(tenant.updated_at)

            try:
                await session.flush()
            except IntegrityError as e:
                raise SubdomainConflictError(subdomain or tenant.subdomain) from e

            record = TenantRecord.model_validate(tenant)

        logger.info(
            "Tenant %s updated: %s",
            record.id,
            ", ".join(sorted([*changes, *(["theme"] if theme else [])])) or "no changes",
        )
        return record

    async def delete(self, tenant_id: UUID | str) -> None:
        """Remove a tenant record.

        Memberships are removed by the cascading foreign key. The tenant
        schema is not touched.

        Raises:
            TenantNotFoundError: If the tenant does not exist.
        """
        tid = self._lookup_id(tenant_id)

        async with self._database.session() as session:
            tenant = await session.get(Tenant, tid)
            if tenant is None:
                raise TenantNotFoundError(tenant_id)
            await session.delete(tenant)

        logger.info("Tenant record deleted: %s", tid)

    async def count(
        self,
        *,
        status: TenantStatus | str | None = None,
        plan: TenantPlan | str | None = None,
        search: str | None = None,
    ) -> int:
        """Count tenants matching the filters used by list()."""
        statement = self._filtered(select(func.count()).select_from(Tenant), status, plan, search)
        async with self._database.session() as session:
            result = await session.execute(statement)
            return int(result.scalar_one())

    async def list(
        self,
        *,
        status: TenantStatus | str | None = None,
        plan: TenantPlan | str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[TenantRecord]:
        """List tenants, newest first.

        Args:
            status: Only tenants with this status.
            plan: Only tenants on this plan.
            search: Case-insensitive match on name or subdomain.
            limit: Page size; defaults to the configured default and is
                capped at the configured maximum.
            offset: Rows to skip.

        Returns:
            Matching records without stats.

        Raises:
            TenantValidationError: If a filter or the paging is invalid.
        """
        if limit is None:
            limit = self._settings.default_list_limit
        if limit < 1:
            raise TenantValidationError.single("limit", "must be at least 1")
        if offset < 0:
            raise TenantValidationError.single("offset", "must not be negative")
        limit = min(limit, self._settings.max_list_limit)

        statement = self._filtered(select(Tenant), status, plan, search)
        statement = statement.order_by(Tenant.created_at.desc()).limit(limit).offset(offset)

        async with self._database.session() as session:
            result = await session.execute(statement)
            return [TenantRecord.model_validate(t) for t in result.scalars().all()]

    @staticmethod
    def _lookup_id(tenant_id: UUID | str) -> UUID:
        try:
            return validate_tenant_id(tenant_id)
        except TenantValidationError as e:
            raise TenantNotFoundError(tenant_id) from e

    @staticmethod
    def _filtered(
        statement: Select,
        status: TenantStatus | str | None,
        plan: TenantPlan | str | None,
        search: str | None,
    ) -> Select:
        try:
            if status is not None:
                statement = statement.where(Tenant.status == TenantStatus(status).value)
            if plan is not None:
                statement = statement.where(Tenant.plan == TenantPlan(plan).value)
        except ValueError as e:
            raise TenantValidationError.single("filter", str(e)) from e

        if search and search.strip():
            term = search.strip()
            statement = statement.where(
                or_(
                    Tenant.name.icontains(term, autoescape=True),
                    Tenant.subdomain.icontains(term, autoescape=True),
                )
            )
        return statement

    @staticmethod
    async def _subdomain_taken(session: AsyncSession, subdomain: str) -> bool:
        result = await session.execute(select(Tenant.id).where(Tenant.subdomain == subdomain))
        return result.first() is not None
