# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for TenantRegistry.

Tests tenant record CRUD against a mocked database session.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from src.domains.tenancy.errors import (
    SubdomainConflictError,
    TenantNotFoundError,
    TenantValidationError,
)
from src.domains.tenancy.registry import TenantRegistry
from src.domains.tenancy.schemas import (
    DEFAULT_SECONDARY_COLOR,
    TenantConfig,
    TenantPlan,
    TenantStats,
    TenantStatus,
)
from src.domains.tenancy.stats import StatsAggregator
from src.infrastructure.database.models.central import Tenant


def _sql(statement) -> str:
    return str(
        statement.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True})
    )


def _executed_sql(mock_session) -> str:
    return _sql(mock_session.execute.await_args.args[0])


@pytest.fixture
def mock_stats() -> MagicMock:
    stats = MagicMock(spec=StatsAggregator)
    stats.stats = AsyncMock(
        return_value=TenantStats(member_count=2, learner_count=30, cohort_count=4)
    )
    return stats


@pytest.fixture
def registry(mock_database, tenancy_settings, mock_stats) -> TenantRegistry:
    return TenantRegistry(mock_database, tenancy_settings, mock_stats)


class TestCreate:
    """Tests for TenantRegistry.create."""

    @pytest.mark.asyncio
    async def test_creates_record(self, registry, mock_session, make_result):
        mock_session.execute.return_value = make_result(None)

        record = await registry.create(
            "Atatürk Ortaokulu",
            "ataturk",
            plan=TenantPlan.STANDARD,
            features=["student_management"],
            config=TenantConfig(),
        )

        (tenant,) = mock_session.added
        assert isinstance(tenant, Tenant)
        assert isinstance(record.id, UUID)
        assert record.id == tenant.id
        assert record.name == "Atatürk Ortaokulu"
        assert record.status == TenantStatus.ACTIVE
        assert record.plan == TenantPlan.STANDARD
        assert record.features == ["student_management"]
        assert tenant.config["theme"]["secondary_color"] == DEFAULT_SECONDARY_COLOR

    @pytest.mark.asyncio
    async def test_subdomain_taken(self, registry, mock_session, make_result, sample_tenant_id):
        mock_session.execute.return_value = make_result(sample_tenant_id)

        with pytest.raises(SubdomainConflictError, match="ataturk"):
            await registry.create("Other", "ataturk")

        mock_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unique_violation_is_conflict(self, registry, mock_session, make_result):
        mock_session.execute.return_value = make_result(None)
        mock_session.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("uq_tenants_subdomain")
        )

        with pytest.raises(SubdomainConflictError):
            await registry.create("Other", "ataturk")


class TestGet:
    """Tests for TenantRegistry.get."""

    @pytest.mark.asyncio
    async def test_get_with_stats(
        self, registry, mock_session, mock_stats, sample_tenant, sample_tenant_id
    ):
        mock_session.get.return_value = sample_tenant

        record = await registry.get(str(sample_tenant_id))

        assert record.id == sample_tenant_id
        assert record.stats == TenantStats(member_count=2, learner_count=30, cohort_count=4)
        mock_stats.stats.assert_awaited_once_with(sample_tenant_id)

    @pytest.mark.asyncio
    async def test_stats_failure_does_not_fail_get(
        self, registry, mock_session, mock_stats, sample_tenant, sample_tenant_id
    ):
        mock_session.get.return_value = sample_tenant
        mock_stats.stats.side_effect = RuntimeError("unexpected")

        record = await registry.get(sample_tenant_id)

        assert record.id == sample_tenant_id
        assert record.stats is None

    @pytest.mark.asyncio
    async def test_get_without_stats(
        self, registry, mock_session, mock_stats, sample_tenant, sample_tenant_id
    ):
        mock_session.get.return_value = sample_tenant

        record = await registry.get(sample_tenant_id, with_stats=False)

        assert record.stats is None
        mock_stats.stats.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_id(self, registry, mock_session, sample_tenant_id):
        mock_session.get.return_value = None

        with pytest.raises(TenantNotFoundError):
            await registry.get(sample_tenant_id)

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, registry, mock_database):
        with pytest.raises(TenantNotFoundError, match="not-a-uuid"):
            await registry.get("not-a-uuid")

        mock_database.session.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_by_subdomain_normalizes(
        self, registry, mock_session, make_result, sample_tenant
    ):
        mock_session.execute.return_value = make_result(sample_tenant)

        record = await registry.get_by_subdomain("  ATATURK ")

        assert record is not None
        assert record.subdomain == "ataturk"
        assert "tenants.subdomain = 'ataturk'" in _executed_sql(mock_session)

    @pytest.mark.asyncio
    async def test_get_by_subdomain_missing(self, registry, mock_session, make_result):
        mock_session.execute.return_value = make_result(None)

        assert await registry.get_by_subdomain("nobody") is None


class TestUpdate:
    """Tests for TenantRegistry.update."""

    @pytest.mark.asyncio
    async def test_updates_fields(
        self, registry, mock_session, make_result, sample_tenant, sample_tenant_id
    ):
        previous = sample_tenant.updated_at
        mock_session.execute.return_value = make_result(sample_tenant)

        record = await registry.update(sample_tenant_id, {"plan": "premium", "status": "inactive"})

        assert record.plan == TenantPlan.PREMIUM
        assert record.status == TenantStatus.INACTIVE
        assert record.name == "Atatürk Ortaokulu"
        assert record.updated_at > previous
        assert "FOR UPDATE" in _executed_sql(mock_session)

    @pytest.mark.asyncio
    async def test_theme_is_merged(
        self, registry, mock_session, make_result, sample_tenant, sample_tenant_id
    ):
        mock_session.execute.return_value = make_result(sample_tenant)

        record = await registry.update(
            sample_tenant_id, {"theme": {"primary_color": "#ff0000", "logo": "logo.png"}}
        )

        assert record.theme.primary_color == "#ff0000"
        assert record.theme.logo == "logo.png"
        assert record.theme.secondary_color == DEFAULT_SECONDARY_COLOR

    @pytest.mark.asyncio
    async def test_features_replace(
        self, registry, mock_session, make_result, sample_tenant, sample_tenant_id
    ):
        mock_session.execute.return_value = make_result(sample_tenant)

        record = await registry.update(sample_tenant_id, {"features": ["messaging"]})

        assert record.features == ["messaging"]

    @pytest.mark.asyncio
    async def test_empty_patch_only_touches_timestamp(
        self, registry, mock_session, make_result, sample_tenant, sample_tenant_id
    ):
        previous = sample_tenant.updated_at
        mock_session.execute.return_value = make_result(sample_tenant)

        record = await registry.update(sample_tenant_id, {})

        assert record.plan == TenantPlan.STANDARD
        assert record.updated_at > previous

    @pytest.mark.asyncio
    async def test_new_subdomain_taken(
        self, registry, mock_session, make_result, sample_tenant, sample_tenant_id
    ):
        mock_session.execute.side_effect = [
            make_result(sample_tenant),
            make_result(UUID("00000000-0000-4000-8000-000000000001")),
        ]

        with pytest.raises(SubdomainConflictError, match="taken-one"):
            await registry.update(sample_tenant_id, {"subdomain": "Taken-One"})

    @pytest.mark.asyncio
    async def test_same_subdomain_is_not_a_conflict(
        self, registry, mock_session, make_result, sample_tenant, sample_tenant_id
    ):
        mock_session.execute.return_value = make_result(sample_tenant)

        record = await registry.update(sample_tenant_id, {"subdomain": "ataturk"})

        assert record.subdomain == "ataturk"
        assert mock_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_invalid_patch(self, registry, mock_database, sample_tenant_id):
        with pytest.raises(TenantValidationError):
            await registry.update(sample_tenant_id, {"status": "archived"})

        mock_database.session.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, registry, mock_session, make_result, sample_tenant_id):
        mock_session.execute.return_value = make_result(None)

        with pytest.raises(TenantNotFoundError):
            await registry.update(sample_tenant_id, {"name": "New"})


class TestDelete:
    """Tests for TenantRegistry.delete."""

    @pytest.mark.asyncio
    async def test_delete(self, registry, mock_session, sample_tenant, sample_tenant_id):
        mock_session.get.return_value = sample_tenant

        await registry.delete(sample_tenant_id)

        mock_session.delete.assert_awaited_once_with(sample_tenant)

    @pytest.mark.asyncio
    async def test_delete_unknown(self, registry, mock_session, sample_tenant_id):
        mock_session.get.return_value = None

        with pytest.raises(TenantNotFoundError):
            await registry.delete(sample_tenant_id)


class TestList:
    """Tests for TenantRegistry.list and count."""

    @pytest.mark.asyncio
    async def test_list_newest_first_with_default_limit(
        self, registry, mock_session, make_result, sample_tenant
    ):
        mock_session.execute.return_value = make_result([sample_tenant])

        records = await registry.list()

        sql = _executed_sql(mock_session)
        assert [r.subdomain for r in records] == ["ataturk"]
        assert records[0].stats is None
        assert "ORDER BY tenants.created_at DESC" in sql
        assert "LIMIT 10 OFFSET 0" in sql

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, registry, mock_session, make_result):
        mock_session.execute.return_value = make_result([])

        await registry.list(limit=5000, offset=20)

        assert "LIMIT 100 OFFSET 20" in _executed_sql(mock_session)

    @pytest.mark.asyncio
    async def test_filters(self, registry, mock_session, make_result):
        mock_session.execute.return_value = make_result([])

        await registry.list(status="trial", plan=TenantPlan.PREMIUM, search="ata_")

        sql = _executed_sql(mock_session)
        assert "tenants.status = 'trial'" in sql
        assert "tenants.plan = 'premium'" in sql
        assert "ESCAPE '/'" in sql
        assert "ata/_" in sql

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [{"limit": 0}, {"offset": -1}, {"status": "archived"}, {"plan": "gold"}],
    )
    async def test_invalid_arguments(self, registry, mock_database, kwargs):
        with pytest.raises(TenantValidationError):
            await registry.list(**kwargs)

        mock_database.session.assert_not_called()

    @pytest.mark.asyncio
    async def test_count(self, registry, mock_session, make_result):
        mock_session.execute.return_value = make_result(4)

        assert await registry.count(status="active") == 4
        assert "count(*)" in _executed_sql(mock_session)
