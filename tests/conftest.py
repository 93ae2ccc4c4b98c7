# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Settings with fast password hashing
- A CentralDatabase double whose sessions and connections are AsyncMocks
- Sample tenant ids and records
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from src.core.config.settings import Settings, TenancySettings
from src.domains.tenancy.schemas import TenantRecord
from src.infrastructure.database.connection import CentralDatabase
from src.infrastructure.database.models.central import Tenant


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires PostgreSQL)"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def tenancy_settings() -> TenancySettings:
    """Tenancy settings with the cheapest bcrypt cost."""
    return TenancySettings(password_hash_rounds=4)


@pytest.fixture
def settings(tenancy_settings: TenancySettings) -> Settings:
    """Application settings for tests."""
    return Settings(
        environment="development",
        debug=False,
        log_level="DEBUG",
        tenancy=tenancy_settings,
    )


# =============================================================================
# Database Doubles
# =============================================================================


def _fake_flush(session: MagicMock):
    """Build a flush side effect that fills in client-side defaults."""

    async def flush(*args: Any, **kwargs: Any) -> None:
        now = datetime.now(timezone.utc)
        for obj in session.added:
            for attr, factory in (
                ("id", uuid4),
                ("created_at", lambda: now),
                ("updated_at", lambda: now),
            ):
                if hasattr(type(obj), attr) and getattr(obj, attr, None) is None:
                    setattr(obj, attr, factory())

    return flush


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create mock ORM session.

    Objects passed to add() are collected in ``session.added``; flush()
    assigns ids and timestamps the way the column defaults would.
    """
    session = AsyncMock()
    session.added = []
    session.add = MagicMock(side_effect=session.added.append)
    session.delete = AsyncMock()
    session.flush = AsyncMock(side_effect=_fake_flush(session))
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    return session


@pytest.fixture
def mock_conn() -> AsyncMock:
    """Create mock Core connection."""
    conn = AsyncMock()
    conn.execute = AsyncMock()
    conn.run_sync = AsyncMock()
    return conn


@pytest.fixture
def mock_database(mock_session: AsyncMock, mock_conn: AsyncMock) -> MagicMock:
    """Create a CentralDatabase double.

    ``session()`` yields mock_session; ``begin()`` and ``connect()`` yield
    mock_conn.
    """

    @asynccontextmanager
    async def session_cm():
        yield mock_session

    @asynccontextmanager
    async def conn_cm():
        yield mock_conn

    database = MagicMock(spec=CentralDatabase)
    database.session = MagicMock(side_effect=session_cm)
    database.begin = MagicMock(side_effect=conn_cm)
    database.connect = MagicMock(side_effect=conn_cm)
    database.ping = AsyncMock(return_value=1.25)
    database.check_connection = AsyncMock(return_value=True)
    database.dispose = AsyncMock()
    return database


def _mock_result(value: Any) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    result.first.return_value = (value,) if value is not None else None
    result.scalars.return_value.all.return_value = value if isinstance(value, list) else []
    return result


@pytest.fixture
def make_result():
    """Factory for mock results answering the common accessors with a value."""
    return _mock_result


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_tenant_id() -> UUID:
    """Provide a sample tenant ID for testing."""
    return UUID("550e8400-e29b-41d4-a716-446655440000")


@pytest.fixture
def sample_tenant(sample_tenant_id: UUID) -> Tenant:
    """Create a transient tenant model with proper field values."""
    created = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)
    return Tenant(
        id=sample_tenant_id,
        name="Atatürk Ortaokulu",
        subdomain="ataturk",
        status="active",
        plan="standard",
        features=["student_management", "teacher_management", "class_management"],
        config={
            "theme": {"primary_color": "#1a237e", "secondary_color": "#0288d1", "logo": None}
        },
        created_at=created,
        updated_at=created + timedelta(minutes=5),
    )


@pytest.fixture
def sample_record(sample_tenant: Tenant) -> TenantRecord:
    """The sample tenant as a TenantRecord."""
    return TenantRecord.model_validate(sample_tenant)
