# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for PostgreSQL integration tests.

Tests in this directory run only when TEST_DATABASE_URL points at a
disposable PostgreSQL database (asyncpg URL). The URL must use a superuser
(extensions, roles and unfiltered reads of tenant relations). Shared
tables are recreated for every test and tenant schemas are dropped
afterwards.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.config.settings import TenancySettings
from src.domains.tenancy.lifecycle import TenantLifecycleManager
from src.infrastructure.database.connection import CentralDatabase
from src.infrastructure.database.models.base import Base

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests when no test database is configured."""
    if TEST_DATABASE_URL:
        return
    skip = pytest.mark.skip(reason="TEST_DATABASE_URL not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


async def _drop_tenant_schemas(conn) -> None:
    result = await conn.execute(
        text("SELECT nspname FROM pg_namespace WHERE nspname LIKE 'tenant\\_%'")
    )
    for (schema,) in result.all():
        await conn.execute(text(f'DROP SCHEMA IF EXISTS "{schema}" CASCADE'))


@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[CentralDatabase, None]:
    """Shared database with freshly created shared tables."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS pgcrypto"))
        await _drop_tenant_schemas(conn)
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield CentralDatabase(TEST_DATABASE_URL, engine=engine)

    async with engine.begin() as conn:
        await _drop_tenant_schemas(conn)
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def tenant_reader_role(database) -> AsyncGenerator[str, None]:
    """A login-less role subject to row-level security."""
    role = "tenancy_tenant_reader"
    async with database.begin() as conn:
        await conn.execute(
            text(
                "DO $$ BEGIN "
                f"IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = '{role}') "
                f"THEN CREATE ROLE {role} NOLOGIN NOBYPASSRLS; END IF; "
                "END $$"
            )
        )

    yield role

    async with database.begin() as conn:
        await conn.execute(text(f"DROP OWNED BY {role} CASCADE"))
        await conn.execute(text(f"DROP ROLE IF EXISTS {role}"))


@pytest.fixture
def integration_settings() -> TenancySettings:
    """Tenancy settings with fast hashing."""
    return TenancySettings(password_hash_rounds=4)


@pytest.fixture
def manager(database, integration_settings) -> TenantLifecycleManager:
    """Lifecycle manager wired to the test database."""
    return TenantLifecycleManager.from_database(database, integration_settings)
