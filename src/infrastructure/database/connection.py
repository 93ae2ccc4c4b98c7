# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared database connection management using SQLAlchemy async.

This module provides the connection object for the shared database. The
shared database stores platform-level data (tenant registry, membership
mappings, accounts) and hosts one schema per provisioned tenant.

Uses SQLAlchemy 2.0 async API with asyncpg driver. A CentralDatabase is
constructed once by the entry point (API lifespan, CLI command) and passed
to every component that needs it.

Example:
    from src.infrastructure.database.connection import CentralDatabase

    database = CentralDatabase.from_settings(settings)

    async with database.session() as session:
        result = await session.execute(select(Tenant))
        tenants = result.scalars().all()

    await database.dispose()
"""

import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class DependencyError(DatabaseError):
    """Raised when the shared database cannot be reached."""


def is_connectivity_error(error: BaseException) -> bool:
    """Check whether an exception means the database is unreachable.

    Args:
        error: Exception raised while talking to the database.

    Returns:
        True for connection failures, pool timeouts and invalidated
        connections; False for statement-level errors.
    """
    if isinstance(error, (OperationalError, InterfaceError, PoolTimeoutError)):
        return True
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return True
    return isinstance(error, OSError)


def _as_dependency_error(error: BaseException) -> DependencyError:
    return DependencyError("Database unavailable", error if isinstance(error, Exception) else None)


class CentralDatabase:
    """Connection pool for the shared database.

    Wraps one AsyncEngine and its sessionmaker. Connectivity failures are
    raised as DependencyError; every other database error propagates
    unchanged so callers can react to constraint violations and the like.

    Attributes:
        engine: The SQLAlchemy async engine.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 20,
        echo: bool = False,
        engine: AsyncEngine | None = None,
    ) -> None:
        """Initialize the database.

        Args:
            url: Async database URL (asyncpg driver).
            pool_size: Connection pool size.
            max_overflow: Maximum overflow connections.
            echo: Log every statement.
            engine: Pre-built engine, mainly for tests.
        """
        self._engine = engine or create_async_engine(
            url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            echo=echo,
        )
        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CentralDatabase":
        """Build the database from application settings.

        Args:
            settings: Application settings containing database configuration.

        Returns:
            Configured CentralDatabase.
        """
        return cls(
            settings.central_db.url,
            pool_size=settings.central_db.pool_size,
            max_overflow=settings.central_db.max_overflow,
            echo=settings.debug,
        )

    @property
    def engine(self) -> AsyncEngine:
        """The SQLAlchemy async engine."""
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session for the shared database.

        The session is automatically committed on success and rolled back
        on exception.

        Yields:
            AsyncSession for database operations.

        Raises:
            DependencyError: If the database cannot be reached.
        """
        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except (SQLAlchemyError, OSError) as e:
                await self._safe_rollback(session)
                if is_connectivity_error(e):
                    raise _as_dependency_error(e) from e
                raise
            except BaseException:
                await self._safe_rollback(session)
                raise

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[AsyncConnection]:
        """Get a connection inside a transaction.

        Used for DDL: PostgreSQL DDL is transactional, so everything issued
        on this connection is applied atomically.

        Yields:
            AsyncConnection with an open transaction.

        Raises:
            DependencyError: If the database cannot be reached.
        """
        try:
            async with self._engine.begin() as conn:
                yield conn
        except (SQLAlchemyError, OSError) as e:
            if is_connectivity_error(e):
                raise _as_dependency_error(e) from e
            raise

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        """Get a plain connection (autobegin, no commit).

        Yields:
            AsyncConnection for read-only work.

        Raises:
            DependencyError: If the database cannot be reached.
        """
        try:
            async with self._engine.connect() as conn:
                yield conn
        except (SQLAlchemyError, OSError) as e:
            if is_connectivity_error(e):
                raise _as_dependency_error(e) from e
            raise

    async def ping(self) -> float:
        """Issue a trivial query and measure the round trip.

        Returns:
            Round-trip latency in milliseconds.

        Raises:
            DependencyError: If the database cannot be reached.
        """
        start = time.perf_counter()
        async with self.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return (time.perf_counter() - start) * 1000

    async def check_connection(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            await self.ping()
            return True
        except (DatabaseError, SQLAlchemyError):
            return False

    async def dispose(self) -> None:
        """Close all connections in the pool."""
        await self._engine.dispose()

    @staticmethod
    async def _safe_rollback(session: AsyncSession) -> None:
        try:
            await session.rollback()
        except (SQLAlchemyError, OSError):
            # Connection already gone; the original error is what matters
            pass


async def set_request_identity(session: AsyncSession, user_id: UUID | str) -> None:
    """Bind the requesting identity for row-level access policies.

    Sets the transaction-local ``app.current_user_id`` setting read by the
    default tenant access predicate. Must be called inside the transaction
    that reads tenant data.

    Args:
        session: Session whose current transaction should carry the identity.
        user_id: Id of the account making the request.
    """
    await session.execute(
        text("SELECT set_config('app.current_user_id', :user_id, true)"),
        {"user_id": str(user_id)},
    )
