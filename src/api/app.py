# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the application factory for the tenant management API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src import __version__
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import Settings, get_settings
from src.infrastructure.database.connection import CentralDatabase
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the shared database on startup (unless one was injected before
    startup) and disposes it on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting tenant management API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = CentralDatabase.from_settings(settings)

    if await app.state.database.check_connection():
        logger.info("Database connection verified")
    else:
        logger.warning("Database not reachable at startup; requests will return 503 until it is")

    yield

    if owns_database:
        await app.state.database.dispose()
        logger.info("Database connections closed")

    logger.info("Shutting down tenant management API")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="IEP Tenant Management API",
        description="Tenant provisioning and lifecycle management",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    app.state.settings = settings
    app.state.database = None

    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
