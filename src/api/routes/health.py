# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from src import __version__
from src.infrastructure.database.connection import CentralDatabase, DatabaseError
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""

    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    checked_at: datetime = Field(description="When health was checked")
    database: ComponentHealth = Field(description="Shared database status")


async def check_database(database: CentralDatabase | None) -> ComponentHealth:
    """Check the shared database connection."""
    if database is None:
        return ComponentHealth(status="unhealthy", message="Database not initialized")

    try:
        latency = await database.ping()
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    except (DatabaseError, SQLAlchemyError) as e:
        logger.error("Database health check failed: %s", str(e))
        return ComponentHealth(status="unhealthy", message=str(e))


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request, response: Response) -> HealthResponse:
    """Report API and database health.

    Returns 503 when the database is unreachable.
    """
    database_health = await check_database(getattr(request.app.state, "database", None))
    healthy = database_health.status == "healthy"
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        environment=request.app.state.settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=utc_now(),
        database=database_health,
    )
