# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Dependencies are used to:
- Get the shared database built by the application lifespan
- Get tenancy service instances wired to that database
- Guard management endpoints with the admin bearer token

Example:
    @router.get("/tenants")
    async def list_tenants(
        registry: TenantRegistry = Depends(get_registry),
    ):
        ...
"""

import logging
import secrets

from fastapi import Depends, HTTPException, Request, status

from src.core.config import Settings
from src.domains.tenancy.lifecycle import TenantLifecycleManager
from src.domains.tenancy.registry import TenantRegistry
from src.infrastructure.database.connection import CentralDatabase

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_database(request: Request) -> CentralDatabase:
    """Get the shared database.

    Raises:
        HTTPException: 503 if the application has no database yet.
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return database


def get_lifecycle_manager(
    database: CentralDatabase = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> TenantLifecycleManager:
    """Get a TenantLifecycleManager instance."""
    return TenantLifecycleManager.from_database(database, settings.tenancy)


def get_registry(
    manager: TenantLifecycleManager = Depends(get_lifecycle_manager),
) -> TenantRegistry:
    """Get the TenantRegistry of the lifecycle manager."""
    return manager.registry


def require_admin_token(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Require the platform admin bearer token.

    Args:
        request: HTTP request.
        settings: Application settings holding the admin token.

    Raises:
        HTTPException: 401 if the token is missing or wrong.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header.removeprefix("Bearer ").strip()
    expected = settings.api.admin_token.get_secret_value()
    if not secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected admin token from %s", request.client.host if request.client else "unknown")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )
