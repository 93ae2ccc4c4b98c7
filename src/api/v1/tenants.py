# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant management endpoints.

This module provides CRUD endpoints for tenant lifecycle management:
- GET / - List tenants
- POST / - Create tenant (record, schema, policies, first admin)
- GET /{id} - Get tenant with usage stats
- PATCH /{id} - Update tenant
- DELETE /{id} - Delete tenant and its schema
- POST /{id}/schema - Re-run schema provisioning and policy installation
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from src.api.dependencies import get_lifecycle_manager, get_registry, require_admin_token
from src.domains.tenancy.errors import (
    DependencyError,
    ProvisioningError,
    SubdomainConflictError,
    TenancyError,
    TenantNotFoundError,
    TenantValidationError,
)
from src.domains.tenancy.lifecycle import TenantLifecycleManager
from src.domains.tenancy.registry import TenantRegistry
from src.domains.tenancy.schemas import (
    TenantCreateRequest,
    TenantPlan,
    TenantRecord,
    TenantStatus,
    TenantUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_token)])


class TenantListResponse(BaseModel):
    """Paginated tenant list response."""

    items: list[TenantRecord] = Field(..., description="Tenant list")
    total: int = Field(..., description="Total count")
    limit: int = Field(..., description="Page size")
    offset: int = Field(..., description="Page offset")


class SchemaRepairResponse(BaseModel):
    """Result of re-running tenant provisioning."""

    tenant_id: str = Field(..., description="Tenant ID")
    schema_name: str = Field(..., description="Provisioned schema")


def _http_error(error: TenancyError | DependencyError) -> HTTPException:
    """Map a tenancy error onto an HTTP error."""
    if isinstance(error, TenantNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, SubdomainConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, TenantValidationError):
        return HTTPException(
            status_code=422,
            detail=error.errors,
        )
    if isinstance(error, ProvisioningError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Provisioning failed: {error}",
        )
    if isinstance(error, DependencyError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.get(
    "",
    response_model=TenantListResponse,
    summary="List tenants",
    description="Get paginated list of tenants with optional filters.",
)
async def list_tenants(
    status_filter: TenantStatus | None = Query(None, alias="status", description="Filter by status"),
    plan: TenantPlan | None = Query(None, description="Filter by plan"),
    search: str | None = Query(None, max_length=255, description="Match on name or subdomain"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    offset: int = Query(0, ge=0, description="Page offset"),
    registry: TenantRegistry = Depends(get_registry),
) -> TenantListResponse:
    """List tenants, newest first.

    Args:
        status_filter: Filter by status.
        plan: Filter by plan.
        search: Case-insensitive name/subdomain match.
        limit: Page size.
        offset: Page offset.
        registry: Tenant registry.

    Returns:
        TenantListResponse with paginated results.
    """
    try:
        items = await registry.list(
            status=status_filter,
            plan=plan,
            search=search,
            limit=limit,
            offset=offset,
        )
        total = await registry.count(status=status_filter, plan=plan, search=search)
    except (TenancyError, DependencyError) as e:
        raise _http_error(e) from e

    return TenantListResponse(items=items, total=total, limit=limit, offset=offset)


@router.post(
    "",
    response_model=TenantRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant",
    description="Create a tenant, provision its schema and access policies, "
    "and bootstrap its first admin. The admin's temporary password is only "
    "returned in this response.",
)
async def create_tenant(
    data: TenantCreateRequest,
    manager: TenantLifecycleManager = Depends(get_lifecycle_manager),
) -> TenantRecord:
    """Create a new tenant.

    Args:
        data: Tenant creation request.
        manager: Tenant lifecycle manager.

    Returns:
        The created tenant.

    Raises:
        HTTPException: If creation fails.
    """
    try:
        return await manager.create(data)
    except (TenancyError, DependencyError) as e:
        raise _http_error(e) from e


@router.get(
    "/{tenant_id}",
    response_model=TenantRecord,
    summary="Get tenant",
    description="Get tenant details by ID, including usage stats.",
)
async def get_tenant(
    tenant_id: str,
    registry: TenantRegistry = Depends(get_registry),
) -> TenantRecord:
    """Get tenant by ID."""
    try:
        return await registry.get(tenant_id)
    except (TenancyError, DependencyError) as e:
        raise _http_error(e) from e


@router.patch(
    "/{tenant_id}",
    response_model=TenantRecord,
    summary="Update tenant",
    description="Merge the given fields into the tenant record.",
)
async def update_tenant(
    tenant_id: str,
    data: TenantUpdateRequest,
    manager: TenantLifecycleManager = Depends(get_lifecycle_manager),
) -> TenantRecord:
    """Update tenant details.

    Args:
        tenant_id: Tenant identifier.
        data: Fields to change.
        manager: Tenant lifecycle manager.

    Returns:
        The updated tenant.
    """
    try:
        return await manager.update(tenant_id, data)
    except (TenancyError, DependencyError) as e:
        raise _http_error(e) from e


@router.delete(
    "/{tenant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete tenant",
    description="Drop the tenant schema and remove the tenant record.",
)
async def delete_tenant(
    tenant_id: str,
    manager: TenantLifecycleManager = Depends(get_lifecycle_manager),
) -> Response:
    """Delete a tenant."""
    try:
        await manager.delete(tenant_id)
    except (TenancyError, DependencyError) as e:
        raise _http_error(e) from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{tenant_id}/schema",
    response_model=SchemaRepairResponse,
    summary="Repair tenant schema",
    description="Re-run schema provisioning and access policy installation. Idempotent.",
)
async def repair_tenant_schema(
    tenant_id: str,
    manager: TenantLifecycleManager = Depends(get_lifecycle_manager),
) -> SchemaRepairResponse:
    """Re-provision a tenant's schema."""
    try:
        schema = await manager.repair(tenant_id)
    except (TenancyError, DependencyError) as e:
        raise _http_error(e) from e

    return SchemaRepairResponse(tenant_id=tenant_id, schema_name=schema)
