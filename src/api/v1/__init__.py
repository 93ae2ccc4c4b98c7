# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    tenants: Tenant lifecycle endpoints (CRUD, schema repair).
"""

from fastapi import APIRouter

from src.api.v1 import tenants

router = APIRouter(prefix="/api/v1")

router.include_router(tenants.router, prefix="/tenants", tags=["Tenants"])
