# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenancy domain package.

This package provides tenant provisioning and lifecycle management:
- TenantRegistry: CRUD over tenant records
- SchemaProvisioner: per-tenant schema and relations
- AccessPolicyInstaller: row-level isolation policies
- StatsAggregator: best-effort usage counts
- AdminBootstrapper: first administrator account and membership
- TenantLifecycleManager: create/update/delete workflows
"""

from src.domains.tenancy.bootstrap import AdminBootstrapper
from src.domains.tenancy.errors import (
    DependencyError,
    ProvisioningError,
    SubdomainConflictError,
    TenancyError,
    TenantNotFoundError,
    TenantValidationError,
)
from src.domains.tenancy.lifecycle import TenantLifecycleManager
from src.domains.tenancy.naming import schema_name_for, tenant_id_from_schema, validate_tenant_id
from src.domains.tenancy.policies import AccessPolicyInstaller
from src.domains.tenancy.provisioner import SchemaProvisioner
from src.domains.tenancy.registry import TenantRegistry
from src.domains.tenancy.saga import Saga
from src.domains.tenancy.schemas import (
    AdminAccount,
    TenantCreateRequest,
    TenantFeature,
    TenantPlan,
    TenantRecord,
    TenantStats,
    TenantStatus,
    TenantUpdateRequest,
    ThemeConfig,
)
from src.domains.tenancy.stats import StatsAggregator

__all__ = [
    # Services
    "AccessPolicyInstaller",
    "AdminBootstrapper",
    "SchemaProvisioner",
    "StatsAggregator",
    "TenantLifecycleManager",
    "TenantRegistry",
    "Saga",
    # Schemas
    "AdminAccount",
    "TenantCreateRequest",
    "TenantFeature",
    "TenantPlan",
    "TenantRecord",
    "TenantStats",
    "TenantStatus",
    "TenantUpdateRequest",
    "ThemeConfig",
    # Naming
    "schema_name_for",
    "tenant_id_from_schema",
    "validate_tenant_id",
    # Errors
    "DependencyError",
    "ProvisioningError",
    "SubdomainConflictError",
    "TenancyError",
    "TenantNotFoundError",
    "TenantValidationError",
]
