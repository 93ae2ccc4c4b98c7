# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant lifecycle orchestration.

This module provides the TenantLifecycleManager, the entry point for
creating, updating and deleting tenants:

- create: record -> schema -> access policies -> first admin. Each step
  registers a compensating action; if a later step fails, the completed
  steps are undone in reverse order and the tenant is left absent.
- update: delegates to the registry; never touches the tenant schema.
- delete: drops the tenant schema, then removes the record.

Example:
    >>> manager = TenantLifecycleManager.from_database(database, settings.tenancy)
    >>> record = await manager.create(
    ...     {"name": "Ataturk Ortaokulu", "subdomain": "ataturk",
    ...      "admin_email": "admin@ataturk.edu", "plan": "standard"}
    ... )
    >>> await manager.delete(record.id)
"""

import logging
from collections.abc import Mapping
from functools import partial
from typing import Any, Self
from uuid import UUID

from src.core.config.settings import TenancySettings
from src.domains.tenancy.bootstrap import AdminBootstrapper
from src.domains.tenancy.errors import SubdomainConflictError
from src.domains.tenancy.policies import AccessPolicyInstaller
from src.domains.tenancy.provisioner import SchemaProvisioner
from src.domains.tenancy.registry import TenantRegistry
from src.domains.tenancy.saga import Saga
from src.domains.tenancy.schemas import (
    DEFAULT_FEATURES,
    TenantConfig,
    TenantCreateRequest,
    TenantRecord,
    TenantStatus,
    TenantUpdateRequest,
)
from src.domains.tenancy.stats import StatsAggregator
from src.infrastructure.database.connection import CentralDatabase

logger = logging.getLogger(__name__)


class TenantLifecycleManager:
    """Composes registry, provisioner, policy installer and bootstrapper.

    Attributes:
        registry: Tenant record store.
        provisioner: Schema provisioner.
        policies: Access policy installer.
        bootstrapper: First-admin bootstrapper.
    """

    def __init__(
        self,
        registry: TenantRegistry,
        provisioner: SchemaProvisioner,
        policies: AccessPolicyInstaller,
        bootstrapper: AdminBootstrapper,
    ) -> None:
        self.registry = registry
        self.provisioner = provisioner
        self.policies = policies
        self.bootstrapper = bootstrapper

    @classmethod
    def from_database(cls, database: CentralDatabase, settings: TenancySettings) -> Self:
        """Wire all tenancy components to one database.

        Args:
            database: Shared database.
            settings: Tenancy settings.

        Returns:
            Ready-to-use manager.
        """
        stats = StatsAggregator(database, settings)
        return cls(
            registry=TenantRegistry(database, settings, stats),
            provisioner=SchemaProvisioner(database),
            policies=AccessPolicyInstaller(database, settings),
            bootstrapper=AdminBootstrapper(database, settings),
        )

    async def create(self, request: TenantCreateRequest | Mapping[str, Any]) -> TenantRecord:
        """Create and provision a tenant.

        The tenant always starts as active, with the default feature set
        and theme.

        Args:
            request: Name, subdomain, optional admin email and plan.

        Returns:
            The tenant record. ``admin`` is set when an admin email was given.

        Raises:
            TenantValidationError: If the request is invalid.
            SubdomainConflictError: If the subdomain is taken.
            ProvisioningError: If schema, policy or admin setup fails.
            DependencyError: If the database is unreachable.
        """
        request = TenantCreateRequest.coerce(request)

        if await self.registry.get_by_subdomain(request.subdomain) is not None:
            raise SubdomainConflictError(request.subdomain)

        async with Saga(f"create tenant {request.subdomain}") as saga:
            record = await self.registry.create(
                request.name,
                request.subdomain,
                status=TenantStatus.ACTIVE,
                plan=request.plan,
                features=[f.value for f in DEFAULT_FEATURES],
                config=TenantConfig(),
            )
            saga.add_compensation("delete tenant record", partial(self.registry.delete, record.id))

            # Registered before provisioning: a failed provision may still
            # leave a schema behind if the transaction outcome is unknown
            saga.add_compensation("drop tenant schema", partial(self.provisioner.teardown, record.id))
            await self.provisioner.provision(record.id)

            await self.policies.install(record.id)

            if request.admin_email:
                admin = await self.bootstrapper.bootstrap(record.id, request.admin_email)
                saga.add_compensation(
                    "revoke admin membership",
                    partial(self.bootstrapper.revoke, record.id, admin),
                )
                record.admin = admin

        logger.info(
            "Tenant created: %s (%s), plan=%s, admin=%s",
            record.subdomain,
            record.id,
            record.plan.value,
            record.admin.email if record.admin else None,
        )
        return record

    async def update(
        self,
        tenant_id: UUID | str,
        patch: TenantUpdateRequest | Mapping[str, Any],
    ) -> TenantRecord:
        """Update a tenant record. Schema shape never changes."""
        return await self.registry.update(tenant_id, patch)

    async def delete(self, tenant_id: UUID | str) -> None:
        """Delete a tenant: drop its schema, then remove its record.

        Args:
            tenant_id: Tenant id.

        Raises:
            TenantNotFoundError: If the tenant does not exist.
            ProvisioningError: If the schema cannot be dropped.
            DependencyError: If the database is unreachable.
        """
        record = await self.registry.get(tenant_id, with_stats=False)
        await self.provisioner.teardown(record.id)
        await self.registry.delete(record.id)
        logger.info("Tenant deleted: %s (%s)", record.subdomain, record.id)

    async def repair(self, tenant_id: UUID | str) -> str:
        """Re-run provisioning and policy installation for an existing tenant.

        Both steps are idempotent.

        Returns:
            The schema name.

        Raises:
            TenantNotFoundError: If the tenant does not exist.
            ProvisioningError: If a statement fails.
        """
        record = await self.registry.get(tenant_id, with_stats=False)
        schema = await self.provisioner.provision(record.id)
        await self.policies.install(record.id)
        logger.info("Tenant schema repaired: %s", schema)
        return schema
