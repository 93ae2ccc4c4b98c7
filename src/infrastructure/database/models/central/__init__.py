# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Models for the shared relations (outside any tenant schema)."""

from src.infrastructure.database.models.central.account import Account
from src.infrastructure.database.models.central.tenant import Tenant
from src.infrastructure.database.models.central.tenant_user import TenantUser, membership_table

__all__ = ["Account", "Tenant", "TenantUser", "membership_table"]
