# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Only the shared relations are ORM-mapped. Tenant relations are Core tables
built per schema in src.infrastructure.database.tenant_schema.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin
from src.infrastructure.database.models.central import (
    Account,
    Tenant,
    TenantUser,
    membership_table,
)

__all__ = ["Base", "TimestampMixin", "Account", "Tenant", "TenantUser", "membership_table"]
