# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic migrations for the shared relations (tenants, accounts,
memberships). Tenant schemas have a fixed shape and are created by
SchemaProvisioner rather than by migrations.
"""
