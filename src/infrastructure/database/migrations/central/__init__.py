# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared schema migrations.

Contains migrations for the platform-level tables:
- accounts: Login identities
- tenants: Tenant registry
- tenant_users: Tenant memberships
"""
