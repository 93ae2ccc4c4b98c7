"""IEP Tenancy.

Tenant provisioning and lifecycle management for the multi-tenant school
platform: tenant registry, per-tenant schemas with row-level isolation,
first-admin bootstrap and the admin CLI and API built on top of them.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
