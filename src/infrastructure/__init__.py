# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer.

This package contains:
- database: PostgreSQL connection, shared-relation models, tenant
  relation definitions, row-level security DDL and migrations
"""
