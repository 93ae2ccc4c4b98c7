# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial shared schema.

Revision ID: 001_central_initial
Revises: None
Create Date: 2025-01-15

Creates the shared relations based on the SQLAlchemy models in
src/infrastructure/database/models/central/: accounts, tenants and
tenant_users. Tenant schemas are not managed by migrations; they are
provisioned per tenant.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_central_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = ("central",)
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create shared tables."""
    # gen_random_uuid() for tenant schema defaults on PostgreSQL < 13
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ==========================================================================
    # 1. accounts table
    # ==========================================================================
    op.create_table(
        "accounts",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("email_confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "must_change_password",
            sa.Boolean,
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("user_metadata", postgresql.JSONB, nullable=False, server_default="{}"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_accounts")),
        sa.UniqueConstraint("email", name=op.f("uq_accounts_email")),
    )

    # ==========================================================================
    # 2. tenants table
    # ==========================================================================
    op.create_table(
        "tenants",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("subdomain", sa.String(63), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("plan", sa.String(20), nullable=False, server_default="free"),
        sa.Column("features", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("config", postgresql.JSONB, nullable=False, server_default="{}"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tenants")),
        sa.UniqueConstraint("subdomain", name=op.f("uq_tenants_subdomain")),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'trial')",
            name=op.f("ck_tenants_valid_status"),
        ),
        sa.CheckConstraint(
            "plan IN ('free', 'standard', 'premium')",
            name=op.f("ck_tenants_valid_plan"),
        ),
    )
    op.create_index(op.f("ix_tenants_status"), "tenants", ["status"])

    # ==========================================================================
    # 3. tenant_users table
    # ==========================================================================
    op.create_table(
        "tenant_users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tenant_users")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["accounts.id"],
            name=op.f("fk_tenant_users_user_id_accounts"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name=op.f("fk_tenant_users_tenant_id_tenants"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "tenant_id", name=op.f("uq_tenant_users_user_id")),
    )
    op.create_index(op.f("ix_tenant_users_user_id"), "tenant_users", ["user_id"])
    op.create_index(op.f("ix_tenant_users_tenant_id"), "tenant_users", ["tenant_id"])


def downgrade() -> None:
    """Drop shared tables."""
    op.drop_index(op.f("ix_tenant_users_tenant_id"), table_name="tenant_users")
    op.drop_index(op.f("ix_tenant_users_user_id"), table_name="tenant_users")
    op.drop_table("tenant_users")
    op.drop_index(op.f("ix_tenants_status"), table_name="tenants")
    op.drop_table("tenants")
    op.drop_table("accounts")
