# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant membership model."""

from datetime import datetime
from functools import lru_cache
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, MetaData, String, Table, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base
from src.utils.datetime import utc_now


class TenantUser(Base):
    """Links an account to a tenant with a role.

    Source of truth for the row-level access policies installed in every
    tenant schema and for membership counts.
    """

    __tablename__ = "tenant_users"
    __table_args__ = (UniqueConstraint("user_id", "tenant_id"),)

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )


@lru_cache(maxsize=8)
def membership_table(schema: str | None = None) -> Table:
    """Get the membership table, optionally qualified with a schema.

    Tenant schemas reference memberships from another schema, so their
    access predicates need the schema-qualified name.

    Args:
        schema: Schema holding the shared relations, or None for the
            connection's search path.

    Returns:
        Core table for tenant_users.
    """
    if schema is None:
        return TenantUser.__table__
    return TenantUser.__table__.to_metadata(MetaData(), schema=schema)
