# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant registry model."""

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin


class Tenant(TimestampMixin, Base):
    """Canonical record of one school on the platform.

    The subdomain carries a unique constraint: the registry's pre-insert
    lookup only gives a friendly error, the constraint is what keeps two
    concurrent signups from sharing a subdomain.
    """

    __tablename__ = "tenants"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'trial')",
            name="valid_status",
        ),
        CheckConstraint(
            "plan IN ('free', 'standard', 'premium')",
            name="valid_plan",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)
    plan: Mapped[str] = mapped_column(String(20), nullable=False, default="free")
    features: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    config: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<Tenant {self.subdomain} ({self.id})>"
