# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenancy schemas for tenant records and requests.

This module defines the Pydantic models exchanged with the tenancy
services: the canonical TenantRecord, the create and update requests
(which carry all input validation), usage stats and the admin account
produced when a tenant is bootstrapped.
"""

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Self
from uuid import UUID

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from src.domains.tenancy.errors import TenantValidationError

SUBDOMAIN_PATTERN = r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$"
HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"

DEFAULT_PRIMARY_COLOR = "#1a237e"
DEFAULT_SECONDARY_COLOR = "#0288d1"


class TenantStatus(str, Enum):
    """Tenant lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    TRIAL = "trial"


class TenantPlan(str, Enum):
    """Subscription plan."""

    FREE = "free"
    STANDARD = "standard"
    PREMIUM = "premium"


class TenantFeature(str, Enum):
    """Capability flags a tenant can have enabled."""

    STUDENT_MANAGEMENT = "student_management"
    TEACHER_MANAGEMENT = "teacher_management"
    CLASS_MANAGEMENT = "class_management"
    ATTENDANCE_TRACKING = "attendance_tracking"
    GRADE_MANAGEMENT = "grade_management"
    MESSAGING = "messaging"
    REPORTING = "reporting"


DEFAULT_FEATURES: tuple[TenantFeature, ...] = (
    TenantFeature.STUDENT_MANAGEMENT,
    TenantFeature.TEACHER_MANAGEMENT,
    TenantFeature.CLASS_MANAGEMENT,
)


def _normalize_subdomain(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _strip(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


TenantName = Annotated[str, BeforeValidator(_strip), Field(min_length=1, max_length=255)]
Subdomain = Annotated[str, BeforeValidator(_normalize_subdomain), Field(pattern=SUBDOMAIN_PATTERN)]


class _Request(BaseModel):
    """Base for service-boundary requests."""

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def coerce(cls, data: "Self | Mapping[str, Any]") -> Self:
        """Validate raw input into this request type.

        Args:
            data: An instance of this class or a mapping of raw fields.

        Returns:
            Validated request.

        Raises:
            TenantValidationError: If the input is invalid.
        """
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise TenantValidationError.from_pydantic(e) from e


class ThemeConfig(BaseModel):
    """Tenant theme stored under ``config.theme``."""

    primary_color: str = Field(
        default=DEFAULT_PRIMARY_COLOR,
        pattern=HEX_COLOR_PATTERN,
        description="Primary brand color",
    )
    secondary_color: str = Field(
        default=DEFAULT_SECONDARY_COLOR,
        pattern=HEX_COLOR_PATTERN,
        description="Secondary brand color",
    )
    logo: str | None = Field(default=None, description="Logo reference (URL or storage key)")


class TenantConfig(BaseModel):
    """Tenant configuration document.

    Unknown keys written by other components are preserved.
    """

    model_config = ConfigDict(extra="allow")

    theme: ThemeConfig = Field(default_factory=ThemeConfig)


class ThemePatch(_Request):
    """Partial theme update. Only the fields that are set are merged."""

    primary_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    secondary_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    logo: str | None = None

    @model_validator(mode="after")
    def _colors_not_null(self) -> Self:
        for field in ("primary_color", "secondary_color"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class TenantCreateRequest(_Request):
    """Input for creating a tenant.

    Attributes:
        name: School display name.
        subdomain: Globally unique slug, normalized to lowercase.
        admin_email: Email of the first administrator, if one should be created.
        plan: Subscription plan.
    """

    name: TenantName = Field(..., description="Display name")
    subdomain: Subdomain = Field(
        ...,
        description="Unique subdomain (lowercase letters, digits and hyphens)",
    )
    admin_email: EmailStr | None = Field(default=None, description="First administrator email")
    plan: TenantPlan = Field(default=TenantPlan.FREE, description="Subscription plan")

    @field_validator("admin_email", mode="before")
    @classmethod
    def _blank_email_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return _strip(value)


class TenantUpdateRequest(_Request):
    """Partial update of a tenant record.

    Only fields that are explicitly set are applied. The theme is merged
    into the existing theme rather than replacing it.
    """

    name: TenantName | None = None
    subdomain: Subdomain | None = None
    status: TenantStatus | None = None
    plan: TenantPlan | None = None
    features: list[TenantFeature] | None = None
    theme: ThemePatch | None = None

    @model_validator(mode="after")
    def _no_explicit_nulls(self) -> Self:
        for field in ("name", "subdomain", "status", "plan", "features", "theme"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    @field_validator("features")
    @classmethod
    def _dedupe_features(cls, value: list[TenantFeature] | None) -> list[TenantFeature] | None:
        if value is None:
            return None
        return list(dict.fromkeys(value))

    def changes(self) -> dict[str, Any]:
        """Get the explicitly set fields as plain JSON-compatible values."""
        return self.model_dump(mode="json", exclude_unset=True)


class TenantStats(BaseModel):
    """Best-effort usage counts for one tenant."""

    member_count: int = Field(default=0, description="Memberships linked to the tenant")
    learner_count: int = Field(default=0, description="Rows in the tenant's students table")
    cohort_count: int = Field(default=0, description="Rows in the tenant's classes table")


class AdminAccount(BaseModel):
    """Result of bootstrapping a tenant administrator.

    ``temporary_password`` is only set when a new account was created and
    is never stored in clear text anywhere.
    """

    identity_id: UUID
    email: str
    membership_id: UUID
    created: bool = Field(..., description="Whether a new account was created")
    temporary_password: str | None = Field(default=None, repr=False)


class TenantRecord(BaseModel):
    """Canonical tenant record.

    Attributes:
        id: Tenant id.
        name: Display name.
        subdomain: Unique subdomain.
        status: Lifecycle status.
        plan: Subscription plan.
        features: Enabled capability flags.
        config: Configuration document (theme and extras).
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
        stats: Usage counts, attached by detail lookups.
        admin: Administrator created together with the tenant.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    subdomain: str
    status: TenantStatus
    plan: TenantPlan
    features: list[str] = Field(default_factory=list)
    config: TenantConfig = Field(default_factory=TenantConfig)
    created_at: datetime
    updated_at: datetime
    stats: TenantStats | None = None
    admin: AdminAccount | None = None

    @property
    def theme(self) -> ThemeConfig:
        """Shortcut for ``config.theme``."""
        return self.config.theme
