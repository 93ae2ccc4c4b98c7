# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for tenancy request and record schemas."""

import pytest

from src.domains.tenancy.errors import TenantValidationError
from src.domains.tenancy.schemas import (
    DEFAULT_PRIMARY_COLOR,
    AdminAccount,
    TenantConfig,
    TenantCreateRequest,
    TenantFeature,
    TenantPlan,
    TenantRecord,
    TenantStatus,
    TenantUpdateRequest,
)


class TestTenantCreateRequest:
    """Tests for TenantCreateRequest validation."""

    def test_normalizes_input(self) -> None:
        request = TenantCreateRequest.coerce(
            {"name": "  Atatürk Ortaokulu ", "subdomain": " Ataturk ", "admin_email": ""}
        )

        assert request.name == "Atatürk Ortaokulu"
        assert request.subdomain == "ataturk"
        assert request.admin_email is None
        assert request.plan == TenantPlan.FREE

    def test_accepts_admin_email(self) -> None:
        request = TenantCreateRequest.coerce(
            {"name": "Ataturk", "subdomain": "ataturk", "admin_email": "admin@ataturk.edu"}
        )

        assert request.admin_email == "admin@ataturk.edu"

    @pytest.mark.parametrize(
        ("data", "field"),
        [
            ({"name": "", "subdomain": "ataturk"}, "name"),
            ({"name": "   ", "subdomain": "ataturk"}, "name"),
            ({"name": "A", "subdomain": "-ataturk"}, "subdomain"),
            ({"name": "A", "subdomain": "ata_turk"}, "subdomain"),
            ({"name": "A", "subdomain": "a" * 64}, "subdomain"),
            ({"name": "A", "subdomain": "ataturk", "admin_email": "nope"}, "admin_email"),
            ({"name": "A", "subdomain": "ataturk", "plan": "gold"}, "plan"),
            ({"subdomain": "ataturk"}, "name"),
        ],
    )
    def test_rejects_invalid_input(self, data: dict, field: str) -> None:
        with pytest.raises(TenantValidationError) as exc_info:
            TenantCreateRequest.coerce(data)

        assert field in [e["field"] for e in exc_info.value.errors]

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(TenantValidationError):
            TenantCreateRequest.coerce({"name": "A", "subdomain": "a", "status": "trial"})

    def test_coerce_passes_instances_through(self) -> None:
        request = TenantCreateRequest(name="A", subdomain="a")

        assert TenantCreateRequest.coerce(request) is request


class TestTenantUpdateRequest:
    """Tests for TenantUpdateRequest."""

    def test_changes_only_contain_set_fields(self) -> None:
        patch = TenantUpdateRequest.coerce({"plan": "premium", "theme": {"logo": "logo.png"}})

        assert patch.changes() == {"plan": "premium", "theme": {"logo": "logo.png"}}

    def test_empty_patch(self) -> None:
        patch = TenantUpdateRequest.coerce({})

        assert patch.changes() == {}

    def test_features_are_deduplicated(self) -> None:
        patch = TenantUpdateRequest.coerce(
            {"features": ["messaging", "reporting", "messaging"]}
        )

        assert patch.features == [TenantFeature.MESSAGING, TenantFeature.REPORTING]

    @pytest.mark.parametrize("field", ["name", "subdomain", "status", "plan", "features", "theme"])
    def test_rejects_explicit_null(self, field: str) -> None:
        with pytest.raises(TenantValidationError, match=f"{field} cannot be null"):
            TenantUpdateRequest.coerce({field: None})

    def test_rejects_null_theme_color(self) -> None:
        with pytest.raises(TenantValidationError):
            TenantUpdateRequest.coerce({"theme": {"primary_color": None}})

    def test_allows_clearing_logo(self) -> None:
        patch = TenantUpdateRequest.coerce({"theme": {"logo": None}})

        assert patch.changes() == {"theme": {"logo": None}}

    @pytest.mark.parametrize("color", ["red", "#12345", "#GGGGGG", "1a237e"])
    def test_rejects_bad_colors(self, color: str) -> None:
        with pytest.raises(TenantValidationError):
            TenantUpdateRequest.coerce({"theme": {"secondary_color": color}})

    def test_rejects_unknown_status(self) -> None:
        with pytest.raises(TenantValidationError):
            TenantUpdateRequest.coerce({"status": "archived"})


class TestTenantRecord:
    """Tests for TenantRecord."""

    def test_from_orm_object(self, sample_tenant) -> None:
        record = TenantRecord.model_validate(sample_tenant)

        assert record.id == sample_tenant.id
        assert record.status == TenantStatus.ACTIVE
        assert record.plan == TenantPlan.STANDARD
        assert record.theme.primary_color == DEFAULT_PRIMARY_COLOR
        assert record.stats is None
        assert record.admin is None

    def test_config_keeps_unknown_keys(self) -> None:
        config = TenantConfig.model_validate({"locale": "tr-TR"})

        assert config.model_dump(mode="json")["locale"] == "tr-TR"
        assert config.theme.primary_color == DEFAULT_PRIMARY_COLOR


class TestAdminAccount:
    """Tests for AdminAccount."""

    def test_password_not_in_repr(self, sample_tenant_id) -> None:
        admin = AdminAccount(
            identity_id=sample_tenant_id,
            email="admin@ataturk.edu",
            membership_id=sample_tenant_id,
            created=True,
            temporary_password="Sup3r-s3cret",
        )

        assert "Sup3r-s3cret" not in repr(admin)
