# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the admin CLI.

Commands run through run_command with a captured console and a mocked
lifecycle manager.
"""

import io
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from rich.console import Console

from src.cli.main import build_parser, run_command
from src.domains.tenancy.errors import (
    DependencyError,
    SubdomainConflictError,
    TenantNotFoundError,
    TenantValidationError,
)
from src.domains.tenancy.lifecycle import TenantLifecycleManager
from src.domains.tenancy.provisioner import SchemaProvisioner
from src.domains.tenancy.registry import TenantRegistry
from src.domains.tenancy.schemas import AdminAccount, TenantStats


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=160, color_system=None)


def output(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture
def mock_manager(sample_record) -> MagicMock:
    manager = MagicMock(spec=TenantLifecycleManager)
    manager.registry = MagicMock(spec=TenantRegistry)
    manager.registry.list = AsyncMock(return_value=[sample_record])
    manager.registry.count = AsyncMock(return_value=7)
    manager.registry.get = AsyncMock(return_value=sample_record)
    manager.provisioner = MagicMock(spec=SchemaProvisioner)
    manager.provisioner.list_relations = AsyncMock(return_value=["attendance", "classes"])
    manager.create = AsyncMock(return_value=sample_record)
    manager.update = AsyncMock(return_value=sample_record)
    manager.delete = AsyncMock()
    manager.repair = AsyncMock(return_value="tenant_abc")
    return manager


@pytest.fixture
def run(settings, console, mock_database, mock_manager):
    """Parse argv and run the command against the mocks."""

    async def _run(*argv: str) -> int:
        args = build_parser().parse_args(list(argv))
        with patch.object(TenantLifecycleManager, "from_database", return_value=mock_manager):
            return await run_command(args, settings, console=console, database=mock_database)

    return _run


class TestParser:
    """Tests for build_parser."""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_create_flags(self):
        args = build_parser().parse_args(
            ["tenant:create", "--name", "Okul", "--subdomain", "okul", "--plan", "premium"]
        )

        assert args.name == "Okul"
        assert args.plan == "premium"
        assert args.no_input is False

    def test_rejects_unknown_plan(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["tenant:create", "--plan", "gold"])


class TestCreateCommand:
    """Tests for tenant:create."""

    @pytest.mark.asyncio
    async def test_create_from_flags(self, run, mock_manager, console, sample_record):
        sample_record.admin = AdminAccount(
            identity_id=uuid4(),
            email="admin@ataturk.edu",
            membership_id=uuid4(),
            created=True,
            temporary_password="Tmp-Passw0rd",
        )

        code = await run(
            "tenant:create",
            "--name", "Atatürk Ortaokulu",
            "--subdomain", "ataturk",
            "--admin-email", "admin@ataturk.edu",
            "--no-input",
        )

        assert code == 0
        mock_manager.create.assert_awaited_once_with(
            {
                "name": "Atatürk Ortaokulu",
                "subdomain": "ataturk",
                "admin_email": "admin@ataturk.edu",
            }
        )
        text = output(console)
        assert "Tenant created" in text
        assert "Tmp-Passw0rd" in text

    @pytest.mark.asyncio
    async def test_create_prompts_for_missing_values(self, run, mock_manager):
        answers = ["Okul", "okul", "", "standard"]

        with patch("src.cli.tenant_commands.Prompt.ask", side_effect=answers) as ask:
            code = await run("tenant:create")

        assert code == 0
        assert ask.call_count == 4
        mock_manager.create.assert_awaited_once_with(
            {"name": "Okul", "subdomain": "okul", "admin_email": "", "plan": "standard"}
        )

    @pytest.mark.asyncio
    async def test_existing_account_message(self, run, console, sample_record):
        sample_record.admin = AdminAccount(
            identity_id=uuid4(),
            email="admin@ataturk.edu",
            membership_id=uuid4(),
            created=False,
        )

        await run("tenant:create", "--name", "A", "--subdomain", "a", "--no-input")

        assert "Existing account admin@ataturk.edu" in output(console)

    @pytest.mark.asyncio
    async def test_conflict(self, run, mock_manager, console):
        mock_manager.create.side_effect = SubdomainConflictError("ataturk")

        code = await run("tenant:create", "--name", "A", "--subdomain", "ataturk", "--no-input")

        assert code == 1
        assert "Error: Subdomain 'ataturk' is already in use" in output(console)

    @pytest.mark.asyncio
    async def test_validation_error(self, run, mock_manager, console):
        mock_manager.create.side_effect = TenantValidationError.single("subdomain", "bad value")

        code = await run("tenant:create", "--name", "A", "--subdomain", "-", "--no-input")

        assert code == 1
        assert "Validation error: subdomain: bad value" in output(console)


class TestReadCommands:
    """Tests for tenant:list and tenant:get."""

    @pytest.mark.asyncio
    async def test_list(self, run, mock_manager, console, sample_record):
        code = await run("tenant:list", "--status", "active", "--limit", "5")

        assert code == 0
        mock_manager.registry.list.assert_awaited_once_with(
            status="active", plan=None, search=None, limit=5, offset=0
        )
        assert str(sample_record.id) in output(console)

    @pytest.mark.asyncio
    async def test_list_empty(self, run, mock_manager, console):
        mock_manager.registry.list.return_value = []

        await run("tenant:list")

        assert "No tenants found." in output(console)

    @pytest.mark.asyncio
    async def test_get_shows_stats(self, run, console, sample_record):
        sample_record.stats = TenantStats(member_count=3, learner_count=120, cohort_count=8)

        code = await run("tenant:get", str(sample_record.id))

        text = output(console)
        assert code == 0
        assert "ataturk" in text
        assert "120" in text

    @pytest.mark.asyncio
    async def test_get_not_found(self, run, mock_manager, console):
        mock_manager.registry.get.side_effect = TenantNotFoundError("missing")

        code = await run("tenant:get", "missing")

        assert code == 1
        assert "Error: Tenant not found: missing" in output(console)

    @pytest.mark.asyncio
    async def test_database_unavailable(self, run, mock_manager, console):
        mock_manager.registry.get.side_effect = DependencyError("Database unavailable")

        code = await run("tenant:get", "x")

        assert code == 1
        assert "Database unavailable" in output(console)


class TestUpdateCommand:
    """Tests for tenant:update."""

    @pytest.mark.asyncio
    async def test_update_from_flags(self, run, mock_manager, sample_record):
        code = await run(
            "tenant:update", str(sample_record.id), "--plan", "premium", "--logo", "logo.png"
        )

        assert code == 0
        mock_manager.update.assert_awaited_once_with(
            str(sample_record.id), {"plan": "premium", "theme": {"logo": "logo.png"}}
        )

    @pytest.mark.asyncio
    async def test_update_interactive_without_changes(
        self, run, mock_manager, console, sample_record
    ):
        def keep_default(label, **kwargs):
            return kwargs["default"]

        with patch("src.cli.tenant_commands.Prompt.ask", side_effect=keep_default):
            code = await run("tenant:update", str(sample_record.id))

        assert code == 0
        assert "Nothing to update." in output(console)
        mock_manager.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_interactive(self, run, mock_manager, sample_record):
        def answer(label, **kwargs):
            return {"Plan": "premium", "Primary color": "#ff0000"}.get(label, kwargs["default"])

        with patch("src.cli.tenant_commands.Prompt.ask", side_effect=answer):
            await run("tenant:update", str(sample_record.id))

        mock_manager.update.assert_awaited_once_with(
            str(sample_record.id), {"plan": "premium", "theme": {"primary_color": "#ff0000"}}
        )


class TestDeleteCommand:
    """Tests for tenant:delete."""

    @pytest.mark.asyncio
    async def test_delete_confirmed_by_flag(self, run, mock_manager, console, sample_record):
        code = await run("tenant:delete", str(sample_record.id), "--yes")

        assert code == 0
        mock_manager.delete.assert_awaited_once_with(sample_record.id)
        assert "Tenant deleted" in output(console)

    @pytest.mark.asyncio
    async def test_delete_aborted(self, run, mock_manager, console, sample_record):
        with patch("src.cli.tenant_commands.Confirm.ask", return_value=False):
            code = await run("tenant:delete", str(sample_record.id))

        assert code == 0
        mock_manager.delete.assert_not_awaited()
        assert "Aborted." in output(console)


class TestDatabaseCommands:
    """Tests for db:schema-generate and db:test-connection."""

    @pytest.mark.asyncio
    async def test_schema_generate(self, run, mock_manager, console, sample_record):
        code = await run("db:schema-generate", str(sample_record.id))

        assert code == 0
        mock_manager.repair.assert_awaited_once_with(str(sample_record.id))
        text = output(console)
        assert "Schema ready: tenant_abc" in text
        assert "attendance, classes" in text

    @pytest.mark.asyncio
    async def test_connection(self, run, console, mock_manager, mock_database):
        with patch("src.cli.db_commands.perf_counter", side_effect=[10.0, 10.0042]):
            code = await run("db:test-connection")

        assert code == 0
        text = output(console)
        assert "Database connection OK" in text
        assert "(4.2 ms)" in text
        assert "Tenants: 7" in text
        mock_manager.registry.count.assert_awaited_once_with()
        mock_database.ping.assert_not_awaited()


class TestRunCommand:
    """Tests for database ownership in run_command."""

    @pytest.mark.asyncio
    async def test_disposes_owned_database(self, settings, console, mock_database, mock_manager):
        args = build_parser().parse_args(["tenant:list"])

        with (
            patch("src.cli.main.CentralDatabase.from_settings", return_value=mock_database),
            patch.object(TenantLifecycleManager, "from_database", return_value=mock_manager),
        ):
            await run_command(args, settings, console=console)

        mock_database.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_keeps_injected_database(self, run, mock_database):
        await run("tenant:list")

        mock_database.dispose.assert_not_awaited()
