# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared state handed to every CLI command."""

from dataclasses import dataclass, field
from functools import cached_property

from rich.console import Console

from src.core.config.settings import Settings
from src.domains.tenancy.lifecycle import TenantLifecycleManager
from src.infrastructure.database.connection import CentralDatabase


@dataclass
class CommandContext:
    """Database, settings and console for one CLI invocation.

    Attributes:
        database: Shared database, disposed when the command finishes.
        settings: Application settings.
        console: Console for command output (stdout).
    """

    database: CentralDatabase
    settings: Settings
    console: Console = field(default_factory=Console)

    @cached_property
    def manager(self) -> TenantLifecycleManager:
        """Tenant lifecycle manager wired to the database."""
        return TenantLifecycleManager.from_database(self.database, self.settings.tenancy)

