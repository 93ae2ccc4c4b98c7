# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin CLI entry point.

Parses the command line, sets up logging (to stderr, so command output on
stdout stays clean), builds the shared database and runs the selected
command. Domain errors are printed as a single red line and produce exit
code 1.
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from src import __version__
from src.cli import db_commands, tenant_commands
from src.cli.context import CommandContext
from src.core.config import Settings, get_settings
from src.domains.tenancy.errors import DependencyError, TenancyError, TenantValidationError
from src.infrastructure.database.connection import CentralDatabase
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all commands registered."""
    parser = argparse.ArgumentParser(
        prog="iep-admin",
        description="Tenant provisioning and lifecycle administration",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)
    tenant_commands.register(subparsers)
    db_commands.register(subparsers)

    return parser


def _error_message(error: Exception) -> str:
    if isinstance(error, TenantValidationError):
        return "Validation error: " + "; ".join(
            f"{e['field']}: {e['message']}" for e in error.errors
        )
    if isinstance(error, DependencyError):
        return f"Database unavailable: {error.original_error or error.message}"
    return str(error)


async def run_command(
    args: argparse.Namespace,
    settings: Settings,
    console: Console | None = None,
    database: CentralDatabase | None = None,
) -> int:
    """Run a parsed command.

    Args:
        args: Parsed arguments; ``args.handler`` is the command coroutine.
        settings: Application settings.
        console: Output console; defaults to stdout.
        database: Database to use; built from settings (and disposed
            afterwards) when omitted.

    Returns:
        Process exit code.
    """
    console = console or Console()
    owns_database = database is None
    database = database or CentralDatabase.from_settings(settings)
    context = CommandContext(database=database, settings=settings, console=console)
    bind_context(command=args.command)

    try:
        return await args.handler(args, context)
    except (TenancyError, DependencyError) as e:
        logger.debug("Command failed", error=str(e), exc_info=True)
        console.print(f"[red]Error: {escape(_error_message(e))}[/red]")
        return 1
    finally:
        clear_context()
        if owns_database:
            await database.dispose()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the admin CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings, stream=sys.stderr)

    try:
        return asyncio.run(run_command(args, settings))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
