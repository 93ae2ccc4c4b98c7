# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database commands.

- db:schema-generate: re-run schema provisioning and policy installation
- db:test-connection: read the tenant registry and report latency
"""

import argparse
from time import perf_counter

from rich.markup import escape

from src.cli.context import CommandContext


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the db:* commands."""
    generate = subparsers.add_parser(
        "db:schema-generate",
        help="Create (or repair) a tenant's schema and access policies",
    )
    generate.add_argument("tenant_id", help="Tenant ID")
    generate.set_defaults(handler=generate_schema)

    test = subparsers.add_parser("db:test-connection", help="Test the database connection")
    test.set_defaults(handler=check_connection)


async def generate_schema(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Provision the tenant schema and install its policies."""
    with ctx.console.status("Generating schema..."):
        schema = await ctx.manager.repair(args.tenant_id)
        relations = await ctx.manager.provisioner.list_relations(args.tenant_id)

    ctx.console.print(f"[green]Schema ready: {escape(schema)}[/green]")
    ctx.console.print(f"Relations: {', '.join(relations)}")
    return 0


async def check_connection(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Query the registry and report round-trip latency and tenant count."""
    start = perf_counter()
    tenant_count = await ctx.manager.registry.count()
    latency = (perf_counter() - start) * 1000

    ctx.console.print(f"[green]Database connection OK[/green] ({latency:.1f} ms)")
    ctx.console.print(f"Tenants: {tenant_count}")
    return 0
