# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant commands.

- tenant:create: create and provision a tenant (flags or prompts)
- tenant:list: list tenants
- tenant:get: show one tenant with usage stats
- tenant:update: change tenant fields (flags or prompts)
- tenant:delete: delete a tenant and its schema
"""

import argparse
from typing import Any

from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from src.cli.context import CommandContext
from src.domains.tenancy.schemas import TenantPlan, TenantRecord, TenantStatus
from src.utils.datetime import format_iso

PLAN_CHOICES = [p.value for p in TenantPlan]
STATUS_CHOICES = [s.value for s in TenantStatus]


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the tenant:* commands."""
    create = subparsers.add_parser("tenant:create", help="Create a new tenant")
    create.add_argument("--name", help="School name")
    create.add_argument("--subdomain", help="Unique subdomain")
    create.add_argument("--admin-email", help="Email of the first administrator")
    create.add_argument("--plan", choices=PLAN_CHOICES, help="Subscription plan")
    create.add_argument(
        "--no-input",
        action="store_true",
        help="Never prompt; missing values are left empty",
    )
    create.set_defaults(handler=create_tenant)

    list_ = subparsers.add_parser("tenant:list", help="List tenants")
    list_.add_argument("--status", choices=STATUS_CHOICES, help="Filter by status")
    list_.add_argument("--plan", choices=PLAN_CHOICES, help="Filter by plan")
    list_.add_argument("--search", help="Match on name or subdomain")
    list_.add_argument("--limit", type=int, default=None, help="Maximum rows (default: 10)")
    list_.add_argument("--offset", type=int, default=0, help="Rows to skip")
    list_.set_defaults(handler=list_tenants)

    get = subparsers.add_parser("tenant:get", help="Show tenant details")
    get.add_argument("tenant_id", help="Tenant ID")
    get.set_defaults(handler=get_tenant)

    update = subparsers.add_parser("tenant:update", help="Update a tenant")
    update.add_argument("tenant_id", help="Tenant ID")
    update.add_argument("--name", help="New name")
    update.add_argument("--subdomain", help="New subdomain")
    update.add_argument("--status", choices=STATUS_CHOICES, help="New status")
    update.add_argument("--plan", choices=PLAN_CHOICES, help="New plan")
    update.add_argument("--primary-color", help="Theme primary color (#RRGGBB)")
    update.add_argument("--secondary-color", help="Theme secondary color (#RRGGBB)")
    update.add_argument("--logo", help="Theme logo reference")
    update.set_defaults(handler=update_tenant)

    delete = subparsers.add_parser("tenant:delete", help="Delete a tenant and its schema")
    delete.add_argument("tenant_id", help="Tenant ID")
    delete.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    delete.set_defaults(handler=delete_tenant)


def _ask(ctx: CommandContext, label: str, value: str | None, **kwargs: Any) -> str | None:
    if value is not None:
        return value
    return Prompt.ask(label, console=ctx.console, **kwargs)


def render_tenant(ctx: CommandContext, record: TenantRecord) -> None:
    """Print a tenant's details."""
    table = Table(title=f"Tenant {escape(record.subdomain)}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("ID", str(record.id))
    table.add_row("Name", escape(record.name))
    table.add_row("Subdomain", escape(record.subdomain))
    table.add_row("Status", record.status.value)
    table.add_row("Plan", record.plan.value)
    table.add_row("Features", ", ".join(record.features))
    table.add_row("Primary color", record.theme.primary_color)
    table.add_row("Secondary color", record.theme.secondary_color)
    table.add_row("Logo", escape(record.theme.logo or "-"))
    table.add_row("Created", format_iso(record.created_at) or "-")
    table.add_row("Updated", format_iso(record.updated_at) or "-")

    if record.stats is not None:
        table.add_row("Members", str(record.stats.member_count))
        table.add_row("Students", str(record.stats.learner_count))
        table.add_row("Classes", str(record.stats.cohort_count))

    ctx.console.print(table)


async def create_tenant(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Create a tenant, prompting for anything not given as a flag."""
    interactive = not args.no_input
    data = {
        "name": args.name if not interactive else _ask(ctx, "School name", args.name),
        "subdomain": args.subdomain if not interactive else _ask(ctx, "Subdomain", args.subdomain),
        "admin_email": (
            args.admin_email
            if not interactive
            else _ask(ctx, "Admin email (optional)", args.admin_email, default="")
        ),
        "plan": (
            args.plan
            if not interactive
            else _ask(ctx, "Plan", args.plan, choices=PLAN_CHOICES, default=TenantPlan.FREE.value)
        ),
    }

    with ctx.console.status("Creating tenant..."):
        record = await ctx.manager.create({k: v for k, v in data.items() if v is not None})

    ctx.console.print(f"[green]Tenant created: {escape(record.name)} ({record.id})[/green]")
    render_tenant(ctx, record)

    if record.admin is not None:
        if record.admin.temporary_password:
            ctx.console.print(
                Panel(
                    f"Email: {escape(record.admin.email)}\n"
                    f"Temporary password: {escape(record.admin.temporary_password)}\n\n"
                    "The password must be changed at first login. It is not shown again.",
                    title="Administrator",
                    border_style="yellow",
                    expand=False,
                )
            )
        else:
            ctx.console.print(
                f"[yellow]Existing account {escape(record.admin.email)} "
                "was added as administrator.[/yellow]"
            )

    return 0


async def list_tenants(args: argparse.Namespace, ctx: CommandContext) -> int:
    """List tenants."""
    records = await ctx.manager.registry.list(
        status=args.status,
        plan=args.plan,
        search=args.search,
        limit=args.limit,
        offset=args.offset,
    )

    if not records:
        ctx.console.print("[yellow]No tenants found.[/yellow]")
        return 0

    table = Table(title="Tenants", show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Subdomain")
    table.add_column("Status")
    table.add_column("Plan")
    table.add_column("Created")

    for record in records:
        table.add_row(
            str(record.id),
            escape(record.name),
            escape(record.subdomain),
            record.status.value,
            record.plan.value,
            format_iso(record.created_at) or "-",
        )

    ctx.console.print(table)
    return 0


async def get_tenant(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Show one tenant with stats."""
    record = await ctx.manager.registry.get(args.tenant_id)
    render_tenant(ctx, record)
    return 0


def _patch_from_flags(args: argparse.Namespace) -> dict[str, Any]:
    patch: dict[str, Any] = {}
    for field in ("name", "subdomain", "status", "plan"):
        value = getattr(args, field)
        if value is not None:
            patch[field] = value

    theme = {
        key: value
        for key, value in (
            ("primary_color", args.primary_color),
            ("secondary_color", args.secondary_color),
            ("logo", args.logo),
        )
        if value is not None
    }
    if theme:
        patch["theme"] = theme
    return patch


def _patch_from_prompts(ctx: CommandContext, current: TenantRecord) -> dict[str, Any]:
    answers = {
        "name": Prompt.ask("Name", console=ctx.console, default=current.name),
        "subdomain": Prompt.ask("Subdomain", console=ctx.console, default=current.subdomain),
        "status": Prompt.ask(
            "Status", console=ctx.console, choices=STATUS_CHOICES, default=current.status.value
        ),
        "plan": Prompt.ask(
            "Plan", console=ctx.console, choices=PLAN_CHOICES, default=current.plan.value
        ),
    }
    patch: dict[str, Any] = {
        field: value
        for field, value in answers.items()
        if value != getattr(getattr(current, field), "value", getattr(current, field))
    }

    theme_answers = {
        "primary_color": Prompt.ask(
            "Primary color", console=ctx.console, default=current.theme.primary_color
        ),
        "secondary_color": Prompt.ask(
            "Secondary color", console=ctx.console, default=current.theme.secondary_color
        ),
    }
    theme = {k: v for k, v in theme_answers.items() if v != getattr(current.theme, k)}
    if theme:
        patch["theme"] = theme
    return patch


async def update_tenant(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Update a tenant from flags, or interactively when no flag is given."""
    patch = _patch_from_flags(args)
    if not patch:
        current = await ctx.manager.registry.get(args.tenant_id, with_stats=False)
        patch = _patch_from_prompts(ctx, current)

    if not patch:
        ctx.console.print("[yellow]Nothing to update.[/yellow]")
        return 0

    record = await ctx.manager.update(args.tenant_id, patch)
    ctx.console.print(f"[green]Tenant updated: {escape(record.name)} ({record.id})[/green]")
    render_tenant(ctx, record)
    return 0


async def delete_tenant(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Delete a tenant after confirmation."""
    record = await ctx.manager.registry.get(args.tenant_id, with_stats=False)

    if not args.yes:
        confirmed = Confirm.ask(
            f"Delete tenant [bold]{escape(record.name)}[/bold] ({escape(record.subdomain)}) "
            "and all of its data?",
            console=ctx.console,
            default=False,
        )
        if not confirmed:
            ctx.console.print("Aborted.")
            return 0

    with ctx.console.status("Deleting tenant..."):
        await ctx.manager.delete(record.id)

    ctx.console.print(f"[green]Tenant deleted: {escape(record.name)} ({record.id})[/green]")
    return 0
