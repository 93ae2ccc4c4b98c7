# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Row-level security DDL constructs for PostgreSQL.

SQLAlchemy has no built-in constructs for row-level security, so the
statements are modelled as ExecutableDDLElement subclasses and compiled
with the dialect's identifier preparer. Table and policy names are always
quoted by the preparer; the USING predicate is a SQL expression compiled
with literal binds.

Example:
    >>> await conn.execute(EnableRowLevelSecurity(table))
    >>> await conn.execute(ForceRowLevelSecurity(table))
    >>> await conn.execute(DropPolicy("tenant_isolation_policy", table))
    >>> await conn.execute(CreatePolicy("tenant_isolation_policy", table, predicate))
"""

from sqlalchemy import Table
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.schema import ExecutableDDLElement
from sqlalchemy.sql.compiler import DDLCompiler
from sqlalchemy.sql.elements import ClauseElement


class EnableRowLevelSecurity(ExecutableDDLElement):
    """``ALTER TABLE ... ENABLE ROW LEVEL SECURITY``.

    Enabling twice is a no-op in PostgreSQL.
    """

    def __init__(self, table: Table) -> None:
        self.table = table


class ForceRowLevelSecurity(ExecutableDDLElement):
    """``ALTER TABLE ... FORCE ROW LEVEL SECURITY``.

    Applies the table's policies to its owner as well. Superusers and
    roles with BYPASSRLS are still exempt.
    """

    def __init__(self, table: Table) -> None:
        self.table = table


class DropPolicy(ExecutableDDLElement):
    """``DROP POLICY [IF EXISTS] name ON table``."""

    def __init__(self, name: str, table: Table, if_exists: bool = True) -> None:
        self.name = name
        self.table = table
        self.if_exists = if_exists


class CreatePolicy(ExecutableDDLElement):
    """``CREATE POLICY name ON table USING (predicate)``.

    Attributes:
        name: Policy name, unique per table.
        table: Table the policy applies to.
        using: Boolean SQL expression evaluated per row.
    """

    def __init__(self, name: str, table: Table, using: ClauseElement) -> None:
        self.name = name
        self.table = table
        self.using = using


@compiles(EnableRowLevelSecurity)
def _compile_enable_rls(element: EnableRowLevelSecurity, compiler: DDLCompiler, **kw) -> str:
    return f"ALTER TABLE {compiler.preparer.format_table(element.table)} ENABLE ROW LEVEL SECURITY"


@compiles(ForceRowLevelSecurity)
def _compile_force_rls(element: ForceRowLevelSecurity, compiler: DDLCompiler, **kw) -> str:
    return f"ALTER TABLE {compiler.preparer.format_table(element.table)} FORCE ROW LEVEL SECURITY"


@compiles(DropPolicy)
def _compile_drop_policy(element: DropPolicy, compiler: DDLCompiler, **kw) -> str:
    if_exists = "IF EXISTS " if element.if_exists else ""
    return (
        f"DROP POLICY {if_exists}{compiler.preparer.quote(element.name)} "
        f"ON {compiler.preparer.format_table(element.table)}"
    )


@compiles(CreatePolicy)
def _compile_create_policy(element: CreatePolicy, compiler: DDLCompiler, **kw) -> str:
    predicate = compiler.sql_compiler.process(element.using, literal_binds=True)
    return (
        f"CREATE POLICY {compiler.preparer.quote(element.name)} "
        f"ON {compiler.preparer.format_table(element.table)} "
        f"USING ({predicate})"
    )
