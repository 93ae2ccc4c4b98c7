# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixed relation set provisioned inside every tenant schema.

Each tenant schema holds exactly six relations. Their shape is fixed and
not configurable per tenant. Relations are declared as RelationDefinition
objects and materialized into SQLAlchemy Core tables for a given schema,
so the same definitions serve DDL generation, access policies and
queries.

Creation order is derived from the declared dependencies with a
topological sort rather than hardcoded:

    [users, classes] -> [students, teachers] -> [attendance, grades]

Example:
    >>> tables = build_tenant_tables("tenant_1f0c...")
    >>> for batch in relation_batches():
    ...     for definition in batch:
    ...         table = tables[definition.name]
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from graphlib import TopologicalSorter

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    Table,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.schema import SchemaItem

ColumnFactory = Callable[[str], list[SchemaItem]]


@dataclass(frozen=True)
class RelationDefinition:
    """Declarative description of one tenant relation.

    Attributes:
        name: Table name inside the tenant schema.
        depends_on: Relations that must exist first (foreign key targets).
        columns: Builds the column list for a schema. Receives the schema
            name so foreign keys can be fully qualified.
        indexes: Columns that get a secondary index: filter columns, every
            foreign key and date columns used for range filters. Unique
            columns are already indexed by their constraint.
    """

    name: str
    columns: ColumnFactory
    depends_on: tuple[str, ...] = ()
    indexes: tuple[str, ...] = field(default=())


def _uuid_pk(generated: bool = True) -> Column:
    if generated:
        return Column("id", Uuid(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()"))
    return Column("id", Uuid(as_uuid=True), primary_key=True)


def _timestamps() -> list[Column]:
    return [
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
        Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    ]


def _users(schema: str) -> list[SchemaItem]:
    # id mirrors the platform account id, so it is never generated here
    return [
        _uuid_pk(generated=False),
        Column("email", Text, nullable=False, unique=True),
        Column("first_name", Text),
        Column("last_name", Text),
        Column("role", Text, nullable=False),
        Column("phone_number", Text),
        Column("profile_picture", Text),
        *_timestamps(),
    ]


def _classes(schema: str) -> list[SchemaItem]:
    return [
        _uuid_pk(),
        Column("name", Text, nullable=False),
        Column("grade", Integer),
        Column("section", Text),
        Column("academic_year", Text),
        Column("teacher_id", Uuid(as_uuid=True)),
        Column("room", Text),
        *_timestamps(),
    ]


def _students(schema: str) -> list[SchemaItem]:
    return [
        _uuid_pk(),
        Column("student_number", Text, nullable=False, unique=True),
        Column("first_name", Text, nullable=False),
        Column("last_name", Text, nullable=False),
        Column("email", Text),
        Column("date_of_birth", Date),
        Column("gender", Text),
        Column("phone_number", Text),
        Column("address", Text),
        Column("class_id", Uuid(as_uuid=True), ForeignKey(f"{schema}.classes.id")),
        *_timestamps(),
    ]


def _teachers(schema: str) -> list[SchemaItem]:
    return [
        _uuid_pk(),
        Column("user_id", Uuid(as_uuid=True), ForeignKey(f"{schema}.users.id"), nullable=False),
        Column("specialization", Text),
        Column("bio", Text),
        *_timestamps(),
    ]


def _attendance(schema: str) -> list[SchemaItem]:
    return [
        _uuid_pk(),
        Column("student_id", Uuid(as_uuid=True), ForeignKey(f"{schema}.students.id"), nullable=False),
        Column("class_id", Uuid(as_uuid=True), ForeignKey(f"{schema}.classes.id"), nullable=False),
        Column("date", Date, nullable=False),
        Column("status", Text, nullable=False),
        Column("note", Text),
        *_timestamps(),
    ]


def _grades(schema: str) -> list[SchemaItem]:
    return [
        _uuid_pk(),
        Column("student_id", Uuid(as_uuid=True), ForeignKey(f"{schema}.students.id"), nullable=False),
        Column("class_id", Uuid(as_uuid=True), ForeignKey(f"{schema}.classes.id"), nullable=False),
        Column("exam_name", Text, nullable=False),
        Column("score", Numeric, nullable=False),
        Column("max_score", Numeric, nullable=False, server_default=text("100")),
        Column("exam_date", Date),
        Column("note", Text),
        *_timestamps(),
    ]


TENANT_RELATIONS: tuple[RelationDefinition, ...] = (
    RelationDefinition("users", _users, indexes=("role",)),
    RelationDefinition("classes", _classes, indexes=("name", "teacher_id")),
    RelationDefinition(
        "students",
        _students,
        depends_on=("classes",),
        indexes=("class_id",),
    ),
    RelationDefinition(
        "teachers",
        _teachers,
        depends_on=("users",),
        indexes=("user_id",),
    ),
    RelationDefinition(
        "attendance",
        _attendance,
        depends_on=("students", "classes"),
        indexes=("student_id", "class_id", "date"),
    ),
    RelationDefinition(
        "grades",
        _grades,
        depends_on=("students", "classes"),
        indexes=("student_id", "class_id", "exam_date"),
    ),
)

TENANT_RELATION_NAMES: tuple[str, ...] = tuple(r.name for r in TENANT_RELATIONS)


def relation_batches(
    definitions: Sequence[RelationDefinition] = TENANT_RELATIONS,
) -> list[tuple[RelationDefinition, ...]]:
    """Group relations into dependency-respecting creation batches.

    Every relation in a batch depends only on relations from earlier
    batches, so the members of one batch are mutually independent. Within
    a batch the declaration order is kept, which makes the output stable.

    Args:
        definitions: Relations to order.

    Returns:
        List of batches in creation order.

    Raises:
        ValueError: If a relation depends on an undeclared relation.
        graphlib.CycleError: If the dependencies form a cycle.
    """
    by_name = {d.name: d for d in definitions}
    position = {d.name: i for i, d in enumerate(definitions)}

    for definition in definitions:
        missing = [dep for dep in definition.depends_on if dep not in by_name]
        if missing:
            raise ValueError(
                f"Relation {definition.name!r} depends on undeclared relation(s): "
                f"{', '.join(missing)}"
            )

    sorter = TopologicalSorter({d.name: d.depends_on for d in definitions})
    sorter.prepare()

    batches: list[tuple[RelationDefinition, ...]] = []
    while sorter.is_active():
        ready = sorted(sorter.get_ready(), key=position.__getitem__)
        batches.append(tuple(by_name[name] for name in ready))
        sorter.done(*ready)

    return batches


def build_tenant_tables(schema: str) -> dict[str, Table]:
    """Materialize the tenant relations as Core tables for one schema.

    Args:
        schema: Tenant schema name. Must already be validated.

    Returns:
        Mapping of relation name to Table, in declaration order. Each table
        carries its secondary indexes (named ``ix_<table>_<column>``).
    """
    metadata = MetaData(schema=schema)
    tables: dict[str, Table] = {}

    for definition in TENANT_RELATIONS:
        table = Table(definition.name, metadata, *definition.columns(schema))
        for column_name in definition.indexes:
            Index(f"ix_{definition.name}_{column_name}", table.c[column_name])
        tables[definition.name] = table

    return tables
