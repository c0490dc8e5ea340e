"""Render table definitions as SQLAlchemy tables and DDL.

This is the hand-off point to a storage engine: field tags become column
types, the declared (possibly composite) primary key becomes a
``PrimaryKeyConstraint`` and secondary indexes become ``Index`` objects.

Usage:
    from cms_schema.content import exporter
    from cms_schema.storage.ddl import build_metadata, create_statements

    metadata = build_metadata(exporter.tables())
    metadata.create_all(engine)

    for stmt in create_statements(exporter.tables(), dialect="postgresql"):
        print(stmt)
"""

from collections.abc import Iterable

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.schema import CreateIndex, CreateTable

from cms_schema.schema.fields import FieldDef
from cms_schema.schema.tables import TableDefinition

_COLUMN_TYPES = {
    "text": Text,
    "integer": Integer,
    "blob": LargeBinary,
}

_DIALECTS = {
    "sqlite": sqlite.dialect,
    "postgresql": postgresql.dialect,
}


def _column(field: FieldDef) -> Column:
    args: list = [field.name, _COLUMN_TYPES[field.type]()]
    if field.references is not None:
        args.append(ForeignKey(f"{field.references.table}.{field.references.field}"))
    # Key membership is declared at table level so composite keys work alike
    return Column(*args, nullable=field.nullable)


def to_sqlalchemy_table(table: TableDefinition, metadata: MetaData) -> Table:
    """Add one table definition to ``metadata`` and return the ``Table``."""
    items: list = [_column(f) for f in table.fields]
    if table.primary_key:
        items.append(PrimaryKeyConstraint(*table.primary_key))
    sa_table = Table(table.name, metadata, *items)

    for idx in table.indexes:
        Index(idx.name, *(sa_table.c[name] for name in idx.fields), unique=idx.unique)

    return sa_table


def build_metadata(tables: Iterable[TableDefinition]) -> MetaData:
    """Build a ``MetaData`` holding every table definition."""
    metadata = MetaData()
    for table in tables:
        to_sqlalchemy_table(table, metadata)
    return metadata


def create_statements(
    tables: Iterable[TableDefinition],
    dialect: str = "sqlite",
) -> list[str]:
    """Compile CREATE TABLE and CREATE INDEX statements.

    Statements follow declaration order; each table's indexes come right
    after it.

    Args:
        tables: Table definitions to render.
        dialect: ``"sqlite"`` or ``"postgresql"``.

    Returns:
        List of SQL statements without trailing semicolons.

    Raises:
        ValueError: If the dialect is not supported.
    """
    if dialect not in _DIALECTS:
        raise ValueError(
            f"Unsupported dialect '{dialect}'. Supported: {', '.join(_DIALECTS)}"
        )
    engine_dialect = _DIALECTS[dialect]()

    table_list = list(tables)
    metadata = build_metadata(table_list)

    statements: list[str] = []
    for table in table_list:
        sa_table = metadata.tables[table.name]
        statements.append(str(CreateTable(sa_table).compile(dialect=engine_dialect)).strip())
        indexes = {index.name: index for index in sa_table.indexes}
        for idx in table.indexes:
            statements.append(
                str(CreateIndex(indexes[idx.name]).compile(dialect=engine_dialect)).strip()
            )
    return statements
