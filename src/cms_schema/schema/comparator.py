"""Compare a live database against the declared tables.

``expected_columns()`` and ``expected_primary_keys()`` derive the declared
shape from an exporter; ``validate_schema()`` does the set comparison. All
are pure: no I/O.

Usage:
    from cms_schema.content import exporter
    from cms_schema.schema.comparator import (
        expected_columns,
        expected_primary_keys,
        validate_schema,
    )
    from cms_schema.schema.introspector import SchemaIntrospector

    async with SchemaIntrospector(database_url) as introspector:
        actual = await introspector.get_column_names()
        actual_keys = await introspector.get_primary_keys()

    result = validate_schema(
        actual,
        expected_columns(exporter),
        actual_primary_keys=actual_keys,
        expected_primary_keys=expected_primary_keys(exporter),
    )
    if not result.valid:
        print(result.format_report())
"""

import logging

from cms_schema.schema.exporter import SchemaRegistry
from cms_schema.schema.models import ColumnDiff, PrimaryKeyDiff, SchemaValidationResult

logger = logging.getLogger(__name__)


def expected_columns(registry: SchemaRegistry) -> dict[str, set[str]]:
    """Map every declared table to its column names, audit fields included."""
    return {table.name: set(table.field_names()) for table in registry.tables()}


def expected_primary_keys(registry: SchemaRegistry) -> dict[str, list[str]]:
    """Map every declared table to its primary-key columns, in key order."""
    return {table.name: list(table.primary_key) for table in registry.tables()}


def validate_schema(
    actual_columns: dict[str, set[str]],
    expected_columns: dict[str, set[str]],
    actual_primary_keys: dict[str, list[str]] | None = None,
    expected_primary_keys: dict[str, list[str]] | None = None,
) -> SchemaValidationResult:
    """Validate actual database schema against expected columns.

    Finds:
    - Missing tables: in *expected_columns* but not in *actual_columns*
    - Missing columns: expected but absent from the actual table
    - Primary key mismatches: a table present on both sides whose key
      columns differ as a set (only when both key maps are given; a live
      table with no key counts as a mismatch)
    - Extra tables: in *actual_columns* only (warning, does not affect
      ``valid``)

    Examples:
        >>> validate_schema({"posts": {"id"}}, {"posts": {"id", "title"}}).valid
        False
        >>> validate_schema({"posts": {"id"}}, {}).valid
        True
    """
    actual_tables: set[str] = set(actual_columns.keys())
    expected_tables: set[str] = set(expected_columns.keys())

    missing_tables: list[str] = sorted(expected_tables - actual_tables)
    extra_tables: list[str] = sorted(actual_tables - expected_tables)

    missing_columns: list[ColumnDiff] = []
    for table_name in sorted(expected_tables & actual_tables):
        missing_cols = expected_columns[table_name] - actual_columns[table_name]
        for col_name in sorted(missing_cols):
            missing_columns.append(
                ColumnDiff(
                    table=table_name,
                    column=col_name,
                    message=f"Column '{col_name}' missing from table '{table_name}'",
                )
            )

    primary_key_mismatches: list[PrimaryKeyDiff] = []
    if actual_primary_keys is not None and expected_primary_keys is not None:
        for table_name in sorted(expected_tables & actual_tables):
            expected_key = expected_primary_keys.get(table_name, [])
            actual_key = actual_primary_keys.get(table_name, [])
            if set(expected_key) != set(actual_key):
                primary_key_mismatches.append(
                    PrimaryKeyDiff(
                        table=table_name,
                        expected=list(expected_key),
                        actual=list(actual_key),
                        message=(
                            f"Primary key of '{table_name}' is "
                            f"({', '.join(actual_key) or 'none'}), expected "
                            f"({', '.join(expected_key)})"
                        ),
                    )
                )

    is_valid = not missing_tables and not missing_columns and not primary_key_mismatches
    if not is_valid:
        logger.warning(
            "Schema drift: %d missing tables, %d missing columns, %d key mismatches",
            len(missing_tables),
            len(missing_columns),
            len(primary_key_mismatches),
        )

    return SchemaValidationResult(
        valid=is_valid,
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        primary_key_mismatches=primary_key_mismatches,
        extra_tables=extra_tables,
    )
