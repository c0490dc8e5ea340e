"""Pydantic models for live-schema validation results.

- Validation models: ColumnDiff, PrimaryKeyDiff, SchemaValidationResult
- Connection result: ConnectionResult

Declaration models (FieldDef, TableDefinition, Relation, RouteBinding)
live next to the code that builds them in ``cms_schema.schema``.
"""

from pydantic import BaseModel, Field


# ============================================================================
# Validation Result Models
# ============================================================================


class ColumnDiff(BaseModel):
    """A declared column missing from the live database."""

    table: str
    column: str
    message: str = ""


class PrimaryKeyDiff(BaseModel):
    """A live table whose primary key differs from the declared one."""

    table: str
    expected: list[str]
    actual: list[str]
    message: str = ""


class SchemaValidationResult(BaseModel):
    """Result of comparing the live database to the declared tables.

    Example:
        >>> result = SchemaValidationResult(valid=True)
        >>> result.error_count
        0
        >>> result.format_report()
        'Schema valid'
    """

    valid: bool
    missing_tables: list[str] = Field(default_factory=list)
    missing_columns: list[ColumnDiff] = Field(default_factory=list)
    primary_key_mismatches: list[PrimaryKeyDiff] = Field(default_factory=list)
    extra_tables: list[str] = Field(default_factory=list)  # Warning only

    @property
    def error_count(self) -> int:
        """Count of critical errors (missing tables, missing columns, key mismatches)."""
        return (
            len(self.missing_tables)
            + len(self.missing_columns)
            + len(self.primary_key_mismatches)
        )

    def format_report(self) -> str:
        """Format validation result as human-readable report."""
        if self.valid:
            return "Schema valid"

        lines = ["Schema validation failed:"]

        if self.missing_tables:
            lines.append(f"\n  Missing tables ({len(self.missing_tables)}):")
            for table in self.missing_tables:
                lines.append(f"    - {table}")

        if self.missing_columns:
            lines.append(f"\n  Missing columns ({len(self.missing_columns)}):")
            for diff in self.missing_columns:
                lines.append(f"    - {diff.table}.{diff.column}")

        if self.primary_key_mismatches:
            lines.append(f"\n  Primary key mismatches ({len(self.primary_key_mismatches)}):")
            for diff in self.primary_key_mismatches:
                actual = ", ".join(diff.actual) or "none"
                lines.append(
                    f"    - {diff.table}: expected ({', '.join(diff.expected)}), got ({actual})"
                )

        if self.extra_tables:
            lines.append(f"\n  Extra tables (warning): {', '.join(self.extra_tables)}")

        return "\n".join(lines)


# ============================================================================
# Connection Result
# ============================================================================


class ConnectionResult(BaseModel):
    """Result of connect_and_validate()."""

    success: bool
    profile_name: str | None = None
    schema_valid: bool | None = None
    schema_report: SchemaValidationResult | None = None
    error: str | None = None
