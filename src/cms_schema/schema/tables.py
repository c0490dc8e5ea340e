"""Entity table definitions.

A ``TableDefinition`` binds a composed field schema (entity fields plus
audit fields) to a physical table name, a primary key and secondary
indexes. Definitions are immutable once declared.

Usage:
    from cms_schema.schema.fields import compose_schema
    from cms_schema.schema.tables import IndexDef, define_table

    posts_table = define_table(
        "posts",
        compose_schema(post_schema),
        indexes=[IndexDef(name="postUserIdIndex", fields=("userId",))],
    )
    posts_table.primary_key
    # ('id',)
"""

from collections.abc import Sequence
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from cms_schema.errors import SchemaConflictError, UnknownIndexFieldError
from cms_schema.schema.fields import FieldDef, FieldSchema


class IndexDef(BaseModel):
    """Secondary index declaration."""

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[str, ...]
    unique: bool = False


class TableDefinition(BaseModel):
    """A field schema bound to a physical table.

    ``fields`` holds the full column list in declaration order, audit
    fields included.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[FieldDef, ...]
    primary_key: tuple[str, ...] = ()
    indexes: tuple[IndexDef, ...] = Field(default_factory=tuple)

    def field_names(self) -> list[str]:
        """Get list of field names in definition order."""
        return [f.name for f in self.fields]

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def get_field(self, name: str) -> FieldDef | None:
        """Get a field by name, or None if the table has no such field."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def columns(self) -> FieldSchema:
        """Read-only name -> FieldDef view of ``fields``."""
        return MappingProxyType({f.name: f for f in self.fields})

    @property
    def has_composite_key(self) -> bool:
        return len(self.primary_key) > 1


def define_table(
    name: str,
    fields: FieldSchema,
    indexes: Sequence[IndexDef] = (),
    primary_key: Sequence[str] | None = None,
) -> TableDefinition:
    """Bind a composed field schema to a table name.

    The primary key is ``primary_key`` when given (used for join entities
    whose key is the composite of their two foreign keys), otherwise the
    fields flagged ``primary_key`` in the schema.

    Args:
        name: Physical table name, also the entity name used for lookups.
        fields: Composed field schema (see ``compose_schema``).
        indexes: Secondary indexes over existing fields.
        primary_key: Explicit (possibly composite) primary key.

    Returns:
        Immutable ``TableDefinition``.

    Raises:
        UnknownIndexFieldError: If an index or the explicit primary key
            names a field not present in ``fields``.
        SchemaConflictError: If two indexes share a name.
    """
    for idx in indexes:
        unknown = [f for f in idx.fields if f not in fields]
        if unknown:
            raise UnknownIndexFieldError(
                f"Index '{idx.name}' on table '{name}' references unknown "
                f"field(s): {', '.join(unknown)}"
            )

    index_names = [idx.name for idx in indexes]
    duplicates = sorted({n for n in index_names if index_names.count(n) > 1})
    if duplicates:
        raise SchemaConflictError(
            f"Duplicate index name(s) on table '{name}': {', '.join(duplicates)}"
        )

    if primary_key is not None:
        unknown = [f for f in primary_key if f not in fields]
        if unknown:
            raise UnknownIndexFieldError(
                f"Primary key on table '{name}' references unknown "
                f"field(s): {', '.join(unknown)}"
            )
        pk = tuple(primary_key)
    else:
        pk = tuple(f.name for f in fields.values() if f.primary_key)

    return TableDefinition(
        name=name,
        fields=tuple(fields.values()),
        primary_key=pk,
        indexes=tuple(indexes),
    )
