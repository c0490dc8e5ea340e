"""Storage-engine-neutral field declarations and the audit mixin.

A field schema is an ordered, read-only mapping of field name to
``FieldDef``. Every persisted entity gets the two audit timestamps
appended by ``compose_schema()``.

Usage:
    from cms_schema.schema.fields import compose_schema, field_schema, text

    post_schema = field_schema(
        text("id", primary_key=True),
        text("title"),
        text("userId"),
    )
    post_fields = compose_schema(post_schema)
    list(post_fields)
    # ['id', 'title', 'userId', 'createdOn', 'updatedOn']
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict

from cms_schema.errors import SchemaConflictError

FieldType = Literal["text", "integer", "blob"]

# Read-only, insertion-ordered mapping of field name -> FieldDef
FieldSchema = Mapping[str, "FieldDef"]


class FieldRef(BaseModel):
    """Foreign-key target: a field on another entity."""

    model_config = ConfigDict(frozen=True)

    table: str          # referenced entity name
    field: str          # referenced field name


class FieldDef(BaseModel):
    """A single persisted field.

    Example:
        >>> f = FieldDef(name="role", type="text", choices=("admin", "user"))
        >>> f.nullable
        True
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: FieldType
    nullable: bool = True
    primary_key: bool = False
    references: FieldRef | None = None
    choices: tuple[str, ...] | None = None  # type tag only, never enforced


def _field(
    name: str,
    type: FieldType,
    *,
    primary_key: bool = False,
    nullable: bool | None = None,
    references: tuple[str, str] | None = None,
    choices: tuple[str, ...] | None = None,
) -> FieldDef:
    if nullable is None:
        nullable = not primary_key
    ref = FieldRef(table=references[0], field=references[1]) if references else None
    return FieldDef(
        name=name,
        type=type,
        nullable=nullable,
        primary_key=primary_key,
        references=ref,
        choices=choices,
    )


def text(name: str, **kwargs) -> FieldDef:
    """Declare a text field. See ``_field`` for keyword options."""
    return _field(name, "text", **kwargs)


def integer(name: str, **kwargs) -> FieldDef:
    """Declare an integer field."""
    return _field(name, "integer", **kwargs)


def blob(name: str, **kwargs) -> FieldDef:
    """Declare a binary field."""
    return _field(name, "blob", **kwargs)


def field_schema(*fields: FieldDef) -> FieldSchema:
    """Build an ordered, read-only field schema.

    Args:
        *fields: Field declarations in column order.

    Returns:
        Mapping of field name to ``FieldDef`` preserving declaration order.

    Raises:
        SchemaConflictError: If two fields share a name.
    """
    result: dict[str, FieldDef] = {}
    for f in fields:
        if f.name in result:
            raise SchemaConflictError(f"Duplicate field '{f.name}' in schema")
        result[f.name] = f
    return MappingProxyType(result)


# Audit mixin appended to every table
AUDIT_FIELDS: FieldSchema = field_schema(
    integer("createdOn"),
    integer("updatedOn"),
)


def compose_schema(entity_fields: FieldSchema) -> FieldSchema:
    """Append the audit fields to an entity's own fields.

    Pure and deterministic: entity fields first, in their declared order,
    followed by ``createdOn`` and ``updatedOn``.

    Args:
        entity_fields: The entity-specific field schema.

    Returns:
        A new read-only field schema including the audit fields.

    Raises:
        SchemaConflictError: If an entity field uses an audit field name.

    Examples:
        >>> composed = compose_schema(field_schema(text("id", primary_key=True)))
        >>> list(composed)
        ['id', 'createdOn', 'updatedOn']
    """
    collisions = sorted(set(entity_fields) & set(AUDIT_FIELDS))
    if collisions:
        raise SchemaConflictError(
            f"Entity fields collide with audit fields: {', '.join(collisions)}"
        )
    return MappingProxyType({**entity_fields, **AUDIT_FIELDS})
