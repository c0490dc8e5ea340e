"""Declarative schema: fields, tables, relations and the exporter.

Usage:
    from cms_schema.schema import compose_schema, define_table, field_schema, text
    from cms_schema.schema import RelationGraph, SchemaRegistry, EntityBinding
    from cms_schema.schema import validate_schema, expected_columns
"""

from cms_schema.schema.comparator import (
    expected_columns,
    expected_primary_keys,
    validate_schema,
)
from cms_schema.schema.exporter import (
    EntityBinding,
    RouteBinding,
    SchemaExporter,
    SchemaRegistry,
)
from cms_schema.schema.fields import (
    AUDIT_FIELDS,
    FieldDef,
    FieldRef,
    FieldSchema,
    blob,
    compose_schema,
    field_schema,
    integer,
    text,
)
from cms_schema.schema.introspector import SchemaIntrospector
from cms_schema.schema.models import (
    ColumnDiff,
    ConnectionResult,
    PrimaryKeyDiff,
    SchemaValidationResult,
)
from cms_schema.schema.relations import Relation, RelationGraph, RelationKind
from cms_schema.schema.tables import IndexDef, TableDefinition, define_table

__all__ = [
    "AUDIT_FIELDS",
    "FieldDef",
    "FieldRef",
    "FieldSchema",
    "blob",
    "compose_schema",
    "field_schema",
    "integer",
    "text",
    "IndexDef",
    "TableDefinition",
    "define_table",
    "Relation",
    "RelationGraph",
    "RelationKind",
    "EntityBinding",
    "RouteBinding",
    "SchemaExporter",
    "SchemaRegistry",
    "expected_columns",
    "expected_primary_keys",
    "validate_schema",
    "SchemaIntrospector",
    "ColumnDiff",
    "PrimaryKeyDiff",
    "ConnectionResult",
    "SchemaValidationResult",
]
