"""cms-schema: declarative CMS entities bound to storage and HTTP routes.

One declaration per entity yields its field schema, its table definition
(with audit fields), its relations and its route. The exporter resolves
all of them by name.

Usage:
    from cms_schema import ProjectSchemaExporter, RelationResolver
    from cms_schema import compose_schema, define_table, field_schema, text
    from cms_schema import SchemaConflictError, UnknownIndexFieldError
"""

__version__ = "0.1.0"

# Errors
from cms_schema.errors import (
    DanglingReferenceError,
    SchemaConflictError,
    SchemaDefinitionError,
    UnknownIndexFieldError,
)

# Declarations
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
    blob,
    compose_schema,
    field_schema,
    integer,
    text,
)
from cms_schema.schema.relations import Relation, RelationGraph, RelationKind
from cms_schema.schema.tables import IndexDef, TableDefinition, define_table

# CMS content
from cms_schema.content import ProjectSchemaExporter

# Storage hand-off
from cms_schema.adapters.base import DatabaseClient
from cms_schema.storage.ddl import build_metadata, create_statements
from cms_schema.storage.resolver import RelationResolver

# Config
from cms_schema.config.loader import load_config
from cms_schema.config.models import CmsConfig, DatabaseProfile

__all__ = [
    # Errors
    "SchemaDefinitionError",
    "SchemaConflictError",
    "UnknownIndexFieldError",
    "DanglingReferenceError",
    # Declarations
    "AUDIT_FIELDS",
    "FieldDef",
    "FieldRef",
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
    # CMS content
    "ProjectSchemaExporter",
    # Storage
    "DatabaseClient",
    "build_metadata",
    "create_statements",
    "RelationResolver",
    # Config
    "load_config",
    "CmsConfig",
    "DatabaseProfile",
]
