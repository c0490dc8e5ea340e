"""Declaration-time schema errors.

All of these are raised while the schema is being declared (module import
or registry construction), never while serving lookups. An inconsistent
schema must abort startup before any route is mounted.

Usage:
    from cms_schema.errors import SchemaDefinitionError

    try:
        from cms_schema.content import ProjectSchemaExporter
    except SchemaDefinitionError as e:
        raise SystemExit(f"Invalid schema: {e}")
"""


class SchemaDefinitionError(Exception):
    """Base class for errors in the declarative schema."""

    pass


class SchemaConflictError(SchemaDefinitionError):
    """Raised when two declarations claim the same name.

    Covers an entity field colliding with an audit field, duplicate field
    names within a schema, and duplicate entity names or routes.
    """

    pass


class UnknownIndexFieldError(SchemaDefinitionError):
    """Raised when an index or primary key names a field the table lacks."""

    pass


class DanglingReferenceError(SchemaDefinitionError):
    """Raised when a foreign key does not resolve to a primary key."""

    pass
