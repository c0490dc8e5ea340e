"""Storage-engine hand-off: DDL rendering and relation traversal.

Usage:
    from cms_schema.storage import build_metadata, create_statements
    from cms_schema.storage import RelationResolver
"""

from cms_schema.storage.ddl import build_metadata, create_statements, to_sqlalchemy_table
from cms_schema.storage.resolver import RelationResolver

__all__ = [
    "build_metadata",
    "create_statements",
    "to_sqlalchemy_table",
    "RelationResolver",
]
