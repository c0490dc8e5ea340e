"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async PostgreSQL
implementation that storage collaborators hand table definitions to.

Usage:
    from cms_schema.adapters import DatabaseClient, AsyncPostgresAdapter
"""

from cms_schema.adapters.base import DatabaseClient
from cms_schema.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "AsyncPostgresAdapter",
]
