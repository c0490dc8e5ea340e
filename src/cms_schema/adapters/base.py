"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol the storage engine implements and
the relation resolver consumes. All methods are ``async def``.

Table and column names are the entity and field names declared in
``cms_schema.content`` (e.g. ``"categoriesToPosts"``, ``"userId"``);
implementations are responsible for quoting them for their dialect.

Usage:
    from cms_schema.adapters.base import DatabaseClient

    async def publish(client: DatabaseClient, post: dict) -> dict:
        row = await client.insert("posts", post)
        rows = await client.select("comments", "*", filters={"postId": row["id"]})
        return row
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Async CRUD interface over the declared tables."""

    async def select(
        self,
        table: str,
        columns: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Entity/table name.
            columns: ``"*"`` or comma-separated field names
                (e.g. ``"postId, categoryId"``).
            filters: Optional dict of field=value filters (all must match via AND).
            order_by: Optional comma-separated field names to sort by.

        Returns:
            List of dicts, one per row.  Empty list if no matches.
        """
        ...

    async def insert(self, table: str, data: dict) -> dict:
        """Insert row into table and return the created row.

        Raises:
            Exception: On primary-key or other constraint violation, e.g. a
                second ``categoriesToPosts`` row for the same
                ``(postId, categoryId)`` pair.
        """
        ...

    async def update(self, table: str, data: dict, filters: dict[str, Any]) -> dict:
        """Update rows in table and return the first updated row.

        Raises:
            ValueError: If no rows match filters.
        """
        ...

    async def delete(self, table: str, filters: dict[str, Any]) -> None:
        """Delete rows matching all filters."""
        ...

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute a raw SQL statement (DDL or other non-query operations)."""
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
