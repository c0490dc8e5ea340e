"""PostgreSQL schema introspection via information_schema.

Reads table and column names (and primary keys) from a live database so
they can be compared with the declared tables. Uses psycopg (v3) async
connections.
"""

import psycopg


class SchemaIntrospector:
    """Introspects a live PostgreSQL schema.

    Usage:
        async with SchemaIntrospector(database_url) as introspector:
            columns = await introspector.get_column_names()
            keys = await introspector.get_primary_keys()
    """

    DEFAULT_EXCLUDED_TABLES = frozenset({
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    })

    def __init__(
        self,
        database_url: str,
        excluded_tables: set[str] | None = None,
    ) -> None:
        self._database_url = database_url
        self._excluded = (
            frozenset(excluded_tables)
            if excluded_tables is not None
            else self.DEFAULT_EXCLUDED_TABLES
        )
        self._conn: psycopg.AsyncConnection | None = None

    async def __aenter__(self) -> "SchemaIntrospector":
        url = self._database_url
        if "connect_timeout" not in url:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}connect_timeout=10"

        self._conn = await psycopg.AsyncConnection.connect(url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> psycopg.AsyncConnection:
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        return self._conn

    async def test_connection(self) -> bool:
        conn = self._require_conn()
        async with conn.cursor() as cur:
            await cur.execute("SELECT 1")
            row = await cur.fetchone()
            return row is not None and row[0] == 1

    async def get_column_names(self, schema_name: str = "public") -> dict[str, set[str]]:
        """Get column names for all tables.

        Args:
            schema_name: PostgreSQL schema to query (default: public)

        Returns:
            Dict mapping table name to set of column names
        """
        conn = self._require_conn()
        query = """
            SELECT c.table_name, c.column_name
            FROM information_schema.columns c
            JOIN information_schema.tables t
              ON t.table_schema = c.table_schema
             AND t.table_name = c.table_name
            WHERE c.table_schema = %s
              AND t.table_type = 'BASE TABLE'
            ORDER BY c.table_name, c.ordinal_position
        """
        result: dict[str, set[str]] = {}
        async with conn.cursor() as cur:
            await cur.execute(query, (schema_name,))
            for table_name, column_name in await cur.fetchall():
                if table_name in self._excluded:
                    continue
                result.setdefault(table_name, set()).add(column_name)
        return result

    async def get_primary_keys(self, schema_name: str = "public") -> dict[str, list[str]]:
        """Get primary-key columns per table, in key order."""
        conn = self._require_conn()
        query = """
            SELECT tc.table_name, kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
              ON tc.constraint_name = kcu.constraint_name
             AND tc.table_schema = kcu.table_schema
            WHERE tc.table_schema = %s
              AND tc.constraint_type = 'PRIMARY KEY'
            ORDER BY tc.table_name, kcu.ordinal_position
        """
        result: dict[str, list[str]] = {}
        async with conn.cursor() as cur:
            await cur.execute(query, (schema_name,))
            for table_name, column_name in await cur.fetchall():
                if table_name in self._excluded:
                    continue
                result.setdefault(table_name, []).append(column_name)
        return result
