"""PostgreSQL schema introspection via information_schema.

Queries the live database for the tables and columns of a schema so they
can be compared with the catalog (see ``schema.comparator``).

Uses psycopg (v3) async connections.
"""

import psycopg
from psycopg import AsyncConnection


class SchemaIntrospector:
    """Introspects PostgreSQL table and column names.

    Usage:
        async with SchemaIntrospector(database_url) as introspector:
            columns = await introspector.get_column_names()
    """

    # Tables to exclude from introspection (system tables)
    EXCLUDED_TABLES = {
        "_prisma_migrations",
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    }

    def __init__(self, database_url: str, connect_timeout: int = 10):
        """Initialize with database connection URL.

        Args:
            database_url: PostgreSQL connection URL.  SQLAlchemy driver
                suffixes (``postgresql+asyncpg://``) are stripped.
            connect_timeout: Seconds to wait for the connection.
        """
        self._database_url = self._libpq_url(database_url)
        self._connect_timeout = connect_timeout
        self._conn: AsyncConnection | None = None

    @staticmethod
    def _libpq_url(url: str) -> str:
        scheme, sep, rest = url.partition("://")
        if sep and "+" in scheme:
            return f"{scheme.split('+', 1)[0]}://{rest}"
        return url

    async def __aenter__(self) -> "SchemaIntrospector":
        """Async context manager entry - opens connection."""
        self._conn = await psycopg.AsyncConnection.connect(
            self._database_url,
            connect_timeout=self._connect_timeout,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - closes connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def test_connection(self) -> None:
        """Run ``SELECT 1``.

        Raises:
            ConnectionError: If the query fails.
        """
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        try:
            async with self._conn.cursor() as cur:
                await cur.execute("SELECT 1")
        except psycopg.Error as e:
            raise ConnectionError(f"Connection test failed: {e}") from e

    async def get_column_names(self, schema_name: str = "public") -> dict[str, set[str]]:
        """Get column names for all tables.

        Args:
            schema_name: PostgreSQL schema to query (default: public)

        Returns:
            Dict mapping table name to set of column names
        """
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")

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
        async with self._conn.cursor() as cur:
            await cur.execute(query, (schema_name,))
            for table_name, column_name in await cur.fetchall():
                if table_name in self.EXCLUDED_TABLES:
                    continue
                result.setdefault(table_name, set()).add(column_name)

        return result
