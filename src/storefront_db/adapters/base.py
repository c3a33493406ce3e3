"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that all adapters must implement.
All methods are ``async def`` -- the library is async-first.

Usage:
    from storefront_db.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        rows = await client.select("User", "*")
        await client.insert_many("User", rows)
        async with client.pinned() as session:
            await session.execute("SET session_replication_role = 'replica'")
        await client.close()
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Database client interface that all adapters must implement.

    Table and column names are passed unquoted; adapters quote them, so
    mixed-case and reserved names (``"Order"``, ``"User"``) work as-is.

    All methods are async -- callers must ``await`` every operation.
    """

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Table name.
            columns: ``"*"`` or comma-separated column names.
            filters: Optional dict of field=value filters (all must match via AND).
            order_by: Optional column name to sort by.

        Returns:
            List of dicts, one per row.  Empty list if no matches.

        Example:
            rows = await client.select("Order", "*", filters={"userId": "USR_1"})
        """
        ...

    async def insert_many(self, table: str, rows: list[dict]) -> int:
        """Insert a batch of rows in one call.

        The batch is written in a single transaction: either every row is
        committed or none is.

        Args:
            table: Table name.
            rows: Row dicts (column=value).

        Returns:
            Number of rows inserted.

        Raises:
            Exception: On any constraint violation or type mismatch.

        Example:
            await client.insert_many("Tags", [{"id": "TAG_1", "name": "herbal"}])
        """
        ...

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute a raw SQL statement (DDL, session settings, DO blocks).

        Args:
            sql: Raw SQL statement to execute.
            params: Optional dict of named parameters for the SQL statement.

        Example:
            await client.execute("SET session_replication_role = 'origin'")
        """
        ...

    def pinned(self) -> AbstractAsyncContextManager["DatabaseClient"]:
        """Scope in which every operation runs on one database session.

        Session-level settings issued through the yielded client apply to
        every later operation made through it, until the scope exits.

        Example:
            async with client.pinned() as session:
                await session.execute("SET session_replication_role = 'replica'")
                await session.insert_many("Category", rows)
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
