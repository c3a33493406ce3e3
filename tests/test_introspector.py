"""Tests for SchemaIntrospector with a mocked psycopg connection."""

from unittest.mock import AsyncMock, MagicMock, patch

import psycopg
import pytest

from storefront_db.schema.introspector import SchemaIntrospector


def _mock_conn(rows=None, error=None) -> MagicMock:
    cursor = MagicMock()
    cursor.execute = AsyncMock(side_effect=error)
    cursor.fetchall = AsyncMock(return_value=rows or [])

    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=cursor)
    ctx.__aexit__ = AsyncMock(return_value=None)

    conn = MagicMock()
    conn.cursor.return_value = ctx
    conn.close = AsyncMock()
    return conn


class TestConnection:
    """Async context manager behavior."""

    async def test_aenter_opens_connection(self):
        introspector = SchemaIntrospector("postgresql://localhost/shop", connect_timeout=15)
        conn = _mock_conn()
        with patch(
            "storefront_db.schema.introspector.psycopg.AsyncConnection.connect",
            new_callable=AsyncMock,
            return_value=conn,
        ) as mock_connect:
            async with introspector as active:
                assert active._conn is conn
            mock_connect.assert_awaited_once_with(
                "postgresql://localhost/shop", connect_timeout=15
            )
        conn.close.assert_awaited_once()
        assert introspector._conn is None

    def test_driver_suffix_stripped(self):
        introspector = SchemaIntrospector("postgresql+asyncpg://u:p@db:5432/shop")
        assert introspector._database_url == "postgresql://u:p@db:5432/shop"

    async def test_requires_connection(self):
        with pytest.raises(RuntimeError, match="not connected"):
            await SchemaIntrospector("postgresql://localhost/shop").get_column_names()

    async def test_connection_failure_wrapped(self):
        introspector = SchemaIntrospector("postgresql://localhost/shop")
        introspector._conn = _mock_conn(error=psycopg.Error("connection lost"))
        with pytest.raises(ConnectionError, match="Connection test failed"):
            await introspector.test_connection()


class TestGetColumnNames:
    """Rows grouped into table -> column set."""

    async def test_groups_columns_by_table(self):
        introspector = SchemaIntrospector("postgresql://localhost/shop")
        introspector._conn = _mock_conn(
            rows=[
                ("Order", "id"),
                ("Order", "userId"),
                ("Tags", "id"),
                ("_prisma_migrations", "id"),
            ]
        )
        assert await introspector.get_column_names() == {
            "Order": {"id", "userId"},
            "Tags": {"id"},
        }

    async def test_schema_name_passed(self):
        introspector = SchemaIntrospector("postgresql://localhost/shop")
        conn = _mock_conn()
        introspector._conn = conn
        await introspector.get_column_names("shop")
        cursor = conn.cursor.return_value.__aenter__.return_value
        assert cursor.execute.await_args.args[1] == ("shop",)
