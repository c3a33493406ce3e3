"""Destructive reset and schema bootstrap.

``drop_all`` removes every table and enum type in the ``public`` schema.
``create_schema`` applies the bundled ``schema.sql``.  Neither is used by
backup or restore; a typical rebuild is ``drop_all`` -> ``create_schema``
-> ``restore_latest``.
"""

import logging
import re
from pathlib import Path

from storefront_db.adapters.base import DatabaseClient
from storefront_db.catalog import schema_sql_path

logger = logging.getLogger(__name__)

DROP_TABLES_SQL = """
DO $$
DECLARE
    r RECORD;
BEGIN
    FOR r IN (SELECT tablename FROM pg_tables WHERE schemaname = 'public') LOOP
        EXECUTE 'DROP TABLE IF EXISTS ' || quote_ident(r.tablename) || ' CASCADE';
    END LOOP;
END $$;
"""

DROP_TYPES_SQL = """
DO $$
DECLARE
    r RECORD;
BEGIN
    FOR r IN (SELECT typname FROM pg_type
        WHERE typnamespace = 'public'::regnamespace
        AND typtype = 'e') LOOP
        EXECUTE 'DROP TYPE IF EXISTS ' || quote_ident(r.typname) || ' CASCADE';
    END LOOP;
END $$;
"""

_STATEMENT_END = re.compile(r";\s*$", re.MULTILINE)


async def drop_all(client: DatabaseClient) -> None:
    """Drop every table, then every enum type, in the ``public`` schema.

    Irreversible.  Tables go first so that no column still uses a type
    when the types are dropped.
    """
    await client.execute(DROP_TABLES_SQL)
    logger.info("Dropped all tables in schema public")
    await client.execute(DROP_TYPES_SQL)
    logger.info("Dropped all enum types in schema public")


def split_statements(sql: str) -> list[str]:
    """Split a DDL script into statements.

    Full-line ``--`` comments are dropped.  Statements must end with ``;``
    at the end of a line; the script must not contain ``DO`` blocks.
    """
    lines = [line for line in sql.splitlines() if not line.lstrip().startswith("--")]
    body = "\n".join(lines)
    statements = [s.strip() for s in _STATEMENT_END.split(body)]
    return [s for s in statements if s]


async def create_schema(client: DatabaseClient, sql_path: str | Path | None = None) -> int:
    """Create enum types, tables, and indexes from a DDL script.

    Args:
        client: Database client implementing ``DatabaseClient`` Protocol.
        sql_path: DDL script.  Defaults to the bundled ``schema.sql``.

    Returns:
        Number of statements executed.
    """
    path = Path(sql_path) if sql_path is not None else schema_sql_path()
    statements = split_statements(path.read_text())
    for statement in statements:
        await client.execute(statement)
    logger.info("Applied %d statements from %s", len(statements), path.name)
    return len(statements)
