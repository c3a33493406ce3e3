"""Storefront database catalog: table descriptors, enums, and bundled DDL.

Usage:
    from storefront_db.catalog import STOREFRONT_SCHEMA, RESTORE_ORDER, schema_sql_path
"""

from pathlib import Path

from storefront_db.catalog.tables import ENUMS, RESTORE_ORDER, STOREFRONT_SCHEMA, TABLES


def schema_sql_path() -> Path:
    """Path to the bundled ``schema.sql`` (enum types, tables, indexes)."""
    return Path(__file__).parent / "schema.sql"


__all__ = [
    "ENUMS",
    "RESTORE_ORDER",
    "STOREFRONT_SCHEMA",
    "TABLES",
    "schema_sql_path",
]
