"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async PostgreSQL
implementation used by backup, restore, and maintenance.

Usage:
    from storefront_db.adapters import DatabaseClient, AsyncPostgresAdapter
"""

from storefront_db.adapters.base import DatabaseClient
from storefront_db.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "AsyncPostgresAdapter",
]
