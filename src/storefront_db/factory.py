"""Database client factory.

Builds the ``AsyncPostgresAdapter`` from ``DATABASE_URL`` (environment or
``.env``), configured with the JSONB columns declared in the catalog.
"""

from storefront_db.adapters.postgres import AsyncPostgresAdapter
from storefront_db.backup.models import BackupSchema
from storefront_db.catalog import STOREFRONT_SCHEMA
from storefront_db.config import Settings, get_settings


def jsonb_columns(schema: BackupSchema) -> list[str]:
    """All JSONB column names declared anywhere in ``schema``."""
    names: list[str] = []
    for table in schema.tables:
        for column in table.jsonb_columns:
            if column not in names:
                names.append(column)
    return names


def get_adapter(
    settings: Settings | None = None,
    schema: BackupSchema = STOREFRONT_SCHEMA,
) -> AsyncPostgresAdapter:
    """Create an async adapter for the configured database.

    Args:
        settings: Settings to use.  Defaults to the cached ``get_settings()``.
        schema: Schema whose JSONB columns the adapter should encode.

    Returns:
        A new ``AsyncPostgresAdapter``.  Callers own it and must
        ``await adapter.close()``.

    Raises:
        ConfigurationError: If ``DATABASE_URL`` is not configured.

    Example:
        >>> adapter = get_adapter()
        >>> rows = await adapter.select("Store", "*")
        >>> await adapter.close()
    """
    settings = settings or get_settings()
    return AsyncPostgresAdapter(
        database_url=settings.database_url,
        jsonb_columns=jsonb_columns(schema),
    )
