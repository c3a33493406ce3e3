"""storefront-db: backup, restore, and maintenance for the storefront database.

Exports every table of the e-commerce schema to a JSON snapshot and loads
snapshots back in foreign-key dependency order, in batches, with
constraint enforcement suspended for the loading session.

Usage:
    from storefront_db import get_adapter, STOREFRONT_SCHEMA
    from storefront_db import backup_database, restore_latest, validate_snapshot
    from storefront_db import drop_all, create_schema
"""

__version__ = "0.1.0"

# Adapters
from storefront_db.adapters.base import DatabaseClient
from storefront_db.adapters.postgres import AsyncPostgresAdapter

# Backup
from storefront_db.backup import (
    BackupNotFoundError,
    BackupSchema,
    ColumnDef,
    DependencyCycleError,
    ForeignKey,
    RestoreError,
    Snapshot,
    SnapshotValidationError,
    TableDef,
    backup_database,
    dependency_order,
    restore_database,
    restore_latest,
    validate_snapshot,
)

# Catalog
from storefront_db.catalog import RESTORE_ORDER, STOREFRONT_SCHEMA

# Config
from storefront_db.config import ConfigurationError, Settings, load_settings

# Factory
from storefront_db.factory import get_adapter

# Maintenance
from storefront_db.maintenance import create_schema, drop_all

# Schema (comparator)
from storefront_db.schema.comparator import expected_columns, validate_schema

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncPostgresAdapter",
    # Backup
    "BackupNotFoundError",
    "BackupSchema",
    "ColumnDef",
    "DependencyCycleError",
    "ForeignKey",
    "RestoreError",
    "Snapshot",
    "SnapshotValidationError",
    "TableDef",
    "backup_database",
    "dependency_order",
    "restore_database",
    "restore_latest",
    "validate_snapshot",
    # Catalog
    "RESTORE_ORDER",
    "STOREFRONT_SCHEMA",
    # Config
    "ConfigurationError",
    "Settings",
    "load_settings",
    # Factory
    "get_adapter",
    # Maintenance
    "create_schema",
    "drop_all",
    # Schema
    "expected_columns",
    "validate_schema",
]
