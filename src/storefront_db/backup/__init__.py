"""Dependency-ordered backup and restore.

Provides ``BackupSchema``-driven export, restore, and validation.  The
tables and their foreign keys are declared in a schema; the insertion
order is derived from them.

Usage:
    from storefront_db.backup import backup_database, restore_database, validate_snapshot
    from storefront_db.backup import BackupSchema, TableDef, ForeignKey
"""

from storefront_db.backup.backup_restore import (
    BackupNotFoundError,
    RestoreError,
    SnapshotValidationError,
    backup_database,
    export_tables,
    find_latest_backup,
    load_snapshot,
    restore_database,
    restore_latest,
    restore_snapshot,
    suspended_constraints,
    validate_snapshot,
)
from storefront_db.backup.models import (
    BackupSchema,
    ColumnDef,
    ForeignKey,
    Snapshot,
    TableDef,
)
from storefront_db.backup.ordering import (
    DependencyCycleError,
    check_order,
    dependency_order,
)
from storefront_db.backup.records import RecordValidationError

__all__ = [
    "BackupNotFoundError",
    "BackupSchema",
    "ColumnDef",
    "DependencyCycleError",
    "ForeignKey",
    "RecordValidationError",
    "RestoreError",
    "Snapshot",
    "SnapshotValidationError",
    "TableDef",
    "backup_database",
    "check_order",
    "dependency_order",
    "export_tables",
    "find_latest_backup",
    "load_snapshot",
    "restore_database",
    "restore_latest",
    "restore_snapshot",
    "suspended_constraints",
    "validate_snapshot",
]
