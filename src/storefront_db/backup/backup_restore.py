"""Dependency-ordered backup and restore driven by BackupSchema.

Backups are JSON snapshots: one object whose keys are table aliases and
whose values are the tables' rows.  Tables are exported and restored in
dependency order (parents before children, see ``backup.ordering``), and
restores run with foreign-key enforcement suspended for the loading
session so that rows can be reinserted with their original keys.

Usage:
    from storefront_db.backup.backup_restore import (
        backup_database,
        restore_database,
        restore_latest,
        validate_snapshot,
    )
    from storefront_db.catalog import STOREFRONT_SCHEMA

    # Backup
    path = await backup_database(adapter, STOREFRONT_SCHEMA)

    # Restore
    summary = await restore_database(adapter, STOREFRONT_SCHEMA, path)

    # Validate (sync -- local file read only)
    report = validate_snapshot(path, STOREFRONT_SCHEMA)
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from storefront_db.adapters.base import DatabaseClient
from storefront_db.backup.models import BackupSchema, Snapshot, TableDef
from storefront_db.backup.ordering import dependency_order, order_self_referencing_rows
from storefront_db.backup.records import (
    RecordValidationError,
    coerce_rows,
    find_invalid_rows,
    serialize_row,
)

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "db-backup-"
DEFAULT_BATCH_SIZE = 100

SUSPEND_CONSTRAINTS = "SET session_replication_role = 'replica'"
RESUME_CONSTRAINTS = "SET session_replication_role = 'origin'"

# Key values that can be compared across tables (JSON strings and numbers)
_SCALAR_KEY_TYPES = (str, int, float)


class BackupNotFoundError(FileNotFoundError):
    """Raised when no backup file can be located."""


class SnapshotValidationError(ValueError):
    """Raised when a snapshot fails validation before restore."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Invalid snapshot: {'; '.join(errors)}")


class RestoreError(Exception):
    """Raised when a batch insert fails and the restore is aborted.

    Batches inserted before the failure stay committed.
    """

    def __init__(self, table: str, batch_number: int, batch_count: int) -> None:
        self.table = table
        self.batch_number = batch_number
        self.batch_count = batch_count
        super().__init__(
            f"Restore failed on table '{table}' at batch {batch_number}/{batch_count}"
        )


# ----------------------------------------------------------------------
# Backup files
# ----------------------------------------------------------------------


def default_backup_dir() -> Path:
    return Path.cwd() / "backups"


def backup_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp for backup filenames, e.g. ``2024-06-01T00-00-00-000Z``.

    This is the ISO 8601 form with millisecond precision and every ``:``
    and ``.`` replaced by ``-``, so names sort lexically by time.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


def backup_filename(now: datetime | None = None) -> str:
    return f"{BACKUP_PREFIX}{backup_timestamp(now)}.json"


def find_latest_backup(backup_dir: str | Path | None = None) -> Path:
    """Return the lexically last ``db-backup-*.json`` file in ``backup_dir``.

    Raises:
        BackupNotFoundError: If the directory is missing or holds no backups.
    """
    directory = Path(backup_dir) if backup_dir is not None else default_backup_dir()
    if not directory.is_dir():
        raise BackupNotFoundError(f"Backup directory not found: {directory}")

    candidates = sorted(
        p for p in directory.glob(f"{BACKUP_PREFIX}*.json") if p.is_file()
    )
    if not candidates:
        raise BackupNotFoundError(f"No backup files found in {directory}")
    return candidates[-1]


# ----------------------------------------------------------------------
# Export
# ----------------------------------------------------------------------


def _serialize_rows(table: TableDef, rows: list[dict]) -> list[dict]:
    serialized: list[dict] = []
    for i, row in enumerate(rows):
        try:
            serialized.append(serialize_row(table, row))
        except RecordValidationError as e:
            logger.warning("Exporting %s row %d as read: %s", table.name, i, e)
            serialized.append(row)
    return serialized


async def export_tables(client: DatabaseClient, tables: list[TableDef]) -> Snapshot:
    """Read every table in ``tables`` into a snapshot.

    A table that cannot be read is logged and exported as an empty list;
    the export carries on with the remaining tables.

    Args:
        client: Database client implementing ``DatabaseClient`` Protocol.
        tables: Tables in dependency order.

    Returns:
        Snapshot with one entry per table, in input order.
    """
    snapshot = Snapshot()
    for table in tables:
        try:
            rows = await client.select(table.name, columns="*")
        except Exception as e:
            logger.error("Failed to export table %s: %s", table.name, e)
            snapshot.tables[table.alias] = []
            continue

        snapshot.tables[table.alias] = _serialize_rows(table, rows)
        logger.info("Exported %d rows from %s", len(rows), table.name)

    return snapshot


async def backup_database(
    client: DatabaseClient,
    schema: BackupSchema,
    backup_dir: str | Path | None = None,
    now: datetime | None = None,
) -> Path:
    """Export all tables to a new timestamped JSON backup file.

    The backup directory is created if missing.  The file is opened in
    exclusive-create mode; an existing file is never overwritten.

    Args:
        client: Database client implementing ``DatabaseClient`` Protocol.
        schema: Backup schema; tables are exported in dependency order.
        backup_dir: Target directory.  Defaults to ``./backups``.
        now: Timestamp for the filename.  Defaults to the current UTC time.

    Returns:
        Path to the created backup file.

    Example:
        path = await backup_database(adapter, STOREFRONT_SCHEMA)
        # backups/db-backup-2024-06-01T00-00-00-000Z.json
    """
    snapshot = await export_tables(client, dependency_order(schema))

    directory = Path(backup_dir) if backup_dir is not None else default_backup_dir()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename(now)

    with open(path, "x", encoding="utf-8") as f:
        json.dump(snapshot.tables, f, indent=2, default=str)

    logger.info("Backup written to %s", path)
    return path


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------


def _read_snapshot_file(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_snapshot(
    snapshot_or_path: Snapshot | dict | str | Path, schema: BackupSchema
) -> dict:
    """Validate snapshot format and data integrity.

    This function is **sync** -- it only reads a local JSON file with
    no database I/O.

    Args:
        snapshot_or_path: A ``Snapshot``, its raw dict, or a path to a
            backup JSON file.
        schema: Backup schema to validate against.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        and ``warnings`` (list[str]).

    Example:
        report = validate_snapshot("backups/db-backup-....json", schema)
        if report["errors"]:
            raise SnapshotValidationError(report["errors"])
    """
    errors: list[str] = []
    warnings: list[str] = []

    if isinstance(snapshot_or_path, Snapshot):
        data: Any = snapshot_or_path.tables
    elif isinstance(snapshot_or_path, (str, Path)):
        try:
            data = _read_snapshot_file(Path(snapshot_or_path))
        except FileNotFoundError:
            errors.append(f"Backup file not found: {snapshot_or_path}")
            return {"valid": False, "errors": errors, "warnings": warnings}
        except OSError as e:
            errors.append(f"Cannot read backup file: {e}")
            return {"valid": False, "errors": errors, "warnings": warnings}
        except json.JSONDecodeError as e:
            errors.append(f"Invalid JSON: {e}")
            return {"valid": False, "errors": errors, "warnings": warnings}
        except UnicodeDecodeError as e:
            errors.append(f"Backup file is not valid UTF-8: {e}")
            return {"valid": False, "errors": errors, "warnings": warnings}
    else:
        data = snapshot_or_path

    if not isinstance(data, dict):
        errors.append("Snapshot must be a JSON object keyed by table alias")
        return {"valid": False, "errors": errors, "warnings": warnings}

    for alias in data:
        if schema.by_alias(alias) is None:
            warnings.append(f"Unknown table alias: {alias}")

    # Collect PK values first so FK checks can look across tables
    pk_values: dict[str, set] = {}
    for table in schema.tables:
        if table.alias not in data:
            warnings.append(f"Missing table: {table.alias}")
            continue

        rows = data[table.alias]
        if not isinstance(rows, list):
            errors.append(f"{table.alias} must be a list of rows")
            continue

        seen: set = set()
        for i, row in enumerate(rows):
            if not isinstance(row, dict):
                errors.append(f"{table.alias} row {i} is not an object")
                continue
            if table.pk not in row:
                errors.append(f"{table.alias} row {i} missing '{table.pk}' field")
            elif row[table.pk] is None or row[table.pk] == "":
                errors.append(f"{table.alias} row {i} has empty '{table.pk}'")
            elif not isinstance(row[table.pk], _SCALAR_KEY_TYPES):
                errors.append(f"{table.alias} row {i} has non-scalar '{table.pk}'")
            elif row[table.pk] in seen:
                errors.append(
                    f"{table.alias} row {i} duplicates {table.pk} '{row[table.pk]}'"
                )
            else:
                seen.add(row[table.pk])

        for failure in find_invalid_rows(
            table, [r for r in rows if isinstance(r, dict)]
        ):
            errors.append(str(failure))

        pk_values[table.name] = seen

    # Orphaned FK values: reference not present in the snapshot
    for table in schema.tables:
        rows = data.get(table.alias)
        if not isinstance(rows, list):
            continue
        for fk in table.foreign_keys:
            target = schema.get(fk.table)
            if target is None or target.pk != fk.field:
                continue
            known = pk_values.get(fk.table)
            if known is None:
                continue
            for i, row in enumerate(rows):
                if not isinstance(row, dict):
                    continue
                value = row.get(fk.column)
                if value is None:
                    continue
                if not isinstance(value, _SCALAR_KEY_TYPES):
                    errors.append(f"{table.alias} row {i} has non-scalar '{fk.column}'")
                    continue
                if value not in known:
                    warnings.append(
                        f"Orphaned {table.alias} '{row.get(table.pk, 'unknown')}': "
                        f"{fk.column} '{value}' not in {target.alias}"
                    )

    valid = len(errors) == 0
    return {"valid": valid, "errors": errors, "warnings": warnings}


def load_snapshot(path: str | Path, schema: BackupSchema) -> Snapshot:
    """Read and validate a backup file.

    Raises:
        BackupNotFoundError: If the file does not exist.
        SnapshotValidationError: If the file fails ``validate_snapshot``.
    """
    path = Path(path)
    try:
        data = _read_snapshot_file(path)
    except FileNotFoundError as e:
        raise BackupNotFoundError(f"Backup file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise SnapshotValidationError([f"Invalid JSON: {e}"]) from e
    except UnicodeDecodeError as e:
        raise SnapshotValidationError([f"Backup file is not valid UTF-8: {e}"]) from e

    report = validate_snapshot(data, schema)
    for warning in report["warnings"]:
        logger.warning("%s: %s", path.name, warning)
    if report["errors"]:
        raise SnapshotValidationError(report["errors"])

    return Snapshot(tables=data)


# ----------------------------------------------------------------------
# Restore
# ----------------------------------------------------------------------


@asynccontextmanager
async def suspended_constraints(client: DatabaseClient) -> AsyncIterator[DatabaseClient]:
    """Pin one session and disable FK enforcement on it for the block.

    Yields the pinned client; every insert must go through it.  The
    resume statement runs exactly once when the block exits, whether it
    completes or raises.

    Example:
        async with suspended_constraints(adapter) as session:
            await session.insert_many("Category", rows)
    """
    async with client.pinned() as session:
        await session.execute(SUSPEND_CONSTRAINTS)
        logger.debug("Foreign key enforcement suspended")
        try:
            yield session
        finally:
            await session.execute(RESUME_CONSTRAINTS)
            logger.debug("Foreign key enforcement restored")


def chunked(rows: list[dict], size: int) -> list[list[dict]]:
    """Split ``rows`` into consecutive batches of at most ``size`` rows."""
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return [rows[i:i + size] for i in range(0, len(rows), size)]


def _prepare_rows(table: TableDef, rows: list[dict]) -> list[dict]:
    """Coerce snapshot rows to insertable values, parents before children."""
    return order_self_referencing_rows(table, coerce_rows(table, rows))


async def restore_snapshot(
    client: DatabaseClient,
    snapshot: Snapshot,
    tables: list[TableDef],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> dict[str, int]:
    """Insert snapshot rows table by table, in batches.

    All rows are validated and ordered before the first insert.  Inserts
    then run sequentially inside ``suspended_constraints``: one
    ``insert_many`` call per batch, tables in the given order.

    Args:
        client: Database client implementing ``DatabaseClient`` Protocol.
        snapshot: Rows keyed by table alias.
        tables: Tables in dependency order.
        batch_size: Maximum rows per ``insert_many`` call.

    Returns:
        Rows inserted per table alias (0 for skipped tables).

    Raises:
        RestoreError: When a batch fails; earlier batches stay committed.
        RecordValidationError: When a row does not match its table.
        DependencyCycleError: When self-referencing rows form a loop.
    """
    if batch_size < 1:
        raise ValueError(f"Batch size must be at least 1, got {batch_size}")

    known = {t.alias for t in tables}
    for alias in snapshot.tables:
        if alias not in known:
            logger.warning("Ignoring unknown table alias in snapshot: %s", alias)

    plan: list[tuple[TableDef, list[list[dict]]]] = []
    summary: dict[str, int] = {}
    for table in tables:
        rows = snapshot.rows(table.alias)
        summary[table.alias] = 0
        if not rows:
            logger.info("Skipping %s: no rows in snapshot", table.name)
            continue
        plan.append((table, chunked(_prepare_rows(table, rows), batch_size)))

    async with suspended_constraints(client) as session:
        for table, batches in plan:
            count = len(batches)
            for number, batch in enumerate(batches, start=1):
                try:
                    await session.insert_many(table.name, batch)
                except Exception as e:
                    logger.error(
                        "Restore failed on %s batch %d/%d: %s",
                        table.name, number, count, e,
                    )
                    raise RestoreError(table.name, number, count) from e
                summary[table.alias] += len(batch)
                logger.debug("Inserted %s batch %d/%d", table.name, number, count)
            logger.info("Restored %d rows into %s", summary[table.alias], table.name)

    return summary


async def restore_database(
    client: DatabaseClient,
    schema: BackupSchema,
    backup_path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> dict[str, int]:
    """Restore a backup file into the database.

    Intended for an empty database with the schema already in place;
    rows keep the primary keys they were exported with.

    Args:
        client: Database client implementing ``DatabaseClient`` Protocol.
        schema: Backup schema; tables are restored in dependency order.
        backup_path: Path to the backup JSON file.
        batch_size: Maximum rows per insert call.

    Returns:
        Rows inserted per table alias.

    Raises:
        BackupNotFoundError: If the file does not exist.
        SnapshotValidationError: If the file fails validation.
        RestoreError: If a batch insert fails.

    Example:
        summary = await restore_database(
            adapter,
            STOREFRONT_SCHEMA,
            "backups/db-backup-2024-06-01T00-00-00-000Z.json",
        )
    """
    snapshot = load_snapshot(backup_path, schema)
    logger.info("Restoring from %s", backup_path)
    return await restore_snapshot(
        client, snapshot, dependency_order(schema), batch_size=batch_size
    )


async def restore_latest(
    client: DatabaseClient,
    schema: BackupSchema,
    backup_dir: str | Path | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> dict[str, int]:
    """Restore the newest ``db-backup-*.json`` file in ``backup_dir``."""
    path = find_latest_backup(backup_dir)
    return await restore_database(client, schema, path, batch_size=batch_size)
