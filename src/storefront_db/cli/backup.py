"""Backup, restore, and snapshot validation commands.

Registered on the ``storefront-db`` CLI (see ``storefront_db.cli``).

Usage:
    storefront-db backup
    storefront-db restore
    storefront-db restore backups/db-backup-2024-06-01T00-00-00-000Z.json
    storefront-db --batch-size 500 restore
    storefront-db validate
"""

import argparse
import asyncio
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from storefront_db.backup.backup_restore import (
    backup_database,
    find_latest_backup,
    restore_database,
    validate_snapshot,
)
from storefront_db.catalog import STOREFRONT_SCHEMA
from storefront_db.config import (
    BackupSettings,
    ConfigurationError,
    load_backup_settings,
    load_settings,
)
from storefront_db.factory import get_adapter

console = Console()


def load_cli_settings(args: argparse.Namespace, loader=load_settings) -> BackupSettings:
    """Load settings with ``--backup-dir`` / ``--batch-size`` overrides.

    ``loader`` is ``load_settings`` (requires ``DATABASE_URL``) or
    ``load_backup_settings`` for commands that only read backup files.

    Raises:
        ConfigurationError: If ``DATABASE_URL`` is missing or a value is invalid.
    """
    overrides = {}
    if getattr(args, "backup_dir", None):
        overrides["backup_dir"] = Path(args.backup_dir)
    if getattr(args, "batch_size", None) is not None:
        overrides["batch_size"] = args.batch_size
    settings = loader(**overrides)
    if not getattr(args, "verbose", False):
        logging.getLogger().setLevel(settings.log_level)
    return settings


def _counts_table(title: str, counts: dict[str, int]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    for alias, count in counts.items():
        table.add_row(alias, str(count))
    table.add_row("[bold]total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    return table


async def _async_backup(args: argparse.Namespace) -> int:
    """Async implementation for backup command.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        settings = load_cli_settings(args)
    except ConfigurationError as e:
        console.print(f"[bold red]x[/bold red] Configuration error: {e}")
        return 1

    adapter = get_adapter(settings)
    try:
        path = await backup_database(
            adapter, STOREFRONT_SCHEMA, backup_dir=settings.backup_dir
        )
    except Exception as e:
        console.print(f"[bold red]x[/bold red] Backup failed: {e}")
        return 1
    finally:
        await adapter.close()

    console.print(f"[bold green]v[/bold green] Backup written to [cyan]{path}[/cyan]")
    return 0


async def _async_restore(args: argparse.Namespace) -> int:
    """Async implementation for restore command.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        settings = load_cli_settings(args)
    except ConfigurationError as e:
        console.print(f"[bold red]x[/bold red] Configuration error: {e}")
        return 1

    adapter = get_adapter(settings)
    try:
        path = (
            Path(args.backup_path)
            if args.backup_path
            else find_latest_backup(settings.backup_dir)
        )
        console.print(f"Restoring from [cyan]{path}[/cyan]", style="dim")
        summary = await restore_database(
            adapter, STOREFRONT_SCHEMA, path, batch_size=settings.batch_size
        )
    except Exception as e:
        console.print(f"[bold red]x[/bold red] Restore failed: {e}")
        return 1
    finally:
        await adapter.close()

    console.print(_counts_table("Restored rows", summary))
    console.print("[bold green]v[/bold green] Restore complete")
    return 0


def cmd_backup(args: argparse.Namespace) -> int:
    """Export every table to a new backup file.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_backup(args))


def cmd_restore(args: argparse.Namespace) -> int:
    """Restore a backup file (newest in the backup directory if omitted).

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_restore(args))


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a backup file without touching the database.

    Returns:
        0 if the backup is valid (warnings allowed), 1 otherwise.
    """
    try:
        settings = load_cli_settings(args, loader=load_backup_settings)
    except ConfigurationError as e:
        console.print(f"[bold red]x[/bold red] Configuration error: {e}")
        return 1

    try:
        path = (
            Path(args.backup_path)
            if args.backup_path
            else find_latest_backup(settings.backup_dir)
        )
    except FileNotFoundError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    console.print(f"Validating: [cyan]{path}[/cyan]")
    result = validate_snapshot(path, STOREFRONT_SCHEMA)

    if result["errors"]:
        console.print(f"\n[red]Found {len(result['errors'])} errors:[/red]")
        for error in result["errors"]:
            console.print(f"  - {error}")

    if result["warnings"]:
        console.print(f"\n[yellow]Found {len(result['warnings'])} warnings:[/yellow]")
        for warning in result["warnings"]:
            console.print(f"  - {warning}")

    if result["valid"]:
        suffix = " (with warnings)" if result["warnings"] else ""
        console.print(f"\n[bold green]v[/bold green] Backup is valid{suffix}")
        return 0

    console.print("\n[bold red]x[/bold red] Backup is invalid")
    return 1
