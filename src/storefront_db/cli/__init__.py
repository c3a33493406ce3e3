"""Command line interface for the storefront database.

Usage:
    storefront-db backup
    storefront-db restore [FILE]
    storefront-db validate [FILE]
    storefront-db drop [--yes]
    storefront-db init
    storefront-db check

Commands:
    backup    - Export every table to backups/db-backup-<timestamp>.json
    restore   - Load a backup (newest if FILE is omitted) into the database
    validate  - Check a backup file against the table catalog
    drop      - Drop every table and enum type in the public schema
    init      - Create enum types, tables, and indexes from schema.sql
    check     - Compare the live database columns with the catalog

Configuration comes from ``DATABASE_URL`` (environment or ``.env``).
"""

import argparse
import asyncio
import logging
import sys

from rich.logging import RichHandler

from storefront_db.catalog import STOREFRONT_SCHEMA
from storefront_db.cli.backup import (
    cmd_backup,
    cmd_restore,
    cmd_validate,
    console,
    load_cli_settings,
)
from storefront_db.config import ConfigurationError
from storefront_db.factory import get_adapter
from storefront_db.maintenance import create_schema, drop_all
from storefront_db.schema.comparator import expected_columns, validate_schema
from storefront_db.schema.introspector import SchemaIntrospector


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


# ============================================================================
# Async implementations
# ============================================================================


async def _async_drop(args: argparse.Namespace) -> int:
    """Async implementation for drop command.

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
        await drop_all(adapter)
    except Exception as e:
        console.print(f"[bold red]x[/bold red] Drop failed: {e}")
        return 1
    finally:
        await adapter.close()

    console.print("[bold green]v[/bold green] Dropped all tables and types")
    return 0


async def _async_init(args: argparse.Namespace) -> int:
    """Async implementation for init command.

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
        count = await create_schema(adapter)
    except Exception as e:
        console.print(f"[bold red]x[/bold red] Schema creation failed: {e}")
        return 1
    finally:
        await adapter.close()

    console.print(f"[bold green]v[/bold green] Applied {count} schema statements")
    return 0


async def _async_check(args: argparse.Namespace) -> int:
    """Async implementation for check command.

    Returns:
        0 when every catalog table and column exists, 1 otherwise.
    """
    try:
        settings = load_cli_settings(args)
    except ConfigurationError as e:
        console.print(f"[bold red]x[/bold red] Configuration error: {e}")
        return 1

    console.print("Introspecting database...", style="dim")
    try:
        async with SchemaIntrospector(settings.database_url) as introspector:
            await introspector.test_connection()
            actual = await introspector.get_column_names()
    except Exception as e:
        console.print(f"[bold red]x[/bold red] Failed to connect to database: {e}")
        return 1

    result = validate_schema(actual, expected_columns(STOREFRONT_SCHEMA))
    console.print(result.format_report())
    return 0 if result.valid else 1


# ============================================================================
# Command handlers
# ============================================================================


def cmd_drop(args: argparse.Namespace) -> int:
    """Drop every table and enum type after confirmation.

    Wraps the async implementation with ``asyncio.run()``.
    """
    if not args.yes:
        console.print(
            "[bold yellow]This drops every table and enum type in the "
            "public schema. It cannot be undone.[/bold yellow]"
        )
        response = input("Continue? [y/N] ")
        if response.lower() not in ["y", "yes"]:
            console.print("Cancelled.")
            return 0
    return asyncio.run(_async_drop(args))


def cmd_init(args: argparse.Namespace) -> int:
    """Apply the bundled schema.sql.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_init(args))


def cmd_check(args: argparse.Namespace) -> int:
    """Compare live columns with the catalog.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_check(args))


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront-db",
        description="Backup, restore, and maintenance for the storefront database",
    )

    # Global options
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Rows per insert call during restore (default: 100, env BACKUP_BATCH_SIZE)",
    )
    parser.add_argument(
        "--backup-dir",
        default=None,
        help="Directory for backup files (default: ./backups, env BACKUP_DIR)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every batch",
    )

    subparsers = parser.add_subparsers(dest="command")

    # backup command
    p_backup = subparsers.add_parser("backup", help="Export every table to a backup file")
    p_backup.set_defaults(func=cmd_backup)

    # restore command
    p_restore = subparsers.add_parser("restore", help="Restore a backup file")
    p_restore.add_argument(
        "backup_path",
        nargs="?",
        help="Backup file (default: newest db-backup-*.json in the backup directory)",
    )
    p_restore.set_defaults(func=cmd_restore)

    # validate command
    p_validate = subparsers.add_parser("validate", help="Validate a backup file")
    p_validate.add_argument(
        "backup_path",
        nargs="?",
        help="Backup file (default: newest db-backup-*.json in the backup directory)",
    )
    p_validate.set_defaults(func=cmd_validate)

    # drop command
    p_drop = subparsers.add_parser("drop", help="Drop every table and enum type")
    p_drop.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_drop.set_defaults(func=cmd_drop)

    # init command
    p_init = subparsers.add_parser("init", help="Create the schema from schema.sql")
    p_init.set_defaults(func=cmd_init)

    # check command
    p_check = subparsers.add_parser("check", help="Compare live columns with the catalog")
    p_check.set_defaults(func=cmd_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.
    Without a command, prints usage and exits successfully.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
