"""Schema comparison using set operations.

Compares the columns declared in the catalog against the columns found
in the live database.  Pure logic -- no I/O, no database connections.

Usage:
    from storefront_db.catalog import STOREFRONT_SCHEMA
    from storefront_db.schema.comparator import expected_columns, validate_schema
    from storefront_db.schema.introspector import SchemaIntrospector

    async with SchemaIntrospector(database_url) as introspector:
        actual_columns = await introspector.get_column_names()

    result = validate_schema(actual_columns, expected_columns(STOREFRONT_SCHEMA))
    if not result.valid:
        print(result.format_report())
"""

from storefront_db.backup.models import BackupSchema
from storefront_db.schema.models import ColumnDiff, SchemaValidationResult


def expected_columns(schema: BackupSchema) -> dict[str, set[str]]:
    """Map each table name in ``schema`` to its declared column names."""
    return {table.name: set(table.column_names) for table in schema.tables}

def validate_schema(
    actual_columns: dict[str, set[str]],
    expected_columns: dict[str, set[str]],
) -> SchemaValidationResult:
    """Validate actual database schema against expected columns.

    Performs pure set operations to find:
    - Missing tables: Tables in *expected_columns* but not in *actual_columns*
    - Missing columns: Columns in *expected_columns* but not in the actual table
    - Extra tables: Tables in *actual_columns* but not in *expected_columns*
      (warning only -- does not affect ``valid`` status)

    Args:
        actual_columns: Dict mapping table name to set of column names,
            as returned by ``introspector.get_column_names()``.
        expected_columns: Dict mapping table name to set of expected column
            names, usually ``expected_columns(schema)``.

    Returns:
        ``SchemaValidationResult`` with:

        - ``valid``: ``True`` if no missing tables or columns
        - ``missing_tables``: List of table names missing from database
        - ``missing_columns``: List of ``ColumnDiff`` for missing columns
        - ``extra_tables``: List of extra tables in database (warning only)

    Examples:
        >>> # All tables and columns present
        >>> result = validate_schema(
        ...     {"users": {"id", "name"}},
        ...     {"users": {"id", "name"}},
        ... )
        >>> result.valid
        True

        >>> # Missing column detected
        >>> result = validate_schema(
        ...     {"users": {"id"}},
        ...     {"users": {"id", "name"}},
        ... )
        >>> result.valid
        False
        >>> result.missing_columns[0].column
        'name'

        >>> # Empty expected means everything is valid (extra tables only)
        >>> result = validate_schema({"users": {"id"}}, {})
        >>> result.valid
        True
    """
    actual_tables: set[str] = set(actual_columns.keys())
    expected_tables: set[str] = set(expected_columns.keys())

    # Tables in expected but not in actual
    missing_tables: list[str] = sorted(expected_tables - actual_tables)

    # Tables in actual but not in expected (warning only)
    extra_tables: list[str] = sorted(actual_tables - expected_tables)

    # Columns missing from tables that exist in both actual and expected
    missing_columns: list[ColumnDiff] = []
    common_tables: set[str] = expected_tables & actual_tables

    for table_name in sorted(common_tables):
        expected_cols: set[str] = expected_columns[table_name]
        actual_cols: set[str] = actual_columns[table_name]
        missing_cols: set[str] = expected_cols - actual_cols

        for col_name in sorted(missing_cols):
            missing_columns.append(
                ColumnDiff(
                    table=table_name,
                    column=col_name,
                    message=f"Column '{col_name}' missing from table '{table_name}'",
                )
            )

    is_valid: bool = len(missing_tables) == 0 and len(missing_columns) == 0

    return SchemaValidationResult(
        valid=is_valid,
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        extra_tables=extra_tables,
    )
