"""Schema introspection and drift detection.

Provides schema comparison (``validate_schema``, ``expected_columns``)
and live database introspection (``SchemaIntrospector``).

Usage:
    from storefront_db.schema import SchemaIntrospector, expected_columns, validate_schema
"""

from storefront_db.schema.comparator import expected_columns, validate_schema
from storefront_db.schema.introspector import SchemaIntrospector
from storefront_db.schema.models import ColumnDiff, SchemaValidationResult

__all__ = [
    "ColumnDiff",
    "SchemaIntrospector",
    "SchemaValidationResult",
    "expected_columns",
    "validate_schema",
]
