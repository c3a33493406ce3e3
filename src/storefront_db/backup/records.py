"""Typed row records generated from the table catalog.

Each ``TableDef`` with declared columns gets a pydantic model that
validates rows on both sides of a snapshot: on export (before rows are
written to JSON) and on restore (after rows are read back).  Unknown
columns are rejected, timestamps are parsed back to ``datetime``, and
enum columns only accept their declared values.

Usage:
    from storefront_db.backup.records import record_model, coerce_rows

    Model = record_model(table_def)
    rows = coerce_rows(table_def, rows)   # raises RecordValidationError
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from storefront_db.backup.models import ColumnDef, TableDef

_PYTHON_TYPES: dict[str, Any] = {
    "text": str,
    "varchar": str,
    "integer": int,
    "double": float,
    "boolean": bool,
    "timestamp": datetime,
    "jsonb": Any,
    "text[]": list[str],
}

_models: dict[tuple, type[BaseModel]] = {}


class RecordValidationError(ValueError):
    """Raised when a row does not match its table's record model."""

    def __init__(self, table: str, index: int, error: ValidationError) -> None:
        self.table = table
        self.index = index
        self.error = error
        details = "; ".join(
            f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in error.errors()
        )
        super().__init__(f"{table} row {index}: {details}")


def _annotation(column: ColumnDef) -> Any:
    if column.type == "enum":
        annotation: Any = Literal[tuple(column.values)]
    else:
        annotation = _PYTHON_TYPES.get(column.type, Any)
    if column.nullable:
        annotation = Optional[annotation]
    return annotation


def record_model(table: TableDef) -> type[BaseModel]:
    """Return (and cache) the record model for ``table``."""
    key = (table.name, tuple((c.name, c.type, c.nullable, c.has_default) for c in table.columns))
    model = _models.get(key)
    if model is None:
        fields: dict[str, Any] = {}
        for column in table.columns:
            default = ... if column.required else None
            fields[column.name] = (_annotation(column), default)
        model = create_model(
            f"{table.name}Record",
            __config__=ConfigDict(extra="forbid"),
            **fields,
        )
        _models[key] = model
    return model


def coerce_rows(table: TableDef, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Validate snapshot rows and convert them to insertable Python values.

    Only the columns present in a row are kept, so database defaults
    still apply to columns the snapshot left out.

    Raises:
        RecordValidationError: On the first row that fails validation.
    """
    if not table.columns:
        return rows

    model = record_model(table)
    coerced: list[dict[str, Any]] = []
    for i, row in enumerate(rows):
        try:
            record = model.model_validate(row)
        except ValidationError as e:
            raise RecordValidationError(table.name, i, e) from e
        coerced.append(record.model_dump(exclude_unset=True))
    return coerced


def serialize_row(table: TableDef, row: dict[str, Any]) -> dict[str, Any]:
    """Validate an exported row and convert it to JSON-compatible values.

    Raises:
        RecordValidationError: If the row does not match the catalog.
    """
    if not table.columns:
        return row

    try:
        record = record_model(table).model_validate(row)
    except ValidationError as e:
        raise RecordValidationError(table.name, 0, e) from e
    return record.model_dump(mode="json", exclude_unset=True)


def find_invalid_rows(
    table: TableDef, rows: list[dict[str, Any]]
) -> list[RecordValidationError]:
    """Validate every row and collect the failures instead of stopping."""
    if not table.columns:
        return []

    model = record_model(table)
    failures: list[RecordValidationError] = []
    for i, row in enumerate(rows):
        try:
            model.model_validate(row)
        except ValidationError as e:
            failures.append(RecordValidationError(table.name, i, e))
    return failures
