"""Backup schema models for declarative table hierarchy.

Projects declare their tables, columns, and FK relationships; the
backup/restore engine derives the insertion order and the per-table
record models from these declarations.

Usage:
    from storefront_db.backup.models import BackupSchema, ColumnDef, ForeignKey, TableDef

    schema = BackupSchema(tables=[
        TableDef(name="Author", alias="authors", columns=[ColumnDef(name="id")]),
        TableDef(
            name="Book",
            alias="books",
            columns=[ColumnDef(name="id"), ColumnDef(name="authorId")],
            foreign_keys=[ForeignKey(column="authorId", table="Author")],
        ),
    ])
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

FKAction = Literal["cascade", "restrict", "set null", "no action"]


class ForeignKey(BaseModel):
    """Foreign key edge from a column of this table to another table."""

    column: str                         # FK column in this table
    table: str                          # referenced table name
    field: str = "id"                   # referenced column
    on_update: FKAction = "no action"
    on_delete: FKAction = "no action"
    name: str | None = None             # constraint name, if declared


class ColumnDef(BaseModel):
    """A column as stored in snapshots.

    ``type`` is a SQL type tag: ``text``, ``varchar``, ``integer``,
    ``double``, ``boolean``, ``timestamp``, ``jsonb``, ``text[]`` or
    ``enum``.  Enum columns carry their allowed ``values``.
    """

    name: str
    type: str = "text"
    nullable: bool = True
    has_default: bool = False
    values: list[str] = Field(default_factory=list)

    @property
    def required(self) -> bool:
        """True if a row must provide this column on insert."""
        return not self.nullable and not self.has_default


class TableDef(BaseModel):
    """Definition of a table for backup/restore operations."""

    name: str                                       # SQL table name
    alias: str                                      # key in the snapshot file
    pk: str = "id"                                  # primary key column
    columns: list[ColumnDef] = Field(default_factory=list)
    foreign_keys: list[ForeignKey] = Field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def jsonb_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.type == "jsonb"]

    @property
    def self_references(self) -> list[ForeignKey]:
        """Foreign keys pointing back at this same table."""
        return [fk for fk in self.foreign_keys if fk.table == self.name]

    def depends_on(self) -> set[str]:
        """Names of other tables this table references."""
        return {fk.table for fk in self.foreign_keys if fk.table != self.name}


class BackupSchema(BaseModel):
    """Declarative backup schema.

    Table order is the documented manual order; it is used to break ties
    when the dependency order is computed (see ``backup.ordering``).
    """

    tables: list[TableDef]

    @model_validator(mode="after")
    def _check_unique_names(self) -> "BackupSchema":
        names = [t.name for t in self.tables]
        aliases = [t.alias for t in self.tables]
        if len(set(names)) != len(names):
            raise ValueError("Duplicate table names in backup schema")
        if len(set(aliases)) != len(aliases):
            raise ValueError("Duplicate table aliases in backup schema")
        return self

    def get(self, name: str) -> TableDef | None:
        """Find a TableDef by table name."""
        for t in self.tables:
            if t.name == name:
                return t
        return None

    def by_alias(self, alias: str) -> TableDef | None:
        """Find a TableDef by snapshot alias."""
        for t in self.tables:
            if t.alias == alias:
                return t
        return None

    @property
    def aliases(self) -> list[str]:
        return [t.alias for t in self.tables]


class Snapshot(BaseModel):
    """Exported table contents keyed by table alias, in export order."""

    tables: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    def rows(self, alias: str) -> list[dict[str, Any]] | None:
        """Rows for ``alias``, or ``None`` when the alias is absent."""
        return self.tables.get(alias)

    def counts(self) -> dict[str, int]:
        return {alias: len(rows) for alias, rows in self.tables.items()}
