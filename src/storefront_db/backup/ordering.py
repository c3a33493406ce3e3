"""Dependency ordering of tables for backup and restore.

Tables are ordered so that every table comes after the tables it
references.  The order is computed with Kahn's algorithm over the
declared foreign keys; the schema's own table order (the documented
manual order) breaks ties, so a schema already listed in a valid order
comes back unchanged.

Self-references (e.g. ``Category.parentId``) are ignored for table
ordering.  Rows inside a self-referencing table are ordered separately
by ``order_self_referencing_rows``.

Usage:
    from storefront_db.backup.ordering import dependency_order

    tables = dependency_order(schema)   # list[TableDef], parents first
"""

import heapq
from typing import Any

from storefront_db.backup.models import BackupSchema, TableDef


class DependencyCycleError(Exception):
    """Raised when foreign keys form a cycle other than a self-reference."""

    def __init__(self, members: list[str]) -> None:
        self.members = members
        super().__init__(
            f"Foreign key cycle between tables: {', '.join(members)}"
        )


def dependency_order(schema: BackupSchema) -> list[TableDef]:
    """Topologically sort the schema's tables, parents first.

    Args:
        schema: Backup schema; its table order breaks ties.

    Returns:
        Tables in insertion order.

    Raises:
        DependencyCycleError: If the foreign keys (self-references
            excluded) contain a cycle.
        ValueError: If a foreign key references a table missing from
            the schema.

    Example:
        >>> [t.alias for t in dependency_order(schema)]
        ['users', 'addresses', 'orders']
    """
    position = {t.name: i for i, t in enumerate(schema.tables)}

    for table in schema.tables:
        for ref in table.depends_on():
            if ref not in position:
                raise ValueError(
                    f"Table '{table.name}' references unknown table '{ref}'"
                )

    # in_degree: number of distinct tables each table still waits on
    in_degree = {t.name: len(t.depends_on()) for t in schema.tables}
    dependents: dict[str, list[str]] = {t.name: [] for t in schema.tables}
    for table in schema.tables:
        for ref in table.depends_on():
            dependents[ref].append(table.name)

    ready = [position[name] for name, deg in in_degree.items() if deg == 0]
    heapq.heapify(ready)

    ordered: list[TableDef] = []
    while ready:
        table = schema.tables[heapq.heappop(ready)]
        ordered.append(table)
        for child in dependents[table.name]:
            in_degree[child] -= 1
            if in_degree[child] == 0:
                heapq.heappush(ready, position[child])

    if len(ordered) != len(schema.tables):
        remaining = [t.name for t in schema.tables if in_degree[t.name] > 0]
        raise DependencyCycleError(remaining)

    return ordered


def check_order(order: list[str], schema: BackupSchema) -> list[str]:
    """Report foreign keys that the given table order violates.

    Args:
        order: Table names or aliases in proposed insertion order.
        schema: Backup schema with the foreign keys to check.

    Returns:
        One message per violated (table, referenced table) pair.  Empty
        when the order is a valid insertion order.
    """
    index: dict[str, int] = {}
    for i, key in enumerate(order):
        table = schema.get(key) or schema.by_alias(key)
        if table is not None:
            index[table.name] = i

    problems: list[str] = []
    for table in schema.tables:
        if table.name not in index:
            problems.append(f"{table.name} is missing from the order")
            continue
        for ref in sorted(table.depends_on()):
            if ref in index and index[ref] > index[table.name]:
                problems.append(f"{table.name} is placed before {ref}")
    return problems


def order_self_referencing_rows(
    table: TableDef, rows: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Order rows so a parent row precedes the rows that reference it.

    Only references to rows present in ``rows`` count; a reference to a
    row outside the list (or null) makes the row a root.  Rows keep
    their original relative order wherever the hierarchy allows.

    Raises:
        DependencyCycleError: If the rows reference each other in a loop.
    """
    refs = table.self_references
    if not refs or len(rows) < 2:
        return rows

    by_pk = {row.get(table.pk): i for i, row in enumerate(rows)}

    parents: list[set[int]] = []
    for i, row in enumerate(rows):
        wanted: set[int] = set()
        for fk in refs:
            parent = by_pk.get(row.get(fk.column))
            if parent is not None and parent != i:
                wanted.add(parent)
        parents.append(wanted)

    children: list[list[int]] = [[] for _ in rows]
    pending = [len(p) for p in parents]
    for i, wanted in enumerate(parents):
        for parent in wanted:
            children[parent].append(i)

    ready = [i for i, count in enumerate(pending) if count == 0]
    heapq.heapify(ready)
    ordered: list[int] = []
    while ready:
        i = heapq.heappop(ready)
        ordered.append(i)
        for child in children[i]:
            pending[child] -= 1
            if pending[child] == 0:
                heapq.heappush(ready, child)

    if len(ordered) != len(rows):
        stuck = [str(rows[i].get(table.pk)) for i, n in enumerate(pending) if n > 0]
        raise DependencyCycleError([f"{table.name}({pk})" for pk in stuck])

    return [rows[i] for i in ordered]
