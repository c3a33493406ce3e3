"""Tests for batched, dependency-ordered restore with suspended constraints."""

import logging
from datetime import datetime, timezone

import pytest

from conftest import FakeClient, chain_schema, storefront_rows
from storefront_db.backup.backup_restore import (
    RESUME_CONSTRAINTS,
    SUSPEND_CONSTRAINTS,
    BackupNotFoundError,
    RestoreError,
    SnapshotValidationError,
    backup_database,
    chunked,
    restore_database,
    restore_latest,
    restore_snapshot,
    suspended_constraints,
)
from storefront_db.backup.models import Snapshot
from storefront_db.backup.ordering import DependencyCycleError, dependency_order
from storefront_db.backup.records import RecordValidationError
from storefront_db.catalog import STOREFRONT_SCHEMA


def _rows(prefix: str, count: int) -> list[dict]:
    return [{"id": f"{prefix}{i}"} for i in range(count)]


def _storefront_snapshot() -> Snapshot:
    rows = storefront_rows()
    return Snapshot(tables={t.alias: rows[t.name] for t in STOREFRONT_SCHEMA.tables})


# ------------------------------------------------------------------
# Constraint suspension scope
# ------------------------------------------------------------------


class TestSuspendedConstraints:
    """Toggle statements wrap the block on one pinned session."""

    def test_statements_verbatim(self):
        assert SUSPEND_CONSTRAINTS == "SET session_replication_role = 'replica'"
        assert RESUME_CONSTRAINTS == "SET session_replication_role = 'origin'"

    async def test_suspend_then_resume(self, fake_client):
        async with suspended_constraints(fake_client) as session:
            await session.insert_many("t1", [{"id": "a"}])
        assert fake_client.calls == [
            ("execute", SUSPEND_CONSTRAINTS),
            ("insert_many", "t1", 1),
            ("execute", RESUME_CONSTRAINTS),
        ]
        assert fake_client.pinned_count == 1

    async def test_resume_runs_when_block_raises(self, fake_client):
        with pytest.raises(KeyError):
            async with suspended_constraints(fake_client):
                raise KeyError("boom")
        assert fake_client.executed == [SUSPEND_CONSTRAINTS, RESUME_CONSTRAINTS]


# ------------------------------------------------------------------
# Batching
# ------------------------------------------------------------------


class TestBatching:
    """Fixed-size sequential batches."""

    def test_chunked(self):
        assert [len(b) for b in chunked(_rows("r", 250), 100)] == [100, 100, 50]

    def test_chunked_rejects_zero(self):
        with pytest.raises(ValueError):
            chunked([], 0)

    async def test_250_rows_in_three_calls(self, fake_client):
        schema = chain_schema(1)
        snapshot = Snapshot(tables={"a1": _rows("r", 250)})
        summary = await restore_snapshot(fake_client, snapshot, schema.tables, batch_size=100)
        assert fake_client.inserts == [("t1", 100), ("t1", 100), ("t1", 50)]
        assert summary == {"a1": 250}

    async def test_rows_keep_snapshot_order(self, fake_client):
        schema = chain_schema(1)
        rows = _rows("r", 7)
        await restore_snapshot(fake_client, Snapshot(tables={"a1": rows}), schema.tables, batch_size=3)
        assert [r["id"] for r in fake_client.tables["t1"]] == [r["id"] for r in rows]

    async def test_default_batch_size_is_100(self, fake_client):
        schema = chain_schema(1)
        await restore_snapshot(fake_client, Snapshot(tables={"a1": _rows("r", 101)}), schema.tables)
        assert fake_client.inserts == [("t1", 100), ("t1", 1)]

    async def test_invalid_batch_size(self, fake_client):
        with pytest.raises(ValueError):
            await restore_snapshot(fake_client, Snapshot(), chain_schema(1).tables, batch_size=0)
        assert fake_client.calls == []


# ------------------------------------------------------------------
# Failure handling
# ------------------------------------------------------------------


class TestRestoreFailure:
    """A failing batch aborts the restore after constraints are restored."""

    async def test_failure_in_table_3_of_7_resumes_once(self):
        schema = chain_schema(7)
        snapshot = Snapshot(tables={f"a{i}": _rows(f"t{i}-", 2) for i in range(1, 8)})
        client = FakeClient(fail_on=("t3", 1))

        with pytest.raises(RestoreError) as exc_info:
            await restore_snapshot(client, snapshot, schema.tables)

        assert client.executed.count(RESUME_CONSTRAINTS) == 1
        assert client.calls[-1] == ("execute", RESUME_CONSTRAINTS)
        assert [t for t, _ in client.inserts] == ["t1", "t2", "t3"]
        error = exc_info.value
        assert (error.table, error.batch_number, error.batch_count) == ("t3", 1, 1)
        assert isinstance(error.__cause__, RuntimeError)

    async def test_prior_batches_stay_inserted(self):
        schema = chain_schema(1)
        client = FakeClient(fail_on=("t1", 3))
        with pytest.raises(RestoreError, match="batch 3/3"):
            await restore_snapshot(client, Snapshot(tables={"a1": _rows("r", 250)}), schema.tables)
        assert len(client.tables["t1"]) == 200

    async def test_failure_logged_with_context(self, caplog):
        client = FakeClient(fail_on=("t2", 1))
        schema = chain_schema(2)
        snapshot = Snapshot(tables={"a1": _rows("a", 1), "a2": _rows("b", 1)})
        with pytest.raises(RestoreError):
            await restore_snapshot(client, snapshot, schema.tables)
        assert "Restore failed on t2 batch 1/1" in caplog.text

    async def test_invalid_rows_rejected_before_any_statement(self, fake_client):
        schema = chain_schema(2)
        snapshot = Snapshot(tables={"a1": _rows("a", 1), "a2": [{"id": "b", "bogus": True}]})
        with pytest.raises(RecordValidationError):
            await restore_snapshot(fake_client, snapshot, schema.tables)
        assert fake_client.calls == []

    async def test_self_reference_cycle_rejected_before_any_statement(self, fake_client):
        snapshot = Snapshot(
            tables={
                "categories": [
                    {"id": "a", "name": "A", "parentId": "b"},
                    {"id": "b", "name": "B", "parentId": "a"},
                ]
            }
        )
        with pytest.raises(DependencyCycleError):
            await restore_snapshot(fake_client, snapshot, dependency_order(STOREFRONT_SCHEMA))
        assert fake_client.calls == []


# ------------------------------------------------------------------
# Ordering and skips
# ------------------------------------------------------------------


class TestRestoreOrdering:
    """Parents before children, absent tables skipped."""

    async def test_every_parent_finishes_before_child_starts(self, fake_client):
        await restore_snapshot(
            fake_client, _storefront_snapshot(), dependency_order(STOREFRONT_SCHEMA), batch_size=1
        )
        tables = [t for t, _ in fake_client.inserts]
        for table in STOREFRONT_SCHEMA.tables:
            if table.name not in tables:
                continue
            first_child = tables.index(table.name)
            for parent in table.depends_on():
                if parent in tables:
                    last_parent = len(tables) - 1 - tables[::-1].index(parent)
                    assert last_parent < first_child, f"{parent} after {table.name}"

    async def test_missing_carts_skipped(self, fake_client, caplog):
        caplog.set_level(logging.INFO)
        snapshot = _storefront_snapshot()
        del snapshot.tables["carts"]
        summary = await restore_snapshot(fake_client, snapshot, dependency_order(STOREFRONT_SCHEMA))
        assert "Cart" not in [t for t, _ in fake_client.inserts]
        assert summary["carts"] == 0
        assert "Skipping Cart: no rows in snapshot" in caplog.text

    async def test_empty_tables_skipped(self, fake_client):
        await restore_snapshot(fake_client, _storefront_snapshot(), dependency_order(STOREFRONT_SCHEMA))
        inserted = {t for t, _ in fake_client.inserts}
        assert "PasswordResetToken" not in inserted
        assert "TwoFactorToken" not in inserted

    async def test_unknown_alias_warned_and_ignored(self, fake_client, caplog):
        snapshot = Snapshot(tables={"a1": _rows("r", 1), "wishlists": _rows("w", 3)})
        await restore_snapshot(fake_client, snapshot, chain_schema(1).tables)
        assert fake_client.inserts == [("t1", 1)]
        assert "Ignoring unknown table alias in snapshot: wishlists" in caplog.text

    async def test_categories_inserted_parent_first(self, fake_client):
        snapshot = Snapshot(
            tables={
                "categories": [
                    {"id": "CAT_3", "name": "Leaf", "parentId": "CAT_2"},
                    {"id": "CAT_2", "name": "Mid", "parentId": "CAT_1"},
                    {"id": "CAT_1", "name": "Root", "parentId": None},
                ]
            }
        )
        await restore_snapshot(fake_client, snapshot, dependency_order(STOREFRONT_SCHEMA))
        assert [r["id"] for r in fake_client.tables["Category"]] == ["CAT_1", "CAT_2", "CAT_3"]

    async def test_rows_coerced_before_insert(self, fake_client):
        snapshot = Snapshot(
            tables={
                "verificationTokens": [
                    {"identifier": "a@b.c", "token": "t1", "expires": "2024-06-01T00:00:00"}
                ]
            }
        )
        await restore_snapshot(fake_client, snapshot, dependency_order(STOREFRONT_SCHEMA))
        assert fake_client.tables["VerificationToken"][0]["expires"] == datetime(2024, 6, 1)


# ------------------------------------------------------------------
# File-level restore
# ------------------------------------------------------------------


class TestRestoreDatabase:
    """Backup file in, rows out."""

    async def test_round_trip(self, tmp_path):
        source = FakeClient(storefront_rows())
        path = await backup_database(source, STOREFRONT_SCHEMA, backup_dir=tmp_path)

        target = FakeClient()
        summary = await restore_database(target, STOREFRONT_SCHEMA, path)

        for table in STOREFRONT_SCHEMA.tables:
            expected = source.tables.get(table.name, [])
            restored = target.tables.get(table.name, [])
            assert summary[table.alias] == len(expected)
            assert sorted(r[table.pk] for r in restored) == sorted(r[table.pk] for r in expected)
        assert target.executed == [SUSPEND_CONSTRAINTS, RESUME_CONSTRAINTS]

    async def test_invalid_file_touches_nothing(self, tmp_path, fake_client):
        path = tmp_path / "db-backup-bad.json"
        path.write_text('{"tags": [{"name": "no id"}]}')
        with pytest.raises(SnapshotValidationError):
            await restore_database(fake_client, STOREFRONT_SCHEMA, path)
        assert fake_client.calls == []

    async def test_restore_latest_uses_newest_file(self, tmp_path, fake_client):
        (tmp_path / "db-backup-2024-01-01T00-00-00-000Z.json").write_text(
            '{"tags": [{"id": "OLD", "name": "old"}]}'
        )
        (tmp_path / "db-backup-2024-06-01T00-00-00-000Z.json").write_text(
            '{"tags": [{"id": "NEW", "name": "new"}]}'
        )
        await restore_latest(fake_client, STOREFRONT_SCHEMA, backup_dir=tmp_path)
        assert fake_client.tables["Tags"] == [{"id": "NEW", "name": "new"}]

    async def test_restore_latest_without_backups(self, tmp_path, fake_client):
        with pytest.raises(BackupNotFoundError):
            await restore_latest(fake_client, STOREFRONT_SCHEMA, backup_dir=tmp_path)
        assert fake_client.calls == []

    async def test_backup_then_restore_filename_sorting(self, tmp_path):
        early = datetime(2024, 1, 1, tzinfo=timezone.utc)
        late = datetime(2024, 6, 1, tzinfo=timezone.utc)
        await backup_database(
            FakeClient({"Tags": [{"id": "LATE", "name": "l"}]}), STOREFRONT_SCHEMA,
            backup_dir=tmp_path, now=late,
        )
        await backup_database(
            FakeClient({"Tags": [{"id": "EARLY", "name": "e"}]}), STOREFRONT_SCHEMA,
            backup_dir=tmp_path, now=early,
        )
        target = FakeClient()
        await restore_latest(target, STOREFRONT_SCHEMA, backup_dir=tmp_path)
        assert [r["id"] for r in target.tables["Tags"]] == ["LATE"]
