"""Tests for deletion tombstones and their file store."""

from __future__ import annotations

import json
import logging
import pathlib

import pytest

from prodex.core.entities import EntityType, Snapshot, Task
from prodex.sync.tombstones import (
    STORAGE_KEYS,
    Tombstone,
    TombstoneFileStore,
    TombstoneTable,
)


def _snapshot(*task_ids: str) -> Snapshot:
    return Snapshot(tasks=tuple(Task(id=tid, title=tid) for tid in task_ids))


# ── Table ─────────────────────────────────────────────────────────


class TestRecordChange:
    def test_removed_ids_tombstoned(self) -> None:
        table = TombstoneTable()

        changed = table.record_change(EntityType.TASK, ["t1", "t2"], ["t2"])

        assert changed
        assert (EntityType.TASK, "t1") in table
        assert (EntityType.TASK, "t2") not in table

    def test_readded_id_clears_tombstone(self) -> None:
        """Undo or re-creation with the same id removes the tombstone."""
        table = TombstoneTable()
        table.record_change(EntityType.TASK, ["t1"], [])

        changed = table.record_change(EntityType.TASK, [], ["t1"])

        assert changed
        assert len(table) == 0

    def test_no_change(self) -> None:
        table = TombstoneTable()

        assert table.record_change(EntityType.GOAL, ["g1"], ["g1"]) is False

    def test_original_deletion_time_kept(self) -> None:
        table = TombstoneTable()
        table.add(EntityType.TASK, "t1", deleted_at="2026-01-01T00:00:00.000Z")
        table.add(EntityType.TASK, "t1", deleted_at="2026-02-01T00:00:00.000Z")

        tombstone = table.get(EntityType.TASK, "t1")
        assert tombstone is not None
        assert tombstone.deleted_at == "2026-01-01T00:00:00.000Z"

    def test_types_are_independent(self) -> None:
        table = TombstoneTable()
        table.add(EntityType.TASK, "x1")

        assert table.ids(EntityType.TASK) == {"x1"}
        assert table.ids(EntityType.GOAL) == frozenset()


class TestFilter:
    def test_hides_tombstoned_items(self) -> None:
        table = TombstoneTable()
        table.add(EntityType.TASK, "t1")
        tasks = [Task(id="t1", title="a"), Task(id="t2", title="b")]

        assert [t.id for t in table.filter(EntityType.TASK, tasks)] == ["t2"]

    def test_other_type_unaffected(self) -> None:
        table = TombstoneTable()
        table.add(EntityType.GOAL, "t1")
        tasks = [Task(id="t1", title="a")]

        assert table.filter(EntityType.TASK, tasks) == tasks


class TestObserveSnapshot:
    """Tombstones age only against successful snapshots."""

    def test_dropped_after_threshold_absences(self) -> None:
        table = TombstoneTable(gc_threshold=3)
        table.add(EntityType.TASK, "t1")

        assert table.observe_snapshot(_snapshot()) == []
        assert table.observe_snapshot(_snapshot()) == []
        assert table.observe_snapshot(_snapshot()) == [(EntityType.TASK, "t1")]
        assert len(table) == 0

    def test_presence_resets_count(self) -> None:
        """A snapshot that still contains the id restarts the count."""
        table = TombstoneTable(gc_threshold=3)
        table.add(EntityType.TASK, "t1")
        table.observe_snapshot(_snapshot())
        table.observe_snapshot(_snapshot())

        table.observe_snapshot(_snapshot("t1"))

        tombstone = table.get(EntityType.TASK, "t1")
        assert tombstone is not None
        assert tombstone.absent_count == 0

        table.observe_snapshot(_snapshot())
        table.observe_snapshot(_snapshot())
        assert (EntityType.TASK, "t1") in table

    def test_threshold_floor(self) -> None:
        assert TombstoneTable(gc_threshold=0).gc_threshold == 1


class TestSerialization:
    def test_round_trip(self) -> None:
        table = TombstoneTable()
        table.add(EntityType.SKILL, "s1", deleted_at="2026-01-01T00:00:00.000Z")
        table.observe_snapshot(Snapshot())

        restored = TombstoneTable.from_dict(table.to_dict())

        assert restored.get(EntityType.SKILL, "s1") == Tombstone(
            deleted_at="2026-01-01T00:00:00.000Z", absent_count=1
        )

    def test_every_key_written(self) -> None:
        assert set(TombstoneTable().to_dict()) == set(STORAGE_KEYS.values())

    def test_legacy_list_form(self) -> None:
        """Plain id lists from older files load as fresh tombstones."""
        table = TombstoneTable.from_dict({"prodex_hidden_tasks": ["t1", "t2"]})

        assert table.ids(EntityType.TASK) == {"t1", "t2"}
        tombstone = table.get(EntityType.TASK, "t1")
        assert tombstone is not None
        assert tombstone.absent_count == 0


# ── File store ────────────────────────────────────────────────────


class TestFileStore:
    def test_missing_file_is_empty(self, tmp_path: pathlib.Path) -> None:
        store = TombstoneFileStore(tmp_path / "tombstones.json")

        assert len(store.load()) == 0

    def test_save_and_load(self, tmp_path: pathlib.Path) -> None:
        store = TombstoneFileStore(tmp_path / "nested" / "tombstones.json", gc_threshold=5)
        table = TombstoneTable()
        table.add(EntityType.APPLICATION, "a1")

        assert store.save(table) is True
        loaded = store.load()

        assert loaded.ids(EntityType.APPLICATION) == {"a1"}
        assert loaded.gc_threshold == 5
        assert not (tmp_path / "nested" / "tombstones.json.tmp").exists()

    def test_unreadable_file_is_empty(
        self, tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "tombstones.json"
        path.write_text("{not json", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            table = TombstoneFileStore(path).load()

        assert len(table) == 0
        assert "unreadable tombstone file" in caplog.text

    def test_non_mapping_file_is_empty(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "tombstones.json"
        path.write_text(json.dumps(["t1"]), encoding="utf-8")

        assert len(TombstoneFileStore(path).load()) == 0

    def test_save_failure_reported(self, tmp_path: pathlib.Path) -> None:
        """A path that cannot be written returns False instead of raising."""
        target = tmp_path / "occupied"
        target.mkdir()
        table = TombstoneTable()
        table.add(EntityType.TASK, "t1")

        assert TombstoneFileStore(target).save(table) is False
