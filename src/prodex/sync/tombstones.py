"""Local deletion tombstones.

A tombstone remembers the id of an entity deleted locally so that a server
snapshot read before the deletion reached everyone cannot bring it back. A
tombstone is dropped once the id has been absent from a number of
consecutive successful snapshots.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Protocol, TypeVar

from prodex.core.entities import EntityType, Snapshot
from prodex.utils.timeutils import iso_timestamp, utcnow

logger = logging.getLogger(__name__)

DEFAULT_GC_THRESHOLD = 3

# Durable keys, one per deletable collection.
STORAGE_KEYS: dict[EntityType, str] = {
    EntityType.TASK: "prodex_hidden_tasks",
    EntityType.GOAL: "prodex_hidden_goals",
    EntityType.APPLICATION: "prodex_hidden_applications",
    EntityType.SKILL: "prodex_hidden_skills",
}


class _Identified(Protocol):
    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=_Identified)


@dataclass(frozen=True)
class Tombstone:
    """Deletion marker for one id."""

    deleted_at: str
    absent_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"deletedAt": self.deleted_at, "absentCount": self.absent_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Tombstone:
        return cls(
            deleted_at=str(data.get("deletedAt") or iso_timestamp(utcnow())),
            absent_count=int(data.get("absentCount") or 0),
        )


class TombstoneTable:
    """Table of (entity type, id) -> Tombstone."""

    def __init__(self, gc_threshold: int = DEFAULT_GC_THRESHOLD) -> None:
        self.gc_threshold = max(1, gc_threshold)
        self._entries: dict[tuple[EntityType, str], Tombstone] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[tuple[EntityType, str]]:
        return iter(list(self._entries))

    def get(self, entity_type: EntityType, entity_id: str) -> Tombstone | None:
        return self._entries.get((entity_type, entity_id))

    def ids(self, entity_type: EntityType) -> frozenset[str]:
        return frozenset(eid for etype, eid in self._entries if etype == entity_type)

    def add(self, entity_type: EntityType, entity_id: str, deleted_at: str | None = None) -> None:
        """Record a deletion. An existing tombstone keeps its original time."""
        key = (entity_type, entity_id)
        if key not in self._entries:
            self._entries[key] = Tombstone(deleted_at=deleted_at or iso_timestamp(utcnow()))

    def discard(self, entity_type: EntityType, entity_id: str) -> bool:
        return self._entries.pop((entity_type, entity_id), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def record_change(
        self,
        entity_type: EntityType,
        previous_ids: Iterable[str],
        next_ids: Iterable[str],
    ) -> bool:
        """Update tombstones from a local collection change.

        Ids that left the collection are tombstoned; ids present afterwards
        (undo, re-creation with the same id) lose their tombstone.

        Returns:
            True if the table changed
        """
        remaining = set(next_ids)
        changed = False
        for entity_id in previous_ids:
            if entity_id not in remaining and (entity_type, entity_id) not in self._entries:
                self.add(entity_type, entity_id)
                changed = True
        for entity_id in remaining:
            changed = self.discard(entity_type, entity_id) or changed
        return changed

    def filter(self, entity_type: EntityType, items: Sequence[T]) -> list[T]:
        """Drop tombstoned items from a server-provided collection."""
        hidden = self.ids(entity_type)
        if not hidden:
            return list(items)
        return [item for item in items if item.id not in hidden]

    def observe_snapshot(self, snapshot: Snapshot) -> list[tuple[EntityType, str]]:
        """Age tombstones against a successful full snapshot.

        Tombstoned ids absent from the snapshot count one more absence, ids
        still present start over. Tombstones reaching the threshold are
        dropped.

        Returns:
            Keys of the dropped tombstones
        """
        present = {etype: snapshot.ids(etype) for etype in EntityType}
        dropped: list[tuple[EntityType, str]] = []
        for key, tombstone in list(self._entries.items()):
            entity_type, entity_id = key
            if entity_id in present[entity_type]:
                if tombstone.absent_count:
                    self._entries[key] = replace(tombstone, absent_count=0)
                continue
            absent = tombstone.absent_count + 1
            if absent >= self.gc_threshold:
                del self._entries[key]
                dropped.append(key)
            else:
                self._entries[key] = replace(tombstone, absent_count=absent)
        if dropped:
            logger.debug("Collected %d tombstones", len(dropped))
        return dropped

    def to_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        data: dict[str, dict[str, dict[str, Any]]] = {key: {} for key in STORAGE_KEYS.values()}
        for (entity_type, entity_id), tombstone in self._entries.items():
            data[STORAGE_KEYS[entity_type]][entity_id] = tombstone.to_dict()
        return data

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], gc_threshold: int = DEFAULT_GC_THRESHOLD
    ) -> TombstoneTable:
        """Build a table from its stored form.

        Each key may hold the current mapping form or a legacy plain list of ids.
        """
        table = cls(gc_threshold=gc_threshold)
        for entity_type, key in STORAGE_KEYS.items():
            value = data.get(key)
            if isinstance(value, list):
                for entity_id in value:
                    table.add(entity_type, str(entity_id))
            elif isinstance(value, dict):
                for entity_id, entry in value.items():
                    tombstone = (
                        Tombstone.from_dict(entry)
                        if isinstance(entry, dict)
                        else Tombstone(deleted_at=iso_timestamp(utcnow()))
                    )
                    table._entries[(entity_type, str(entity_id))] = tombstone
        return table


class TombstoneFileStore:
    """Durable JSON file holding the tombstone table.

    Loading never fails: a missing or unreadable file yields an empty table.
    Saving is best effort and only logs on failure.
    """

    def __init__(self, path: str | Path, gc_threshold: int = DEFAULT_GC_THRESHOLD) -> None:
        self._path = Path(path)
        self._gc_threshold = gc_threshold

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TombstoneTable:
        if not self._path.exists():
            return TombstoneTable(gc_threshold=self._gc_threshold)
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable tombstone file %s: %s", self._path, e)
            return TombstoneTable(gc_threshold=self._gc_threshold)
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed tombstone file %s", self._path)
            return TombstoneTable(gc_threshold=self._gc_threshold)
        return TombstoneTable.from_dict(data, gc_threshold=self._gc_threshold)

    def save(self, table: TombstoneTable) -> bool:
        """Write the table atomically. Returns False when the write failed."""
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(table.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.warning("Failed to persist tombstones to %s: %s", self._path, e)
            return False
        return True
