"""Server side of the sync protocol: per-group persistence and snapshot reads."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from prodex.core.entities import EntityType, Snapshot, Task
from prodex.server.models import SyncRequest, TaskSyncRequest
from prodex.storage.base import ProdexStorage
from prodex.storage.sqlite_row_mappers import UserRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a full sync: the freshest snapshot and the groups that failed."""

    snapshot: Snapshot
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.snapshot.to_dict(), "warnings": list(self.warnings)}


class SyncService:
    """
    Persists pushed state for one user and serves complete snapshots.

    Every write is an upsert keyed by the client-supplied id. During a full
    sync each entity group is written in its own transaction; a failing
    group is logged and reported by name without affecting the others.
    """

    def __init__(self, storage: ProdexStorage, user_email: str) -> None:
        self._storage = storage
        self._user_email = user_email

    async def _user(self) -> UserRecord:
        return await self._storage.ensure_user(self._user_email)

    async def get_snapshot(self) -> Snapshot:
        """Read all five collections, creating the default user on first access."""
        user = await self._user()
        return await self._storage.get_snapshot(user.id)

    async def sync_tasks(self, request: TaskSyncRequest) -> list[Task]:
        """Upsert the whole task list in one transaction and return the stored tasks.

        Raises:
            Exception: Whatever the transaction raised; no task is written then
        """
        user = await self._user()
        await self._storage.upsert_tasks(user.id, [t.to_entity() for t in request.tasks])
        return await self._storage.get_tasks(user.id)

    async def full_sync(self, request: SyncRequest) -> SyncResult:
        """Apply settings, then each entity group independently.

        Only a failure of the user lookup or settings update escapes; group
        failures become warnings named after the group.
        """
        user = await self._user()
        await self._storage.update_user_settings(user, request.settings.to_entity())

        groups: list[tuple[EntityType, Sequence[Any], Callable[[str, Any], Awaitable[int]]]] = []
        if request.tasks is not None:
            groups.append(
                (
                    EntityType.TASK,
                    [t.to_entity() for t in request.tasks],
                    self._storage.upsert_tasks,
                )
            )
        groups.extend(
            [
                (
                    EntityType.GOAL,
                    [g.to_entity() for g in request.goals],
                    self._storage.upsert_goals,
                ),
                (
                    EntityType.APPLICATION,
                    [a.to_entity() for a in request.applications],
                    self._storage.upsert_applications,
                ),
                (
                    EntityType.SKILL,
                    [s.to_entity() for s in request.skills],
                    self._storage.upsert_skills,
                ),
            ]
        )

        warnings: list[str] = []
        for group, items, upsert in groups:
            try:
                await upsert(user.id, items)
            except Exception:
                logger.error("%s sync failed", group.value.capitalize(), exc_info=True)
                warnings.append(group.value)

        snapshot = await self._storage.get_snapshot(user.id)
        if warnings:
            logger.warning("Full sync finished with failed groups: %s", ", ".join(warnings))
        return SyncResult(snapshot=snapshot, warnings=warnings)
