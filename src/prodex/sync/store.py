"""Client reconciliation engine.

``DataStore`` keeps the local copies of the five collections that a UI
reads and edits. Local edits apply synchronously and are pushed in the
background; a periodic pull merges server snapshots into local state
without overwriting groups that have unsynced edits, and tombstones keep
stale snapshots from bringing back locally deleted entities.

Usage:
    client = ProdexClient("http://localhost:4000")
    async with DataStore(client, TombstoneFileStore(path)) as store:
        store.add(EntityType.TASK, Task.create("Write report"))
        await store.wait_idle()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import replace
from datetime import date
from enum import StrEnum
from typing import Any

from prodex.core.entities import (
    Application,
    EntityType,
    Goal,
    Skill,
    Snapshot,
    Task,
    UserSettings,
)
from prodex.core.metrics import DashboardMetrics, dashboard_metrics
from prodex.sync.client import ProdexApiError, ProdexClient
from prodex.sync.state import GroupStateMachine, SyncEvent
from prodex.sync.tombstones import TombstoneFileStore, TombstoneTable
from prodex.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0

Entity = Task | Goal | Application | Skill
Listener = Callable[[str], None]
CollectionUpdate = Sequence[Any] | Callable[[list[Any]], Sequence[Any]]


class SyncGroup(StrEnum):
    """Independently pushed groups of local state."""

    TASKS = "tasks"
    CAREER = "career"


GROUP_OF: dict[EntityType, SyncGroup] = {
    EntityType.TASK: SyncGroup.TASKS,
    EntityType.GOAL: SyncGroup.CAREER,
    EntityType.APPLICATION: SyncGroup.CAREER,
    EntityType.SKILL: SyncGroup.CAREER,
}


class DataStore:
    """
    Local state of one user's collections, kept in sync with the server.

    Each sync group owns a :class:`GroupStateMachine`. A periodic pull
    starts only when every group is idle, and its result is applied only
    to groups still pulling when it arrives. A local edit moves its group
    to PENDING_LOCAL_EDIT and schedules a push; at most one push per
    group is in flight, and edits made during a push are sent by a
    follow-up push. No push happens before the first successful pull.
    """

    def __init__(
        self,
        client: ProdexClient,
        tombstones: TombstoneFileStore,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._client = client
        self._tombstone_store = tombstones
        self._tombstones = TombstoneTable()
        self._tombstones_loaded = False
        self._poll_interval = poll_interval

        self._collections: dict[EntityType, tuple[Any, ...]] = {et: () for et in EntityType}
        self._settings = UserSettings()

        self._machines = {group: GroupStateMachine(group.value) for group in SyncGroup}
        self._hydrated = False
        self._loading = True
        self._closed = False
        self._pull_active = False

        self._listeners: list[Listener] = []
        self._poll_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._active_pushes: dict[SyncGroup, asyncio.Task[list[str]]] = {}

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._collections[EntityType.TASK]

    @property
    def goals(self) -> tuple[Goal, ...]:
        return self._collections[EntityType.GOAL]

    @property
    def applications(self) -> tuple[Application, ...]:
        return self._collections[EntityType.APPLICATION]

    @property
    def skills(self) -> tuple[Skill, ...]:
        return self._collections[EntityType.SKILL]

    @property
    def settings(self) -> UserSettings:
        return self._settings

    @property
    def tombstones(self) -> TombstoneTable:
        return self._tombstones

    @property
    def is_loading(self) -> bool:
        """True until the first hydrate attempt has finished, successful or not."""
        return self._loading

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_dirty(self) -> bool:
        """Some group holds local edits that are not pushed yet."""
        return any(m.is_pending for m in self._machines.values())

    @property
    def is_syncing(self) -> bool:
        """Some group has a push in flight."""
        return any(m.is_pushing for m in self._machines.values())

    def machine(self, group: SyncGroup) -> GroupStateMachine:
        return self._machines[group]

    def collection(self, entity_type: EntityType) -> tuple[Any, ...]:
        return self._collections[entity_type]

    def snapshot(self) -> Snapshot:
        """Current local state as a snapshot."""
        return Snapshot(
            tasks=self.tasks,
            goals=self.goals,
            applications=self.applications,
            skills=self.skills,
            settings=self._settings,
        )

    def metrics(self, today: date | None = None) -> DashboardMetrics:
        """Dashboard figures computed from local state."""
        return dashboard_metrics(
            self.tasks,
            self.goals,
            self.applications,
            self._settings,
            today or utcnow().date(),
        )

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback(group_name)`` for local state changes.

        Returns:
            A callable removing the subscription
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, group: SyncGroup) -> None:
        """Tell listeners about a change, then push it unless it came from the server."""
        for listener in list(self._listeners):
            try:
                listener(group.value)
            except Exception:
                logger.warning("Store listener failed", exc_info=True)

        if self._machines[group].consume_suppression():
            return
        self._schedule_push(group)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Hydrate, then start periodic pulls."""
        await self.hydrate()
        if self._poll_task is None and not self._closed:
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def close(self) -> None:
        """Stop polling, let in-flight requests finish, discard their results."""
        if self._closed:
            return
        self._closed = True

        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

        await self.wait_idle()
        await self._client.close()

    async def __aenter__(self) -> DataStore:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    async def wait_idle(self) -> None:
        """Wait until no background pull or push is running."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    async def hydrate(self) -> bool:
        """Load tombstones, then run the first full read.

        A failed read leaves the empty defaults in place; loading still ends.
        """
        self._load_tombstones()
        try:
            return await self.pull()
        finally:
            self._loading = False

    async def pull(self) -> bool:
        """Fetch the full snapshot and merge it into local state.

        Skipped (not queued) while a push is in flight or, once hydrated,
        while any group has pending local edits.

        Returns:
            True if a snapshot was fetched and applied
        """
        if self._closed or self._pull_active:
            return False
        if self.is_syncing or (self._hydrated and self.is_dirty):
            logger.debug("Skipping pull: local changes pending or push in flight")
            return False

        # Before hydration, groups with local edits keep them but do not block the read.
        for machine in self._machines.values():
            if machine.is_idle:
                machine.fire(SyncEvent.PULL_START)

        self._pull_active = True
        try:
            snapshot = await self._client.fetch_snapshot()
        except ProdexApiError as e:
            logger.warning("Failed to load data (%s): %s", e.status_code, e)
            self._finish_pull()
            return False
        except Exception:
            logger.warning("Failed to load data", exc_info=True)
            self._finish_pull()
            return False
        finally:
            self._pull_active = False

        if self._closed:
            logger.debug("Discarding snapshot received after close")
            self._finish_pull()
            return False

        if self._tombstones.observe_snapshot(snapshot):
            self._persist_tombstones()

        applied = [g for g in SyncGroup if self._machines[g].is_pulling]
        self._apply(snapshot, applied)
        self._finish_pull()

        if not self._hydrated:
            self._hydrated = True
            for group, machine in self._machines.items():
                if machine.is_pending:
                    self._schedule_push(group)
        return True

    def _finish_pull(self) -> None:
        for machine in self._machines.values():
            if machine.is_pulling:
                machine.fire(SyncEvent.PULL_DONE)

    def _apply(self, snapshot: Snapshot, groups: Sequence[SyncGroup]) -> None:
        """Replace local state of ``groups`` with server data, minus tombstoned ids."""
        if SyncGroup.TASKS in groups:
            self._collections[EntityType.TASK] = tuple(
                self._tombstones.filter(EntityType.TASK, snapshot.tasks)
            )
        if SyncGroup.CAREER in groups:
            for entity_type in (EntityType.GOAL, EntityType.APPLICATION, EntityType.SKILL):
                items = getattr(snapshot, entity_type.value)
                self._collections[entity_type] = tuple(self._tombstones.filter(entity_type, items))
            self._settings = snapshot.settings

        for group in groups:
            self._machines[group].suppress_next_push()
            self._notify(group)

    async def _poll_loop(self) -> None:
        while not self._closed:
            await asyncio.sleep(self._poll_interval)
            if self._closed:
                break
            self.tick()

    def tick(self) -> None:
        """One periodic step: retry groups left pending, otherwise pull."""
        if self._hydrated:
            retried = False
            for group, machine in self._machines.items():
                if machine.is_pending and group not in self._active_pushes:
                    self._schedule_push(group)
                    retried = True
            if retried:
                return
        self._spawn(self.pull())

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def _schedule_push(self, group: SyncGroup) -> None:
        if self._closed or not self._hydrated:
            return
        if group in self._active_pushes:
            return
        if not self._machines[group].can_fire(SyncEvent.PUSH_START):
            return
        self._active_pushes[group] = self._spawn(self._push(group))

    async def _push(self, group: SyncGroup) -> list[str]:
        """Send one group and settle its state machine.

        Returns:
            Group names the server reported as failed
        """
        machine = self._machines[group]
        machine.fire(SyncEvent.PUSH_START)
        warnings: list[str] = []
        resend = False
        try:
            if group is SyncGroup.TASKS:
                warnings = await self._push_tasks()
            else:
                warnings = await self._push_career()
        except ProdexApiError as e:
            logger.warning("Sync failed (%s): %s", e.status_code, e)
            machine.fire(SyncEvent.PUSH_FAILED)
        except Exception:
            logger.error("Unexpected error pushing %s", group.value, exc_info=True)
            machine.fire(SyncEvent.PUSH_FAILED)
        else:
            machine.fire(SyncEvent.PUSH_DONE)
            resend = machine.is_pending
        finally:
            self._active_pushes.pop(group, None)

        if warnings:
            logger.warning("Server could not persist: %s", ", ".join(warnings))
        if resend:
            self._schedule_push(group)
        return warnings

    async def _push_tasks(self) -> list[str]:
        """Task fast path, falling back to the full endpoint on an error answer.

        The answer is not applied: local tasks are already authoritative.
        """
        tasks = self.tasks
        try:
            await self._client.push_tasks(tasks)
            return []
        except ProdexApiError as e:
            if e.status_code is None:
                raise
            logger.warning("Task sync failed (%s): %s; retrying with full sync", e.status_code, e)

        response = await self._client.full_sync(
            tasks=tasks,
            goals=self.goals,
            applications=self.applications,
            skills=self.skills,
            settings=self._settings,
        )
        return response.warnings

    async def _push_career(self) -> list[str]:
        """Push goals, applications, skills and settings, then adopt the server's result.

        The answer is dropped when the store closed meanwhile or the group
        was edited while the request was in flight.
        """
        machine = self._machines[SyncGroup.CAREER]
        response = await self._client.full_sync(
            tasks=[],
            goals=self.goals,
            applications=self.applications,
            skills=self.skills,
            settings=self._settings,
        )
        if self._closed:
            logger.debug("Discarding sync answer received after close")
        elif machine.edited_during_push:
            logger.debug("Keeping local career edits made during push")
        else:
            self._apply(response.snapshot, [SyncGroup.CAREER])
        return response.warnings

    async def push_all(self) -> list[str]:
        """Push every group once and wait for the answers.

        Returns:
            Group names the server reported as failed
        """
        await self.wait_idle()
        if not self._hydrated:
            logger.warning("Not pushing: store never loaded server data")
            return []
        pushes = []
        for group in SyncGroup:
            self._schedule_push(group)
            if group in self._active_pushes:
                pushes.append(self._active_pushes[group])
        results = await asyncio.gather(*pushes)
        await self.wait_idle()
        return [name for warnings in results for name in warnings]

    # ------------------------------------------------------------------
    # Local mutation
    # ------------------------------------------------------------------

    def _load_tombstones(self) -> None:
        """Read the durable table once, before its first use."""
        if not self._tombstones_loaded:
            self._tombstones = self._tombstone_store.load()
            self._tombstones_loaded = True

    def _persist_tombstones(self) -> None:
        self._tombstone_store.save(self._tombstones)

    def mutate(self, collection: EntityType, updater: CollectionUpdate) -> tuple[Any, ...]:
        """Replace a collection with a new list or ``updater(previous)``.

        Ids that disappear are tombstoned and ids that are present lose their
        tombstone; tombstones are written out immediately.

        Returns:
            The new collection
        """
        previous = self._collections[collection]
        next_items = tuple(updater(list(previous)) if callable(updater) else updater)

        self._load_tombstones()
        if self._tombstones.record_change(
            collection,
            (item.id for item in previous),
            (item.id for item in next_items),
        ):
            self._persist_tombstones()

        self._collections[collection] = next_items
        group = GROUP_OF[collection]
        self._machines[group].fire(SyncEvent.LOCAL_EDIT)
        self._notify(group)
        return next_items

    def set_settings(
        self, value: UserSettings | Callable[[UserSettings], UserSettings]
    ) -> UserSettings:
        """Replace the settings singleton."""
        self._settings = value(self._settings) if callable(value) else value
        self._machines[SyncGroup.CAREER].fire(SyncEvent.LOCAL_EDIT)
        self._notify(SyncGroup.CAREER)
        return self._settings

    def add(self, collection: EntityType, item: Entity) -> Entity:
        self.mutate(collection, lambda prev: [*prev, item])
        return item

    def update(self, collection: EntityType, entity_id: str, **changes: Any) -> None:
        """Replace fields of one entity; unknown ids leave the collection as is."""
        self.mutate(
            collection,
            lambda prev: [
                replace(item, **changes) if item.id == entity_id else item for item in prev
            ],
        )

    def remove(self, collection: EntityType, entity_id: str) -> None:
        self.mutate(collection, lambda prev: [item for item in prev if item.id != entity_id])

    def toggle_milestone(self, goal_id: str, milestone_id: str) -> None:
        """Flip a milestone; the goal's progress is re-derived."""
        self.mutate(
            EntityType.GOAL,
            lambda prev: [g.toggle_milestone(milestone_id) if g.id == goal_id else g for g in prev],
        )

    def set_goal_progress(self, goal_id: str, progress: float) -> None:
        """Set progress directly, clamped to [0, 100]."""
        self.mutate(
            EntityType.GOAL,
            lambda prev: [g.with_progress(progress) if g.id == goal_id else g for g in prev],
        )
