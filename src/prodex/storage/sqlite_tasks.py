"""SQLite task operations mixin."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from prodex.storage.sqlite_row_mappers import row_to_task, task_status_to_db
from prodex.utils.timeutils import parse_date_maybe, to_db, utcnow

if TYPE_CHECKING:
    import aiosqlite

    from prodex.core.entities import Task

logger = logging.getLogger(__name__)

_UPSERT_TASK = """
INSERT INTO tasks (
    id, user_id, title, description, status, priority,
    estimated_hours, actual_hours, deadline, week_start, created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    title = excluded.title,
    description = excluded.description,
    status = excluded.status,
    priority = excluded.priority,
    estimated_hours = excluded.estimated_hours,
    actual_hours = excluded.actual_hours,
    deadline = excluded.deadline,
    week_start = excluded.week_start,
    updated_at = excluded.updated_at
"""


class SQLiteTaskMixin:
    """Mixin providing task upsert and reads."""

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    def _read(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    async def upsert_tasks(self, user_id: str, tasks: Sequence[Task]) -> int:
        """Upsert all tasks in one transaction. Any failure rolls back the whole batch."""
        now = utcnow()
        async with self._transaction() as conn:
            for task in tasks:
                await conn.execute(
                    _UPSERT_TASK,
                    (
                        task.id,
                        user_id,
                        task.title,
                        task.description or None,
                        task_status_to_db(task.status),
                        task.priority.value,
                        task.estimated_hours,
                        task.actual_hours,
                        to_db(parse_date_maybe(task.deadline)),
                        to_db(parse_date_maybe(task.week)),
                        to_db(parse_date_maybe(task.created_at) or now),
                        to_db(now),
                    ),
                )
        logger.debug("Upserted %d tasks for user %s", len(tasks), user_id)
        return len(tasks)

    async def get_tasks(self, user_id: str) -> list[Task]:
        async with self._read() as conn:
            return await self._fetch_tasks(conn, user_id)

    async def _fetch_tasks(self, conn: aiosqlite.Connection, user_id: str) -> list[Task]:
        async with conn.execute(
            "SELECT * FROM tasks WHERE user_id = ? ORDER BY created_at ASC, rowid ASC",
            (user_id,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [row_to_task(row) for row in rows]
