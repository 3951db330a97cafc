"""SQLite career goal and milestone operations mixin."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from prodex.core.entities import GoalCategory, Milestone, clamp_progress
from prodex.storage.sqlite_row_mappers import (
    milestone_status_to_db,
    row_to_goal,
    row_to_milestone,
)
from prodex.utils.timeutils import parse_date_maybe, to_db, utcnow

if TYPE_CHECKING:
    import aiosqlite

    from prodex.core.entities import Goal

logger = logging.getLogger(__name__)

_UPSERT_GOAL = """
INSERT INTO career_goals (
    id, user_id, title, description, category, target_date, progress_pct, created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    title = excluded.title,
    description = excluded.description,
    category = excluded.category,
    target_date = excluded.target_date,
    progress_pct = excluded.progress_pct,
    updated_at = excluded.updated_at
"""

_UPSERT_MILESTONE = """
INSERT INTO career_milestones (id, goal_id, title, status, completed_date, position)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    title = excluded.title,
    status = excluded.status,
    completed_date = excluded.completed_date,
    position = excluded.position
"""


class SQLiteGoalMixin:
    """Mixin providing goal + milestone upsert and reads."""

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    async def upsert_goals(self, user_id: str, goals: Sequence[Goal]) -> int:
        """Upsert goals with their milestones in one transaction.

        Progress is stored as pushed, clamped to [0, 100]; milestone toggles
        re-derive it on the client. A milestone's completion date is stamped
        with the current time whenever it is written as done and cleared
        otherwise.
        """
        now = utcnow()
        async with self._transaction() as conn:
            for goal in goals:
                await conn.execute(
                    _UPSERT_GOAL,
                    (
                        goal.id,
                        user_id,
                        goal.title,
                        goal.description or None,
                        GoalCategory(goal.category).value,
                        to_db(parse_date_maybe(goal.target_date)),
                        clamp_progress(goal.progress),
                        to_db(parse_date_maybe(goal.created_at) or now),
                        to_db(now),
                    ),
                )
                for position, milestone in enumerate(goal.milestones):
                    await conn.execute(
                        _UPSERT_MILESTONE,
                        (
                            milestone.id,
                            goal.id,
                            milestone.title,
                            milestone_status_to_db(milestone.done),
                            to_db(now) if milestone.done else None,
                            position,
                        ),
                    )
        logger.debug("Upserted %d goals for user %s", len(goals), user_id)
        return len(goals)

    async def _fetch_goals(self, conn: aiosqlite.Connection, user_id: str) -> list[Goal]:
        async with conn.execute(
            "SELECT * FROM career_goals WHERE user_id = ? ORDER BY created_at ASC, rowid ASC",
            (user_id,),
        ) as cursor:
            goal_rows = await cursor.fetchall()

        async with conn.execute(
            """SELECT m.* FROM career_milestones m
               JOIN career_goals g ON g.id = m.goal_id
               WHERE g.user_id = ?
               ORDER BY m.position ASC, m.rowid ASC""",
            (user_id,),
        ) as cursor:
            milestone_rows = await cursor.fetchall()

        by_goal: dict[str, list[Milestone]] = {}
        for row in milestone_rows:
            by_goal.setdefault(row["goal_id"], []).append(row_to_milestone(row))

        return [row_to_goal(row, by_goal.get(row["id"], [])) for row in goal_rows]
