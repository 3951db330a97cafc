"""SQLite skill and assessment operations mixin."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from prodex.core.entities import GoalCategory
from prodex.storage.sqlite_row_mappers import row_to_skill
from prodex.utils.timeutils import parse_date_maybe, to_db, utcnow

if TYPE_CHECKING:
    import aiosqlite

    from prodex.core.entities import Skill

logger = logging.getLogger(__name__)


def latest_assessment_id(skill_id: str) -> str:
    """Fixed id of the single assessment slot kept per skill."""
    return f"{skill_id}-latest"


class SQLiteSkillMixin:
    """Mixin providing skill upsert (keyed by user + name) and reads."""

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    async def upsert_skills(self, user_id: str, skills: Sequence[Skill]) -> int:
        """Upsert skills and their latest assessment in one transaction.

        A skill is matched by its trimmed name for the user, so a re-created
        skill with a new client id updates the existing record. A skill whose
        id is already stored under another name is renamed. Blank names are
        skipped.

        Raises:
            ValueError: If a skill category is not a known category
        """
        written = 0
        now = utcnow()
        async with self._transaction() as conn:
            for skill in skills:
                name = skill.name.strip()
                if not name:
                    continue
                category = GoalCategory(skill.category).value
                assessed_at = parse_date_maybe(skill.assessed_at) or now

                stored_id = await self._find_skill_id(conn, user_id, name)
                if stored_id is not None:
                    await conn.execute(
                        "UPDATE skills SET name = ?, category = ? WHERE id = ?",
                        (name, category, stored_id),
                    )
                else:
                    async with conn.execute(
                        "SELECT id FROM skills WHERE id = ? AND user_id = ?",
                        (skill.id, user_id),
                    ) as cursor:
                        renamed = await cursor.fetchone()
                    if renamed is not None:
                        await conn.execute(
                            "UPDATE skills SET name = ?, category = ? WHERE id = ?",
                            (name, category, skill.id),
                        )
                    else:
                        await conn.execute(
                            """INSERT INTO skills (id, user_id, name, category, created_at)
                               VALUES (?, ?, ?, ?, ?)""",
                            (skill.id, user_id, name, category, to_db(assessed_at)),
                        )
                    stored_id = skill.id

                await conn.execute(
                    """INSERT INTO skill_assessments (id, skill_id, rating, assessed_at)
                       VALUES (?, ?, ?, ?)
                       ON CONFLICT(id) DO UPDATE SET
                           rating = excluded.rating,
                           assessed_at = excluded.assessed_at""",
                    (latest_assessment_id(stored_id), stored_id, skill.rating, to_db(assessed_at)),
                )
                written += 1
        logger.debug("Upserted %d skills for user %s", written, user_id)
        return written

    @staticmethod
    async def _find_skill_id(conn: aiosqlite.Connection, user_id: str, name: str) -> str | None:
        async with conn.execute(
            "SELECT id FROM skills WHERE user_id = ? AND name = ?", (user_id, name)
        ) as cursor:
            row = await cursor.fetchone()
        return row["id"] if row is not None else None

    async def _fetch_skills(self, conn: aiosqlite.Connection, user_id: str) -> list[Skill]:
        async with conn.execute(
            """SELECT s.id, s.name, s.category,
                      (SELECT a.rating FROM skill_assessments a
                       WHERE a.skill_id = s.id ORDER BY a.assessed_at DESC LIMIT 1) AS rating,
                      (SELECT a.assessed_at FROM skill_assessments a
                       WHERE a.skill_id = s.id ORDER BY a.assessed_at DESC LIMIT 1) AS assessed_at
               FROM skills s
               WHERE s.user_id = ?
               ORDER BY s.created_at ASC, s.rowid ASC""",
            (user_id,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [row_to_skill(row) for row in rows]
