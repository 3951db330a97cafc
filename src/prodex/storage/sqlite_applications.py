"""SQLite job application operations mixin."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from prodex.storage.sqlite_row_mappers import app_status_to_db, row_to_application
from prodex.utils.timeutils import parse_date_maybe, to_db, utcnow

if TYPE_CHECKING:
    import aiosqlite

    from prodex.core.entities import Application

_UPSERT_APPLICATION = """
INSERT INTO job_applications (
    id, user_id, company_name, role_title, status, applied_date, job_url, notes,
    created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    company_name = excluded.company_name,
    role_title = excluded.role_title,
    status = excluded.status,
    applied_date = excluded.applied_date,
    job_url = excluded.job_url,
    notes = excluded.notes,
    updated_at = excluded.updated_at
"""


class SQLiteApplicationMixin:
    """Mixin providing job application upsert and reads."""

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    async def upsert_applications(self, user_id: str, applications: Sequence[Application]) -> int:
        now = utcnow()
        async with self._transaction() as conn:
            for item in applications:
                await conn.execute(
                    _UPSERT_APPLICATION,
                    (
                        item.id,
                        user_id,
                        item.company,
                        item.role,
                        app_status_to_db(item.status),
                        to_db(parse_date_maybe(item.date_applied)),
                        item.job_url or None,
                        item.notes or None,
                        to_db(parse_date_maybe(item.created_at) or now),
                        to_db(now),
                    ),
                )
        return len(applications)

    async def _fetch_applications(
        self, conn: aiosqlite.Connection, user_id: str
    ) -> list[Application]:
        async with conn.execute(
            "SELECT * FROM job_applications WHERE user_id = ? ORDER BY created_at ASC, rowid ASC",
            (user_id,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [row_to_application(row) for row in rows]
