"""SQLite user and settings operations mixin."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import replace
from typing import TYPE_CHECKING
from uuid import uuid4

from prodex.storage.sqlite_row_mappers import UserRecord, row_to_user
from prodex.utils.timeutils import to_db, utcnow

if TYPE_CHECKING:
    import aiosqlite

    from prodex.core.entities import UserSettings

logger = logging.getLogger(__name__)

DEFAULT_FULL_NAME = "Demo User"
DEFAULT_WEEKLY_CAPACITY = 40.0


class SQLiteUserMixin:
    """Mixin providing user lookup/bootstrap and settings persistence."""

    # ------------------------------------------------------------------
    # Protocol stubs, satisfied by SQLiteStorage at runtime.
    # ------------------------------------------------------------------

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    def _read(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ensure_user(self, email: str) -> UserRecord:
        """Return the user with ``email``, creating the default record on first access."""
        async with self._transaction() as conn:
            async with conn.execute("SELECT * FROM users WHERE email = ?", (email,)) as cursor:
                row = await cursor.fetchone()
            if row is not None:
                return row_to_user(row)

            now = utcnow()
            user = UserRecord(
                id=str(uuid4()),
                email=email,
                full_name=DEFAULT_FULL_NAME,
                timezone="UTC",
                weekly_capacity_hours=DEFAULT_WEEKLY_CAPACITY,
                created_at=now,
            )
            await conn.execute(
                """INSERT INTO users
                   (id, email, full_name, timezone, weekly_capacity_hours, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    user.id,
                    user.email,
                    user.full_name,
                    user.timezone,
                    user.weekly_capacity_hours,
                    to_db(now),
                    to_db(now),
                ),
            )
        logger.info("Created default user %s", email)
        return user

    async def get_user(self, user_id: str) -> UserRecord | None:
        async with self._read() as conn:
            async with conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cursor:
                row = await cursor.fetchone()
        return row_to_user(row) if row is not None else None

    async def update_user_settings(self, user: UserRecord, settings: UserSettings) -> UserRecord:
        """Store pushed profile fields, keeping existing values for blank ones.

        A zero weekly capacity falls back to the default of 40 hours.
        """
        updated = replace(
            user,
            full_name=settings.full_name or user.full_name,
            timezone=settings.timezone or user.timezone,
            weekly_capacity_hours=settings.weekly_capacity or DEFAULT_WEEKLY_CAPACITY,
        )
        async with self._transaction() as conn:
            await conn.execute(
                """UPDATE users SET full_name = ?, timezone = ?, weekly_capacity_hours = ?,
                          updated_at = ?
                   WHERE id = ?""",
                (
                    updated.full_name,
                    updated.timezone,
                    updated.weekly_capacity_hours,
                    to_db(utcnow()),
                    user.id,
                ),
            )
        return updated

    async def clear_user_data(self, user_id: str) -> None:
        """Remove every entity owned by the user, keeping the user row."""
        async with self._transaction() as conn:
            for table in ("tasks", "career_goals", "job_applications", "skills"):
                await conn.execute(f"DELETE FROM {table} WHERE user_id = ?", (user_id,))  # noqa: S608
        logger.info("Cleared entity data for user %s", user_id)
