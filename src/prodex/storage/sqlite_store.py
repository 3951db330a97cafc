"""SQLite storage backend for Prodex entity collections."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from prodex.core.entities import Snapshot, UserSettings
from prodex.storage.base import ProdexStorage, StorageError
from prodex.storage.sqlite_applications import SQLiteApplicationMixin
from prodex.storage.sqlite_goals import SQLiteGoalMixin
from prodex.storage.sqlite_resources import SQLiteResourceMixin
from prodex.storage.sqlite_row_mappers import row_to_user
from prodex.storage.sqlite_schema import SCHEMA, SCHEMA_VERSION, run_migrations
from prodex.storage.sqlite_skills import SQLiteSkillMixin
from prodex.storage.sqlite_tasks import SQLiteTaskMixin
from prodex.storage.sqlite_users import SQLiteUserMixin

logger = logging.getLogger(__name__)


class SQLiteStorage(
    SQLiteUserMixin,
    SQLiteTaskMixin,
    SQLiteGoalMixin,
    SQLiteApplicationMixin,
    SQLiteSkillMixin,
    SQLiteResourceMixin,
    ProdexStorage,
):
    """SQLite-based storage for Prodex.

    A single connection runs in autocommit mode; every entity group write
    opens its own explicit transaction, serialized by an asyncio lock so
    that concurrent requests never interleave statements inside one
    another's transaction.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path) if str(db_path) == ":memory:" else Path(db_path).resolve()
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize database connection and schema.

        For existing databases, runs pending migrations first, then applies
        the full schema so that indexes on new columns can be created safely.
        """
        if str(self._db_path) != ":memory:":
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self._db_path, isolation_level=None)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA foreign_keys = ON")
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA synchronous=NORMAL")

        await self._conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)"
        )

        async with self._conn.execute("SELECT version FROM schema_version") as cursor:
            row = await cursor.fetchone()

        if row is not None and row["version"] < SCHEMA_VERSION:
            await run_migrations(self._conn, row["version"])

        await self._conn.executescript(SCHEMA)

        async with self._conn.execute("SELECT version FROM schema_version") as cursor:
            row = await cursor.fetchone()
            if row is None:
                await self._conn.execute(
                    "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
                )
        logger.debug("Opened SQLite storage at %s", self._db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> aiosqlite.Connection:
        """Ensure the connection is available."""
        if self._conn is None:
            raise StorageError("Database not initialized. Call initialize() first.")
        return self._conn

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run the enclosed statements as one all-or-nothing transaction."""
        conn = self._ensure_conn()
        async with self._lock:
            await conn.execute("BEGIN")
            try:
                yield conn
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = self._ensure_conn()
        async with self._lock:
            yield conn

    # ========== Snapshot ==========

    async def get_snapshot(self, user_id: str) -> Snapshot:
        """Read all five collections for a user.

        Profile fields (full name, email) are not part of this read and come
        back blank. Only timezone and weekly capacity are authoritative here.
        """
        async with self._read() as conn:
            async with conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cursor:
                row = await cursor.fetchone()
            if row is None:
                raise StorageError(f"Unknown user {user_id}")
            user = row_to_user(row)

            tasks = await self._fetch_tasks(conn, user_id)
            goals = await self._fetch_goals(conn, user_id)
            applications = await self._fetch_applications(conn, user_id)
            skills = await self._fetch_skills(conn, user_id)

        return Snapshot(
            tasks=tuple(tasks),
            goals=tuple(goals),
            applications=tuple(applications),
            skills=tuple(skills),
            settings=UserSettings(
                full_name="",
                email="",
                timezone=user.timezone,
                weekly_capacity=user.weekly_capacity_hours,
                show_overload_warnings=True,
                enable_deadline_reminders=True,
            ),
        )
