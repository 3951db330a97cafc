"""SQLite learning resource catalog operations mixin."""

from __future__ import annotations

import json
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any

from prodex.storage.sqlite_row_mappers import (
    Resource,
    ResourceCategory,
    row_to_resource,
    row_to_resource_category,
)
from prodex.utils.timeutils import to_db, utcnow

if TYPE_CHECKING:
    import aiosqlite


class SQLiteResourceMixin:
    """Mixin providing read access to the resource catalog, plus catalog install."""

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    def _read(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    async def list_resource_categories(self) -> list[ResourceCategory]:
        async with self._read() as conn:
            async with conn.execute(
                """SELECT c.*, COUNT(r.id) AS resource_count
                   FROM resource_categories c
                   LEFT JOIN resources r ON r.category_id = c.id
                   GROUP BY c.id
                   ORDER BY c.display_order ASC, c.name ASC"""
            ) as cursor:
                rows = await cursor.fetchall()
        return [row_to_resource_category(row) for row in rows]

    async def get_resource_category(
        self, slug: str
    ) -> tuple[ResourceCategory, list[Resource]] | None:
        """Look up a category by slug together with its resources, newest first."""
        async with self._read() as conn:
            async with conn.execute(
                "SELECT * FROM resource_categories WHERE slug = ?", (slug,)
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return None

            async with conn.execute(
                """SELECT * FROM resources WHERE category_id = ?
                   ORDER BY created_at DESC, title ASC""",
                (row["id"],),
            ) as cursor:
                resource_rows = await cursor.fetchall()

        resources = [row_to_resource(r) for r in resource_rows]
        category = row_to_resource_category(row)
        return category, resources

    async def replace_resource_catalog(self, categories: Sequence[dict[str, Any]]) -> int:
        """Install a catalog, replacing any category with the same slug.

        Each category dict carries ``id``, ``name``, ``slug``, ``description``,
        ``displayOrder`` and a ``resources`` list of dicts with ``id``,
        ``title``, ``description``, ``url`` and ``tags``.

        Returns:
            Number of resources written
        """
        written = 0
        now = utcnow()
        async with self._transaction() as conn:
            for category in categories:
                await conn.execute(
                    "DELETE FROM resource_categories WHERE slug = ? OR id = ?",
                    (category["slug"], category["id"]),
                )
                await conn.execute(
                    """INSERT INTO resource_categories (id, name, slug, description, display_order)
                       VALUES (?, ?, ?, ?, ?)""",
                    (
                        category["id"],
                        category["name"],
                        category["slug"],
                        category.get("description"),
                        category.get("displayOrder", 0),
                    ),
                )
                for resource in category.get("resources", []):
                    await conn.execute(
                        """INSERT OR REPLACE INTO resources
                           (id, category_id, title, description, url, tags, created_at)
                           VALUES (?, ?, ?, ?, ?, ?, ?)""",
                        (
                            resource["id"],
                            category["id"],
                            resource["title"],
                            resource.get("description"),
                            resource["url"],
                            json.dumps(resource.get("tags", [])),
                            to_db(now),
                        ),
                    )
                    written += 1
        return written
