"""Abstract base class for Prodex storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prodex.core.entities import Application, Goal, Skill, Snapshot, Task, UserSettings
    from prodex.storage.sqlite_row_mappers import Resource, ResourceCategory, UserRecord


class StorageError(Exception):
    """Persistence failure outside a single entity group."""


class ProdexStorage(ABC):
    """
    Abstract interface for per-user entity storage.

    Every write is an upsert keyed by the client-supplied id; storage never
    generates entity ids. Each entity group is written in its own
    all-or-nothing transaction so callers can isolate group failures.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections and create the schema."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        ...

    # ========== Users ==========

    @abstractmethod
    async def ensure_user(self, email: str) -> UserRecord:
        """Return the user with ``email``, creating a default record if absent."""
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> UserRecord | None:
        ...

    @abstractmethod
    async def update_user_settings(self, user: UserRecord, settings: UserSettings) -> UserRecord:
        """Apply profile and capacity fields from pushed settings."""
        ...

    # ========== Entity groups ==========

    @abstractmethod
    async def upsert_tasks(self, user_id: str, tasks: Sequence[Task]) -> int:
        """
        Upsert tasks in one transaction.

        Returns:
            Number of tasks written

        Raises:
            Exception: Any failure; no task of the batch is persisted
        """
        ...

    @abstractmethod
    async def upsert_goals(self, user_id: str, goals: Sequence[Goal]) -> int:
        """Upsert goals and their milestones in one transaction."""
        ...

    @abstractmethod
    async def upsert_applications(self, user_id: str, applications: Sequence[Application]) -> int:
        """Upsert job applications in one transaction."""
        ...

    @abstractmethod
    async def upsert_skills(self, user_id: str, skills: Sequence[Skill]) -> int:
        """Upsert skills (keyed by name) and their latest assessment in one transaction."""
        ...

    # ========== Reads ==========

    @abstractmethod
    async def get_tasks(self, user_id: str) -> list[Task]:
        ...

    @abstractmethod
    async def get_snapshot(self, user_id: str) -> Snapshot:
        """Read all five collections for a user."""
        ...

    # ========== Resource catalog ==========

    @abstractmethod
    async def list_resource_categories(self) -> list[ResourceCategory]:
        ...

    @abstractmethod
    async def get_resource_category(
        self, slug: str
    ) -> tuple[ResourceCategory, list[Resource]] | None:
        ...
