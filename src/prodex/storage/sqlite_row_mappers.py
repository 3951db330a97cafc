"""Row-to-model conversion and status token translation for SQLite storage."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from prodex.core.entities import (
    Application,
    ApplicationStatus,
    Goal,
    GoalCategory,
    Milestone,
    Priority,
    Skill,
    Task,
    TaskStatus,
)
from prodex.utils.timeutils import day_string, from_db, iso_timestamp, utcnow

if TYPE_CHECKING:
    import aiosqlite

DEFAULT_SKILL_RATING = 3

# Internal (storage) spelling differs from client spelling for these tokens only.
_TASK_STATUS_TO_DB = {TaskStatus.IN_PROGRESS: "in_progress"}
_TASK_STATUS_FROM_DB = {v: k for k, v in _TASK_STATUS_TO_DB.items()}
_APP_STATUS_TO_DB = {ApplicationStatus.PHONE_SCREEN: "phone_screen"}
_APP_STATUS_FROM_DB = {v: k for k, v in _APP_STATUS_TO_DB.items()}

MILESTONE_COMPLETED = "completed"
MILESTONE_PENDING = "pending"


def task_status_to_db(status: TaskStatus | str) -> str:
    status = TaskStatus(status)
    return _TASK_STATUS_TO_DB.get(status, status.value)


def task_status_from_db(token: str) -> TaskStatus:
    return _TASK_STATUS_FROM_DB.get(token) or TaskStatus(token)


def app_status_to_db(status: ApplicationStatus | str) -> str:
    status = ApplicationStatus(status)
    return _APP_STATUS_TO_DB.get(status, status.value)


def app_status_from_db(token: str) -> ApplicationStatus:
    return _APP_STATUS_FROM_DB.get(token) or ApplicationStatus(token)


def milestone_status_to_db(done: bool) -> str:
    return MILESTONE_COMPLETED if done else MILESTONE_PENDING


@dataclass(frozen=True)
class UserRecord:
    """A stored user row."""

    id: str
    email: str
    full_name: str
    timezone: str
    weekly_capacity_hours: float
    created_at: datetime


@dataclass(frozen=True)
class ResourceCategory:
    """A learning resource category with its resource count."""

    id: str
    name: str
    slug: str
    description: str
    display_order: int = 0
    resource_count: int = 0

    def to_dict(self, *, with_count: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
        }
        if with_count:
            data["resourceCount"] = self.resource_count
        return data


@dataclass(frozen=True)
class Resource:
    """A single learning resource."""

    id: str
    title: str
    description: str
    tags: list[str]
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "url": self.url,
        }


def _timestamp(value: str | None) -> str:
    parsed = from_db(value)
    return iso_timestamp(parsed or utcnow())


def row_to_user(row: aiosqlite.Row) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        id=row["id"],
        email=row["email"],
        full_name=row["full_name"] or "",
        timezone=row["timezone"] or "UTC",
        weekly_capacity_hours=float(row["weekly_capacity_hours"]),
        created_at=from_db(row["created_at"]) or utcnow(),
    )


def row_to_task(row: aiosqlite.Row) -> Task:
    """Convert database row to Task."""
    return Task(
        id=row["id"],
        title=row["title"],
        description=row["description"] or "",
        priority=Priority(row["priority"]),
        status=task_status_from_db(row["status"]),
        estimated_hours=float(row["estimated_hours"]),
        actual_hours=float(row["actual_hours"]),
        deadline=day_string(from_db(row["deadline"])),
        week=day_string(from_db(row["week_start"])),
        created_at=_timestamp(row["created_at"]),
    )


def row_to_milestone(row: aiosqlite.Row) -> Milestone:
    """Convert database row to Milestone."""
    return Milestone(id=row["id"], title=row["title"], done=row["status"] == MILESTONE_COMPLETED)


def row_to_goal(row: aiosqlite.Row, milestones: list[Milestone]) -> Goal:
    """Convert database row plus its joined milestones to Goal."""
    return Goal(
        id=row["id"],
        title=row["title"],
        category=GoalCategory(row["category"]),
        target_date=day_string(from_db(row["target_date"])),
        description=row["description"] or "",
        progress=int(row["progress_pct"]),
        milestones=tuple(milestones),
        created_at=_timestamp(row["created_at"]),
    )


def row_to_application(row: aiosqlite.Row) -> Application:
    """Convert database row to Application."""
    return Application(
        id=row["id"],
        company=row["company_name"],
        role=row["role_title"],
        status=app_status_from_db(row["status"]),
        date_applied=day_string(from_db(row["applied_date"])),
        job_url=row["job_url"] or "",
        notes=row["notes"] or "",
        created_at=_timestamp(row["created_at"]),
    )


def row_to_skill(row: aiosqlite.Row) -> Skill:
    """Convert a skill row joined with its latest assessment to Skill."""
    rating = row["rating"]
    return Skill(
        id=row["id"],
        name=row["name"],
        category=row["category"],
        rating=int(rating) if rating is not None else DEFAULT_SKILL_RATING,
        assessed_at=_timestamp(row["assessed_at"]),
    )


def row_to_resource_category(row: aiosqlite.Row) -> ResourceCategory:
    """Convert database row to ResourceCategory."""
    row_keys = row.keys()
    return ResourceCategory(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        description=row["description"] or "",
        display_order=int(row["display_order"] or 0),
        resource_count=int(row["resource_count"]) if "resource_count" in row_keys else 0,
    )


def row_to_resource(row: aiosqlite.Row) -> Resource:
    """Convert database row to Resource."""
    return Resource(
        id=row["id"],
        title=row["title"],
        description=row["description"] or "",
        tags=list(json.loads(row["tags"] or "[]")),
        url=row["url"],
    )
