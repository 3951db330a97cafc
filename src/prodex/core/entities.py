"""Prodex entity data structures: tasks, goals, applications, skills, settings.

Entities are immutable. Local edits produce new instances, which keeps
collection snapshots safe to share between the reconciliation engine and
its listeners. Field names are snake_case in Python and camelCase on the
wire; ``from_dict``/``to_dict`` translate between the two.
"""

from __future__ import annotations

import math
import secrets
import string
import time
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from prodex.utils.timeutils import iso_timestamp, utcnow

_BASE36 = string.digits + string.ascii_lowercase


class Priority(StrEnum):
    """Task priority."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskStatus(StrEnum):
    """Kanban column of a task (client spelling)."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    ARCHIVED = "archived"


class ApplicationStatus(StrEnum):
    """Job application pipeline stage (client spelling)."""

    SAVED = "saved"
    APPLIED = "applied"
    PHONE_SCREEN = "phone-screen"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class GoalCategory(StrEnum):
    """Career goal (and skill) category."""

    TECHNICAL = "technical"
    EDUCATION = "education"
    LEADERSHIP = "leadership"
    NETWORK = "network"
    OTHER = "other"


class EntityType(StrEnum):
    """Deletable collection types. Values double as snapshot keys."""

    TASK = "tasks"
    GOAL = "goals"
    APPLICATION = "applications"
    SKILL = "skills"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Opaque client-side id: 9 random base36 chars followed by a base36 ms timestamp."""
    random_part = "".join(secrets.choice(_BASE36) for _ in range(9))
    return random_part + _base36(int(time.time() * 1000))


def round_half_up(value: float) -> int:
    """Round .5 upward, matching how the web client rounds percentages."""
    return int(math.floor(value + 0.5))


def clamp_progress(value: float) -> int:
    """Clamp a progress value into [0, 100]."""
    return max(0, min(100, round_half_up(value)))


def _now_iso() -> str:
    return iso_timestamp(utcnow())


@dataclass(frozen=True)
class Task:
    """
    A unit of work on the kanban board.

    Attributes:
        id: Client-assigned identifier, never reassigned
        title: Short task title
        description: Free-form notes
        priority: Closed priority enumeration
        status: Kanban column
        estimated_hours: Planned effort (>= 0)
        actual_hours: Logged effort (>= 0)
        deadline: Calendar day ``YYYY-MM-DD`` or empty
        week: Calendar day anchoring the task's 7-day bucket, or empty
        created_at: ISO timestamp
    """

    id: str
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    estimated_hours: float = 0.0
    actual_hours: float = 0.0
    deadline: str = ""
    week: str = ""
    created_at: str = field(default_factory=_now_iso)

    @classmethod
    def create(cls, title: str, task_id: str | None = None, **fields: Any) -> Task:
        """Factory method creating a task with a fresh id."""
        return cls(id=task_id or generate_id(), title=title, **fields)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description") or "",
            priority=Priority(data.get("priority", Priority.MEDIUM)),
            status=TaskStatus(data.get("status", TaskStatus.TODO)),
            estimated_hours=float(data.get("estimatedHours") or 0),
            actual_hours=float(data.get("actualHours") or 0),
            deadline=data.get("deadline") or "",
            week=data.get("week") or "",
            created_at=data.get("createdAt") or _now_iso(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "estimatedHours": self.estimated_hours,
            "actualHours": self.actual_hours,
            "deadline": self.deadline,
            "week": self.week,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Milestone:
    """A checkpoint within a goal."""

    id: str
    title: str
    done: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Milestone:
        return cls(id=str(data["id"]), title=data.get("title", ""), done=bool(data.get("done")))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "done": self.done}


def milestone_progress(milestones: tuple[Milestone, ...] | list[Milestone]) -> int | None:
    """Completion ratio as a percentage, or None when there are no milestones."""
    if not milestones:
        return None
    done = sum(1 for m in milestones if m.done)
    return round_half_up(done / len(milestones) * 100)


@dataclass(frozen=True)
class Goal:
    """
    A career goal with optional ordered milestones.

    When milestones exist, progress is derived from their completion ratio.
    Direct progress edits are still accepted and are overwritten by the next
    milestone toggle.
    """

    id: str
    title: str
    category: GoalCategory = GoalCategory.OTHER
    target_date: str = ""
    description: str = ""
    progress: int = 0
    milestones: tuple[Milestone, ...] = ()
    created_at: str = field(default_factory=_now_iso)

    @classmethod
    def create(cls, title: str, goal_id: str | None = None, **fields: Any) -> Goal:
        """Factory method creating a goal with a fresh id."""
        milestones = tuple(fields.pop("milestones", ()))
        goal = cls(id=goal_id or generate_id(), title=title, milestones=milestones, **fields)
        derived = milestone_progress(goal.milestones)
        return goal if derived is None else replace(goal, progress=derived)

    def with_progress(self, progress: float) -> Goal:
        """Set progress directly (slider edit), clamped to [0, 100]."""
        return replace(self, progress=clamp_progress(progress))

    def toggle_milestone(self, milestone_id: str) -> Goal:
        """Flip one milestone and re-derive progress."""
        milestones = tuple(
            replace(m, done=not m.done) if m.id == milestone_id else m for m in self.milestones
        )
        derived = milestone_progress(milestones)
        return replace(
            self,
            milestones=milestones,
            progress=self.progress if derived is None else derived,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Goal:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            category=GoalCategory(data.get("category", GoalCategory.OTHER)),
            target_date=data.get("targetDate") or "",
            description=data.get("description") or "",
            progress=clamp_progress(data.get("progress") or 0),
            milestones=tuple(Milestone.from_dict(m) for m in data.get("milestones") or []),
            created_at=data.get("createdAt") or _now_iso(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "targetDate": self.target_date,
            "description": self.description,
            "progress": self.progress,
            "milestones": [m.to_dict() for m in self.milestones],
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Application:
    """A job application moving through the hiring pipeline."""

    id: str
    company: str
    role: str
    status: ApplicationStatus = ApplicationStatus.SAVED
    date_applied: str = ""
    job_url: str = ""
    notes: str = ""
    created_at: str = field(default_factory=_now_iso)

    @classmethod
    def create(
        cls, company: str, role: str, app_id: str | None = None, **fields: Any
    ) -> Application:
        return cls(id=app_id or generate_id(), company=company, role=role, **fields)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Application:
        return cls(
            id=str(data["id"]),
            company=data.get("company", ""),
            role=data.get("role", ""),
            status=ApplicationStatus(data.get("status", ApplicationStatus.SAVED)),
            date_applied=data.get("dateApplied") or "",
            job_url=data.get("jobUrl") or "",
            notes=data.get("notes") or "",
            created_at=data.get("createdAt") or _now_iso(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "company": self.company,
            "role": self.role,
            "status": self.status.value,
            "dateApplied": self.date_applied,
            "jobUrl": self.job_url,
            "notes": self.notes,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Skill:
    """A self-assessed skill. Only the latest rating is kept."""

    id: str
    name: str
    category: str = GoalCategory.TECHNICAL.value
    rating: int = 3
    assessed_at: str = field(default_factory=_now_iso)

    @classmethod
    def create(cls, name: str, skill_id: str | None = None, **fields: Any) -> Skill:
        return cls(id=skill_id or generate_id(), name=name, **fields)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Skill:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            category=str(data.get("category") or GoalCategory.TECHNICAL.value),
            rating=int(data.get("rating") or 3),
            assessed_at=data.get("assessedAt") or _now_iso(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "rating": self.rating,
            "assessedAt": self.assessed_at,
        }


@dataclass(frozen=True)
class UserSettings:
    """Per-user settings singleton."""

    full_name: str = ""
    email: str = ""
    timezone: str = "UTC"
    weekly_capacity: float = 40.0
    show_overload_warnings: bool = True
    enable_deadline_reminders: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UserSettings:
        if not data:
            return cls()
        return cls(
            full_name=data.get("fullName") or "",
            email=data.get("email") or "",
            timezone=data.get("timezone") or "UTC",
            weekly_capacity=float(data.get("weeklyCapacity", 40.0)),
            show_overload_warnings=bool(data.get("showOverloadWarnings", True)),
            enable_deadline_reminders=bool(data.get("enableDeadlineReminders", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fullName": self.full_name,
            "email": self.email,
            "timezone": self.timezone,
            "weeklyCapacity": self.weekly_capacity,
            "showOverloadWarnings": self.show_overload_warnings,
            "enableDeadlineReminders": self.enable_deadline_reminders,
        }


ENTITY_CLASSES: dict[EntityType, type[Task] | type[Goal] | type[Application] | type[Skill]] = {
    EntityType.TASK: Task,
    EntityType.GOAL: Goal,
    EntityType.APPLICATION: Application,
    EntityType.SKILL: Skill,
}


@dataclass(frozen=True)
class Snapshot:
    """Complete denormalized read of all five collections for one user."""

    tasks: tuple[Task, ...] = ()
    goals: tuple[Goal, ...] = ()
    applications: tuple[Application, ...] = ()
    skills: tuple[Skill, ...] = ()
    settings: UserSettings = field(default_factory=UserSettings)

    def ids(self, entity_type: EntityType) -> set[str]:
        """Ids present in one collection."""
        items: tuple[Any, ...] = getattr(self, entity_type.value)
        return {item.id for item in items}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        return cls(
            tasks=tuple(Task.from_dict(t) for t in data.get("tasks") or []),
            goals=tuple(Goal.from_dict(g) for g in data.get("goals") or []),
            applications=tuple(
                Application.from_dict(a) for a in data.get("applications") or []
            ),
            skills=tuple(Skill.from_dict(s) for s in data.get("skills") or []),
            settings=UserSettings.from_dict(data.get("settings")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "goals": [g.to_dict() for g in self.goals],
            "applications": [a.to_dict() for a in self.applications],
            "skills": [s.to_dict() for s in self.skills],
            "settings": self.settings.to_dict(),
        }
