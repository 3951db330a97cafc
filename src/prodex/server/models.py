"""Pydantic models for API request/response bodies.

Bodies use camelCase keys on the wire. Request models are validated before
any persistence is attempted and convert into core entities with
``to_entity()``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from prodex.core.entities import (
    Application,
    ApplicationStatus,
    Goal,
    GoalCategory,
    Priority,
    Skill,
    Task,
    TaskStatus,
    UserSettings,
)


class WireModel(BaseModel):
    """Base for camelCase JSON bodies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# ============ Entity Payloads ============


class TaskPayload(WireModel):
    """A task as pushed by the client."""

    id: str = Field(..., min_length=1)
    title: str
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    estimated_hours: float = Field(0, ge=0)
    actual_hours: float = Field(0, ge=0)
    deadline: str | None = None
    week: str | None = None
    created_at: str | None = None

    def to_entity(self) -> Task:
        return Task.from_dict(self.to_wire())


class MilestonePayload(WireModel):
    id: str = Field(..., min_length=1)
    title: str
    done: bool = False


class GoalPayload(WireModel):
    """A goal with its ordered milestones."""

    id: str = Field(..., min_length=1)
    title: str
    category: GoalCategory = GoalCategory.OTHER
    target_date: str | None = None
    description: str | None = None
    progress: float = Field(0, ge=0, le=100)
    milestones: list[MilestonePayload] = Field(default_factory=list)
    created_at: str | None = None

    def to_entity(self) -> Goal:
        return Goal.from_dict(self.to_wire())


class ApplicationPayload(WireModel):
    id: str = Field(..., min_length=1)
    company: str
    role: str
    status: ApplicationStatus = ApplicationStatus.SAVED
    date_applied: str | None = None
    job_url: str | None = None
    notes: str | None = None
    created_at: str | None = None

    def to_entity(self) -> Application:
        return Application.from_dict(self.to_wire())


class SkillPayload(WireModel):
    """A skill with its latest self-assessment.

    The category is checked by storage, so an unknown category fails only the
    skills group of a full sync.
    """

    id: str = Field(..., min_length=1)
    name: str
    category: str = GoalCategory.TECHNICAL.value
    rating: int = Field(3, ge=1, le=5)
    assessed_at: str | None = None

    def to_entity(self) -> Skill:
        return Skill.from_dict(self.to_wire())


class SettingsPayload(WireModel):
    full_name: str = ""
    email: str = ""
    timezone: str = ""
    weekly_capacity: float = Field(0, ge=0)
    show_overload_warnings: bool = True
    enable_deadline_reminders: bool = True

    def to_entity(self) -> UserSettings:
        return UserSettings(
            full_name=self.full_name,
            email=self.email,
            timezone=self.timezone,
            weekly_capacity=self.weekly_capacity,
            show_overload_warnings=self.show_overload_warnings,
            enable_deadline_reminders=self.enable_deadline_reminders,
        )


# ============ Request Models ============


class TaskSyncRequest(WireModel):
    """Body of the task-only push."""

    tasks: list[TaskPayload]


class SyncRequest(WireModel):
    """Body of the full multi-group push.

    ``tasks`` is optional: when omitted the task group is left untouched.
    """

    tasks: list[TaskPayload] | None = None
    goals: list[GoalPayload] = Field(default_factory=list)
    applications: list[ApplicationPayload] = Field(default_factory=list)
    skills: list[SkillPayload] = Field(default_factory=list)
    settings: SettingsPayload


# ============ Response Models ============


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    details: str | None = None
