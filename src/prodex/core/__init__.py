"""Core Prodex data structures."""

from prodex.core.entities import (
    Application,
    ApplicationStatus,
    EntityType,
    Goal,
    GoalCategory,
    Milestone,
    Priority,
    Skill,
    Snapshot,
    Task,
    TaskStatus,
    UserSettings,
    generate_id,
)

__all__ = [
    "Application",
    "ApplicationStatus",
    "EntityType",
    "Goal",
    "GoalCategory",
    "Milestone",
    "Priority",
    "Skill",
    "Snapshot",
    "Task",
    "TaskStatus",
    "UserSettings",
    "generate_id",
]
