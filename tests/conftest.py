"""Pytest configuration and fixtures."""

from __future__ import annotations

import pathlib
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio

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
from prodex.storage.sqlite_row_mappers import UserRecord
from prodex.storage.sqlite_store import SQLiteStorage
from prodex.utils.config import reset_config

DEMO_EMAIL = "demo@prodex.io"


@pytest.fixture(autouse=True)
def _isolated_config(
    tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point every config lookup at a temporary data directory."""
    monkeypatch.setenv("PRODEX_DIR", str(tmp_path / "prodex-home"))
    for key in ("PRODEX_SQLITE_PATH", "PRODEX_TOMBSTONE_PATH", "PRODEX_API_URL"):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest_asyncio.fixture
async def storage(tmp_path: pathlib.Path) -> AsyncGenerator[SQLiteStorage, None]:
    """Initialized SQLite storage in a temporary file."""
    store = SQLiteStorage(tmp_path / "prodex.db")
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def user(storage: SQLiteStorage) -> UserRecord:
    """The default demo user."""
    return await storage.ensure_user(DEMO_EMAIL)


@pytest.fixture
def sample_tasks() -> list[Task]:
    """Tasks covering every status spelling that differs between wire and storage."""
    return [
        Task(
            id="t1",
            title="Redesign onboarding flow",
            description="Improve first-time user experience",
            priority=Priority.CRITICAL,
            status=TaskStatus.IN_PROGRESS,
            estimated_hours=12,
            actual_hours=6,
            deadline="2026-03-05",
            week="2026-03-02",
            created_at="2026-02-20T09:00:00.000Z",
        ),
        Task(
            id="t2",
            title="Set up CI/CD pipeline",
            priority=Priority.HIGH,
            status=TaskStatus.TODO,
            estimated_hours=8,
            created_at="2026-02-21T09:00:00.000Z",
        ),
    ]


@pytest.fixture
def sample_goal() -> Goal:
    """A goal with two of three milestones done and the matching progress."""
    return Goal(
        id="g1",
        title="Master System Design",
        category=GoalCategory.TECHNICAL,
        target_date="2026-06-01",
        description="Prepare for senior engineering interviews",
        progress=67,
        milestones=(
            Milestone(id="m1", title="Complete core modules", done=True),
            Milestone(id="m2", title="Practice 10 design prompts", done=True),
            Milestone(id="m3", title="Mock interview", done=False),
        ),
        created_at="2026-01-10T12:00:00.000Z",
    )


@pytest.fixture
def sample_applications() -> list[Application]:
    return [
        Application(
            id="a1",
            company="Vercel",
            role="Frontend Engineer",
            status=ApplicationStatus.PHONE_SCREEN,
            date_applied="2026-02-10",
            job_url="https://vercel.com/careers",
            notes="Technical round next week",
            created_at="2026-02-10T08:00:00.000Z",
        )
    ]


@pytest.fixture
def sample_skills() -> list[Skill]:
    return [
        Skill(
            id="s1",
            name="React",
            category="technical",
            rating=5,
            assessed_at="2026-02-01T00:00:00.000Z",
        )
    ]


@pytest.fixture
def sync_payload(
    sample_tasks: list[Task],
    sample_goal: Goal,
    sample_applications: list[Application],
    sample_skills: list[Skill],
) -> dict[str, Any]:
    """A full sync request body as the client sends it."""
    return {
        "tasks": [t.to_dict() for t in sample_tasks],
        "goals": [sample_goal.to_dict()],
        "applications": [a.to_dict() for a in sample_applications],
        "skills": [s.to_dict() for s in sample_skills],
        "settings": {
            "fullName": "Alex Morgan",
            "email": "alex.morgan@prodex.io",
            "timezone": "EST",
            "weeklyCapacity": 35,
            "showOverloadWarnings": True,
            "enableDeadlineReminders": False,
        },
    }
