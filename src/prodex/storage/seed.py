"""Demo data set and default learning resource catalog."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

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
    UserSettings,
)
from prodex.storage.sqlite_store import SQLiteStorage
from prodex.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

DEMO_TIMEZONE = "EST"

RESOURCE_CATALOG: list[dict[str, Any]] = [
    {
        "id": "cat-frontend",
        "name": "Frontend",
        "slug": "frontend",
        "description": "UI engineering guides, frameworks, and component best practices.",
        "displayOrder": 1,
        "resources": [
            {
                "id": "res-react-docs",
                "title": "React Official Docs",
                "description": "Modern React patterns and APIs from the core team.",
                "url": "https://react.dev/",
                "tags": ["react", "ui", "components"],
            },
            {
                "id": "res-nextjs-learn",
                "title": "Next.js Learn",
                "description": "Hands-on Next.js learning modules for App Router.",
                "url": "https://nextjs.org/learn",
                "tags": ["nextjs", "app-router"],
            },
        ],
    },
    {
        "id": "cat-backend",
        "name": "Backend",
        "slug": "backend",
        "description": "APIs, server architecture, and application logic resources.",
        "displayOrder": 2,
        "resources": [
            {
                "id": "res-node-docs",
                "title": "Node.js Documentation",
                "description": "Core runtime docs and APIs for backend development.",
                "url": "https://nodejs.org/en/docs",
                "tags": ["node", "javascript"],
            },
            {
                "id": "res-express-guide",
                "title": "Express.js Guide",
                "description": "Routing and middleware patterns for REST APIs.",
                "url": "https://expressjs.com/",
                "tags": ["express", "rest-api"],
            },
        ],
    },
    {
        "id": "cat-database",
        "name": "Database",
        "slug": "database",
        "description": "PostgreSQL, schema design, and query optimization materials.",
        "displayOrder": 3,
        "resources": [
            {
                "id": "res-prisma-docs",
                "title": "Prisma Documentation",
                "description": "Prisma schema, migrations, and querying references.",
                "url": "https://www.prisma.io/docs",
                "tags": ["prisma", "orm", "postgresql"],
            },
            {
                "id": "res-postgres-tutorial",
                "title": "PostgreSQL Tutorial",
                "description": "SQL and Postgres fundamentals from beginner to advanced.",
                "url": "https://www.postgresqltutorial.com/",
                "tags": ["postgresql", "sql"],
            },
        ],
    },
    {
        "id": "cat-cloud",
        "name": "Cloud",
        "slug": "cloud",
        "description": "Deployment, hosting, and cloud platform learning resources.",
        "displayOrder": 4,
        "resources": [
            {
                "id": "res-neon-docs",
                "title": "Neon Documentation",
                "description": "Serverless Postgres setup, branching, and scaling guides.",
                "url": "https://neon.tech/docs",
                "tags": ["neon", "postgresql", "cloud"],
            },
        ],
    },
]


def _day(today: date, offset: int) -> str:
    return (today + timedelta(days=offset)).isoformat()


def demo_tasks(today: date) -> list[Task]:
    return [
        Task(
            id="t1",
            title="Redesign onboarding flow",
            description="Improve first-time user experience",
            priority=Priority.CRITICAL,
            status=TaskStatus.IN_PROGRESS,
            estimated_hours=12,
            actual_hours=6,
            deadline=_day(today, 3),
            week=_day(today, 0),
        ),
        Task(
            id="t2",
            title="Set up CI/CD pipeline",
            description="Automate test and deploy workflow",
            priority=Priority.HIGH,
            status=TaskStatus.TODO,
            estimated_hours=8,
            deadline=_day(today, 5),
            week=_day(today, 0),
        ),
        Task(
            id="t3",
            title="Performance audit report",
            description="Collect Lighthouse and core web vitals",
            priority=Priority.MEDIUM,
            status=TaskStatus.DONE,
            estimated_hours=4,
            actual_hours=3,
            deadline=_day(today, -2),
            week=_day(today, -7),
        ),
    ]


def demo_goals(today: date) -> list[Goal]:
    return [
        Goal.create(
            "Master System Design",
            goal_id="g1",
            category=GoalCategory.TECHNICAL,
            description="Prepare for senior engineering interviews",
            target_date=_day(today, 90),
            progress=45,
            milestones=[
                Milestone(id="m1", title="Complete core modules", done=True),
                Milestone(id="m2", title="Practice 10 design prompts"),
            ],
        )
    ]


def demo_applications(today: date) -> list[Application]:
    return [
        Application(
            id="a1",
            company="Vercel",
            role="Frontend Engineer",
            status=ApplicationStatus.INTERVIEW,
            date_applied=_day(today, -10),
            job_url="https://vercel.com/careers",
            notes="Technical round next week",
        ),
        Application(
            id="a2",
            company="Stripe",
            role="Full Stack Engineer",
            status=ApplicationStatus.APPLIED,
            date_applied=_day(today, -4),
            job_url="https://stripe.com/jobs",
            notes="Applied via referral",
        ),
    ]


def demo_skills(today: date) -> list[Skill]:
    return [
        Skill(
            id="s1",
            name="React",
            category=GoalCategory.TECHNICAL.value,
            rating=5,
            assessed_at=_day(today, -2),
        )
    ]


async def seed_demo_data(
    storage: SQLiteStorage,
    email: str,
    *,
    reset: bool = True,
    today: date | None = None,
) -> dict[str, int]:
    """Install the demo user's data set and the resource catalog.

    With ``reset`` the user's existing entities are removed first so the
    demo set is the only content afterwards.

    Returns:
        Count of written records per collection
    """
    today = today or utcnow().date()
    user = await storage.ensure_user(email)
    await storage.update_user_settings(
        user,
        UserSettings(full_name="Demo User", timezone=DEMO_TIMEZONE, weekly_capacity=40),
    )
    if reset:
        await storage.clear_user_data(user.id)

    counts = {
        "tasks": await storage.upsert_tasks(user.id, demo_tasks(today)),
        "goals": await storage.upsert_goals(user.id, demo_goals(today)),
        "applications": await storage.upsert_applications(user.id, demo_applications(today)),
        "skills": await storage.upsert_skills(user.id, demo_skills(today)),
        "resources": await storage.replace_resource_catalog(RESOURCE_CATALOG),
    }
    logger.info("Seeded demo data for %s: %s", email, counts)
    return counts
