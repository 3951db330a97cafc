"""SQLite schema definition for Prodex storage."""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import aiosqlite

logger = logging.getLogger(__name__)

# Schema version for migrations
SCHEMA_VERSION = 1

# ── Migrations ──────────────────────────────────────────────────────
# Each entry maps (from_version -> to_version) with a list of SQL statements.
# Migrations run sequentially in initialize() when db version < SCHEMA_VERSION.
MIGRATIONS: dict[tuple[int, int], list[str]] = {}


async def run_migrations(conn: aiosqlite.Connection, current_version: int) -> int:
    """Apply all pending migrations from current_version to SCHEMA_VERSION.

    Returns the final schema version after all migrations.
    """
    version = current_version

    while version < SCHEMA_VERSION:
        next_version = version + 1
        for sql in MIGRATIONS.get((version, next_version), []):
            try:
                await conn.execute(sql)
            except sqlite3.OperationalError as e:
                # Column/index may already exist (partial migration or manual fix).
                message = str(e).lower()
                if "duplicate column" in message or "already exists" in message:
                    logger.debug("Migration already applied: %s", e)
                else:
                    logger.warning("Migration statement failed: %s: %s", sql[:80], e)
        version = next_version

    await conn.execute("UPDATE schema_version SET version = ?", (SCHEMA_VERSION,))
    return version


SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- Users (settings singleton lives on the user row)
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    full_name TEXT,
    timezone TEXT NOT NULL DEFAULT 'UTC',
    weekly_capacity_hours REAL NOT NULL DEFAULT 40,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Tasks (status uses internal spelling: in_progress)
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    status TEXT NOT NULL CHECK (status IN ('todo', 'in_progress', 'done', 'archived')),
    priority TEXT NOT NULL CHECK (priority IN ('critical', 'high', 'medium', 'low')),
    estimated_hours REAL NOT NULL DEFAULT 0,
    actual_hours REAL NOT NULL DEFAULT 0,
    deadline TEXT,
    week_start TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id, created_at);

-- Career goals
CREATE TABLE IF NOT EXISTS career_goals (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    category TEXT NOT NULL
        CHECK (category IN ('technical', 'education', 'leadership', 'network', 'other')),
    target_date TEXT,
    progress_pct INTEGER NOT NULL DEFAULT 0 CHECK (progress_pct BETWEEN 0 AND 100),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_goals_user ON career_goals(user_id, created_at);

-- Goal milestones (done <-> 'completed', not done <-> 'pending')
CREATE TABLE IF NOT EXISTS career_milestones (
    id TEXT PRIMARY KEY,
    goal_id TEXT NOT NULL,
    title TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'completed')),
    completed_date TEXT,
    position INTEGER DEFAULT 0,
    FOREIGN KEY (goal_id) REFERENCES career_goals(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_milestones_goal ON career_milestones(goal_id, position);

-- Job applications (status uses internal spelling: phone_screen)
CREATE TABLE IF NOT EXISTS job_applications (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    company_name TEXT NOT NULL,
    role_title TEXT NOT NULL,
    status TEXT NOT NULL CHECK (status IN (
        'saved', 'applied', 'phone_screen', 'interview', 'offer', 'rejected', 'withdrawn'
    )),
    applied_date TEXT,
    job_url TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_applications_user ON job_applications(user_id, created_at);

-- Skills, unique by name per user
CREATE TABLE IF NOT EXISTS skills (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    category TEXT NOT NULL
        CHECK (category IN ('technical', 'education', 'leadership', 'network', 'other')),
    created_at TEXT NOT NULL,
    UNIQUE (user_id, name),
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

-- Skill assessments (one "<skill_id>-latest" slot per skill)
CREATE TABLE IF NOT EXISTS skill_assessments (
    id TEXT PRIMARY KEY,
    skill_id TEXT NOT NULL,
    rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
    assessed_at TEXT NOT NULL,
    FOREIGN KEY (skill_id) REFERENCES skills(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_assessments_skill ON skill_assessments(skill_id, assessed_at);

-- Learning resource catalog (read-only through the API)
CREATE TABLE IF NOT EXISTS resource_categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    description TEXT,
    display_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS resources (
    id TEXT PRIMARY KEY,
    category_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    url TEXT NOT NULL,
    tags TEXT DEFAULT '[]',  -- JSON array
    created_at TEXT NOT NULL,
    FOREIGN KEY (category_id) REFERENCES resource_categories(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_resources_category ON resources(category_id, created_at);
"""
