"""Tests for dashboard and workload metrics."""

from __future__ import annotations

from datetime import date

from prodex.core.entities import (
    Application,
    ApplicationStatus,
    Goal,
    Priority,
    Task,
    TaskStatus,
    UserSettings,
)
from prodex.core.metrics import (
    dashboard_metrics,
    priority_breakdown,
    week_range,
    week_summary,
    workload_fill,
    workload_percent,
    workload_trend,
)

# Wednesday
TODAY = date(2026, 3, 4)


class TestWorkload:
    def test_percent(self) -> None:
        assert workload_percent(20, 40) == 50
        assert workload_percent(45, 40) == 113

    def test_zero_capacity(self) -> None:
        assert workload_percent(10, 0) == 0

    def test_fill_capped(self) -> None:
        assert workload_fill(30, 40) == 75.0
        assert workload_fill(60, 40) == 100.0
        assert workload_fill(5, 0) == 0.0


class TestWeeks:
    def test_week_range_monday_to_sunday(self) -> None:
        assert week_range(TODAY) == (date(2026, 3, 2), date(2026, 3, 8))

    def test_week_summary(self) -> None:
        tasks = [
            Task(id="t1", title="a", estimated_hours=6, actual_hours=2, week="2026-03-02"),
            Task(id="t2", title="b", estimated_hours=4, week="2026-03-06"),
            Task(id="t3", title="c", estimated_hours=9, week="2026-03-09"),
        ]

        summary = week_summary(tasks, TODAY, capacity=20)

        assert summary.task_count == 2
        assert summary.estimated_hours == 10
        assert summary.actual_hours == 2
        assert summary.workload_percent == 50

    def test_trend_covers_eight_weeks(self) -> None:
        tasks = [
            Task(id="t1", title="a", estimated_hours=5, week="2026-03-03"),
            Task(id="t2", title="b", estimated_hours=3, week="2026-02-02"),
        ]

        trend = workload_trend(tasks, TODAY)

        assert len(trend) == 8
        assert trend[0].week_start == date(2026, 2, 2)
        assert trend[0].hours == 3
        assert trend[4].week_start == date(2026, 3, 2)
        assert trend[4].hours == 5
        assert trend[-1].week_start == date(2026, 3, 23)


class TestDashboard:
    def test_figures(self) -> None:
        tasks = [
            Task(
                id="t1",
                title="a",
                priority=Priority.CRITICAL,
                estimated_hours=12,
                deadline="2026-03-05",
            ),
            Task(
                id="t2",
                title="b",
                priority=Priority.HIGH,
                estimated_hours=8,
                deadline="2026-03-20",
            ),
            Task(
                id="t3",
                title="c",
                status=TaskStatus.DONE,
                estimated_hours=4,
                deadline="2026-03-03",
            ),
            Task(id="t4", title="d", status=TaskStatus.ARCHIVED, estimated_hours=2),
        ]
        goals = [Goal(id="g1", title="x", progress=40), Goal(id="g2", title="y", progress=100)]
        applications = [
            Application(id="a1", company="Vercel", role="FE", status=ApplicationStatus.INTERVIEW),
            Application(id="a2", company="Stripe", role="FS", status=ApplicationStatus.REJECTED),
        ]

        metrics = dashboard_metrics(
            tasks, goals, applications, UserSettings(weekly_capacity=40), TODAY
        )

        assert metrics.tasks_due_this_week == 1
        assert metrics.open_estimated_hours == 20
        assert metrics.workload_percent == 50
        assert not metrics.overloaded
        assert metrics.active_goals == 1
        assert metrics.open_applications == 1
        assert metrics.priority_breakdown == {"critical": 1, "high": 1, "medium": 1}

    def test_overloaded(self) -> None:
        tasks = [Task(id="t1", title="a", estimated_hours=50)]

        metrics = dashboard_metrics(tasks, [], [], UserSettings(weekly_capacity=40), TODAY)

        assert metrics.overloaded

    def test_breakdown_skips_archived(self) -> None:
        tasks = [Task(id="t1", title="a", status=TaskStatus.ARCHIVED, priority=Priority.LOW)]

        assert priority_breakdown(tasks) == {}
