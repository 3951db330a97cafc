"""Dashboard and workload aggregation over the local collections."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from prodex.core.entities import (
    Application,
    ApplicationStatus,
    Goal,
    Priority,
    Task,
    TaskStatus,
    UserSettings,
    round_half_up,
)

_CLOSED_TASK_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.ARCHIVED})
_CLOSED_APPLICATION_STATUSES = frozenset({ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN})
TREND_WEEKS_BACK = 4
TREND_WEEKS_AHEAD = 4


def workload_percent(hours: float, capacity: float) -> int:
    """Hours as a rounded percentage of capacity. Zero or negative capacity yields 0."""
    if capacity <= 0:
        return 0
    return round_half_up(hours / capacity * 100)


def workload_fill(used: float, total: float) -> float:
    """Fill ratio of a workload bar in [0, 100]."""
    if total <= 0:
        return 0.0
    return min(used / total * 100, 100.0)


def week_range(day: date) -> tuple[date, date]:
    """Monday..Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def _as_day(value: str) -> date | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def _is_open(task: Task) -> bool:
    return task.status not in _CLOSED_TASK_STATUSES


@dataclass(frozen=True)
class WeekBucket:
    """Estimated hours planned for one week."""

    week_start: date
    hours: float


@dataclass(frozen=True)
class WeekSummary:
    """Workload for a single week."""

    week_start: date
    week_end: date
    estimated_hours: float
    actual_hours: float
    capacity: float
    workload_percent: int
    task_count: int


@dataclass(frozen=True)
class DashboardMetrics:
    """Aggregated figures shown on the dashboard."""

    tasks_due_this_week: int
    open_estimated_hours: float
    workload_percent: int
    active_goals: int
    open_applications: int
    priority_breakdown: dict[str, int] = field(default_factory=dict)
    workload_trend: list[WeekBucket] = field(default_factory=list)

    @property
    def overloaded(self) -> bool:
        return self.workload_percent > 100


def tasks_in_week(tasks: Iterable[Task], day: date) -> list[Task]:
    """Tasks whose ``week`` anchor falls in the week containing ``day``."""
    start, end = week_range(day)
    result = []
    for task in tasks:
        anchor = _as_day(task.week)
        if anchor is not None and start <= anchor <= end:
            result.append(task)
    return result


def week_summary(tasks: Sequence[Task], day: date, capacity: float) -> WeekSummary:
    """Estimated vs. actual hours for the week containing ``day``."""
    start, end = week_range(day)
    week_tasks = tasks_in_week(tasks, day)
    estimated = sum(t.estimated_hours for t in week_tasks)
    return WeekSummary(
        week_start=start,
        week_end=end,
        estimated_hours=estimated,
        actual_hours=sum(t.actual_hours for t in week_tasks),
        capacity=capacity,
        workload_percent=workload_percent(estimated, capacity),
        task_count=len(week_tasks),
    )


def workload_trend(tasks: Sequence[Task], today: date) -> list[WeekBucket]:
    """Planned hours for the 4 weeks before and the 4 weeks from the current one."""
    current_start, _ = week_range(today)
    buckets = []
    for offset in range(-TREND_WEEKS_BACK, TREND_WEEKS_AHEAD):
        week_start = current_start + timedelta(weeks=offset)
        hours = sum(t.estimated_hours for t in tasks_in_week(tasks, week_start))
        buckets.append(WeekBucket(week_start=week_start, hours=hours))
    return buckets


def priority_breakdown(tasks: Iterable[Task]) -> dict[str, int]:
    """Count of non-archived tasks per priority, zero counts omitted."""
    counts = {p.value: 0 for p in Priority}
    for task in tasks:
        if task.status != TaskStatus.ARCHIVED:
            counts[task.priority.value] += 1
    return {key: value for key, value in counts.items() if value > 0}


def dashboard_metrics(
    tasks: Sequence[Task],
    goals: Sequence[Goal],
    applications: Sequence[Application],
    settings: UserSettings,
    today: date,
) -> DashboardMetrics:
    """Compute all dashboard figures for ``today``."""
    start, end = week_range(today)

    due_this_week = 0
    for task in tasks:
        deadline = _as_day(task.deadline)
        if deadline is not None and start <= deadline <= end and _is_open(task):
            due_this_week += 1

    open_hours = sum(t.estimated_hours for t in tasks if _is_open(t))

    return DashboardMetrics(
        tasks_due_this_week=due_this_week,
        open_estimated_hours=open_hours,
        workload_percent=workload_percent(open_hours, settings.weekly_capacity),
        active_goals=sum(1 for g in goals if g.progress < 100),
        open_applications=sum(
            1 for a in applications if a.status not in _CLOSED_APPLICATION_STATUSES
        ),
        priority_breakdown=priority_breakdown(tasks),
        workload_trend=workload_trend(tasks, today),
    )
