"""Rich renderings of snapshots, metrics and tombstones."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from prodex.core.entities import Snapshot
from prodex.core.metrics import DashboardMetrics
from prodex.sync.tombstones import TombstoneTable

console = Console()

STATUS_COLORS = {
    "todo": "white",
    "in-progress": "yellow",
    "done": "green",
    "archived": "bright_black",
}

PRIORITY_COLORS = {
    "critical": "bold red",
    "high": "red",
    "medium": "white",
    "low": "bright_black",
}


def render_snapshot(snapshot: Snapshot, metrics: DashboardMetrics) -> None:
    """Print collection sizes, dashboard figures and the task board."""
    stats = Table(show_header=False, box=None, padding=(0, 2))
    stats.add_column("Metric", style="bright_black")
    stats.add_column("Value", style="bold")
    stats.add_row("Tasks", str(len(snapshot.tasks)))
    stats.add_row("Goals", str(len(snapshot.goals)))
    stats.add_row("Applications", str(len(snapshot.applications)))
    stats.add_row("Skills", str(len(snapshot.skills)))
    stats.add_row("Weekly capacity", f"{snapshot.settings.weekly_capacity:g}h")
    stats.add_row("Due this week", str(metrics.tasks_due_this_week))
    workload_style = "red" if metrics.overloaded else "green"
    stats.add_row("Workload", f"[{workload_style}]{metrics.workload_percent}%[/{workload_style}]")
    stats.add_row("Active goals", str(metrics.active_goals))
    stats.add_row("Open applications", str(metrics.open_applications))
    console.print(stats)

    if not snapshot.tasks:
        return

    board = Table(title="Tasks")
    board.add_column("ID", style="bright_black")
    board.add_column("Title")
    board.add_column("Status")
    board.add_column("Priority")
    board.add_column("Est.", justify="right")
    board.add_column("Deadline")
    for task in snapshot.tasks:
        status_color = STATUS_COLORS.get(task.status.value, "white")
        priority_color = PRIORITY_COLORS.get(task.priority.value, "white")
        board.add_row(
            task.id,
            task.title,
            f"[{status_color}]{task.status.value}[/{status_color}]",
            f"[{priority_color}]{task.priority.value}[/{priority_color}]",
            f"{task.estimated_hours:g}",
            task.deadline or "-",
        )
    console.print(board)


def render_tombstones(table: TombstoneTable) -> None:
    if not len(table):
        console.print("[bright_black]No tombstones[/bright_black]")
        return
    view = Table(title="Tombstones")
    view.add_column("Type")
    view.add_column("ID")
    view.add_column("Deleted at")
    view.add_column("Absent", justify="right")
    for entity_type, entity_id in sorted(table):
        tombstone = table.get(entity_type, entity_id)
        if tombstone is None:
            continue
        view.add_row(
            entity_type.value,
            entity_id,
            tombstone.deleted_at,
            f"{tombstone.absent_count}/{table.gc_threshold}",
        )
    console.print(view)
