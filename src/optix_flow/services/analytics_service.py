"""Analytics service - dashboard figures computed from the client state.

The unit of work is a plain task or a single subtask: a container task
counts once per subtask, and focus time of a container is credited per
completed subtask on the day that subtask was completed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from optix_flow.models import ImportanceLevel, Project, Task, effective_duration
from optix_flow.services.store import AppStore

UNASSIGNED_NAME = "Unassigned"
UNASSIGNED_COLOR = "#94a3b8"
WINDOW_DAYS = 7


@dataclass
class DayActivity:
    day: date
    label: str
    minutes: int


@dataclass
class ProjectShare:
    project_id: str | None
    name: str
    color: str
    minutes: int


@dataclass
class ProjectProgress:
    project: Project
    total: int
    completed: int
    remaining_minutes: int


@dataclass
class WorkUnit:
    """One completed unit: a plain task or a subtask of a container."""

    project_id: str | None
    minutes: int
    completed_at: datetime


def _local(moment: datetime, now: datetime) -> datetime:
    """Express a timestamp in the timezone of ``now``.

    A naive ``now`` is taken as local wall time.
    """
    if now.tzinfo is None:
        return moment.astimezone().replace(tzinfo=None) if moment.tzinfo else moment
    if moment.tzinfo is None:
        return moment.replace(tzinfo=now.tzinfo)
    return moment.astimezone(now.tzinfo)


class AnalyticsService:
    """Read-only aggregations over the store's tasks and projects."""

    def __init__(self, store: AppStore):
        self.store = store

    def completed_units(self) -> list[WorkUnit]:
        """Every completed unit that carries a completion timestamp."""
        units: list[WorkUnit] = []
        for task in self.store.tasks:
            if task.subtasks:
                for subtask in task.subtasks:
                    if subtask.is_completed and subtask.completed_at:
                        units.append(
                            WorkUnit(task.project_id, subtask.estimated_time, subtask.completed_at)
                        )
            elif task.is_completed and task.completed_at:
                units.append(WorkUnit(task.project_id, task.estimated_time, task.completed_at))
        return units

    def _recent_units(self, now: datetime) -> list[tuple[date, WorkUnit]]:
        first_day = now.date() - timedelta(days=WINDOW_DAYS - 1)
        recent = []
        for unit in self.completed_units():
            completed = _local(unit.completed_at, now)
            if completed > now or completed.date() < first_day:
                continue
            recent.append((completed.date(), unit))
        return recent

    def weekly_activity(self, now: datetime) -> list[DayActivity]:
        """Focus minutes per day for the seven days ending today."""
        days = [now.date() - timedelta(days=offset) for offset in range(WINDOW_DAYS - 1, -1, -1)]
        minutes = dict.fromkeys(days, 0)
        for day, unit in self._recent_units(now):
            minutes[day] += unit.minutes
        return [DayActivity(day, day.strftime("%a"), minutes[day]) for day in days]

    def focus_minutes(self, now: datetime) -> int:
        return sum(unit.minutes for _, unit in self._recent_units(now))

    def velocity_per_day(self, now: datetime) -> float:
        """Average focus minutes per day over the last week."""
        return self.focus_minutes(now) / WINDOW_DAYS

    def completion_rate(self) -> int:
        """Completed units as a rounded percentage of all units."""
        total = 0
        completed = 0
        for task in self.store.tasks:
            if task.subtasks:
                total += len(task.subtasks)
                completed += sum(1 for s in task.subtasks if s.is_completed)
            else:
                total += 1
                completed += 1 if task.is_completed else 0
        if total == 0:
            return 0
        return round(completed / total * 100)

    def project_allocation(self, now: datetime) -> list[ProjectShare]:
        """Focus minutes of the last week grouped by project.

        Tasks without a project, or pointing at a project that no longer
        exists, are grouped as unassigned.
        """
        projects = {p.id: p for p in self.store.projects}
        totals: dict[str | None, int] = {}
        for _, unit in self._recent_units(now):
            key = unit.project_id if unit.project_id in projects else None
            totals[key] = totals.get(key, 0) + unit.minutes

        shares = []
        for project_id, minutes in totals.items():
            if project_id is None:
                shares.append(ProjectShare(None, UNASSIGNED_NAME, UNASSIGNED_COLOR, minutes))
            else:
                project = projects[project_id]
                color = project.color or UNASSIGNED_COLOR
                shares.append(ProjectShare(project.id, project.name, color, minutes))
        return shares

    def matrix(
        self, tasks: list[Task] | None = None
    ) -> dict[tuple[ImportanceLevel, bool], list[Task]]:
        """Open tasks grouped by (importance, urgency)."""
        if tasks is None:
            tasks = self.store.tasks
        grid: dict[tuple[ImportanceLevel, bool], list[Task]] = {
            (level, urgent): [] for level in ImportanceLevel for urgent in (True, False)
        }
        for task in tasks:
            if not task.is_completed:
                grid[(ImportanceLevel(task.importance_level), task.is_urgent)].append(task)
        return grid

    def project_progress(self) -> list[ProjectProgress]:
        """Task counts and remaining effective minutes per project."""
        progress = []
        tasks = self.store.tasks
        for project in self.store.projects:
            owned = [t for t in tasks if t.project_id == project.id]
            remaining = 0
            for task in owned:
                if task.subtasks:
                    remaining += sum(s.estimated_time for s in task.subtasks if not s.is_completed)
                elif not task.is_completed:
                    remaining += effective_duration(task)
            progress.append(
                ProjectProgress(
                    project=project,
                    total=len(owned),
                    completed=sum(1 for t in owned if t.is_completed),
                    remaining_minutes=remaining,
                )
            )
        return progress
