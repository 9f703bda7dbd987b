# src/taskflow/tasks/query.py

"""
Filtering, search, sorting and aggregate counts over a task collection.

Everything here is a pure projection of its inputs: no hidden state, safe to
recompute on every change. "Today" is evaluated once per call and compared as
a calendar date, so time of day never matters.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from ..core.models import DateFilter, Employee, SortBy, Task, TaskStatus, ViewKind, to_local_naive
from ..identity.access import visible_tasks

ALL = "all"
UNASSIGNED = "unassigned"


@dataclass(slots=True, frozen=True)
class TaskFilters:
    search: str = ""
    company_id: str = ALL
    assignee_id: str = ALL  # UNASSIGNED matches tasks with no assignee
    status: str = ALL  # ALL or a TaskStatus value
    date_filter: DateFilter = DateFilter.ALL


@dataclass(slots=True, frozen=True)
class TaskStats:
    overdue: int = 0
    due_today: int = 0
    in_progress: int = 0
    unassigned: int = 0


def is_overdue(task: Task, today: date) -> bool:
    return task.deadline < today and task.status != TaskStatus.COMPLETED


def is_due_today(task: Task, today: date) -> bool:
    return task.deadline == today and task.status != TaskStatus.COMPLETED


def _matches_search(task: Task, term: str) -> bool:
    return term in task.title.lower() or term in task.description.lower()


def _matches_assignee(task: Task, assignee_id: str) -> bool:
    if assignee_id == UNASSIGNED:
        return not task.assignee_id
    return task.assignee_id == assignee_id


_SORT_KEYS: dict[SortBy, tuple[Callable[[Task], Any], bool]] = {
    # (key, reverse); sorted() is stable in both directions.
    SortBy.CREATION_DATE: (lambda t: to_local_naive(t.created_at), True),
    SortBy.DEADLINE: (lambda t: t.deadline, False),
    SortBy.PRIORITY: (lambda t: t.priority.rank, True),
}


def sort_tasks(tasks: Iterable[Task], sort_by: SortBy) -> list[Task]:
    key, reverse = _SORT_KEYS[sort_by]
    return sorted(tasks, key=key, reverse=reverse)


def derive_view(
    tasks: Iterable[Task],
    viewer: Employee,
    filters: TaskFilters | None = None,
    sort_by: SortBy = SortBy.CREATION_DATE,
    *,
    today: date | None = None,
) -> list[Task]:
    """
    Ordered, filtered task sequence for one viewer.

    Stages: visibility -> free-text search -> equality filters -> date bucket -> stable sort.
    """
    f = filters or TaskFilters()
    today = today or date.today()

    out = visible_tasks(tasks, viewer)

    term = f.search.strip().lower()
    if term:
        out = [t for t in out if _matches_search(t, term)]

    if f.company_id != ALL:
        out = [t for t in out if t.company_id == f.company_id]
    if f.assignee_id != ALL:
        out = [t for t in out if _matches_assignee(t, f.assignee_id)]
    if f.status != ALL:
        out = [t for t in out if t.status == f.status]

    if f.date_filter == DateFilter.OVERDUE:
        out = [t for t in out if is_overdue(t, today)]
    elif f.date_filter == DateFilter.DUE_TODAY:
        out = [t for t in out if is_due_today(t, today)]

    return sort_tasks(out, sort_by)


def compute_stats(tasks: Iterable[Task], viewer: Employee, *, today: date | None = None) -> TaskStats:
    """Dashboard counters over the viewer's visible tasks; a task may count in several buckets."""
    today = today or date.today()
    overdue = due_today = in_progress = unassigned = 0

    for t in visible_tasks(tasks, viewer):
        if is_overdue(t, today):
            overdue += 1
        if is_due_today(t, today):
            due_today += 1
        if t.status == TaskStatus.IN_PROGRESS:
            in_progress += 1
        if not t.assignee_id and t.status != TaskStatus.COMPLETED:
            unassigned += 1

    return TaskStats(overdue=overdue, due_today=due_today, in_progress=in_progress, unassigned=unassigned)


# ---- view projections ----

KANBAN_COLUMNS: tuple[TaskStatus, ...] = (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)


@dataclass(slots=True, frozen=True)
class KanbanView:
    columns: dict[TaskStatus, list[Task]] = field(default_factory=dict)
    kind: ViewKind = ViewKind.KANBAN


@dataclass(slots=True, frozen=True)
class ListView:
    tasks: list[Task] = field(default_factory=list)
    kind: ViewKind = ViewKind.LIST


@dataclass(slots=True, frozen=True)
class CalendarView:
    days: dict[date, list[Task]] = field(default_factory=dict)
    kind: ViewKind = ViewKind.CALENDAR

    def tasks_on(self, day: date) -> list[Task]:
        return list(self.days.get(day, []))


TaskView = KanbanView | ListView | CalendarView


def project_view(kind: ViewKind, tasks: Sequence[Task]) -> TaskView:
    """Group an already ordered sequence for one of the board layouts; order within groups is kept."""
    if kind == ViewKind.KANBAN:
        columns: dict[TaskStatus, list[Task]] = {s: [] for s in KANBAN_COLUMNS}
        for t in tasks:
            columns[t.status].append(t)
        return KanbanView(columns=columns)

    if kind == ViewKind.CALENDAR:
        days: dict[date, list[Task]] = {}
        for t in tasks:
            days.setdefault(t.deadline, []).append(t)
        return CalendarView(days=days)

    return ListView(tasks=list(tasks))


def month_grid(year: int, month: int) -> list[date]:
    """Every date shown on a Sunday-first month page, padded to whole weeks."""
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])

    # date.weekday(): Monday=0 .. Sunday=6
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    end = last + timedelta(days=(5 - last.weekday()) % 7)

    days: list[date] = []
    day = start
    while day <= end:
        days.append(day)
        day += timedelta(days=1)
    return days
