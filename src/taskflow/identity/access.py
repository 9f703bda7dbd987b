# src/taskflow/identity/access.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.models import Employee, Role, Task

_ORG_ROLES = frozenset({Role.CEO, Role.ADMIN})


def can_manage_task(user: Employee, task: Task) -> bool:
    """CEO/Admin manage everything, a Manager manages their company's tasks, anyone manages tasks assigned to them."""
    if user.role in _ORG_ROLES:
        return True
    if user.role == Role.MANAGER and user.company_id == task.company_id:
        return True
    return bool(task.assignee_id) and user.id == task.assignee_id


def can_manage_organization(user: Employee) -> bool:
    """Companies, employees and registration approvals."""
    return user.role in _ORG_ROLES


def can_view_dashboard(user: Employee) -> bool:
    # The per-employee flag is external configuration; the core only reads it.
    return user.role == Role.CEO or user.can_view_dashboard


def is_visible(user: Employee, task: Task) -> bool:
    if user.role == Role.CEO:
        return True
    return task.assignee_id == user.id


def visible_tasks(tasks: Iterable[Task], user: Employee) -> list[Task]:
    """Visibility narrowing: the CEO sees every task, everyone else only their own."""
    if user.role == Role.CEO:
        return list(tasks)
    return [t for t in tasks if t.assignee_id == user.id]
