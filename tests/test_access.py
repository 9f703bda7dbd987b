# tests/test_access.py

from __future__ import annotations

from dataclasses import replace

from taskflow.core.models import Role
from taskflow.identity.access import (
    can_manage_organization,
    can_manage_task,
    can_view_dashboard,
    is_visible,
    visible_tasks,
)


def test_ceo_sees_every_task(workspace, ceo) -> None:
    assert visible_tasks(workspace.tasks, ceo) == list(workspace.tasks)


def test_employee_sees_only_assigned_tasks(workspace, employee) -> None:
    visible = visible_tasks(workspace.tasks, employee)
    assert [t.id for t in visible] == ["task-1"]
    assert all(is_visible(employee, t) for t in visible)


def test_admin_visibility_is_narrowed_like_employee(workspace, employee) -> None:
    admin = replace(employee, role=Role.ADMIN)
    assert [t.id for t in visible_tasks(workspace.tasks, admin)] == ["task-1"]
    assert can_manage_organization(admin)


def test_manage_task_rules(workspace, ceo, employee) -> None:
    own = workspace.find_task("task-1")
    other_same_company = workspace.find_task("task-3")
    other_company = workspace.find_task("task-2")

    assert can_manage_task(ceo, other_company)
    assert can_manage_task(employee, own)
    assert not can_manage_task(employee, other_same_company)

    manager = replace(employee, role=Role.MANAGER)
    assert can_manage_task(manager, other_same_company)
    assert not can_manage_task(manager, other_company)


def test_unassigned_task_is_not_managed_by_empty_id(workspace, employee) -> None:
    ghost = replace(employee, id="")
    task = replace(workspace.find_task("task-3"), assignee_id="")
    assert not can_manage_task(ghost, task)


def test_dashboard_flag(employee, ceo) -> None:
    assert can_view_dashboard(ceo)
    assert not can_view_dashboard(employee)
    assert can_view_dashboard(replace(employee, can_view_dashboard=True))
    assert not can_manage_organization(employee)
