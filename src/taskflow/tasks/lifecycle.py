# src/taskflow/tasks/lifecycle.py

from __future__ import annotations

"""
Task, company and employee-removal commands.

Upsert-by-id is the only mutation primitive: callers read a record, build the
full replacement (dataclasses.replace) and save it back. Status has no
transition graph; any status may follow any other.
"""

import logging
from dataclasses import replace

from ..core.models import Company, Employee, EmployeeStatus, Role, Task, TaskStatus, new_id
from ..core.results import ErrorCode, OpResult
from ..core.state import Workspace
from ..identity.access import can_manage_organization, can_manage_task

logger = logging.getLogger(__name__)


def validate_task(task: Task) -> str | None:
    """Return a user-facing message for the first missing required field, or None."""
    if not task.id or not task.id.strip():
        return "Task id is required."
    if not task.title or not task.title.strip():
        return "Title is required."
    if not task.company_id:
        return "Company is required."
    if task.deadline is None:
        return "Deadline is required."
    return None


def save_task(ws: Workspace, actor: Employee, task: Task) -> OpResult:
    """
    Insert or replace a task by id.

    - new id: creation; creator_id is stamped from the actor, the caller's created_at is kept
    - existing id: whole-record replacement (status included); created_at and creator_id
      always come from the stored record
    """
    problem = validate_task(task)
    if problem is not None:
        return OpResult.failure(ErrorCode.VALIDATION, problem, entity_id=task.id or None)

    existing = ws.find_task(task.id)

    if existing is None:
        created = replace(task, creator_id=actor.id)
        ws.replace_tasks([*ws.tasks, created])
        logger.info("Task created id=%s by=%s status=%s", created.id, actor.id, created.status.value)
        return OpResult.success(entity_id=created.id)

    if not can_manage_task(actor, existing):
        return OpResult.failure(ErrorCode.FORBIDDEN, "You cannot edit this task.", entity_id=task.id)

    updated = replace(task, created_at=existing.created_at, creator_id=existing.creator_id)
    ws.replace_tasks(updated if t.id == task.id else t for t in ws.tasks)
    if existing.status != updated.status:
        logger.info("Task %s: %s -> %s", task.id, existing.status.value, updated.status.value)
    else:
        logger.debug("Task updated id=%s by=%s", task.id, actor.id)
    return OpResult.success(entity_id=task.id)


def update_status(ws: Workspace, actor: Employee, task_id: str, new_status: TaskStatus) -> OpResult:
    existing = ws.find_task(task_id)
    if existing is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Task not found.", entity_id=task_id)
    return save_task(ws, actor, replace(existing, status=new_status))


def delete_task(ws: Workspace, actor: Employee, task_id: str) -> OpResult:
    existing = ws.find_task(task_id)
    if existing is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Task not found.", entity_id=task_id)
    if not can_manage_task(actor, existing):
        return OpResult.failure(ErrorCode.FORBIDDEN, "You cannot delete this task.", entity_id=task_id)

    ws.replace_tasks(t for t in ws.tasks if t.id != task_id)
    logger.info("Task deleted id=%s by=%s", task_id, actor.id)
    return OpResult.success(entity_id=task_id)


def tasks_assigned_to(ws: Workspace, employee_id: str) -> list[Task]:
    return [t for t in ws.tasks if employee_id and t.assignee_id == employee_id]


def delete_employee(ws: Workspace, actor: Employee, employee_id: str) -> OpResult:
    """
    Remove an employee and unassign their tasks in one commit.

    OpResult.count is the number of tasks that became unassigned.
    """
    if not can_manage_organization(actor):
        return OpResult.failure(ErrorCode.FORBIDDEN, "Only the CEO or an admin can delete employees.")
    target = ws.find_employee(employee_id)
    if target is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Employee not found.", entity_id=employee_id)
    if target.role == Role.CEO:
        return OpResult.failure(ErrorCode.FORBIDDEN, "The CEO account cannot be deleted.", entity_id=employee_id)

    unassigned = 0
    tasks: list[Task] = []
    for t in ws.tasks:
        if t.assignee_id == employee_id:
            t = replace(t, assignee_id="")
            unassigned += 1
        tasks.append(t)

    ws.commit(
        tasks=tasks,
        employees=[e for e in ws.employees if e.id != employee_id],
    )
    logger.info("Employee deleted id=%s by=%s unassigned_tasks=%d", employee_id, actor.id, unassigned)
    return OpResult.success(entity_id=employee_id, count=unassigned)


def add_company(ws: Workspace, actor: Employee, name: str) -> OpResult:
    if not can_manage_organization(actor):
        return OpResult.failure(ErrorCode.FORBIDDEN, "Only the CEO or an admin can add companies.")
    name = (name or "").strip()
    if not name:
        return OpResult.failure(ErrorCode.VALIDATION, "Company name is required.")

    company = Company(id=new_id("comp"), name=name)
    ws.replace_companies([*ws.companies, company])
    return OpResult.success(entity_id=company.id)


def rename_company(ws: Workspace, actor: Employee, company_id: str, name: str) -> OpResult:
    if not can_manage_organization(actor):
        return OpResult.failure(ErrorCode.FORBIDDEN, "Only the CEO or an admin can rename companies.")
    name = (name or "").strip()
    if not name:
        return OpResult.failure(ErrorCode.VALIDATION, "Company name is required.")
    if ws.find_company(company_id) is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Company not found.", entity_id=company_id)

    ws.replace_companies(replace(c, name=name) if c.id == company_id else c for c in ws.companies)
    return OpResult.success(entity_id=company_id)


def delete_company(ws: Workspace, actor: Employee, company_id: str) -> OpResult:
    """
    Remove a company that has no approved employees.

    Registrations for it that were never approved are discarded with it.
    """
    if not can_manage_organization(actor):
        return OpResult.failure(ErrorCode.FORBIDDEN, "Only the CEO or an admin can delete companies.")

    company = ws.find_company(company_id)
    if company is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Company not found.", entity_id=company_id)

    approved = [
        e for e in ws.employees if e.company_id == company_id and e.status == EmployeeStatus.APPROVED
    ]
    if approved:
        return OpResult.failure(
            ErrorCode.COMPANY_HAS_EMPLOYEES,
            f'Cannot delete "{company.name}". Please reassign or delete its '
            f"{len(approved)} approved employee(s) first.",
            entity_id=company_id,
        )

    ws.commit(
        employees=[e for e in ws.employees if e.company_id != company_id],
        companies=[c for c in ws.companies if c.id != company_id],
    )
    logger.info("Company deleted id=%s by=%s", company_id, actor.id)
    return OpResult.success(entity_id=company_id)
