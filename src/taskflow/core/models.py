# src/taskflow/core/models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    CEO = "CEO"
    ADMIN = "Admin"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"

    @classmethod
    def from_db(cls, raw: str | None) -> Role:
        if not raw:
            return cls.EMPLOYEE
        try:
            return cls(raw)
        except ValueError:
            return cls.EMPLOYEE


class EmployeeStatus(StrEnum):
    """
    Account lifecycle.

    Only moves forward: PENDING_VERIFICATION -> PENDING -> APPROVED.
    A denied registration is deleted, it never gets a status of its own.
    """

    PENDING_VERIFICATION = "Pending Verification"
    PENDING = "Pending"
    APPROVED = "Approved"

    @classmethod
    def from_db(cls, raw: str | None) -> EmployeeStatus:
        if not raw:
            return cls.PENDING_VERIFICATION
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING_VERIFICATION


class TaskStatus(StrEnum):
    """
    Task status.

    There is no transition graph: any status can be set from any other
    (a Completed task may be dragged back to To-Do).
    """

    TODO = "To-Do"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


class TaskPriority(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def from_db(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


_PRIORITY_RANK = {TaskPriority.HIGH: 3, TaskPriority.MEDIUM: 2, TaskPriority.LOW: 1}


class SortBy(StrEnum):
    CREATION_DATE = "Creation Date"
    DEADLINE = "Deadline"
    PRIORITY = "Priority"


class DateFilter(StrEnum):
    ALL = "all"
    OVERDUE = "overdue"
    DUE_TODAY = "dueToday"


class ViewKind(StrEnum):
    KANBAN = "Kanban"
    LIST = "List"
    CALENDAR = "Calendar"


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _parse_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    # Accept both "YYYY-MM-DD" and full ISO timestamps.
    return date.fromisoformat(str(raw)[:10])


def to_local_naive(dt: datetime) -> datetime:
    """Timestamps are naive local wall-clock time; aware values are folded into it."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def _parse_datetime(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return to_local_naive(raw)
    s = str(raw).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return to_local_naive(datetime.fromisoformat(s))


@dataclass(slots=True, frozen=True)
class Company:
    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Company:
        return cls(id=str(data["id"]), name=str(data.get("name") or ""))


@dataclass(slots=True, frozen=True)
class Employee:
    id: str
    name: str
    email: str
    company_id: str
    role: Role
    status: EmployeeStatus
    password: str | None = None
    verification_token: str | None = None
    can_view_dashboard: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "companyId": self.company_id,
            "role": self.role.value,
            "status": self.status.value,
        }
        if self.password is not None:
            out["password"] = self.password
        if self.verification_token is not None:
            out["verificationToken"] = self.verification_token
        if self.can_view_dashboard:
            out["canViewDashboard"] = True
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Employee:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            company_id=str(data.get("companyId") or ""),
            role=Role.from_db(data.get("role")),
            status=EmployeeStatus.from_db(data.get("status")),
            password=data.get("password"),
            verification_token=data.get("verificationToken") or None,
            can_view_dashboard=bool(data.get("canViewDashboard", False)),
        )


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    description: str
    company_id: str
    assignee_id: str
    creator_id: str
    deadline: date
    created_at: datetime
    status: TaskStatus
    priority: TaskPriority
    reminder_at: datetime | None = None

    @property
    def is_unassigned(self) -> bool:
        return not self.assignee_id

    @property
    def is_open(self) -> bool:
        return self.status != TaskStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "companyId": self.company_id,
            "assigneeId": self.assignee_id,
            "creatorId": self.creator_id,
            "deadline": self.deadline.isoformat(),
            "createdAt": self.created_at.isoformat(),
            "status": self.status.value,
            "priority": self.priority.value,
        }
        if self.reminder_at is not None:
            out["reminderDateTime"] = self.reminder_at.isoformat()
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        created_at = _parse_datetime(data.get("createdAt")) or datetime.now()
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            company_id=str(data.get("companyId") or ""),
            assignee_id=str(data.get("assigneeId") or ""),
            creator_id=str(data.get("creatorId") or ""),
            deadline=_parse_date(data["deadline"]),
            created_at=created_at,
            status=TaskStatus.from_db(data.get("status")),
            priority=TaskPriority.from_db(data.get("priority")),
            reminder_at=_parse_datetime(data.get("reminderDateTime")),
        )


def new_task(
    *,
    title: str,
    company_id: str,
    deadline: date,
    description: str = "",
    assignee_id: str = "",
    creator_id: str = "",
    status: TaskStatus = TaskStatus.TODO,
    priority: TaskPriority = TaskPriority.MEDIUM,
    reminder_at: datetime | None = None,
    created_at: datetime | None = None,
) -> Task:
    """Build a not-yet-saved task with a fresh id."""
    return Task(
        id=new_id("task"),
        title=title,
        description=description,
        company_id=company_id,
        assignee_id=assignee_id,
        creator_id=creator_id,
        deadline=deadline,
        created_at=created_at or datetime.now(),
        status=status,
        priority=priority,
        reminder_at=reminder_at,
    )
