# src/taskflow/core/results.py

"""
Result values returned by core commands.

Validation problems and lookup misses are expected outcomes in this core:
they come back to the caller as values it can branch on, never as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Task
    from .session import Session


class ErrorCode(StrEnum):
    VALIDATION = "validation"
    DUPLICATE_EMAIL = "duplicate_email"
    COMPANY_HAS_EMPLOYEES = "company_has_employees"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    COLLABORATOR_FAILURE = "collaborator_failure"


@dataclass(slots=True, frozen=True)
class OpResult:
    ok: bool
    error: ErrorCode | None = None
    message: str = ""
    entity_id: str | None = None
    count: int = 0

    @classmethod
    def success(cls, *, entity_id: str | None = None, count: int = 0, message: str = "") -> OpResult:
        return cls(ok=True, entity_id=entity_id, count=count, message=message)

    @classmethod
    def failure(cls, code: ErrorCode, message: str, *, entity_id: str | None = None) -> OpResult:
        return cls(ok=False, error=code, message=message, entity_id=entity_id)


@dataclass(slots=True, frozen=True)
class RegisterResult:
    success: bool
    token: str | None = None
    employee_id: str | None = None
    error: ErrorCode | None = None


class LoginStatus(StrEnum):
    SUCCESS = "success"
    PENDING = "pending"
    UNVERIFIED = "unverified"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class LoginOutcome:
    status: LoginStatus
    session: Session | None = None


@dataclass(slots=True, frozen=True)
class TaskSuggestion:
    """Fields an assistant may pre-fill on the task form. Empty string = no suggestion."""

    company_id: str = ""
    assignee_id: str = ""
    deadline: str = ""
    priority: str = ""


@dataclass(slots=True, frozen=True)
class SuggestionResult:
    ok: bool
    suggestion: TaskSuggestion | None = None
    message: str = ""


@dataclass(slots=True, frozen=True)
class InsightResult:
    ok: bool
    text: str = ""
    message: str = ""


@dataclass(slots=True, frozen=True)
class DraftResult:
    """Outcome of turning an assistant answer into a ready-to-save task."""

    ok: bool
    task: Task | None = None
    message: str = ""
