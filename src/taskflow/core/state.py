# src/taskflow/core/state.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from .models import Company, Employee, Task
from .ports import KeyValueStore, LLMClient, NotificationCenter
from .seed import EMPTY_SEED, SeedData
from .session import Session

logger = logging.getLogger(__name__)

COMPANIES_KEY = "taskflow-companies"
EMPLOYEES_KEY = "taskflow-employees"
TASKS_KEY = "taskflow-tasks"
SESSION_KEY = "taskflow-user"

R = TypeVar("R")


def _decode_records(key: str, raw: Any, decode: Callable[[dict[str, Any]], R]) -> tuple[R, ...]:
    """Decode a stored collection, skipping records that no longer parse."""
    if not isinstance(raw, list):
        logger.warning("Stored collection %s is not a list; ignoring it.", key)
        return ()
    out: list[R] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            out.append(decode(item))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed record in %s: %r", key, item)
    return tuple(out)


@dataclass(slots=True, frozen=True)
class WorkspaceSnapshot:
    """Read-only view of the collections handed to external collaborators."""

    companies: tuple[Company, ...]
    employees: tuple[Employee, ...]
    tasks: tuple[Task, ...]


class Workspace:
    """
    In-memory companies / employees / tasks, backed by a KeyValueStore.

    Every mutation replaces a whole collection (a new tuple) and then writes
    that full collection to the store. Readers holding the previous tuple
    keep a consistent view; nothing is ever patched in place.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        companies: Iterable[Company] = (),
        employees: Iterable[Employee] = (),
        tasks: Iterable[Task] = (),
        session_user_id: str | None = None,
    ) -> None:
        self._store = store
        self._companies: tuple[Company, ...] = tuple(companies)
        self._employees: tuple[Employee, ...] = tuple(employees)
        self._tasks: tuple[Task, ...] = tuple(tasks)
        self._session_user_id = session_user_id

    @classmethod
    def load(cls, store: KeyValueStore, seed: SeedData = EMPTY_SEED) -> Workspace:
        """Read each collection once; fall back to (and persist) seed data for missing keys."""
        raw_companies = store.load(COMPANIES_KEY, None)
        raw_employees = store.load(EMPLOYEES_KEY, None)
        raw_tasks = store.load(TASKS_KEY, None)
        raw_session = store.load(SESSION_KEY, None)

        ws = cls(
            store,
            companies=(
                seed.companies if raw_companies is None
                else _decode_records(COMPANIES_KEY, raw_companies, Company.from_dict)
            ),
            employees=(
                seed.employees if raw_employees is None
                else _decode_records(EMPLOYEES_KEY, raw_employees, Employee.from_dict)
            ),
            tasks=(
                seed.tasks if raw_tasks is None
                else _decode_records(TASKS_KEY, raw_tasks, Task.from_dict)
            ),
            session_user_id=raw_session if isinstance(raw_session, str) and raw_session else None,
        )

        if raw_companies is None:
            ws._persist_companies()
        if raw_employees is None:
            ws._persist_employees()
        if raw_tasks is None:
            ws._persist_tasks()

        logger.info(
            "Workspace loaded companies=%d employees=%d tasks=%d",
            len(ws.companies),
            len(ws.employees),
            len(ws.tasks),
        )
        return ws

    # ---- read side ----

    @property
    def companies(self) -> tuple[Company, ...]:
        return self._companies

    @property
    def employees(self) -> tuple[Employee, ...]:
        return self._employees

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def session_user_id(self) -> str | None:
        return self._session_user_id

    def snapshot(self) -> WorkspaceSnapshot:
        return WorkspaceSnapshot(companies=self._companies, employees=self._employees, tasks=self._tasks)

    def find_company(self, company_id: str) -> Company | None:
        return next((c for c in self._companies if c.id == company_id), None)

    def find_employee(self, employee_id: str) -> Employee | None:
        return next((e for e in self._employees if e.id == employee_id), None)

    def find_employee_by_email(self, email: str) -> Employee | None:
        needle = email.strip().lower()
        return next((e for e in self._employees if e.email.lower() == needle), None)

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.id == task_id), None)

    # ---- write side ----

    def replace_companies(self, companies: Iterable[Company]) -> None:
        self.commit(companies=companies)

    def replace_employees(self, employees: Iterable[Employee]) -> None:
        self.commit(employees=employees)

    def replace_tasks(self, tasks: Iterable[Task]) -> None:
        self.commit(tasks=tasks)

    def commit(
        self,
        *,
        companies: Iterable[Company] | None = None,
        employees: Iterable[Employee] | None = None,
        tasks: Iterable[Task] | None = None,
    ) -> None:
        """
        Swap one or more collections in a single step, then persist them.

        All in-memory swaps happen before any store write. Tasks are written
        before employees so the store never holds a task pointing at an
        employee that is already gone.
        """
        new_companies = tuple(companies) if companies is not None else None
        new_employees = tuple(employees) if employees is not None else None
        new_tasks = tuple(tasks) if tasks is not None else None

        if new_companies is not None:
            self._companies = new_companies
        if new_employees is not None:
            self._employees = new_employees
        if new_tasks is not None:
            self._tasks = new_tasks

        if new_tasks is not None:
            self._persist_tasks()
        if new_employees is not None:
            self._persist_employees()
        if new_companies is not None:
            self._persist_companies()

    def set_session_user(self, user_id: str | None) -> None:
        self._session_user_id = user_id
        self._store.save(SESSION_KEY, user_id)

    def _persist_companies(self) -> None:
        self._store.save(COMPANIES_KEY, [c.to_dict() for c in self._companies])

    def _persist_employees(self) -> None:
        self._store.save(EMPLOYEES_KEY, [e.to_dict() for e in self._employees])

    def _persist_tasks(self) -> None:
        self._store.save(TASKS_KEY, [t.to_dict() for t in self._tasks])


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    workspace: Workspace
    llm: LLMClient
    notifications: NotificationCenter

    # Console surface only; core functions take the session explicitly.
    session: Session | None = None
    lock: threading.RLock = field(default_factory=threading.RLock)
