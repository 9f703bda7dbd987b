# src/taskflow/cli/commands.py

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime
from typing import cast

from ..core.models import DateFilter, Employee, SortBy, Task, TaskPriority, TaskStatus, ViewKind, new_task
from ..core.results import LoginStatus, OpResult
from ..core.state import AppState
from ..identity import accounts
from ..identity.access import can_manage_organization
from ..llm import assistant
from ..tasks import lifecycle
from ..tasks.query import (
    ALL,
    UNASSIGNED,
    CalendarView,
    KanbanView,
    TaskFilters,
    compute_stats,
    derive_view,
    month_grid,
    project_view,
)

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            return "Could not parse the command (unbalanced quotes?)."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Command /%s args=%d", name, len(args))
        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----

_STATUS_ALIASES = {
    "todo": TaskStatus.TODO,
    "to-do": TaskStatus.TODO,
    "progress": TaskStatus.IN_PROGRESS,
    "inprogress": TaskStatus.IN_PROGRESS,
    "in-progress": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.COMPLETED,
    "completed": TaskStatus.COMPLETED,
}

_SORT_ALIASES = {
    "creation": SortBy.CREATION_DATE,
    "created": SortBy.CREATION_DATE,
    "deadline": SortBy.DEADLINE,
    "priority": SortBy.PRIORITY,
}

_DATE_FILTER_ALIASES = {
    "all": DateFilter.ALL,
    "overdue": DateFilter.OVERDUE,
    "today": DateFilter.DUE_TODAY,
    "duetoday": DateFilter.DUE_TODAY,
}


def _parse_status(raw: str) -> TaskStatus | None:
    return _STATUS_ALIASES.get(raw.strip().lower())


def _parse_priority(raw: str) -> TaskPriority | None:
    try:
        return TaskPriority(raw.strip().capitalize())
    except ValueError:
        return None


def _kv_args(args: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for a in args:
        if "=" in a:
            k, v = a.split("=", 1)
            out[k.strip().lower()] = v.strip()
    return out


def _require_user(state: AppState) -> Employee | str:
    if state.session is None:
        return "Please /login first."
    return state.session.user


def _result_text(result: OpResult, ok_text: str) -> str:
    return ok_text if result.ok else f"Error ({result.error}): {result.message}"


def _name_of(state: AppState, employee_id: str) -> str:
    if not employee_id:
        return "Unassigned"
    emp = state.workspace.find_employee(employee_id)
    return emp.name if emp else f"{employee_id} (removed)"


def _format_task(state: AppState, t: Task) -> str:
    reminder = f" ⏰{t.reminder_at:%Y-%m-%d %H:%M}" if t.reminder_at else ""
    return (
        f"[{t.id}] {t.title} | {t.status.value} | {t.priority.value} | "
        f"due {t.deadline.isoformat()} | {_name_of(state, t.assignee_id)}{reminder}"
    )


# ---- account commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_register(state: AppState, args: list[str]) -> str:
    if len(args) != 4:
        return 'Usage: /register "<full name>" <companyId> <email> <password>'
    name, company_id, email, password = args
    with state.lock:
        if state.workspace.find_company(company_id) is None:
            return "Please select an existing company to join (see /companies)."
        result = accounts.register(state.workspace, name, company_id, email, password)
    if not result.success:
        return "An account with this email already exists." if result.error == "duplicate_email" else (
            "Name, company, email and password are required."
        )
    return (
        "Registration successful! A verification email has been sent.\n"
        f"(simulated) verify with: /verify {email} {result.token}"
    )


def cmd_verify(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /verify <email> <token>"
    with state.lock:
        ok = accounts.verify_email(state.workspace, args[0], args[1])
    if ok:
        return "Email verified successfully! Your account is now pending CEO approval."
    return "Verification failed. The link may be invalid or expired."


def cmd_login(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /login <email> <password>"
    with state.lock:
        outcome = accounts.login(state.workspace, args[0], args[1])
        if outcome.status == LoginStatus.SUCCESS and outcome.session is not None:
            state.session = outcome.session
            return f"Welcome, {outcome.session.user.name} ({outcome.session.user.role.value})."
    if outcome.status == LoginStatus.PENDING:
        return "Your account is awaiting approval from the CEO."
    if outcome.status == LoginStatus.UNVERIFIED:
        return "Your account has not been verified. Please check your email."
    return "Invalid email or password."


def cmd_logout(state: AppState, args: list[str]) -> str:
    with state.lock:
        accounts.logout(state.workspace, state.session)
        state.session = None
    return "Logged out."


def cmd_whoami(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    return f"{user.name} <{user.email}> role={user.role.value} company={user.company_id}"


def cmd_companies(state: AppState, args: list[str]) -> str:
    companies = state.workspace.companies
    if not companies:
        return "No companies found."
    return "\n".join(f"[{c.id}] {c.name}" for c in companies)


def cmd_employees(state: AppState, args: list[str]) -> str:
    approved = accounts.list_approved(state.workspace)
    if not approved:
        return "No employees found."
    return "\n".join(f"[{e.id}] {e.name} ({e.role.value}, {e.company_id})" for e in approved)


def cmd_pending(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if not can_manage_organization(user):
        return "Only the CEO or an admin can review registrations."
    pending = accounts.list_pending(state.workspace)
    if not pending:
        return "No pending approvals."
    return "\n".join(f"[{e.id}] {e.name} <{e.email}> -> {e.company_id}" for e in pending)


def cmd_approve(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 1:
        return "Usage: /approve <employeeId>"
    with state.lock:
        result = accounts.approve(state.workspace, user, args[0])
    return _result_text(result, f"Approved {args[0]}.")


def cmd_deny(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 1:
        return "Usage: /deny <employeeId>"
    with state.lock:
        result = accounts.deny(state.workspace, user, args[0])
    return _result_text(result, f"Registration {args[0]} denied and removed.")


# ---- organization commands ----


def cmd_add_company(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 1:
        return 'Usage: /add-company "<name>"'
    with state.lock:
        result = lifecycle.add_company(state.workspace, user, args[0])
    return _result_text(result, f"Company created: {result.entity_id}")


def cmd_delete_company(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 1:
        return "Usage: /delete-company <companyId>"
    with state.lock:
        result = lifecycle.delete_company(state.workspace, user, args[0])
    return _result_text(result, f"Company {args[0]} deleted (pending registrations removed).")


def cmd_delete_employee(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 1:
        return "Usage: /delete-employee <employeeId>"
    with state.lock:
        result = lifecycle.delete_employee(state.workspace, user, args[0])
    return _result_text(result, f"Employee {args[0]} deleted; {result.count} task(s) are now unassigned.")


# ---- task commands ----


def cmd_tasks(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user

    opts = _kv_args(args)
    sort_by = _SORT_ALIASES.get(opts.get("sort", "creation").lower(), SortBy.CREATION_DATE)
    status = _parse_status(opts["status"]) if "status" in opts else None
    filters = TaskFilters(
        search=opts.get("search", ""),
        company_id=opts.get("company", ALL),
        assignee_id=opts.get("assignee", ALL),
        status=status.value if status else ALL,
        date_filter=_DATE_FILTER_ALIASES.get(opts.get("due", "all").lower(), DateFilter.ALL),
    )

    tasks = derive_view(state.workspace.tasks, user, filters, sort_by)
    if not tasks:
        return "No tasks to display."
    return "\n".join(_format_task(state, t) for t in tasks)


def cmd_stats(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    s = compute_stats(state.workspace.tasks, user)
    return (
        f"Overdue: {s.overdue}\n"
        f"Due today: {s.due_today}\n"
        f"In progress: {s.in_progress}\n"
        f"Unassigned: {s.unassigned}"
    )


def cmd_kanban(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    ordered = derive_view(state.workspace.tasks, user, sort_by=SortBy.PRIORITY)
    view = cast(KanbanView, project_view(ViewKind.KANBAN, ordered))
    lines: list[str] = []
    for status, column in view.columns.items():
        lines.append(f"== {status.value} ({len(column)})")
        lines.extend(f"  {_format_task(state, t)}" for t in column)
    return "\n".join(lines)


def cmd_calendar(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    today = date.today()
    year, month = today.year, today.month
    if args:
        try:
            year, month = (int(x) for x in args[0].split("-", 1))
        except ValueError:
            return "Usage: /calendar [YYYY-MM]"
    if not (1 <= month <= 12 and 1 < year < 9999):
        return "Usage: /calendar [YYYY-MM]"
    ordered = derive_view(state.workspace.tasks, user, sort_by=SortBy.DEADLINE)
    view = cast(CalendarView, project_view(ViewKind.CALENDAR, ordered))

    lines = [f"== {year:04d}-{month:02d}"]
    for day in month_grid(year, month):
        if day.month != month:
            continue
        for t in view.tasks_on(day):
            lines.append(f"{day.isoformat()}  {t.priority.value:<6} {t.title} [{t.id}]")
    return "\n".join(lines) if len(lines) > 1 else f"No tasks due in {year:04d}-{month:02d}."


def cmd_add(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) < 3:
        return 'Usage: /add "<title>" <companyId> <YYYY-MM-DD> [assignee=<id>] [priority=High|Medium|Low] [desc="..."]'

    title, company_id, deadline_raw = args[0], args[1], args[2]
    opts = _kv_args(args[3:])
    try:
        deadline = date.fromisoformat(deadline_raw)
    except ValueError:
        return "Deadline must be YYYY-MM-DD."

    task = new_task(
        title=title,
        description=opts.get("desc", ""),
        company_id=company_id,
        assignee_id=opts.get("assignee", ""),
        deadline=deadline,
        priority=_parse_priority(opts.get("priority", "Medium")) or TaskPriority.MEDIUM,
    )
    with state.lock:
        result = lifecycle.save_task(state.workspace, user, task)
    return _result_text(result, f"Task created: {result.entity_id}")


def _edit_task(state: AppState, user: Employee, task_id: str, edit: Callable[[Task], Task]) -> OpResult | None:
    with state.lock:
        task = state.workspace.find_task(task_id)
        if task is None:
            return None
        return lifecycle.save_task(state.workspace, user, edit(task))


def cmd_status(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    status = _parse_status(args[1]) if len(args) == 2 else None
    if status is None:
        return "Usage: /status <taskId> <todo|progress|done>"
    with state.lock:
        result = lifecycle.update_status(state.workspace, user, args[0], status)
    return _result_text(result, f"Task {args[0]} -> {status.value}")


def cmd_assign(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 2:
        return "Usage: /assign <taskId> <employeeId|->"
    assignee = "" if args[1] in ("-", UNASSIGNED) else args[1]
    result = _edit_task(state, user, args[0], lambda t: replace(t, assignee_id=assignee))
    if result is None:
        return "Task not found."
    return _result_text(result, f"Task {args[0]} assigned to {_name_of(state, assignee)}.")


def cmd_remind(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 2:
        return "Usage: /remind <taskId> <YYYY-MM-DDTHH:MM|off>"

    reminder_at: datetime | None = None
    if args[1].lower() != "off":
        try:
            reminder_at = datetime.fromisoformat(args[1])
        except ValueError:
            return "Reminder must look like 2024-06-01T09:30."

    result = _edit_task(state, user, args[0], lambda t: replace(t, reminder_at=reminder_at))
    if result is None:
        return "Task not found."
    return _result_text(result, "Reminder cleared." if reminder_at is None else f"Reminder set for {reminder_at}.")


def cmd_delete(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if len(args) != 1:
        return "Usage: /delete <taskId>"
    with state.lock:
        result = lifecycle.delete_task(state.workspace, user, args[0])
    return _result_text(result, f"Task {args[0]} deleted.")


# ---- assistant commands ----


def cmd_suggest(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if not args:
        return 'Usage: /suggest "<task title>"'
    title = " ".join(args)
    result = assistant.suggest_task_fields(state.llm, state.workspace.snapshot(), title)
    if not result.ok or result.suggestion is None:
        return result.message
    s = result.suggestion
    return (
        f"{result.message}\n"
        f"  company:  {s.company_id or '-'}\n"
        f"  assignee: {_name_of(state, s.assignee_id) if s.assignee_id else '-'}\n"
        f"  deadline: {s.deadline or '-'}\n"
        f"  priority: {s.priority or '-'}"
    )


def cmd_ask(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    if not args:
        return 'Usage: /ask "Create a task to finish the report by Friday for Innovate Inc."'
    draft = assistant.request_task_draft(state.llm, state.workspace.snapshot(), " ".join(args))
    if not draft.ok or draft.task is None:
        return draft.message
    with state.lock:
        result = lifecycle.save_task(state.workspace, user, draft.task)
    return _result_text(result, f"{draft.message} I've added it to the board.")


def cmd_insights(state: AppState, args: list[str]) -> str:
    user = _require_user(state)
    if isinstance(user, str):
        return user
    result = assistant.generate_insights(state.llm, state.workspace.snapshot())
    return result.text if result.ok else result.message


registry.register("help", cmd_help, "show this help")
registry.register("register", cmd_register, "request an account")
registry.register("verify", cmd_verify, "verify your email with the emailed token")
registry.register("login", cmd_login, "sign in")
registry.register("logout", cmd_logout, "sign out")
registry.register("whoami", cmd_whoami, "show the signed-in employee")
registry.register("companies", cmd_companies, "list companies")
registry.register("employees", cmd_employees, "list approved employees")
registry.register("pending", cmd_pending, "list registrations awaiting approval")
registry.register("approve", cmd_approve, "approve a registration")
registry.register("deny", cmd_deny, "deny (delete) a registration")
registry.register("add-company", cmd_add_company, "create a company")
registry.register("delete-company", cmd_delete_company, "delete a company without approved employees")
registry.register("delete-employee", cmd_delete_employee, "delete an employee, unassigning their tasks")
registry.register(
    "tasks",
    cmd_tasks,
    "list tasks [sort=creation|deadline|priority] [due=all|overdue|today] "
    "[status=todo|progress|done] [company=<id>] [assignee=<id>|unassigned] [search=<text>]",
    aliases=["ls", "list"],
)
registry.register("stats", cmd_stats, "overdue / due today / in progress / unassigned counts")
registry.register("kanban", cmd_kanban, "tasks grouped by status")
registry.register("calendar", cmd_calendar, "tasks by deadline for a month [YYYY-MM]")
registry.register("add", cmd_add, "create a task")
registry.register("status", cmd_status, "move a task to another status")
registry.register("assign", cmd_assign, "assign or unassign a task")
registry.register("remind", cmd_remind, "set or clear a task reminder")
registry.register("delete", cmd_delete, "delete a task", aliases=["rm"])
registry.register("suggest", cmd_suggest, "AI: suggest company/assignee/deadline/priority for a title")
registry.register("ask", cmd_ask, "AI: create a task from a free-text request")
registry.register("insights", cmd_insights, "AI: summary, at-risk tasks and recommendations")
