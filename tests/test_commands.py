# tests/test_commands.py

from __future__ import annotations

from taskflow.cli.commands import CommandRegistry, registry
from taskflow.core.models import EmployeeStatus, TaskStatus
from taskflow.core.state import AppState


def _login(state: AppState, email: str = "ceo@innovate.inc") -> None:
    reply = registry.handle(state, f"/login {email} password123")
    assert reply is not None and reply.startswith("Welcome")


def test_command_registry_routes_aliases(state) -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    def handler(state, args):
        called.append(args)
        return "ok"

    reg.register("tasks", handler, "list", aliases=["ls"])

    assert reg.handle(state, '/ls "two words" x') == "ok"
    assert reg.handle(state, "/TASKS") == "ok"
    assert called == [["two words", "x"], []]
    assert "/tasks - list" in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "unbalanced" in (reg.handle(state, '/x "open') or "")


def test_task_commands_require_login(state) -> None:
    assert registry.handle(state, "/tasks") == "Please /login first."


def test_login_and_whoami(state) -> None:
    _login(state)
    assert state.session is not None
    assert "ceo@innovate.inc" in (registry.handle(state, "/whoami") or "")

    registry.handle(state, "/logout")
    assert state.session is None


def test_registration_flow_through_commands(state) -> None:
    reply = registry.handle(state, '/register "Nina Park" comp-2 nina@synergy.sol pw') or ""
    assert "Registration successful" in reply
    token = reply.rsplit(" ", 1)[-1]

    assert "Email verified" in (registry.handle(state, f"/verify nina@synergy.sol {token}") or "")
    assert "awaiting approval" in (registry.handle(state, "/login nina@synergy.sol pw") or "")

    _login(state)
    nina = state.workspace.find_employee_by_email("nina@synergy.sol")
    assert nina is not None
    assert nina.id in (registry.handle(state, "/pending") or "")
    assert registry.handle(state, f"/approve {nina.id}") == f"Approved {nina.id}."
    assert state.workspace.find_employee(nina.id).status == EmployeeStatus.APPROVED


def test_register_unknown_company(state) -> None:
    reply = registry.handle(state, '/register "X" comp-404 x@y.z pw') or ""
    assert "existing company" in reply


def test_add_status_and_delete_task(state) -> None:
    _login(state)
    reply = registry.handle(state, '/add "Prepare demo" comp-1 2024-06-05 assignee=emp-2 priority=high') or ""
    assert reply.startswith("Task created: ")
    task_id = reply.split(": ", 1)[1]

    task = state.workspace.find_task(task_id)
    assert task is not None
    assert task.assignee_id == "emp-2"
    assert task.creator_id == "emp-1"

    assert "Completed" in (registry.handle(state, f"/status {task_id} done") or "")
    assert state.workspace.find_task(task_id).status == TaskStatus.COMPLETED

    assert "Reminder set" in (registry.handle(state, f"/remind {task_id} 2024-06-04T09:30") or "")
    assert state.workspace.find_task(task_id).reminder_at is not None

    assert "assigned to Unassigned" in (registry.handle(state, f"/assign {task_id} -") or "")
    assert registry.handle(state, f"/delete {task_id}") == f"Task {task_id} deleted."
    assert state.workspace.find_task(task_id) is None


def test_employee_cannot_change_foreign_task(state) -> None:
    _login(state, "samantha@innovate.inc")
    reply = registry.handle(state, "/status task-3 done") or ""
    assert reply.startswith("Error (forbidden)")


def test_tasks_listing_respects_visibility(state) -> None:
    _login(state, "samantha@innovate.inc")
    listing = registry.handle(state, "/tasks sort=deadline") or ""
    assert "[task-1]" in listing
    assert "[task-3]" not in listing


def test_stats_and_kanban(state) -> None:
    _login(state)
    stats = registry.handle(state, "/stats") or ""
    assert "Overdue:" in stats and "Unassigned:" in stats

    kanban = registry.handle(state, "/kanban") or ""
    assert "== To-Do" in kanban and "== Completed" in kanban


def test_delete_employee_reports_unassigned_count(state) -> None:
    _login(state)
    reply = registry.handle(state, "/delete-employee emp-3") or ""
    assert "2 task(s) are now unassigned" in reply


def test_delete_company_with_employees_is_refused(state) -> None:
    _login(state)
    reply = registry.handle(state, "/delete-company comp-1") or ""
    assert reply.startswith("Error (company_has_employees)")


def test_ask_creates_task_from_assistant_reply(state) -> None:
    _login(state)
    state.llm.reply_json({"title": "Book venue", "companyName": "Apex Enterprises", "deadline": "2024-07-01"})

    reply = registry.handle(state, "/ask book the offsite venue for Apex") or ""

    assert "added it to the board" in reply
    created = [t for t in state.workspace.tasks if t.title == "Book venue"]
    assert len(created) == 1
    assert created[0].company_id == "comp-3"


def test_suggest_shows_fields(state) -> None:
    _login(state)
    state.llm.reply_json({"companyId": "", "assigneeId": "emp-4", "deadline": "2024-06-04", "priority": "Medium"})

    reply = registry.handle(state, '/suggest "Onboard hires"') or ""

    assert "Jessica Brown" in reply
    assert "2024-06-04" in reply


def test_calendar_rejects_out_of_range_month(state) -> None:
    _login(state)
    assert registry.handle(state, "/calendar 2024-13") == "Usage: /calendar [YYYY-MM]"
    assert registry.handle(state, "/calendar 2024-00") == "Usage: /calendar [YYYY-MM]"
    assert (registry.handle(state, "/calendar 2024-06") or "").startswith(("== 2024-06", "No tasks due"))


def test_status_with_unknown_value_shows_usage(state) -> None:
    _login(state)
    assert registry.handle(state, "/status task-1 someday") == "Usage: /status <taskId> <todo|progress|done>"
    assert registry.handle(state, "/status task-1") == "Usage: /status <taskId> <todo|progress|done>"
