# tests/test_accounts.py

from __future__ import annotations

from taskflow.core.models import EmployeeStatus, Role
from taskflow.core.results import ErrorCode, LoginStatus
from taskflow.core.state import EMPLOYEES_KEY, SESSION_KEY, Workspace
from taskflow.identity import accounts


def _register(ws: Workspace, email: str = "new@innovate.inc") -> str:
    result = accounts.register(ws, "New Person", "comp-1", email, "secret")
    assert result.success
    assert result.token
    return result.token


def test_register_creates_unverified_employee(workspace: Workspace, store) -> None:
    result = accounts.register(workspace, "New Person", "comp-1", "new@innovate.inc", "secret")

    assert result.success
    emp = workspace.find_employee(result.employee_id or "")
    assert emp is not None
    assert emp.status == EmployeeStatus.PENDING_VERIFICATION
    assert emp.role == Role.EMPLOYEE
    assert emp.verification_token == result.token
    assert any(e["id"] == emp.id for e in store.data[EMPLOYEES_KEY])


def test_register_rejects_duplicate_email_case_insensitively(workspace: Workspace) -> None:
    before = len(workspace.employees)
    result = accounts.register(workspace, "Someone", "comp-1", "CEO@Innovate.INC", "x")

    assert not result.success
    assert result.error == ErrorCode.DUPLICATE_EMAIL
    assert len(workspace.employees) == before


def test_register_requires_all_fields(workspace: Workspace) -> None:
    result = accounts.register(workspace, "  ", "comp-1", "a@b.c", "x")
    assert not result.success
    assert result.error == ErrorCode.VALIDATION


def test_verification_tokens_are_unique() -> None:
    tokens = {accounts.generate_verification_token() for _ in range(50)}
    assert len(tokens) == 50


def test_verify_email_moves_to_pending_and_clears_token(workspace: Workspace) -> None:
    token = _register(workspace)

    assert accounts.verify_email(workspace, "NEW@innovate.inc", token)

    emp = workspace.find_employee_by_email("new@innovate.inc")
    assert emp is not None
    assert emp.status == EmployeeStatus.PENDING
    assert emp.verification_token is None
    # The token is single-use.
    assert not accounts.verify_email(workspace, "new@innovate.inc", token)


def test_verify_email_with_wrong_token_changes_nothing(workspace: Workspace) -> None:
    _register(workspace)
    before = workspace.employees

    assert not accounts.verify_email(workspace, "new@innovate.inc", "nope")
    assert workspace.employees == before


def test_login_precedence_unverified_then_pending_then_success(workspace: Workspace, ceo) -> None:
    token = _register(workspace)
    assert accounts.login(workspace, "new@innovate.inc", "secret").status == LoginStatus.UNVERIFIED

    accounts.verify_email(workspace, "new@innovate.inc", token)
    assert accounts.login(workspace, "new@innovate.inc", "secret").status == LoginStatus.PENDING

    emp = workspace.find_employee_by_email("new@innovate.inc")
    assert emp is not None
    assert accounts.approve(workspace, ceo, emp.id).ok

    outcome = accounts.login(workspace, "new@innovate.inc", "secret")
    assert outcome.status == LoginStatus.SUCCESS
    assert outcome.session is not None
    assert outcome.session.user_id == emp.id


def test_login_wrong_password_is_error(workspace: Workspace) -> None:
    outcome = accounts.login(workspace, "ceo@innovate.inc", "wrong")
    assert outcome.status == LoginStatus.ERROR
    assert outcome.session is None


def test_login_persists_session_and_logout_clears_it(workspace: Workspace, store) -> None:
    outcome = accounts.login(workspace, "ceo@innovate.inc", "password123")
    assert outcome.status == LoginStatus.SUCCESS
    assert store.data[SESSION_KEY] == "emp-1"

    accounts.logout(workspace, outcome.session)
    assert store.data[SESSION_KEY] is None
    assert workspace.session_user_id is None


def test_restore_session_after_reload(workspace: Workspace, store) -> None:
    accounts.login(workspace, "samantha@innovate.inc", "password123")

    reloaded = Workspace.load(store)
    session = accounts.restore_session(reloaded)

    assert session is not None
    assert session.user.email == "samantha@innovate.inc"


def test_restore_session_drops_deleted_user(workspace: Workspace, store) -> None:
    workspace.set_session_user("emp-404")
    assert accounts.restore_session(workspace) is None
    assert store.data[SESSION_KEY] is None


def test_approve_requires_org_role(workspace: Workspace, employee) -> None:
    token = _register(workspace)
    accounts.verify_email(workspace, "new@innovate.inc", token)
    emp = workspace.find_employee_by_email("new@innovate.inc")
    assert emp is not None

    result = accounts.approve(workspace, employee, emp.id)

    assert not result.ok
    assert result.error == ErrorCode.FORBIDDEN
    assert workspace.find_employee(emp.id).status == EmployeeStatus.PENDING


def test_approve_skips_unverified_accounts(workspace: Workspace, ceo) -> None:
    _register(workspace)
    emp = workspace.find_employee_by_email("new@innovate.inc")
    assert emp is not None

    result = accounts.approve(workspace, ceo, emp.id)

    assert result.error == ErrorCode.VALIDATION
    assert workspace.find_employee(emp.id).status == EmployeeStatus.PENDING_VERIFICATION


def test_deny_deletes_pending_registration(workspace: Workspace, ceo) -> None:
    token = _register(workspace)
    accounts.verify_email(workspace, "new@innovate.inc", token)
    emp = workspace.find_employee_by_email("new@innovate.inc")
    assert emp is not None
    assert [e.id for e in accounts.list_pending(workspace)] == [emp.id]

    assert accounts.deny(workspace, ceo, emp.id).ok
    assert workspace.find_employee(emp.id) is None
    assert accounts.list_pending(workspace) == []


def test_deny_refuses_approved_employee(workspace: Workspace, ceo) -> None:
    result = accounts.deny(workspace, ceo, "emp-2")
    assert result.error == ErrorCode.VALIDATION
    assert workspace.find_employee("emp-2") is not None


def test_add_employee_is_approved_immediately(workspace: Workspace, ceo) -> None:
    result = accounts.add_employee(workspace, ceo, "Direct Hire", "comp-2")

    assert result.ok
    emp = workspace.find_employee(result.entity_id or "")
    assert emp is not None
    assert emp.status == EmployeeStatus.APPROVED
    assert emp in accounts.list_approved(workspace)


def test_rename_employee(workspace: Workspace, ceo) -> None:
    assert accounts.rename_employee(workspace, ceo, "emp-3", "Mike Chen").ok
    assert workspace.find_employee("emp-3").name == "Mike Chen"
    assert accounts.rename_employee(workspace, ceo, "emp-404", "x").error == ErrorCode.NOT_FOUND
