# src/taskflow/identity/accounts.py

"""
Account lifecycle: registration, email verification, approval and login.

Status only moves PENDING_VERIFICATION -> PENDING -> APPROVED. A denied
registration is removed from the employee collection outright.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import replace

from ..core.models import Employee, EmployeeStatus, Role, new_id
from ..core.results import ErrorCode, LoginOutcome, LoginStatus, OpResult, RegisterResult
from ..core.session import Session
from ..core.state import Workspace
from .access import can_manage_organization

logger = logging.getLogger(__name__)

_B36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n <= 0:
        return "0"
    digits: list[str] = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_B36[rem])
    return "".join(reversed(digits))


def generate_verification_token() -> str:
    """Opaque, unguessable token: random part + millisecond timestamp."""
    return secrets.token_urlsafe(24) + _base36(int(time.time() * 1000))


def register(ws: Workspace, name: str, company_id: str, email: str, password: str) -> RegisterResult:
    name = (name or "").strip()
    email = (email or "").strip()
    company_id = (company_id or "").strip()

    if not name or not email or not password or not company_id:
        return RegisterResult(success=False, error=ErrorCode.VALIDATION)

    if ws.find_employee_by_email(email) is not None:
        logger.info("Registration rejected: email already exists (%s)", email)
        return RegisterResult(success=False, error=ErrorCode.DUPLICATE_EMAIL)

    token = generate_verification_token()
    employee = Employee(
        id=new_id("emp"),
        name=name,
        email=email,
        company_id=company_id,
        role=Role.EMPLOYEE,
        status=EmployeeStatus.PENDING_VERIFICATION,
        password=password,
        verification_token=token,
    )
    ws.replace_employees([*ws.employees, employee])
    logger.info("Registered employee id=%s company=%s (awaiting verification)", employee.id, company_id)
    return RegisterResult(success=True, token=token, employee_id=employee.id)


def verify_email(ws: Workspace, email: str, token: str) -> bool:
    needle = (email or "").strip().lower()
    if not needle or not token:
        return False

    updated: list[Employee] = []
    matched: Employee | None = None
    for e in ws.employees:
        if matched is None and e.email.lower() == needle and e.verification_token == token:
            matched = e
            e = replace(e, status=EmployeeStatus.PENDING, verification_token=None)
        updated.append(e)

    if matched is None:
        return False

    ws.replace_employees(updated)
    logger.info("Email verified for employee id=%s (pending approval)", matched.id)
    return True


def login(ws: Workspace, email: str, password: str) -> LoginOutcome:
    needle = (email or "").strip().lower()
    user = next(
        (e for e in ws.employees if e.email.lower() == needle and e.password == password),
        None,
    )
    if user is None:
        return LoginOutcome(status=LoginStatus.ERROR)

    # Order matters: an unverified account must never report "pending".
    if user.status == EmployeeStatus.PENDING_VERIFICATION:
        return LoginOutcome(status=LoginStatus.UNVERIFIED)
    if user.status == EmployeeStatus.PENDING:
        return LoginOutcome(status=LoginStatus.PENDING)
    if user.status == EmployeeStatus.APPROVED:
        ws.set_session_user(user.id)
        logger.info("Login success employee id=%s role=%s", user.id, user.role.value)
        return LoginOutcome(status=LoginStatus.SUCCESS, session=Session(user=user))
    return LoginOutcome(status=LoginStatus.ERROR)


def logout(ws: Workspace, session: Session | None = None) -> None:
    if session is not None:
        logger.info("Logout employee id=%s", session.user_id)
    ws.set_session_user(None)


def restore_session(ws: Workspace) -> Session | None:
    """Rebuild the persisted session if its employee still exists and is approved."""
    user_id = ws.session_user_id
    if not user_id:
        return None
    user = ws.find_employee(user_id)
    if user is None or user.status != EmployeeStatus.APPROVED:
        ws.set_session_user(None)
        return None
    return Session(user=user)


def _org_guard(actor: Employee) -> OpResult | None:
    if not can_manage_organization(actor):
        return OpResult.failure(ErrorCode.FORBIDDEN, "Only the CEO or an admin can manage accounts.")
    return None


def approve(ws: Workspace, actor: Employee, employee_id: str) -> OpResult:
    if (denied := _org_guard(actor)) is not None:
        return denied

    target = ws.find_employee(employee_id)
    if target is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Employee not found.", entity_id=employee_id)
    if target.status == EmployeeStatus.PENDING_VERIFICATION:
        return OpResult.failure(
            ErrorCode.VALIDATION, "This account has not verified its email yet.", entity_id=employee_id
        )
    if target.status == EmployeeStatus.APPROVED:
        return OpResult.success(entity_id=employee_id)

    ws.replace_employees(
        replace(e, status=EmployeeStatus.APPROVED, verification_token=None) if e.id == employee_id else e
        for e in ws.employees
    )
    logger.info("Employee id=%s approved by %s", employee_id, actor.id)
    return OpResult.success(entity_id=employee_id)


def deny(ws: Workspace, actor: Employee, employee_id: str) -> OpResult:
    if (denied := _org_guard(actor)) is not None:
        return denied

    target = ws.find_employee(employee_id)
    if target is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Employee not found.", entity_id=employee_id)
    if target.status != EmployeeStatus.PENDING:
        return OpResult.failure(
            ErrorCode.VALIDATION, "Only registrations awaiting approval can be denied.", entity_id=employee_id
        )

    ws.replace_employees(e for e in ws.employees if e.id != employee_id)
    logger.info("Registration id=%s denied by %s", employee_id, actor.id)
    return OpResult.success(entity_id=employee_id)


def add_employee(
    ws: Workspace,
    actor: Employee,
    name: str,
    company_id: str,
    *,
    email: str = "",
    role: Role = Role.EMPLOYEE,
) -> OpResult:
    """Directly create an approved employee from the management screen."""
    if (denied := _org_guard(actor)) is not None:
        return denied

    name = (name or "").strip()
    if not name or not company_id:
        return OpResult.failure(ErrorCode.VALIDATION, "Name and company are required.")
    if ws.find_company(company_id) is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Company not found.", entity_id=company_id)

    emp_id = new_id("emp")
    email = (email or "").strip() or f"{emp_id}@placeholder.local"
    if ws.find_employee_by_email(email) is not None:
        return OpResult.failure(ErrorCode.DUPLICATE_EMAIL, "An account with this email already exists.")

    employee = Employee(
        id=emp_id,
        name=name,
        email=email,
        company_id=company_id,
        role=role,
        status=EmployeeStatus.APPROVED,
    )
    ws.replace_employees([*ws.employees, employee])
    return OpResult.success(entity_id=emp_id)


def rename_employee(ws: Workspace, actor: Employee, employee_id: str, name: str) -> OpResult:
    if (denied := _org_guard(actor)) is not None:
        return denied

    name = (name or "").strip()
    if not name:
        return OpResult.failure(ErrorCode.VALIDATION, "Name is required.")
    if ws.find_employee(employee_id) is None:
        return OpResult.failure(ErrorCode.NOT_FOUND, "Employee not found.", entity_id=employee_id)

    ws.replace_employees(replace(e, name=name) if e.id == employee_id else e for e in ws.employees)
    return OpResult.success(entity_id=employee_id)


def list_pending(ws: Workspace) -> list[Employee]:
    """Verified registrations waiting for approval."""
    return [e for e in ws.employees if e.status == EmployeeStatus.PENDING]


def list_approved(ws: Workspace) -> list[Employee]:
    return [e for e in ws.employees if e.status == EmployeeStatus.APPROVED]
