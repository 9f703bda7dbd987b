# src/taskflow/core/seed.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .models import Company, Employee, EmployeeStatus, Role, Task, TaskPriority, TaskStatus


@dataclass(slots=True, frozen=True)
class SeedData:
    companies: tuple[Company, ...] = ()
    employees: tuple[Employee, ...] = ()
    tasks: tuple[Task, ...] = ()


EMPTY_SEED = SeedData()


def _employee(id_: str, name: str, email: str, company_id: str, role: Role = Role.EMPLOYEE) -> Employee:
    return Employee(
        id=id_,
        name=name,
        email=email,
        company_id=company_id,
        role=role,
        status=EmployeeStatus.APPROVED,
        password="password123",
    )


def demo_seed(today: date | None = None, now: datetime | None = None) -> SeedData:
    """
    First-run demo collections.

    Deadlines are relative to `today` so a fresh workspace always has
    something overdue, something due today and something upcoming.
    """
    today = today or date.today()
    now = now or datetime.now()

    companies = (
        Company(id="comp-1", name="Innovate Inc."),
        Company(id="comp-2", name="Synergy Solutions"),
        Company(id="comp-3", name="Apex Enterprises"),
    )

    employees = (
        _employee("emp-1", "Avery Stone (CEO)", "ceo@innovate.inc", "comp-1", Role.CEO),
        _employee("emp-2", "Samantha Lee", "samantha@innovate.inc", "comp-1"),
        _employee("emp-3", "Michael Chen", "michael@innovate.inc", "comp-1"),
        _employee("emp-4", "Jessica Brown", "jessica@synergy.sol", "comp-2"),
        _employee("emp-5", "David Wilson", "david@synergy.sol", "comp-2"),
        _employee("emp-6", "Emily Taylor", "emily@apex.ent", "comp-3"),
    )

    def task(
        n: int,
        title: str,
        description: str,
        company_id: str,
        assignee_id: str,
        deadline_days: int,
        status: TaskStatus,
        priority: TaskPriority,
        created_days_ago: int = 0,
    ) -> Task:
        return Task(
            id=f"task-{n}",
            title=title,
            description=description,
            company_id=company_id,
            assignee_id=assignee_id,
            creator_id="emp-1",
            deadline=today + timedelta(days=deadline_days),
            created_at=now - timedelta(days=created_days_ago),
            status=status,
            priority=priority,
        )

    tasks = (
        task(
            1,
            "Develop Q3 Marketing Strategy",
            "Finalize the marketing plan for the upcoming quarter, including budget allocation and channel focus.",
            "comp-1", "emp-2", 7, TaskStatus.IN_PROGRESS, TaskPriority.HIGH,
        ),
        task(
            2,
            "Onboard New Sales Team Members",
            "Prepare training materials and schedule orientation sessions for the new hires.",
            "comp-2", "emp-4", 0, TaskStatus.TODO, TaskPriority.MEDIUM,
        ),
        task(
            3,
            "Website Redesign Mockups",
            "Create high-fidelity mockups for the new company website homepage and product pages.",
            "comp-1", "emp-3", 1, TaskStatus.TODO, TaskPriority.HIGH,
        ),
        task(
            4,
            "Finalize Annual Financial Report",
            "Review and approve the final draft of the annual financial report before submission.",
            "comp-3", "emp-6", -7, TaskStatus.IN_PROGRESS, TaskPriority.HIGH,
            created_days_ago=10,
        ),
        task(
            5,
            "Client Meeting Prep for Synergy",
            "Gather all necessary documents and presentation materials for the big client pitch.",
            "comp-2", "emp-5", 3, TaskStatus.TODO, TaskPriority.MEDIUM,
            created_days_ago=2,
        ),
        task(
            6,
            "Code Review for New Feature",
            "Perform a thorough code review for the alpha version of the new mobile app feature.",
            "comp-1", "emp-3", -1, TaskStatus.COMPLETED, TaskPriority.LOW,
            created_days_ago=5,
        ),
        task(
            7,
            "Organize Company Offsite Event",
            "Plan logistics, venue, and activities for the annual company-wide offsite.",
            "comp-3", "emp-6", 30, TaskStatus.TODO, TaskPriority.MEDIUM,
        ),
    )

    return SeedData(companies=companies, employees=employees, tasks=tasks)
