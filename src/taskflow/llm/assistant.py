# src/taskflow/llm/assistant.py

"""
AI assistant boundary.

The assistant only ever sees read-only snapshots and hands back either free
text or a structured suggestion. Anything it returns is checked against the
snapshot before it can reach a task; a failing provider becomes a short
user-facing message, never an exception in the caller.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Any

from ..core.models import Task, TaskPriority, TaskStatus, new_task
from ..core.ports import LLMClient
from ..core.results import DraftResult, InsightResult, SuggestionResult, TaskSuggestion
from ..core.state import WorkspaceSnapshot
from .client import complete_text

logger = logging.getLogger(__name__)

SUGGESTION_FAILED = "Could not generate suggestions."
INSIGHTS_FAILED = "Failed to generate insights."
DRAFT_FAILED = "I'm sorry, I encountered an error. Please try again."

SUGGEST_SYSTEM_PROMPT = """You are an intelligent task assistant for a project management app.
Analyze a task title and suggest the most likely company, assignee, deadline and priority.
Answer with a single JSON object with exactly these string keys:
"companyId", "assigneeId", "deadline" (YYYY-MM-DD), "priority" ("High", "Medium" or "Low").
Use only ids from the provided lists; use an empty string when no good fit exists.
If an assignee is suggested, the companyId must be that assignee's company.
If no date is mentioned, suggest a date 3 days from today.
Urgent wording ("urgent", "asap") means High priority; default to Medium."""

INSIGHTS_SYSTEM_PROMPT = """You are a project management assistant for a CEO overseeing multiple companies.
Write a concise Markdown report with three sections:
### Overall Summary - total tasks and their distribution across statuses.
### At-Risk Tasks - overdue, high-priority near deadline, or stuck in progress; name each task and why.
### Recommendations - 2-3 concrete actions (rebalancing work, follow-ups, bottlenecks)."""

DRAFT_SYSTEM_PROMPT = """You are the task assistant of a task tracking app.
Turn the user's request into a task. Answer with a single JSON object with keys:
"title" (required), "description", "companyName", "assigneeName",
"deadline" (YYYY-MM-DD, infer from words like "tomorrow" or "next Friday"),
"priority" ("High", "Medium" or "Low"; default Medium).
Use names exactly as listed. Leave a key empty when the request does not say."""


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def _ask_json(llm: LLMClient, system_prompt: str, user_message: str) -> dict[str, Any]:
    raw = complete_text(llm, [{"role": "user", "content": user_message}], system_prompt)
    data = json.loads(_extract_json_object(raw))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _parse_iso_date(raw: Any) -> date | None:
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError:
        return None


def _parse_priority(raw: Any) -> TaskPriority | None:
    s = str(raw or "").strip().capitalize()
    try:
        return TaskPriority(s)
    except ValueError:
        return None


def _directory_block(snapshot: WorkspaceSnapshot) -> str:
    companies = [{"id": c.id, "name": c.name} for c in snapshot.companies]
    employees = [{"id": e.id, "name": e.name, "companyId": e.company_id} for e in snapshot.employees]
    return (
        f"Available Companies (use their ID):\n{json.dumps(companies, ensure_ascii=False)}\n\n"
        f"Available Employees (use their ID):\n{json.dumps(employees, ensure_ascii=False)}"
    )


def validate_suggestion(data: dict[str, Any], snapshot: WorkspaceSnapshot) -> TaskSuggestion:
    """Drop everything the snapshot cannot back up; an assignee pins the company."""
    company_ids = {c.id for c in snapshot.companies}
    employees = {e.id: e for e in snapshot.employees}

    company_id = str(data.get("companyId") or "").strip()
    if company_id not in company_ids:
        company_id = ""

    assignee_id = str(data.get("assigneeId") or "").strip()
    assignee = employees.get(assignee_id)
    if assignee is None:
        assignee_id = ""
    else:
        company_id = assignee.company_id

    deadline = _parse_iso_date(data.get("deadline"))
    priority = _parse_priority(data.get("priority"))

    return TaskSuggestion(
        company_id=company_id,
        assignee_id=assignee_id,
        deadline=deadline.isoformat() if deadline else "",
        priority=priority.value if priority else "",
    )


def suggest_task_fields(
    llm: LLMClient,
    snapshot: WorkspaceSnapshot,
    title: str,
    *,
    today: date | None = None,
) -> SuggestionResult:
    title = (title or "").strip()
    if not title:
        return SuggestionResult(ok=False, message="Enter a task title first.")

    today = today or date.today()
    user_message = (
        f"Today's date is {today.isoformat()}.\n"
        f'Task Title: "{title}"\n\n'
        f"{_directory_block(snapshot)}"
    )

    try:
        data = _ask_json(llm, SUGGEST_SYSTEM_PROMPT, user_message)
    except Exception:
        logger.exception("Task suggestion failed title=%r", title[:200])
        return SuggestionResult(ok=False, message=SUGGESTION_FAILED)

    suggestion = validate_suggestion(data, snapshot)
    logger.debug("Task suggestion for %r: %s", title[:80], suggestion)
    return SuggestionResult(ok=True, suggestion=suggestion, message="AI suggestions applied!")


def apply_suggestion(draft: Task, suggestion: TaskSuggestion) -> Task:
    """Fill a draft task from a validated suggestion; empty suggestion fields leave the draft as is."""
    changes: dict[str, Any] = {}
    if suggestion.company_id:
        changes["company_id"] = suggestion.company_id
    if suggestion.assignee_id:
        changes["assignee_id"] = suggestion.assignee_id
    if suggestion.deadline:
        deadline = _parse_iso_date(suggestion.deadline)
        if deadline is not None:
            changes["deadline"] = deadline
    if suggestion.priority:
        priority = _parse_priority(suggestion.priority)
        if priority is not None:
            changes["priority"] = priority
    return replace(draft, **changes) if changes else draft


def generate_insights(llm: LLMClient, snapshot: WorkspaceSnapshot, *, today: date | None = None) -> InsightResult:
    today = today or date.today()
    payload = {
        "tasks": [t.to_dict() for t in snapshot.tasks],
        "employees": [{"id": e.id, "name": e.name, "companyId": e.company_id} for e in snapshot.employees],
        "companies": [c.to_dict() for c in snapshot.companies],
    }
    user_message = (
        f"Today's date is {today.isoformat()}.\n"
        "Here is the data in JSON format:\n\n"
        f"{json.dumps(payload, ensure_ascii=False, indent=2)}\n\n"
        "Analyze this data and provide the report."
    )

    try:
        text = complete_text(llm, [{"role": "user", "content": user_message}], INSIGHTS_SYSTEM_PROMPT)
    except Exception:
        logger.exception("Insights generation failed.")
        return InsightResult(ok=False, message=INSIGHTS_FAILED)

    if not text:
        return InsightResult(ok=False, message=INSIGHTS_FAILED)
    return InsightResult(ok=True, text=text)


def draft_from_fields(
    fields: dict[str, Any],
    snapshot: WorkspaceSnapshot,
    *,
    today: date | None = None,
) -> DraftResult:
    """
    Build a ready-to-save task from assistant fields (names, not ids).

    Unknown company/assignee names are left blank and reported in the message.
    The caller saves the task through the normal save path.
    """
    title = str(fields.get("title") or "").strip()
    if not title:
        return DraftResult(ok=False, message="I can't create a task without a title. What should the task be called?")

    today = today or date.today()
    notes: list[str] = []

    company_name = str(fields.get("companyName") or "").strip()
    company = next((c for c in snapshot.companies if c.name.lower() == company_name.lower()), None)
    if company_name and company is None:
        notes.append(f'I couldn\'t find a company named "{company_name}". I\'ve left the company field blank.')

    assignee_name = str(fields.get("assigneeName") or "").strip()
    assignee = next((e for e in snapshot.employees if e.name.lower() == assignee_name.lower()), None)
    if assignee_name and assignee is None:
        notes.append(f'I couldn\'t find an employee named "{assignee_name}". The task will be unassigned.')

    company_id = company.id if company else ""
    if assignee is not None and not company_id:
        company_id = assignee.company_id

    task = new_task(
        title=title,
        description=str(fields.get("description") or "").strip(),
        company_id=company_id,
        assignee_id=assignee.id if assignee else "",
        deadline=_parse_iso_date(fields.get("deadline")) or today + timedelta(days=1),
        status=TaskStatus.TODO,
        priority=_parse_priority(fields.get("priority")) or TaskPriority.MEDIUM,
    )

    summary = f'Task drafted: "{title}".'
    if company:
        summary += f" For {company.name}."
    if assignee:
        summary += f" Assigned to {assignee.name}."
    return DraftResult(ok=True, task=task, message=" ".join([*notes, summary]))


def request_task_draft(
    llm: LLMClient,
    snapshot: WorkspaceSnapshot,
    request: str,
    *,
    today: date | None = None,
) -> DraftResult:
    """Ask the assistant to turn a free-text request into task fields, then draft the task."""
    today = today or date.today()
    names = (
        f"Available companies: {', '.join(c.name for c in snapshot.companies)}.\n"
        f"Available employees: {', '.join(e.name for e in snapshot.employees)}."
    )
    user_message = f"Today's date is {today.isoformat()}.\n{names}\n\nRequest: {request.strip()}"

    try:
        fields = _ask_json(llm, DRAFT_SYSTEM_PROMPT, user_message)
    except Exception:
        logger.exception("Task draft request failed.")
        return DraftResult(ok=False, message=DRAFT_FAILED)

    return draft_from_fields(fields, snapshot, today=today)
