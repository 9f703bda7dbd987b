# tests/test_assistant.py

from __future__ import annotations

from datetime import date

from taskflow.core.models import TaskPriority, new_task
from taskflow.core.results import TaskSuggestion
from taskflow.llm import assistant
from taskflow.llm.offline import OfflineLLMClient

from .conftest import TODAY
from .fakes import FakeLLMClient


def test_suggestion_assignee_pins_company(workspace) -> None:
    llm = FakeLLMClient()
    llm.reply_json({"companyId": "comp-2", "assigneeId": "emp-3", "deadline": "2024-06-04", "priority": "high"})

    result = assistant.suggest_task_fields(llm, workspace.snapshot(), "Fix homepage", today=TODAY)

    assert result.ok
    assert result.suggestion == TaskSuggestion(
        company_id="comp-1", assignee_id="emp-3", deadline="2024-06-04", priority="High"
    )
    messages, system_prompt = llm.calls[0]
    assert "Fix homepage" in messages[0]["content"]
    assert "2024-06-01" in messages[0]["content"]
    assert "JSON" in system_prompt


def test_suggestion_drops_unknown_ids_and_bad_values(workspace) -> None:
    llm = FakeLLMClient('Sure! {"companyId": "comp-9", "assigneeId": "emp-9", "deadline": "soon", "priority": "Urgent"}')

    result = assistant.suggest_task_fields(llm, workspace.snapshot(), "Something", today=TODAY)

    assert result.ok
    assert result.suggestion == TaskSuggestion()


def test_suggestion_failure_is_reported_not_raised(workspace) -> None:
    result = assistant.suggest_task_fields(
        FakeLLMClient(error=RuntimeError("boom")), workspace.snapshot(), "Title", today=TODAY
    )
    assert not result.ok
    assert result.message == assistant.SUGGESTION_FAILED

    garbage = assistant.suggest_task_fields(FakeLLMClient("not json"), workspace.snapshot(), "Title", today=TODAY)
    assert garbage.message == assistant.SUGGESTION_FAILED


def test_suggestion_needs_a_title(workspace) -> None:
    llm = FakeLLMClient()
    result = assistant.suggest_task_fields(llm, workspace.snapshot(), "   ")
    assert not result.ok
    assert llm.calls == []


def test_apply_suggestion_only_fills_present_fields() -> None:
    draft = new_task(title="x", company_id="comp-1", deadline=date(2024, 6, 10))

    applied = assistant.apply_suggestion(draft, TaskSuggestion(priority="High", deadline="2024-06-05"))

    assert applied.company_id == "comp-1"
    assert applied.priority == TaskPriority.HIGH
    assert applied.deadline == date(2024, 6, 5)
    assert assistant.apply_suggestion(draft, TaskSuggestion()) is draft


def test_insights_return_text(workspace) -> None:
    llm = FakeLLMClient("### Overall Summary\n7 tasks.")
    result = assistant.generate_insights(llm, workspace.snapshot(), today=TODAY)

    assert result.ok
    assert result.text.startswith("### Overall Summary")
    assert '"task-4"' in llm.calls[0][0][0]["content"]


def test_insights_failure(workspace) -> None:
    result = assistant.generate_insights(FakeLLMClient(error=RuntimeError("down")), workspace.snapshot())
    assert not result.ok
    assert result.message == assistant.INSIGHTS_FAILED

    empty = assistant.generate_insights(FakeLLMClient(""), workspace.snapshot())
    assert not empty.ok


def test_draft_from_fields_resolves_names(workspace) -> None:
    result = assistant.draft_from_fields(
        {"title": "Finish report", "companyName": "innovate inc.", "assigneeName": "Samantha Lee", "priority": "Low"},
        workspace.snapshot(),
        today=TODAY,
    )

    assert result.ok and result.task is not None
    assert result.task.company_id == "comp-1"
    assert result.task.assignee_id == "emp-2"
    assert result.task.priority == TaskPriority.LOW
    assert result.task.deadline == date(2024, 6, 2)


def test_draft_from_fields_reports_unknown_names(workspace) -> None:
    result = assistant.draft_from_fields(
        {"title": "Plan", "companyName": "Nowhere Ltd", "assigneeName": "Jessica Brown"},
        workspace.snapshot(),
        today=TODAY,
    )

    assert result.ok and result.task is not None
    assert "Nowhere Ltd" in result.message
    # The assignee still pins a company.
    assert result.task.company_id == "comp-2"


def test_draft_without_title_is_refused(workspace) -> None:
    result = assistant.draft_from_fields({"companyName": "Innovate Inc."}, workspace.snapshot(), today=TODAY)
    assert not result.ok
    assert result.task is None


def test_offline_client_yields_empty_suggestion(workspace) -> None:
    result = assistant.suggest_task_fields(OfflineLLMClient(), workspace.snapshot(), "Anything", today=TODAY)
    assert result.ok
    assert result.suggestion == TaskSuggestion()
