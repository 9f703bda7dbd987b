# tests/conftest.py

from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from taskflow.core.models import Employee
from taskflow.core.ports import NotificationPermission
from taskflow.core.seed import demo_seed
from taskflow.core.state import AppState, Workspace

from .fakes import FakeLLMClient, FakeNotificationCenter, InMemoryKeyValueStore

TODAY = date(2024, 6, 1)
NOW = datetime(2024, 6, 1, 9, 0, 0)


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def workspace(store: InMemoryKeyValueStore) -> Workspace:
    """Workspace seeded with the demo data, pinned to TODAY/NOW."""
    return Workspace.load(store, seed=demo_seed(today=TODAY, now=NOW))


@pytest.fixture()
def ceo(workspace: Workspace) -> Employee:
    user = workspace.find_employee("emp-1")
    assert user is not None
    return user


@pytest.fixture()
def employee(workspace: Workspace) -> Employee:
    """Samantha Lee: a plain employee of comp-1 assigned task-1."""
    user = workspace.find_employee("emp-2")
    assert user is not None
    return user


@pytest.fixture()
def settings() -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState.

    A SimpleNamespace rather than the real config keeps tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="taskflow-test",
        reminder_interval_seconds=0.5,
        notifications="granted",
        seed_demo_data=True,
    )


@pytest.fixture()
def state(settings: SimpleNamespace, workspace: Workspace) -> AppState:
    """AppState wired with deterministic fakes."""
    return AppState(
        settings=settings,
        workspace=workspace,
        llm=FakeLLMClient(),
        notifications=FakeNotificationCenter(NotificationPermission.GRANTED),
    )
