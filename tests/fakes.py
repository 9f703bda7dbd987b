# tests/fakes.py

from __future__ import annotations

import copy
import json
from collections.abc import Iterable
from typing import Any

from taskflow.core.ports import ChatMessage, NotificationPermission
from taskflow.tasks.reminders import Notification


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text as a single chunk (or raises `error`)
    """

    def __init__(self, next_text: str = "ok", *, error: Exception | None = None) -> None:
        self.next_text = next_text
        self.error = error
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        if self.error is not None:
            raise self.error
        yield self.next_text

    def reply_json(self, data: dict[str, Any]) -> None:
        self.next_text = json.dumps(data)


class InMemoryKeyValueStore:
    """
    In-memory KeyValueStore.

    Values are deep-copied on the way in and out so tests see exactly what a
    JSON round-trip would keep. `writes` records the key order of every save.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = copy.deepcopy(initial or {})
        self.writes: list[str] = []

    def load(self, key: str, default: Any = None) -> Any:
        if key not in self.data:
            return default
        return copy.deepcopy(self.data[key])

    def save(self, key: str, value: Any) -> None:
        self.writes.append(key)
        self.data[key] = copy.deepcopy(value)


class FakeNotificationCenter:
    """NotificationCenter that records deliveries; `grant_on_request` decides the answer."""

    def __init__(
        self,
        permission: NotificationPermission = NotificationPermission.GRANTED,
        *,
        grant_on_request: bool = True,
        dismiss_requests: bool = False,
        fail_delivery: bool = False,
    ) -> None:
        self._permission = permission
        self.grant_on_request = grant_on_request
        self.dismiss_requests = dismiss_requests
        self.fail_delivery = fail_delivery
        self.requests = 0
        self.delivered: list[Notification] = []

    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    def set_permission(self, permission: NotificationPermission) -> None:
        self._permission = permission

    def request_permission(self) -> NotificationPermission:
        self.requests += 1
        if self._permission == NotificationPermission.DEFAULT and not self.dismiss_requests:
            self._permission = (
                NotificationPermission.GRANTED if self.grant_on_request else NotificationPermission.DENIED
            )
        return self._permission

    def deliver(self, notification: Notification) -> None:
        if self.fail_delivery:
            raise RuntimeError("delivery failed")
        self.delivered.append(notification)
