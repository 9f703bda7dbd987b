# src/taskflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage / notification delivery / LLM providers swappable and makes testing easier.
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Any, Iterable, Protocol

if TYPE_CHECKING:
    from ..tasks.reminders import Notification

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class KeyValueStore(Protocol):
    """
    Persistence collaborator.

    Keys are logical collection names; values are whole JSON-compatible collections.
    No partial/range writes.
    """

    def load(self, key: str, default: Any = None) -> Any: ...
    def save(self, key: str, value: Any) -> None: ...


class NotificationPermission(StrEnum):
    DEFAULT = "default"  # undetermined
    GRANTED = "granted"
    DENIED = "denied"


class NotificationCenter(Protocol):
    """
    Delivery-side port: presents reminders to the user.

    The center owns presentation and dedupe-by-tag; the scheduler only decides
    when a reminder is due and what it says.
    """

    @property
    def permission(self) -> NotificationPermission: ...

    def request_permission(self) -> NotificationPermission: ...

    def deliver(self, notification: Notification) -> None: ...
