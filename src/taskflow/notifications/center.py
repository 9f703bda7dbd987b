# src/taskflow/notifications/center.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..core.ports import NotificationPermission
from ..tasks.reminders import Notification

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotificationCenter:
    """
    Prints reminders to the console.

    Permission policy comes from settings:
    - "granted" / "denied": fixed from the start
    - "ask": undetermined until request_permission() is called, which then grants
      (the console has no dialog to deny from)

    Presentation is deduplicated by tag: a newer notification for the same
    task replaces the one shown before it.
    """

    def __init__(
        self,
        policy: str = "ask",
        *,
        emit: Callable[[str], None] | None = None,
    ) -> None:
        policy = (policy or "ask").strip().lower()
        if policy == "granted":
            self._permission = NotificationPermission.GRANTED
        elif policy == "denied":
            self._permission = NotificationPermission.DENIED
        else:
            self._permission = NotificationPermission.DEFAULT
        self._emit = emit or (lambda text: print(text, flush=True))
        self._shown: dict[str, Notification] = {}

    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    @property
    def shown(self) -> dict[str, Notification]:
        return dict(self._shown)

    def request_permission(self) -> NotificationPermission:
        if self._permission == NotificationPermission.DEFAULT:
            self._permission = NotificationPermission.GRANTED
            logger.info("Console notifications enabled.")
        return self._permission

    def deliver(self, notification: Notification) -> None:
        if self._permission != NotificationPermission.GRANTED:
            logger.debug("Dropping notification tag=%s (permission=%s)", notification.tag, self._permission.value)
            return
        replaced = notification.tag in self._shown
        self._shown[notification.tag] = notification
        self._emit(f"\n[{_ts_local()}] \a🔔 {notification.title}\n    {notification.body}")
        if replaced:
            logger.debug("Notification tag=%s replaced an earlier one", notification.tag)
