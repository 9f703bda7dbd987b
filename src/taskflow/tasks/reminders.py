# src/taskflow/tasks/reminders.py

from __future__ import annotations

"""
Reminder scheduler.

A small polling loop that:
- asks for notification permission once, and only when some task carries a reminder,
- every interval, fires reminders whose instant fell inside (last_tick, now],
- remembers (task id, reminder instant) keys so nothing fires twice.

Presentation (sound, banners, dedupe by tag) belongs to the notification center,
not the scheduler.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from ..core.models import Task, to_local_naive
from ..core.ports import NotificationCenter, NotificationPermission
from ..core.state import AppState

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0
MAX_INTERVAL_SECONDS = 60.0  # reminders are set with minute granularity

ReminderKey = tuple[str, str]


@dataclass(slots=True, frozen=True)
class Notification:
    title: str
    body: str
    tag: str  # presentation dedupe key: the task id


def reminder_key(task: Task) -> ReminderKey | None:
    if task.reminder_at is None:
        return None
    return (task.id, task.reminder_at.isoformat())


def build_notification(task: Task) -> Notification:
    return Notification(
        title=f"Task Reminder: {task.title}",
        body=f"This task is due on {task.deadline.isoformat()}.",
        tag=task.id,
    )


class ReminderScheduler:
    """
    Fires each (task, reminder instant) pair at most once.

    The fired-set lives as long as the scheduler instance. Editing a task's
    reminder time produces a new key, so the reminder re-arms by itself.
    """

    def __init__(
        self,
        tasks_provider: Callable[[], Iterable[Task]],
        center: NotificationCenter,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._tasks_provider = tasks_provider
        self._center = center
        self._interval = min(MAX_INTERVAL_SECONDS, max(0.5, float(interval_seconds)))
        self._clock = clock
        self._fired: set[ReminderKey] = set()
        self._last_tick: datetime | None = None
        self._runner: asyncio.Task[None] | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def last_tick(self) -> datetime | None:
        return self._last_tick

    @property
    def fired_keys(self) -> frozenset[ReminderKey]:
        return frozenset(self._fired)

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def arm(self, now: datetime | None = None) -> None:
        """Start the tick window at `now`; reminders before it never fire."""
        self._last_tick = now or self._clock()

    def sync(self) -> bool:
        """
        Permission gate. Returns True when ticking is allowed.

        Authorization is requested only while it is still undetermined and at
        least one task has a reminder. A dismissed prompt leaves it undetermined
        and is asked again on a later check; an explicit grant or denial is final.
        """
        permission = self._center.permission
        if permission == NotificationPermission.DEFAULT:
            if any(t.reminder_at is not None for t in self._tasks_provider()):
                try:
                    permission = self._center.request_permission()
                except Exception:
                    logger.exception("Notification permission request failed.")
                    permission = NotificationPermission.DEFAULT
                logger.info("Notification permission: %s", permission.value)
        return permission == NotificationPermission.GRANTED

    def tick(self, now: datetime | None = None) -> list[Notification]:
        """
        One poll: fire every reminder with last_tick < reminder_at <= now.

        last_tick advances to `now` afterwards even when nothing fired.
        """
        now = now or self._clock()
        if self._last_tick is None:
            # First tick without arm(): open the window here, fire nothing.
            self._last_tick = now
            return []

        window_start = self._last_tick
        fired: list[Notification] = []

        try:
            tasks = list(self._tasks_provider())
        except Exception:
            logger.exception("Reminder tick could not read tasks.")
            tasks = []

        for task in tasks:
            key = reminder_key(task)
            if key is None or key in self._fired or task.reminder_at is None:
                continue
            if not (to_local_naive(window_start) < to_local_naive(task.reminder_at) <= to_local_naive(now)):
                continue

            notification = build_notification(task)
            # Record first: a failing delivery must not turn into a repeat.
            self._fired.add(key)
            try:
                self._center.deliver(notification)
            except Exception:
                logger.exception("Reminder delivery failed task_id=%s", task.id)
                continue
            logger.info("Reminder fired task_id=%s at=%s", task.id, key[1])
            fired.append(notification)

        self._last_tick = now
        return fired

    async def run(self) -> None:
        """
        Polling loop; cancel the coroutine (or call stop()) to end it.

        While permission is not granted no tick runs at all; the gate is
        re-checked every interval because tasks (and so the need to ask) change.
        """
        while not self.sync():
            await asyncio.sleep(self._interval)

        self.arm()
        logger.info("Reminder scheduler started (interval=%.1fs)", self._interval)
        while True:
            await asyncio.sleep(self._interval)
            if not self.sync():
                # Permission revoked externally: stop ticking but keep the window current.
                self.arm()
                continue
            self.tick()

    def start(self) -> asyncio.Task[None]:
        """Schedule run() on the running event loop."""
        if self._runner is None or self._runner.done():
            self._runner = asyncio.get_running_loop().create_task(self.run())
        return self._runner

    async def stop(self) -> None:
        """Cancel the pending tick and wait for the loop to unwind."""
        runner, self._runner = self._runner, None
        if runner is None:
            return
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
        logger.info("Reminder scheduler stopped.")


@dataclass(slots=True)
class ReminderRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event
    scheduler: ReminderScheduler

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Reminder loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_reminders_in_background(state: AppState) -> ReminderRunner | None:
    """
    Run the reminder scheduler in a background thread with its own event loop
    (the console REPL blocks the main thread on input()).

    Ticks read the workspace under state.lock so they never interleave with a command.
    """

    def tasks_provider() -> tuple[Task, ...]:
        with state.lock:
            return state.workspace.tasks

    scheduler = ReminderScheduler(
        tasks_provider,
        state.notifications,
        interval_seconds=float(getattr(state.settings, "reminder_interval_seconds", DEFAULT_INTERVAL_SECONDS)),
    )

    ready = threading.Event()
    holder: dict[str, object] = {}

    async def _main(stop_event: asyncio.Event) -> None:
        scheduler.start()
        try:
            await stop_event.wait()
        finally:
            await scheduler.stop()

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_main(stop_event))
        finally:
            loop.close()

    t = threading.Thread(target=runner, name="taskflow-reminders", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Reminder thread did not initialize properly.")
        return None

    logger.info("Reminder background thread started.")
    return ReminderRunner(thread=t, loop=loop, stop_event=stop_event, scheduler=scheduler)
