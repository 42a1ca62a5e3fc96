# src/taskmate/tasks/reminders.py

from __future__ import annotations

"""
Reminder scheduler.

Keeps at most one pending timer per task id on the running event loop:
- schedule(task) replaces any timer already registered under task.id,
- cancel(task_id) drops it (no-op when nothing is pending),
- when a timer fires, a ReminderNotice is sent via an injected notifier port.

How the notice is shown (console line, chat message) belongs to the notifier.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from ..core.ports import ReminderNotice, ReminderNotifier
from .task_models import Task

logger = logging.getLogger(__name__)

DEFAULT_BODY = "Task reminder"


def build_notice(task: Task) -> ReminderNotice:
    body = (task.description or "").strip() or DEFAULT_BODY
    return ReminderNotice(task_id=task.id, title=task.title, body=body)


class ReminderScheduler:
    def __init__(
        self,
        notifier: ReminderNotifier,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._notifier = notifier
        self._clock = clock
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._deliveries: set[asyncio.Task[None]] = set()

    async def prepare(self) -> None:
        """Ask the notifier to get ready (permissions, channel, login). Best-effort."""
        try:
            await self._notifier.prepare()
        except Exception:
            logger.exception("Reminder notifier prepare failed; reminders may not be delivered.")

    def pending_ids(self) -> set[str]:
        return set(self._timers)

    def schedule(self, task: Task) -> None:
        if task.reminder_at is None:
            return
        delay = task.reminder_at - self._clock()
        if delay <= 0:
            logger.debug("Reminder for task %s is in the past; not scheduling", task.id)
            return

        loop = asyncio.get_running_loop()
        self.cancel(task.id)
        self._timers[task.id] = loop.call_later(delay, self._fire, build_notice(task))
        logger.debug("Reminder scheduled task=%s in %.1fs", task.id, delay)

    def cancel(self, task_id: str) -> None:
        handle = self._timers.pop(task_id, None)
        if handle is None:
            return
        handle.cancel()
        logger.debug("Reminder cancelled task=%s", task_id)

    def cancel_all(self) -> None:
        for task_id in list(self._timers):
            self.cancel(task_id)

    def _fire(self, notice: ReminderNotice) -> None:
        self._timers.pop(notice.task_id, None)
        delivery = asyncio.get_running_loop().create_task(self._deliver(notice))
        self._deliveries.add(delivery)
        delivery.add_done_callback(self._deliveries.discard)

    async def _deliver(self, notice: ReminderNotice) -> None:
        try:
            await self._notifier.send_reminder(notice)
            logger.info("Reminder delivered task=%s", notice.task_id)
        except Exception:
            logger.exception("Reminder delivery failed task=%s", notice.task_id)

    async def aclose(self) -> None:
        """Cancel pending timers and wait for reminders already being delivered."""
        self.cancel_all()
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)
