# src/taskmate/connectors/console_notifier.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.ports import ReminderNotice

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def render_notice(notice: ReminderNotice) -> str:
    return f"[REMINDER] {notice.title}: {notice.body}"


class ConsoleNotifier:
    """Prints fired reminders into the interactive console."""

    async def prepare(self) -> None:
        logger.debug("Console reminder channel ready.")

    async def send_reminder(self, notice: ReminderNotice) -> None:
        print(f"\n[{_ts_local()}] {render_notice(notice)}", flush=True)
