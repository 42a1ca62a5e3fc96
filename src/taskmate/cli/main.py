# src/taskmate/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the connectivity monitor, opens
the session for the configured identity, then runs the console REPL on the
same event loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown: flush pending writes, drop timers, close the notifier."""
    try:
        await state.engine.close()
    except Exception:
        logger.exception("Failed to flush pending task writes.")

    try:
        await state.reminders.aclose()
    except Exception:
        logger.debug("Reminder scheduler close failed.", exc_info=True)

    aclose = getattr(state.notifier, "aclose", None)
    if aclose is not None:
        try:
            await aclose()
        except Exception:
            logger.debug("Notifier close failed.", exc_info=True)


async def run_app(settings) -> None:
    state = create_initial_state(settings=settings)

    await state.reminders.prepare()

    monitor = asyncio.create_task(
        state.connectivity.run(interval_seconds=settings.connectivity_interval_seconds),
        name="connectivity-monitor",
    )
    try:
        await state.engine.initialize(settings.user_id)
        await run_console_loop(state)
    finally:
        monitor.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await monitor
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)
    try:
        asyncio.run(run_app(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
