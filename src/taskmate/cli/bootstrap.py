# src/taskmate/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores, notifier, reminder scheduler and connectivity monitor
  into a SyncEngine held by AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_notifier import ConsoleNotifier
from ..core.errors import RemoteStoreError
from ..core.ports import ReminderNotifier, RemoteTaskRepo
from ..core.state import AppState
from ..tasks.connectivity import ConnectivityMonitor
from ..tasks.local_store import SqliteLocalTaskStore
from ..tasks.reminders import ReminderScheduler
from ..tasks.remote_store import OfflineRemoteTaskStore, SupabaseRemoteTaskStore, create_supabase_client
from ..tasks.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_remote_store(settings) -> RemoteTaskRepo:
    if not settings.remote_configured:
        logger.info("Remote store not configured; running local-only.")
        return OfflineRemoteTaskStore()
    try:
        client = create_supabase_client(settings.supabase_url, settings.supabase_key)
    except RemoteStoreError:
        logger.exception("Supabase client setup failed; running local-only.")
        return OfflineRemoteTaskStore()
    return SupabaseRemoteTaskStore(client, table=settings.supabase_table)


def build_notifier(settings) -> ReminderNotifier:
    if settings.matrix_enabled:
        from ..connectors.matrix_notifier import MatrixNotifier

        return MatrixNotifier(settings)
    return ConsoleNotifier()


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    notifier = build_notifier(settings)
    reminders = ReminderScheduler(notifier)
    connectivity = ConnectivityMonitor(
        settings.connectivity_host,
        settings.connectivity_port,
        timeout_seconds=settings.connectivity_timeout_seconds,
    )
    engine = SyncEngine(
        SqliteLocalTaskStore(settings.tasks_db_path),
        build_remote_store(settings),
        reminders,
        connectivity,
        reminder_offset_seconds=settings.reminder_offset_seconds,
    )
    return AppState(
        settings=settings,
        engine=engine,
        reminders=reminders,
        connectivity=connectivity,
        notifier=notifier,
    )
