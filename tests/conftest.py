# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskmate.core.state import AppState
from taskmate.tasks.local_store import SqliteLocalTaskStore
from taskmate.tasks.sync_engine import SyncEngine

from .fakes import FakeClock, FakeConnectivity, FakeNotifier, FakeReminders, FakeRemoteTaskRepo


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskmate-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        reminder_offset_seconds=300.0,
        remote_configured=True,
        user_id=None,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def local_store(settings: SimpleNamespace) -> SqliteLocalTaskStore:
    # Real SQLite store: its behaviour is part of what we want to test.
    return SqliteLocalTaskStore(settings.tasks_db_path)


@pytest.fixture()
def remote() -> FakeRemoteTaskRepo:
    return FakeRemoteTaskRepo()


@pytest.fixture()
def reminders(clock: FakeClock) -> FakeReminders:
    return FakeReminders(clock)


@pytest.fixture()
def connectivity() -> FakeConnectivity:
    return FakeConnectivity()


@pytest.fixture()
def engine(
    local_store: SqliteLocalTaskStore,
    remote: FakeRemoteTaskRepo,
    reminders: FakeReminders,
    connectivity: FakeConnectivity,
    clock: FakeClock,
) -> SyncEngine:
    return SyncEngine(local_store, remote, reminders, connectivity, clock=clock)


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    engine: SyncEngine,
    reminders: FakeReminders,
    connectivity: FakeConnectivity,
) -> AppState:
    """AppState wired with the engine fixture and deterministic fakes."""
    return AppState(
        settings=settings,
        engine=engine,
        reminders=reminders,  # type: ignore[arg-type]
        connectivity=connectivity,  # type: ignore[arg-type]
        notifier=FakeNotifier(),
    )
