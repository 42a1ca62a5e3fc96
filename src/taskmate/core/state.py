# src/taskmate/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.connectivity import ConnectivityMonitor
from ..tasks.reminders import ReminderScheduler
from ..tasks.sync_engine import SyncEngine
from .ports import ReminderNotifier


@dataclass
class AppState:
    # Settings object (config.Settings in the app, a SimpleNamespace in tests).
    settings: Any

    engine: SyncEngine
    reminders: ReminderScheduler
    connectivity: ConnectivityMonitor
    notifier: ReminderNotifier
