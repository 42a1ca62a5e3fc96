# src/taskmate/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the sync engine.

The engine depends on Protocols instead of concrete implementations.
This keeps storage/notification/network probes swappable and makes testing easier.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Awaitable, Protocol

from ..tasks.task_models import Task

ConnectivityCallback = Callable[[bool], None]
Unsubscribe = Callable[[], None]


class LocalTaskRepo(Protocol):
    """
    Durable key-value persistence of the full task collection, keyed by identity.

    load() never raises: missing or corrupt data yields an empty list.
    save() reports failure through its return value (and logs), never raises.
    """

    def load(self, user_id: str | None) -> list[Task]: ...
    def save(self, user_id: str | None, tasks: Sequence[Task]) -> bool: ...


class RemoteTaskRepo(Protocol):
    """
    Store of record. Blocking calls; the engine runs them off the event loop.

    Failures raise RemoteStoreError.
    """

    def fetch_all(self, user_id: str) -> list[Task]: ...
    def push_all(self, user_id: str, tasks: Sequence[Task]) -> None: ...
    def delete_one(self, user_id: str, task_id: str) -> None: ...


class ReminderPort(Protocol):
    """
    One timed notification per task id.

    schedule() is a no-op when reminder_at is absent or not in the future.
    cancel() is a no-op when nothing is scheduled.
    """

    def schedule(self, task: Task) -> None: ...
    def cancel(self, task_id: str) -> None: ...


class ConnectivitySource(Protocol):
    """
    Emits a boolean "online" signal on change.

    `online` is None until the first signal. subscribe() replays the last known
    state (if any) to the new subscriber.
    """

    @property
    def online(self) -> bool | None: ...

    def subscribe(self, callback: ConnectivityCallback) -> Unsubscribe: ...


@dataclass(slots=True, frozen=True)
class ReminderNotice:
    """What the scheduler wants shown when a reminder fires."""

    task_id: str
    title: str
    body: str


class ReminderNotifier(Protocol):
    """
    Connector-side port: how a fired reminder reaches the user.

    prepare() is called once before the first reminder (permissions, channels, login).
    """

    def prepare(self) -> Awaitable[None]: ...
    def send_reminder(self, notice: ReminderNotice) -> Awaitable[None]: ...
