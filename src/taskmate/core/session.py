# src/taskmate/core/session.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum


class Connectivity(StrEnum):
    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"

    @classmethod
    def from_signal(cls, online: bool | None) -> Connectivity:
        if online is None:
            return cls.UNKNOWN
        return cls.ONLINE if online else cls.OFFLINE


@dataclass(slots=True)
class SessionContext:
    """
    Per-login state held by the sync engine.

    Created on initialize(), replaced wholesale when the identity changes,
    ended on logout/shutdown. Latches only move forward within a session.
    """

    user_id: str | None
    connectivity: Connectivity = Connectivity.UNKNOWN

    # one-shot latches
    local_loaded: bool = False
    remote_synced: bool = False

    # set when reconciliation has been started, so concurrent triggers don't run it twice
    reconcile_started: bool = False
    ended: bool = False

    unsubscribe: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def ready_to_reconcile(self) -> bool:
        return (
            not self.ended
            and self.user_id is not None
            and self.local_loaded
            and self.connectivity is Connectivity.ONLINE
            and not self.reconcile_started
        )

    def end(self) -> None:
        self.ended = True
        unsubscribe = self.unsubscribe
        self.unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()
