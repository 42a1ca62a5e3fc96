# src/taskmate/tasks/connectivity.py

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..core.ports import ConnectivityCallback, Unsubscribe

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """
    Reachability monitor.

    State is None (unknown) until the first probe or report(). Subscribers are
    called only on transitions, plus once on subscribe if a state is known.
    """

    def __init__(
        self,
        host: str = "1.1.1.1",
        port: int = 443,
        *,
        timeout_seconds: float = 3.0,
    ) -> None:
        self._host = host
        self._port = int(port)
        self._timeout = max(0.1, float(timeout_seconds))
        self._online: bool | None = None
        self._subscribers: list[ConnectivityCallback] = []

    @property
    def online(self) -> bool | None:
        return self._online

    def subscribe(self, callback: ConnectivityCallback) -> Unsubscribe:
        self._subscribers.append(callback)
        if self._online is not None:
            self._notify_one(callback, self._online)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(callback)

        return _unsubscribe

    def report(self, online: bool) -> None:
        """Record a reachability observation; notify subscribers if it changed."""
        online = bool(online)
        if online == self._online:
            return
        previous = self._online
        self._online = online
        logger.info("Connectivity %s -> %s", _label(previous), _label(online))
        for callback in list(self._subscribers):
            self._notify_one(callback, online)

    @staticmethod
    def _notify_one(callback: ConnectivityCallback, online: bool) -> None:
        try:
            callback(online)
        except Exception:
            logger.exception("Connectivity subscriber failed")

    async def probe(self) -> bool:
        """Single reachability check: can we open a TCP connection to host:port?"""
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._timeout,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        with contextlib.suppress(Exception):
            await writer.wait_closed()
        return True

    async def run(self, *, interval_seconds: float = 10.0) -> None:
        """
        Polling loop: probe, report, sleep.

        To stop the monitor, cancel the coroutine/task.
        """
        sleep_s = max(0.5, float(interval_seconds))
        logger.info("Connectivity monitor started target=%s:%s", self._host, self._port)
        while True:
            try:
                online = await self.probe()
            except Exception:
                logger.exception("Connectivity probe crashed")
                online = False
            self.report(online)
            await asyncio.sleep(sleep_s)


def _label(online: bool | None) -> str:
    if online is None:
        return "unknown"
    return "online" if online else "offline"
