# src/taskmate/tasks/sync_engine.py

from __future__ import annotations

"""
Sync engine.

Owns the in-memory task collection for the current session and turns every
user intent into:
- a synchronous memory update (the caller sees the new state immediately),
- a fire-and-forget save of the whole collection to the local store,
- a fire-and-forget push of the whole collection to the remote store (signed-in users only),
- the matching reminder schedule/cancel.

Writes to each store are serialized; a write whose snapshot has been superseded
by a newer commit for the same key is skipped, so the newest collection lands last.

On session start the local collection is loaded first; once the session is
online with a known identity, a one-shot reconciliation against the remote
store runs (remote wins if non-empty, otherwise local is pushed up).

All public intents must be called from inside the running event loop.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import replace
from typing import Any

from ..core.errors import SessionNotReadyError, TaskNotFoundError, TaskValidationError
from ..core.ports import ConnectivitySource, LocalTaskRepo, ReminderPort, RemoteTaskRepo
from ..core.session import Connectivity, SessionContext
from .task_models import EditForm, Task

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_OFFSET_SECONDS = 5 * 60.0


class SyncEngine:
    def __init__(
        self,
        local: LocalTaskRepo,
        remote: RemoteTaskRepo,
        reminders: ReminderPort,
        connectivity: ConnectivitySource,
        *,
        reminder_offset_seconds: float = DEFAULT_REMINDER_OFFSET_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._local = local
        self._remote = remote
        self._reminders = reminders
        self._connectivity = connectivity
        self._reminder_offset = max(0.0, float(reminder_offset_seconds))
        self._clock = clock

        self._tasks: list[Task] = []
        self._session: SessionContext | None = None
        self._background: set[asyncio.Task[Any]] = set()

        # latest commit sequence per storage identity
        self._seq = 0
        self._local_seq: dict[str | None, int] = {}
        self._remote_seq: dict[str, int] = {}
        self._local_lock = asyncio.Lock()
        self._remote_lock = asyncio.Lock()

        self.form = EditForm()

    # ---- read side ----

    @property
    def session(self) -> SessionContext | None:
        return self._session

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    # ---- session lifecycle ----

    async def initialize(self, user_id: str | None) -> None:
        """
        Start a session for user_id (None = guest).

        Re-initializing the identity that is already active is a no-op, so the
        local load and the remote reconciliation run once per session.
        """
        current = self._session
        if current is not None and not current.ended and current.user_id == user_id:
            logger.debug("Session already active user=%s; skipping initialize", user_id)
            return

        if current is not None:
            current.end()

        for t in self._tasks:
            self._cancel_reminder(t.id)

        session = SessionContext(user_id=user_id)
        self._session = session
        self._tasks = []
        self.form.reset()
        logger.info("Session started user=%s", user_id or "guest")

        session.unsubscribe = self._connectivity.subscribe(
            lambda online: self._on_connectivity(session, online)
        )

        tasks = await asyncio.to_thread(self._local.load, user_id)
        if session is not self._session or session.ended:
            logger.debug("Session user=%s superseded during local load", user_id)
            return

        self._tasks = list(tasks)
        session.local_loaded = True
        logger.info("Local load complete user=%s tasks=%d", user_id or "guest", len(tasks))
        self._arm_reminders(self._tasks)

        self._maybe_reconcile(session)

    async def close(self) -> None:
        """End the current session and wait for in-flight background writes."""
        if self._session is not None and not self._session.ended:
            self._session.end()
            logger.info("Session ended user=%s", self._session.user_id or "guest")
        await self.drain()

    async def drain(self) -> None:
        """Wait until every background operation issued so far has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _on_connectivity(self, session: SessionContext, online: bool) -> None:
        if session is not self._session or session.ended:
            return
        session.connectivity = Connectivity.from_signal(online)
        logger.debug("Session user=%s connectivity=%s", session.user_id, session.connectivity.value)
        self._maybe_reconcile(session)

    # ---- reconciliation ----

    def _maybe_reconcile(self, session: SessionContext) -> None:
        if not session.ready_to_reconcile:
            return
        session.reconcile_started = True
        self._spawn(self._reconcile(session), "reconcile")

    async def _reconcile(self, session: SessionContext) -> None:
        """
        One-shot reconciliation for the session.

        - remote non-empty -> remote replaces memory and the local store
        - remote empty, local non-empty -> local collection is pushed up
        - both empty -> nothing to do

        The local collection is captured when reconciliation starts; a mutation
        made while the remote fetch is in flight is overwritten by a remote pull.
        A pull re-arms reminders for the pulled tasks and cancels the rest.
        Failures are logged and the latch is set anyway (no retry this session).
        """
        user_id = session.user_id
        local_snapshot = list(self._tasks)
        try:
            if user_id is None:
                return
            pushed_seq = self._remote_seq.get(user_id)

            remote_tasks = await asyncio.to_thread(self._remote.fetch_all, user_id)

            if session is not self._session or session.ended:
                logger.info("Reconciliation result dropped: session user=%s ended", user_id)
                return

            if remote_tasks:
                pulled = list(remote_tasks)
                kept = {t.id for t in pulled}
                for t in self._tasks:
                    if t.id not in kept:
                        self._cancel_reminder(t.id)
                self._tasks = pulled
                logger.info("Reconciled from remote user=%s tasks=%d", user_id, len(pulled))
                self._queue_local_save(user_id, list(pulled))
                self._arm_reminders(pulled)
            elif local_snapshot:
                async with self._remote_lock:
                    if self._remote_seq.get(user_id) != pushed_seq:
                        logger.debug("Reconciliation push superseded by a newer commit user=%s", user_id)
                        return
                    await asyncio.to_thread(self._remote.push_all, user_id, local_snapshot)
                logger.info("Reconciled to remote user=%s tasks=%d", user_id, len(local_snapshot))
            else:
                logger.debug("Reconciliation no-op user=%s (both empty)", user_id)
        except Exception:
            logger.exception("Initial remote reconciliation failed user=%s; staying on local data", user_id)
        finally:
            session.remote_synced = True

    # ---- intents ----

    def begin_edit(self, task_id: str) -> Task:
        task = self.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if task.completed:
            logger.warning("Rejected edit of completed task id=%s", task_id)
            raise TaskValidationError("Completed tasks cannot be edited")
        self.form.load(task)
        return task

    def cancel_edit(self) -> None:
        self.form.reset()

    def submit(
        self,
        title: str,
        description: str | None = None,
        editing_id: str | None = None,
    ) -> Task:
        """
        Create a task, or update the one being edited.

        editing_id defaults to the edit form's target. An id that no longer
        resolves to a task falls through to creation. Rejected while the
        session's local collection is still loading.
        """
        session = self._session
        if session is not None and not session.ended and not session.local_loaded:
            logger.warning("Rejected submit: local tasks for user=%s still loading", session.user_id)
            raise SessionNotReadyError("Tasks are still loading")

        clean_title = (title or "").strip()
        if not clean_title:
            logger.warning("Rejected submit: empty title")
            raise TaskValidationError("Task title is required")

        clean_description = (description or "").strip() or None
        target_id = editing_id if editing_id is not None else self.form.editing_id
        existing = self.get(target_id) if target_id is not None else None
        now = self._clock()

        if existing is not None:
            if existing.completed:
                logger.warning("Rejected edit of completed task id=%s", existing.id)
                raise TaskValidationError("Completed tasks cannot be edited")

            reminder_at = existing.reminder_at
            if reminder_at is None:
                reminder_at = now + self._reminder_offset

            task = replace(
                existing,
                title=clean_title,
                description=clean_description,
                updated_at=now,
                reminder_at=reminder_at,
            )
            self._commit([task if t.id == task.id else t for t in self._tasks])
            self._cancel_reminder(task.id)
            self._schedule_reminder(task)
            logger.info("Task updated id=%s", task.id)
        else:
            task = Task(
                id=self._new_id(now),
                title=clean_title,
                description=clean_description,
                created_at=now,
                updated_at=now,
                completed=False,
                reminder_at=now + self._reminder_offset,
            )
            self._commit([task, *self._tasks])
            self._schedule_reminder(task)
            logger.info("Task created id=%s", task.id)

        self.form.reset()
        return task

    def toggle_complete(self, task_id: str) -> Task | None:
        existing = self.get(task_id)
        if existing is None:
            logger.debug("toggle_complete: unknown task id=%s", task_id)
            return None

        task = replace(existing, completed=not existing.completed, updated_at=self._clock())
        self._commit([task if t.id == task_id else t for t in self._tasks])
        if task.completed:
            self._cancel_reminder(task_id)
        logger.info("Task %s -> %s", task_id, "completed" if task.completed else "open")
        return task

    def delete(self, task_id: str) -> bool:
        if self.get(task_id) is None:
            logger.debug("delete: unknown task id=%s", task_id)
            return False

        self._commit([t for t in self._tasks if t.id != task_id])
        if self.form.editing_id == task_id:
            self.form.reset()
        self._cancel_reminder(task_id)

        user_id = self._session.user_id if self._session is not None else None
        if user_id:
            self._spawn(self._delete_remote(user_id, task_id), f"remote-delete:{task_id}")
        logger.info("Task deleted id=%s", task_id)
        return True

    # ---- fan-out ----

    def _commit(self, tasks: list[Task]) -> None:
        self._tasks = tasks
        user_id = self._session.user_id if self._session is not None else None
        snapshot = list(tasks)

        self._queue_local_save(user_id, snapshot)
        if user_id:
            self._seq += 1
            self._remote_seq[user_id] = self._seq
            self._spawn(self._push_remote(user_id, snapshot, self._seq), "remote-push")

    def _queue_local_save(self, user_id: str | None, tasks: list[Task]) -> None:
        self._seq += 1
        self._local_seq[user_id] = self._seq
        self._spawn(self._save_local(user_id, tasks, self._seq), "local-save")

    async def _save_local(self, user_id: str | None, tasks: Sequence[Task], seq: int) -> None:
        async with self._local_lock:
            if self._local_seq.get(user_id) != seq:
                logger.debug("Local save superseded user=%s seq=%d", user_id, seq)
                return
            try:
                ok = await asyncio.to_thread(self._local.save, user_id, tasks)
            except Exception:
                logger.exception("Local save crashed user=%s", user_id)
                return
        if not ok:
            logger.warning("Local save failed user=%s tasks=%d", user_id, len(tasks))

    async def _push_remote(self, user_id: str, tasks: Sequence[Task], seq: int) -> None:
        async with self._remote_lock:
            if self._remote_seq.get(user_id) != seq:
                logger.debug("Remote push superseded user=%s seq=%d", user_id, seq)
                return
            try:
                await asyncio.to_thread(self._remote.push_all, user_id, tasks)
            except Exception:
                logger.warning("Remote push failed user=%s tasks=%d", user_id, len(tasks), exc_info=True)

    async def _delete_remote(self, user_id: str, task_id: str) -> None:
        try:
            async with self._remote_lock:
                await asyncio.to_thread(self._remote.delete_one, user_id, task_id)
        except Exception:
            logger.warning("Remote delete failed user=%s task=%s", user_id, task_id, exc_info=True)

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.error("No running event loop; background operation %s dropped", name)
            return
        task = loop.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ---- reminders ----

    def _schedule_reminder(self, task: Task) -> None:
        try:
            self._reminders.schedule(task)
        except Exception:
            logger.debug("Reminder schedule failed task=%s", task.id, exc_info=True)

    def _arm_reminders(self, tasks: Sequence[Task]) -> None:
        for t in tasks:
            if not t.completed:
                self._schedule_reminder(t)

    def _cancel_reminder(self, task_id: str) -> None:
        try:
            self._reminders.cancel(task_id)
        except Exception:
            logger.debug("Reminder cancel failed task=%s", task_id, exc_info=True)

    # ---- helpers ----

    def _new_id(self, now: float) -> str:
        taken = {t.id for t in self._tasks}
        candidate = int(now * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)
