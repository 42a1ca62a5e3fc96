# src/taskmate/tasks/remote_store.py

from __future__ import annotations

"""
Remote task store (store of record).

Supabase table layout (one row per task, primary key (user_id, id)):

    user_id TEXT, id TEXT, title TEXT, description TEXT, completed BOOLEAN,
    created_at DOUBLE PRECISION, updated_at DOUBLE PRECISION,
    reminder_at DOUBLE PRECISION NULL

All calls are blocking (supabase-py sync client); the sync engine runs them
in worker threads.
"""

import logging
from collections.abc import Sequence
from typing import Any

from supabase import Client, create_client
from supabase.client import ClientOptions

from ..core.errors import RemoteStoreError
from .task_models import Task

logger = logging.getLogger(__name__)


def create_supabase_client(url: str, key: str) -> Client:
    if not url or not key:
        raise RemoteStoreError("TASKMATE_SUPABASE_URL and TASKMATE_SUPABASE_KEY must be set")

    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )
    client = create_client(url, key, options)
    logger.info("Supabase client initialized url=%s", url)
    return client


class SupabaseRemoteTaskStore:
    def __init__(self, client: Client, *, table: str = "tasks") -> None:
        self._client = client
        self._table = table

    def _row(self, user_id: str, task: Task) -> dict[str, Any]:
        row = task.to_dict()
        row["user_id"] = user_id
        return row

    def fetch_all(self, user_id: str) -> list[Task]:
        """All tasks of the user, newest first (created_at desc)."""
        try:
            result = (
                self._client.table(self._table)
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(f"Failed to fetch tasks for user {user_id}: {e}") from e

        tasks: list[Task] = []
        for row in result.data or []:
            try:
                tasks.append(Task.from_dict(row))
            except (TypeError, ValueError):
                logger.warning("Skipping malformed remote task row user=%s: %r", user_id, row)
        logger.debug("Fetched %d remote tasks user=%s", len(tasks), user_id)
        return tasks

    def push_all(self, user_id: str, tasks: Sequence[Task]) -> None:
        """
        Write the whole collection in one upsert request.

        A single request is applied as one statement server-side: all rows or none.
        """
        if not tasks:
            return
        rows = [self._row(user_id, t) for t in tasks]
        try:
            self._client.table(self._table).upsert(rows, on_conflict="user_id,id").execute()
        except Exception as e:
            raise RemoteStoreError(f"Failed to push {len(rows)} tasks for user {user_id}: {e}") from e
        logger.debug("Pushed %d remote tasks user=%s", len(rows), user_id)

    def delete_one(self, user_id: str, task_id: str) -> None:
        try:
            (
                self._client.table(self._table)
                .delete()
                .eq("user_id", user_id)
                .eq("id", task_id)
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(f"Failed to delete task {task_id} for user {user_id}: {e}") from e
        logger.debug("Deleted remote task id=%s user=%s", task_id, user_id)


class OfflineRemoteTaskStore:
    """
    Remote store used when no backend is configured.

    Every call fails with RemoteStoreError, so the engine keeps working on
    local data and only logs the failed remote writes.
    """

    def fetch_all(self, user_id: str) -> list[Task]:
        raise RemoteStoreError("remote store is not configured")

    def push_all(self, user_id: str, tasks: Sequence[Task]) -> None:
        raise RemoteStoreError("remote store is not configured")

    def delete_one(self, user_id: str, task_id: str) -> None:
        raise RemoteStoreError("remote store is not configured")
