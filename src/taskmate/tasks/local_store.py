# src/taskmate/tasks/local_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Sequence
from pathlib import Path

from .task_models import Task, storage_key

logger = logging.getLogger(__name__)


class SqliteLocalTaskStore:
    """
    SQLite key-value store for the full task collection of each identity.

    One row per key ("tasks_<user_id>" or "tasks_guest"), value is a JSON array
    of task records. Every save overwrites the whole collection.

    Thread-safety:
    - each method opens its own SQLite connection (the engine calls us from worker threads)
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            keys = self.count_keys()
        except Exception:
            keys = -1
        logger.info("SqliteLocalTaskStore ready db=%s keys=%s", self._db_path, keys)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _get_raw(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def _set_raw(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, time.time()),
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def count_keys(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM kv").fetchone()
            return int(n)
        finally:
            conn.close()

    def load(self, user_id: str | None) -> list[Task]:
        """Return the stored collection, or [] if it is missing or unreadable."""
        key = storage_key(user_id)
        try:
            raw = self._get_raw(key)
            if not raw:
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                logger.warning("Local tasks for key=%s are not a list; ignoring.", key)
                return []
            tasks: list[Task] = []
            for item in data:
                if not isinstance(item, dict):
                    continue
                try:
                    tasks.append(Task.from_dict(item))
                except (TypeError, ValueError):
                    logger.warning("Skipping malformed local task record key=%s: %r", key, item)
            logger.debug("Loaded %d local tasks key=%s", len(tasks), key)
            return tasks
        except Exception:
            logger.warning("Error loading tasks from local store key=%s", key, exc_info=True)
            return []

    def save(self, user_id: str | None, tasks: Sequence[Task]) -> bool:
        key = storage_key(user_id)
        try:
            payload = json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)
            self._set_raw(key, payload)
            logger.debug("Saved %d local tasks key=%s", len(tasks), key)
            return True
        except Exception:
            logger.warning("Error saving tasks to local store key=%s", key, exc_info=True)
            return False
