# src/taskmate/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time: without Supabase credentials the app runs offline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKMATE"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_opt(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Identity (None => guest) ----
    user_id: str | None

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Reminders ----
    reminder_offset_seconds: float

    # ---- Remote store (Supabase) ----
    supabase_url: str | None
    supabase_key: str | None
    supabase_table: str

    # ---- Connectivity probe ----
    connectivity_host: str
    connectivity_port: int
    connectivity_interval_seconds: float
    connectivity_timeout_seconds: float

    # ---- Matrix reminder delivery ----
    matrix_enabled: bool
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_room_id: str
    matrix_store_path: Path

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskmate")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        user_id = _env_opt(_k("USER_ID"))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskmate"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        reminder_offset_seconds = _env_float(_k("REMINDER_OFFSET_SECONDS"), 300.0)

        supabase_url = _env_opt(_k("SUPABASE_URL"))
        supabase_key = _env_opt(_k("SUPABASE_KEY"))
        supabase_table = _env(_k("SUPABASE_TABLE"), "tasks")

        connectivity_host = _env(_k("CONNECTIVITY_HOST"), "1.1.1.1")
        connectivity_port = _env_int(_k("CONNECTIVITY_PORT"), 443)
        connectivity_interval_seconds = _env_float(_k("CONNECTIVITY_INTERVAL_SECONDS"), 10.0)
        connectivity_timeout_seconds = _env_float(_k("CONNECTIVITY_TIMEOUT_SECONDS"), 3.0)

        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)
        matrix_homeserver = _env(_k("MATRIX_HOMESERVER"), "").strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID"), "").strip()
        matrix_password = _env(_k("MATRIX_PASSWORD"), "").strip()
        matrix_room_id = _env(_k("MATRIX_ROOM_ID"), "").strip()
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            user_id=user_id,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            reminder_offset_seconds=reminder_offset_seconds,
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            supabase_table=supabase_table,
            connectivity_host=connectivity_host,
            connectivity_port=connectivity_port,
            connectivity_interval_seconds=connectivity_interval_seconds,
            connectivity_timeout_seconds=connectivity_timeout_seconds,
            matrix_enabled=matrix_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_room_id=matrix_room_id,
            matrix_store_path=matrix_store_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
