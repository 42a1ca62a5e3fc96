# src/taskmate/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

GUEST_KEY = "tasks_guest"


def storage_key(user_id: str | None) -> str:
    """Local storage key for a user's collection (guest key when unauthenticated)."""
    return f"tasks_{user_id}" if user_id else GUEST_KEY


def _opt_float(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    return float(raw)


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str | None
    created_at: float
    updated_at: float
    completed: bool = False
    reminder_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "reminder_at": self.reminder_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Build a Task from a stored record.

        Tolerates records written by older versions:
        - missing completed   -> False
        - missing updated_at  -> created_at
        - missing reminder_at -> None
        """
        task_id = data.get("id")
        title = data.get("title")
        if task_id is None or str(task_id).strip() == "":
            raise ValueError("task record has no id")
        if not isinstance(title, str) or not title.strip():
            raise ValueError(f"task record {task_id!r} has no title")

        created_at = float(data.get("created_at") or 0.0)
        updated_raw = data.get("updated_at")
        description = data.get("description")

        return cls(
            id=str(task_id),
            title=title,
            description=str(description) if description is not None else None,
            created_at=created_at,
            updated_at=float(updated_raw) if updated_raw is not None else created_at,
            completed=bool(data.get("completed") or False),
            reminder_at=_opt_float(data.get("reminder_at")),
        )


@dataclass(slots=True)
class EditForm:
    """Add/edit form state owned by the engine (title, description, edited task id)."""

    title: str = ""
    description: str = ""
    editing_id: str | None = None

    def load(self, task: Task) -> None:
        self.title = task.title
        self.description = task.description or ""
        self.editing_id = task.id

    def reset(self) -> None:
        self.title = ""
        self.description = ""
        self.editing_id = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None
