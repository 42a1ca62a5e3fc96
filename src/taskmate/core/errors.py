# src/taskmate/core/errors.py

"""Exception hierarchy for taskmate."""

from __future__ import annotations


class TaskmateError(Exception):
    """Base exception for taskmate."""


class TaskValidationError(TaskmateError, ValueError):
    """An intent was rejected before any state was touched (empty title, completed task edit)."""


class TaskNotFoundError(TaskmateError, KeyError):
    """No task with the given id in the current collection."""


class StoreError(TaskmateError):
    """Persistence operation failed."""


class RemoteStoreError(StoreError):
    """Remote task store operation failed (network, auth, missing configuration)."""


class SessionNotReadyError(TaskmateError, RuntimeError):
    """An intent arrived while the session's local collection was still loading."""
