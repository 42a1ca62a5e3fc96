# src/taskmate/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import cast

from ..core.errors import SessionNotReadyError, TaskNotFoundError, TaskValidationError
from ..core.state import AppState
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def _split_title(args: list[str]) -> tuple[str, str]:
    """'/add Buy milk | 2 bottles' -> ("Buy milk", "2 bottles")."""
    text = " ".join(args)
    title, _, description = text.partition("|")
    return title.strip(), description.strip()


def _resolve_id(state: AppState, token: str) -> str | None:
    """Accept a task id or a 1-based position from /list."""
    tasks = state.engine.tasks
    if any(t.id == token for t in tasks):
        return token
    if token.isdigit():
        idx = int(token)
        if 1 <= idx <= len(tasks):
            return tasks[idx - 1].id
    return None


def _fmt_task(pos: int, task: Task) -> str:
    mark = "x" if task.completed else " "
    line = f"{pos}. [{mark}] {task.title} (id={task.id}, remind={_fmt_ts(task.reminder_at)})"
    if task.description:
        line += f"\n      {task.description}"
    return line


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.engine.tasks
    if not tasks:
        return "No tasks yet. Add one with /add <title> | <description>."
    lines = [f"Tasks ({len(tasks)}):"]
    for i, t in enumerate(tasks, start=1):
        lines.append(_fmt_task(i, t))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title> [| description]

    While a task is being edited (/edit), saves the edit instead of creating.
    An edit without "|" keeps the current description; "| " with nothing after clears it.
    """
    title, description = _split_title(args)
    editing = state.engine.form.editing_id
    if editing is not None and "|" not in " ".join(args):
        description = state.engine.form.description or ""
    try:
        task = state.engine.submit(title, description)
    except (TaskValidationError, SessionNotReadyError) as e:
        return f"Not saved: {e}"
    verb = "Updated" if editing == task.id else "Added"
    return f"{verb} task {task.id}: {task.title} (reminder at {_fmt_ts(task.reminder_at)})"


def cmd_edit(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /edit <id|#>"
    task_id = _resolve_id(state, args[0])
    if task_id is None:
        return f"No task {args[0]}."
    try:
        task = state.engine.begin_edit(task_id)
    except TaskNotFoundError:
        return f"No task {args[0]}."
    except TaskValidationError as e:
        return f"Cannot edit: {e}"
    desc = f" | {task.description}" if task.description else ""
    return (
        f"Editing task {task.id}: {task.title}{desc}\n"
        "Send /add <title> [| <description>] to save (no | keeps the description), /cancel to stop editing."
    )


def cmd_cancel(state: AppState, args: list[str]) -> str:
    if not state.engine.form.is_editing:
        return "Nothing is being edited."
    state.engine.cancel_edit()
    return "Edit cancelled."


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id|#>"
    task_id = _resolve_id(state, args[0])
    task = state.engine.toggle_complete(task_id) if task_id is not None else None
    if task is None:
        return f"No task {args[0]}."
    return f"Task {task.id} marked {'completed' if task.completed else 'open'}."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <id|#>"
    task_id = _resolve_id(state, args[0])
    if task_id is None or not state.engine.delete(task_id):
        return f"No task {args[0]}."
    return f"Deleted task {task_id}."


async def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /login <user_id>"
    user_id = args[0]
    if emit:
        emit(f"[SYNC] Loading tasks for {user_id}...")
    await state.engine.initialize(user_id)
    return f"Signed in as {user_id}. {len(state.engine.tasks)} local task(s)."


async def cmd_logout(state: AppState, args: list[str]) -> str:
    session = state.engine.session
    if session is None or session.user_id is None:
        return "Not signed in."
    await state.engine.initialize(None)
    return "Signed out. Using the guest task list."


def cmd_status(state: AppState, args: list[str]) -> str:
    session = state.engine.session
    if session is None:
        return "No session."
    remote = "configured" if getattr(state.settings, "remote_configured", False) else "not configured"
    pending = len(state.reminders.pending_ids())
    return (
        "Status:\n"
        f"  User: {session.user_id or 'guest'}\n"
        f"  Connectivity: {session.connectivity.value}\n"
        f"  Local loaded: {'yes' if session.local_loaded else 'no'}\n"
        f"  Remote synced: {'yes' if session.remote_synced else 'no'} (remote {remote})\n"
        f"  Tasks: {len(state.engine.tasks)}, pending reminders: {pending}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks.", aliases=["ls"])
registry.register(
    "add", cmd_add, help_text="Add a task (or save the edit): /add <title> | <description>."
)
registry.register("edit", cmd_edit, help_text="Start editing a task: /edit <id|#>.")
registry.register("cancel", cmd_cancel, help_text="Stop editing without saving.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id|#>.", aliases=["toggle"])
registry.register("del", cmd_delete, help_text="Delete a task: /del <id|#>.", aliases=["rm"])
registry.register("login", cmd_login, help_text="Switch identity: /login <user_id>.")
registry.register("logout", cmd_logout, help_text="Back to the guest task list.")
registry.register("status", cmd_status, help_text="Show session, connectivity and sync state.")
