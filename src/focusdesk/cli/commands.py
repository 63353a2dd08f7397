# src/focusdesk/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from .. import api
from ..archive.archive_types import ArchiveType
from ..core.state import AppState
from ..tasks.task_models import Category, Priority, Task, TaskStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


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

    def handle(
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
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting / lookup helpers ----


def _short(task_id: str) -> str:
    return task_id[:SHORT_ID_LEN]


def _format_task(task: Task) -> str:
    mark = "x" if task.status == TaskStatus.DONE else " "
    subs = ""
    if task.subtasks:
        done = sum(1 for s in task.subtasks if s.is_completed)
        subs = f" ({done}/{len(task.subtasks)})"
    return (
        f"[{mark}] {_short(task.id)} {task.priority.value} @{task.category.value} "
        f"{task.title}{subs} [{task.status.value}, {task.actual_duration}m]"
    )


def _resolve_task(state: AppState, ref: str) -> Task | str:
    """Find a task by full id or unique id prefix; returns an error string otherwise."""
    task = state.tasks.get_by_id(ref)
    if task is not None:
        return task
    matches = [t for t in state.tasks.list() if t.id.startswith(ref)]
    if not matches:
        return f"No task matches '{ref}'."
    if len(matches) > 1:
        return f"Ambiguous id '{ref}' ({len(matches)} tasks)."
    return matches[0]


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    active = state.sessions.get_active()
    focus = "none"
    if active is not None:
        focus = f"task {_short(active.task_id)} since {active.start_time.astimezone():%H:%M}"
    today = api.get_day_stats(state)
    done, minutes = (today.tasks_completed, today.total_focus_time) if today else (0, 0)
    return (
        "Status:\n"
        f"  Database: {state.db.path}\n"
        f"  Tasks: {state.tasks.count_tasks()}\n"
        f"  Today: {done} done, {minutes}m focus\n"
        f"  Active session: {focus}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add [@category] [!P1..!P4] title words...
    e.g. /add @today !P1 Write the report
    """
    category = Category.INBOX
    priority = Priority.P4
    words: list[str] = []

    for tok in args:
        if tok.startswith("@") and tok[1:].lower() in {c.value for c in Category}:
            category = Category(tok[1:].lower())
        elif tok.startswith("!") and tok[1:].upper() in {p.value for p in Priority}:
            priority = Priority(tok[1:].upper())
        else:
            words.append(tok)

    title = " ".join(words).strip()
    if not title:
        return "Usage: /add [@inbox|@today|@week|@month] [!P1..!P4] <title>"

    task = api.create_task(state, title, category=category, priority=priority)
    return f"Added {_format_task(task)}"


def cmd_ls(state: AppState, args: list[str]) -> str:
    status = None
    if args:
        try:
            status = TaskStatus(args[0].upper())
        except ValueError:
            return "Usage: /ls [todo|in_progress|blocked|done]"

    tasks = api.list_tasks(state, status=status)
    if not tasks:
        return "No tasks."
    return "\n".join(_format_task(t) for t in tasks)


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task id>"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    task = api.complete_task(state, found.id)
    return f"Completed {_format_task(task)}" if task else "Task disappeared."


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <task id>"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    api.delete_task(state, found.id)
    return f"Deleted {_short(found.id)} {found.title}"


def cmd_sub(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /sub <task id> <subtask title>"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    subs = api.add_subtask(state, found.id, " ".join(args[1:]))
    return f"{found.title}: {len(subs)} subtask(s)"


def cmd_start(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /start <task id>"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    session = api.start_session(state, found.id)
    if session is None:
        return "Task disappeared."
    return f"Focusing on {found.title} since {session.start_time.astimezone():%H:%M:%S}"


def cmd_stop(state: AppState, args: list[str]) -> str:
    active = api.get_active_session(state)
    if active is None:
        return "No active session."

    task_id = active.task_id
    if args:
        found = _resolve_task(state, args[0])
        if isinstance(found, str):
            return found
        task_id = found.id

    session = api.stop_session(state, task_id)
    if session is None:
        return "That task has no active session."
    minutes = (session.duration_seconds or 0) // 60
    return f"Stopped after {session.duration_seconds}s ({minutes}m credited)."


def cmd_active(state: AppState, args: list[str]) -> str:
    active = api.get_active_session(state)
    if active is None:
        return "No active session."
    task = state.tasks.get_by_id(active.task_id)
    title = task.title if task else active.task_id
    return f"Active: {title} since {active.start_time.astimezone():%Y-%m-%d %H:%M:%S}"


def cmd_stats(state: AppState, args: list[str]) -> str:
    days = None
    if args:
        try:
            days = max(1, int(args[0]))
        except ValueError:
            return "Usage: /stats [days]"

    rows = api.get_daily_stats(state, days)
    if not rows:
        return "No stats yet."
    lines = ["date        done  focus(m)"]
    for r in rows:
        lines.append(f"{r.date}  {r.tasks_completed:>4}  {r.total_focus_time:>8}")
    return "\n".join(lines)


def cmd_archive(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("[ARCHIVE] Archiving completed tasks...")
    n = api.run_archival(state)
    return f"Archived {n} task(s)."


def cmd_archived(state: AppState, args: list[str]) -> str:
    """
    /archived daily            -> list available date keys
    /archived daily 2024-05-01 -> show that bucket
    """
    if not args:
        return "Usage: /archived <daily|weekly|monthly> [date key]"
    try:
        archive_type = ArchiveType(args[0].lower())
    except ValueError:
        return "Archive type must be daily, weekly or monthly."

    if len(args) == 1:
        keys = api.get_archived_tasks(state, archive_type)
        return "\n".join(str(k) for k in keys) if keys else f"No {archive_type.value} archives."

    records = api.get_archived_tasks(state, archive_type, args[1])
    if not records:
        return f"Nothing archived under {archive_type.value}/{args[1]}."
    lines = [f"{archive_type.value}/{args[1]}:"]
    for rec in records:
        if isinstance(rec, dict):
            lines.append(f"  {rec.get('priority', '?')} {rec.get('title', '')}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show database, task count and active session.")
registry.register("add", cmd_add, help_text="Add a task: /add [@today] [!P1] <title>.")
registry.register("ls", cmd_ls, help_text="List tasks: /ls [status].", aliases=["list"])
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.")
registry.register("rm", cmd_rm, help_text="Delete a task with its subtasks/sessions: /rm <id>.")
registry.register("sub", cmd_sub, help_text="Add a subtask: /sub <id> <title>.")
registry.register("start", cmd_start, help_text="Start a focus session: /start <id>.")
registry.register("stop", cmd_stop, help_text="Stop the focus session: /stop [id].")
registry.register("active", cmd_active, help_text="Show the active focus session.")
registry.register("stats", cmd_stats, help_text="Daily completions and focus minutes: /stats [days].")
registry.register("archive", cmd_archive, help_text="Archive every completed task now.")
registry.register(
    "archived", cmd_archived, help_text="Browse archives: /archived <type> [date key]."
)
