# src/focusdesk/tasks/task_store.py

from __future__ import annotations

import logging
import sqlite3
import uuid
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from ..core.ports import CompletionRecorder, Store
from ..core.timeutil import from_db_date, from_db_ts, to_db_date, to_db_ts, utc_now
from .task_models import Category, Priority, Subtask, Task, TaskPatch, TaskStatus

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _encode_date(value: date | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, date):
        return to_db_date(value)
    parsed = from_db_date(value)
    if parsed is None:
        raise ValueError(f"invalid date: {value!r}")
    return to_db_date(parsed)


def _encode_title(value: Any) -> str:
    if value is None or not str(value).strip():
        raise ValueError("title is required")
    return str(value).strip()


def _encode_optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


# Column encoders for patchable fields.
_PATCH_ENCODERS: dict[str, Any] = {
    "title": _encode_title,
    "description": lambda v: None if v is None else str(v),
    "status": lambda v: TaskStatus(v).value,
    "priority": lambda v: Priority(v).value,
    "due_date": _encode_date,
    "project_id": lambda v: None if v is None else str(v),
    "estimated_duration": _encode_optional_int,
    "category": lambda v: Category(v).value,
    "is_locked": lambda v: int(bool(v)),
    "timer_elapsed": lambda v: int(v or 0),
    "position": lambda v: int(v or 0),
}


class TaskStore:
    """
    Authoritative CRUD and ordering for tasks and their subtasks.

    Every public method is one atomic write (or one transaction for cascades
    and reorders). Missing ids are not errors: reads return None, writes
    are silent no-ops.
    """

    def __init__(self, db: Store, *, analytics: CompletionRecorder | None = None) -> None:
        self._db = db
        self._analytics = analytics
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready total=%s", total)

    # ---- row mapping ----

    @staticmethod
    def _row_to_subtask(row: sqlite3.Row) -> Subtask:
        return Subtask(
            id=str(row["id"]),
            task_id=str(row["task_id"]),
            title=str(row["title"] or ""),
            is_completed=bool(row["is_completed"]),
        )

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        created_at = from_db_ts(row["created_at"]) or datetime.fromtimestamp(0, UTC)
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            description=row["description"],
            status=TaskStatus.from_db(row["status"]),
            priority=Priority.from_db(row["priority"]),
            due_date=from_db_date(row["due_date"]),
            created_at=created_at,
            completed_at=from_db_ts(row["completed_at"]),
            project_id=row["project_id"],
            estimated_duration=(
                int(row["estimated_duration"]) if row["estimated_duration"] is not None else None
            ),
            actual_duration=int(row["actual_duration"] or 0),
            category=Category.from_db(row["category"]),
            is_locked=bool(row["is_locked"]),
            timer_elapsed=int(row["timer_elapsed"] or 0),
            position=int(row["position"] or 0),
        )

    def _hydrate(self, task: Task) -> Task:
        task.subtasks = self.get_subtasks(task.id)
        return task

    # ---- tasks ----

    def count_tasks(self) -> int:
        row = self._db.query_one("SELECT COUNT(*) AS n FROM tasks")
        return int(row["n"]) if row else 0

    def create(
        self,
        title: str,
        *,
        description: str | None = None,
        status: TaskStatus | str = TaskStatus.TODO,
        priority: Priority | str = Priority.P4,
        due_date: date | str | None = None,
        project_id: str | None = None,
        estimated_duration: int | None = None,
        category: Category | str = Category.INBOX,
        is_locked: bool = False,
        timer_elapsed: int = 0,
        now: datetime | None = None,
    ) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")

        task_id = _new_id()
        created_at = now or utc_now()
        status = TaskStatus(status)

        self._db.execute(
            """
            INSERT INTO tasks(
                id, title, description, status, priority, due_date, created_at,
                completed_at, project_id, estimated_duration, actual_duration,
                category, is_locked, timer_elapsed, position
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?, 0)
            """,
            (
                task_id,
                title.strip(),
                description,
                status.value,
                Priority(priority).value,
                _encode_date(due_date),
                to_db_ts(created_at),
                to_db_ts(created_at) if status == TaskStatus.DONE else None,
                project_id,
                _encode_optional_int(estimated_duration),
                Category(category).value,
                int(bool(is_locked)),
                int(timer_elapsed or 0),
            ),
        )
        logger.debug("Task created id=%s category=%s priority=%s", task_id, category, priority)

        task = self.get_by_id(task_id)
        if task is None:
            raise RuntimeError(f"task {task_id} vanished right after insert")
        return task

    def get_by_id(self, task_id: str) -> Task | None:
        row = self._db.query_one("SELECT * FROM tasks WHERE id = ?", (task_id,))
        return self._hydrate(self._row_to_task(row)) if row else None

    def list(
        self,
        *,
        status: TaskStatus | str | None = None,
        project_id: str | None = None,
    ) -> list[Task]:
        """
        All tasks matching the filter, ordered by position then newest first.

        Each task comes with its subtasks. No pagination: a personal task list
        stays small enough to load whole.
        """
        clauses: list[str] = []
        params: list[Any] = []

        if status is not None:
            clauses.append("status = ?")
            params.append(TaskStatus(status).value)

        if project_id is not None:
            clauses.append("project_id = ?")
            params.append(project_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._db.query(
            f"SELECT * FROM tasks {where} ORDER BY position ASC, created_at DESC",
            params,
        )
        tasks = [self._row_to_task(r) for r in rows]
        return self._attach_subtasks(tasks)

    def _attach_subtasks(self, tasks: list[Task]) -> list[Task]:
        if not tasks:
            return tasks

        by_id = {t.id: t for t in tasks}
        ph = ",".join("?" for _ in by_id)
        rows = self._db.query(
            f"SELECT * FROM subtasks WHERE task_id IN ({ph}) ORDER BY rowid ASC",
            list(by_id),
        )
        for row in rows:
            sub = self._row_to_subtask(row)
            by_id[sub.task_id].subtasks.append(sub)
        return tasks

    def update(self, task_id: str, patch: TaskPatch, *, now: datetime | None = None) -> Task | None:
        """
        Apply the supplied fields in one statement and return the new state.

        An empty patch writes nothing and returns the current state.
        Moving to DONE stamps completed_at if it was never set; moving out of
        DONE clears it, so a reopened task is stamped again on its next completion.
        """
        items = patch.items()
        if not items:
            return self.get_by_id(task_id)

        sets: list[str] = []
        params: list[Any] = []
        for name, value in items:
            sets.append(f"{name} = ?")
            params.append(_PATCH_ENCODERS[name](value))

        new_status = dict(items).get("status")
        if new_status is not None:
            if TaskStatus(new_status) == TaskStatus.DONE:
                sets.append("completed_at = COALESCE(completed_at, ?)")
                params.append(to_db_ts(now or utc_now()))
            else:
                sets.append("completed_at = NULL")

        params.append(task_id)
        n = self._db.execute(f"UPDATE tasks SET {', '.join(sets)} WHERE id = ?", params)
        logger.debug("Task updated id=%s fields=%s rows=%s", task_id, [k for k, _ in items], n)
        return self.get_by_id(task_id)

    def complete(self, task_id: str, *, now: datetime | None = None) -> Task | None:
        """
        Mark a task DONE in one write; completed_at is set once per transition
        to DONE and kept while the task stays DONE.

        Each transition to DONE counts as a completion in daily analytics.
        Analytics failures are logged and never undo the completion.
        """
        ts = to_db_ts(now or utc_now())
        with self._db.transaction():
            before = self._db.query_one("SELECT status FROM tasks WHERE id = ?", (task_id,))
            if before is None:
                return None
            self._db.execute(
                """
                UPDATE tasks
                SET status = 'DONE',
                    completed_at = COALESCE(completed_at, ?)
                WHERE id = ?
                """,
                (ts, task_id),
            )

        transitioned = TaskStatus.from_db(before["status"]) != TaskStatus.DONE
        if transitioned and self._analytics is not None:
            try:
                self._analytics.record_completion(now=now)
            except Exception:
                logger.exception("record_completion failed task_id=%s", task_id)

        logger.info("Task completed id=%s", task_id)
        return self.get_by_id(task_id)

    def add_actual_duration(self, task_id: str, minutes: int) -> None:
        """Accumulate focus minutes; actual_duration never decreases."""
        if minutes < 0:
            raise ValueError("minutes must be >= 0")
        self._db.execute(
            "UPDATE tasks SET actual_duration = actual_duration + ? WHERE id = ?",
            (int(minutes), task_id),
        )

    def delete(self, task_id: str) -> bool:
        """Remove a task with its sessions and subtasks, all or nothing."""
        with self._db.transaction():
            self._db.execute("DELETE FROM sessions WHERE task_id = ?", (task_id,))
            self._db.execute("DELETE FROM subtasks WHERE task_id = ?", (task_id,))
            n = self._db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        if n:
            logger.info("Task deleted id=%s", task_id)
        return n > 0

    def reorder(self, ordered_ids: Sequence[str]) -> int:
        """
        Set position = index for each supplied id in one transaction.

        Unknown ids are skipped. Returns how many tasks were repositioned.
        """
        updated = 0
        with self._db.transaction():
            for index, task_id in enumerate(ordered_ids):
                updated += self._db.execute(
                    "UPDATE tasks SET position = ? WHERE id = ?", (index, task_id)
                )
        logger.debug("Tasks reordered requested=%s updated=%s", len(ordered_ids), updated)
        return updated

    # ---- subtasks ----

    def get_subtasks(self, task_id: str) -> list[Subtask]:
        rows = self._db.query(
            "SELECT * FROM subtasks WHERE task_id = ? ORDER BY rowid ASC", (task_id,)
        )
        return [self._row_to_subtask(r) for r in rows]

    def get_subtask(self, subtask_id: str) -> Subtask | None:
        row = self._db.query_one("SELECT * FROM subtasks WHERE id = ?", (subtask_id,))
        return self._row_to_subtask(row) if row else None

    def add_subtask(self, task_id: str, title: str) -> list[Subtask]:
        """Append a subtask; returns the task's subtasks (empty if the task is missing)."""
        if not title or not title.strip():
            raise ValueError("title is required")

        with self._db.transaction():
            if self._db.query_one("SELECT 1 FROM tasks WHERE id = ?", (task_id,)) is None:
                return []
            self._db.execute(
                "INSERT INTO subtasks(id, task_id, title, is_completed) VALUES (?, ?, ?, 0)",
                (_new_id(), task_id, title.strip()),
            )
        return self.get_subtasks(task_id)

    def toggle_subtask(self, subtask_id: str, is_completed: bool) -> Subtask | None:
        self._db.execute(
            "UPDATE subtasks SET is_completed = ? WHERE id = ?",
            (int(bool(is_completed)), subtask_id),
        )
        return self.get_subtask(subtask_id)

    def delete_subtask(self, subtask_id: str) -> bool:
        return self._db.execute("DELETE FROM subtasks WHERE id = ?", (subtask_id,)) > 0
