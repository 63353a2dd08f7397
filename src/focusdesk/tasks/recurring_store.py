# src/focusdesk/tasks/recurring_store.py

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import UTC, datetime

from ..core.ports import Store
from ..core.timeutil import from_db_ts, to_db_ts, utc_now
from .task_models import Category, Priority, RecurringTask, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


class RecurringTaskStore:
    """Stateless task templates; instantiate() turns one into a real task."""

    def __init__(self, db: Store, task_store: TaskStore) -> None:
        self._db = db
        self._tasks = task_store

    @staticmethod
    def _row_to_template(row: sqlite3.Row) -> RecurringTask:
        return RecurringTask(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            description=row["description"],
            priority=Priority.from_db(row["priority"]),
            created_at=from_db_ts(row["created_at"]) or datetime.fromtimestamp(0, UTC),
        )

    def list(self) -> list[RecurringTask]:
        rows = self._db.query("SELECT * FROM recurring_tasks ORDER BY created_at DESC")
        return [self._row_to_template(r) for r in rows]

    def get_by_id(self, template_id: str) -> RecurringTask | None:
        row = self._db.query_one("SELECT * FROM recurring_tasks WHERE id = ?", (template_id,))
        return self._row_to_template(row) if row else None

    def create(
        self,
        title: str,
        *,
        description: str | None = None,
        priority: Priority | str = Priority.P4,
        now: datetime | None = None,
    ) -> RecurringTask:
        if not title or not title.strip():
            raise ValueError("title is required")

        template = RecurringTask(
            id=str(uuid.uuid4()),
            title=title.strip(),
            description=description,
            priority=Priority(priority),
            created_at=now or utc_now(),
        )
        self._db.execute(
            """
            INSERT INTO recurring_tasks(id, title, description, priority, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                template.id,
                template.title,
                template.description,
                template.priority.value,
                to_db_ts(template.created_at),
            ),
        )
        logger.debug("Recurring template created id=%s", template.id)
        return template

    def delete(self, template_id: str) -> bool:
        return self._db.execute("DELETE FROM recurring_tasks WHERE id = ?", (template_id,)) > 0

    def instantiate(
        self,
        template_id: str,
        *,
        category: Category | str = Category.TODAY,
        now: datetime | None = None,
    ) -> Task | None:
        template = self.get_by_id(template_id)
        if template is None:
            return None
        task = self._tasks.create(
            template.title,
            description=template.description,
            priority=template.priority,
            category=category,
            now=now,
        )
        logger.info("Recurring template %s instantiated as task %s", template_id, task.id)
        return task
