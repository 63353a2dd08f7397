# src/focusdesk/tasks/project_store.py

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import UTC, date, datetime
from typing import Any

from ..core.ports import Store
from ..core.timeutil import from_db_date, from_db_ts, to_db_date, to_db_ts, utc_now
from .task_models import Project, ProjectPatch, ProjectStatus

logger = logging.getLogger(__name__)


class ProjectStore:
    """
    Projects group tasks by reference only.

    Deleting a project clears project_id on its tasks; tasks are never deleted
    with their project.
    """

    def __init__(self, db: Store) -> None:
        self._db = db

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(
            id=str(row["id"]),
            name=str(row["name"] or ""),
            description=row["description"],
            deadline=from_db_date(row["deadline"]),
            status=ProjectStatus.from_db(row["status"]),
            created_at=from_db_ts(row["created_at"]) or datetime.fromtimestamp(0, UTC),
            completed_at=from_db_ts(row["completed_at"]),
        )

    def create(
        self,
        name: str,
        *,
        description: str | None = None,
        deadline: date | None = None,
        status: ProjectStatus | str = ProjectStatus.ACTIVE,
        now: datetime | None = None,
    ) -> Project:
        if not name or not name.strip():
            raise ValueError("name is required")

        project_id = str(uuid.uuid4())
        ts = to_db_ts(now or utc_now())
        status = ProjectStatus(status)
        self._db.execute(
            """
            INSERT INTO projects(id, name, description, deadline, status, created_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                project_id,
                name.strip(),
                description,
                to_db_date(deadline),
                status.value,
                ts,
                ts if status == ProjectStatus.COMPLETED else None,
            ),
        )
        logger.debug("Project created id=%s", project_id)

        project = self.get_by_id(project_id)
        if project is None:
            raise RuntimeError(f"project {project_id} vanished right after insert")
        return project

    def get_by_id(self, project_id: str) -> Project | None:
        row = self._db.query_one("SELECT * FROM projects WHERE id = ?", (project_id,))
        return self._row_to_project(row) if row else None

    def list(self, status: ProjectStatus | str | None = None) -> list[Project]:
        if status is not None:
            rows = self._db.query(
                "SELECT * FROM projects WHERE status = ? ORDER BY created_at DESC",
                (ProjectStatus(status).value,),
            )
        else:
            rows = self._db.query("SELECT * FROM projects ORDER BY created_at DESC")
        return [self._row_to_project(r) for r in rows]

    def update(
        self, project_id: str, patch: ProjectPatch, *, now: datetime | None = None
    ) -> Project | None:
        items = patch.items()
        if not items:
            return self.get_by_id(project_id)

        sets: list[str] = []
        params: list[Any] = []
        for name, value in items:
            if name == "name":
                if not value or not str(value).strip():
                    raise ValueError("name is required")
                value = str(value).strip()
            elif name == "deadline":
                value = to_db_date(from_db_date(value) if isinstance(value, str) else value)
            elif name == "status":
                status = ProjectStatus(value)
                value = status.value
                if status == ProjectStatus.COMPLETED:
                    sets.append("completed_at = COALESCE(completed_at, ?)")
                    params.append(to_db_ts(now or utc_now()))
                else:
                    sets.append("completed_at = NULL")
            sets.append(f"{name} = ?")
            params.append(value)

        params.append(project_id)
        self._db.execute(f"UPDATE projects SET {', '.join(sets)} WHERE id = ?", params)
        return self.get_by_id(project_id)

    def delete(self, project_id: str) -> bool:
        with self._db.transaction():
            released = self._db.execute(
                "UPDATE tasks SET project_id = NULL WHERE project_id = ?", (project_id,)
            )
            n = self._db.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        if n:
            logger.info("Project deleted id=%s released_tasks=%s", project_id, released)
        return n > 0
