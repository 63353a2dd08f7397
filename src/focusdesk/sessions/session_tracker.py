# src/focusdesk/sessions/session_tracker.py

from __future__ import annotations

"""
Focus session tracking.

Invariant: at most one session without end_time exists at any time.
start() and stop() read the current active session and decide before
writing, so both run under one lock and inside one store transaction.
A partial unique index on sessions backs this up at the storage level.
"""

import logging
import math
import sqlite3
import threading
import uuid
from datetime import datetime

from ..core.ports import FocusRecorder, Store
from ..core.timeutil import from_db_ts, to_db_ts, utc_now
from ..tasks.task_models import Session, TaskPatch, TaskStatus
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between start and end, floored and never negative."""
    return max(0, math.floor((end - start).total_seconds()))


class SessionTracker:
    def __init__(
        self,
        db: Store,
        task_store: TaskStore,
        *,
        analytics: FocusRecorder | None = None,
    ) -> None:
        self._db = db
        self._tasks = task_store
        self._analytics = analytics
        self._lock = threading.Lock()

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> Session:
        start = from_db_ts(row["start_time"])
        if start is None:
            raise ValueError(f"session {row['id']} has no start_time")
        return Session(
            id=str(row["id"]),
            task_id=str(row["task_id"]),
            start_time=start,
            end_time=from_db_ts(row["end_time"]),
            duration_seconds=(
                int(row["duration_seconds"]) if row["duration_seconds"] is not None else None
            ),
        )

    # ---- queries ----

    def get_active(self) -> Session | None:
        row = self._db.query_one("SELECT * FROM sessions WHERE end_time IS NULL LIMIT 1")
        return self._row_to_session(row) if row else None

    def get_by_id(self, session_id: str) -> Session | None:
        row = self._db.query_one("SELECT * FROM sessions WHERE id = ?", (session_id,))
        return self._row_to_session(row) if row else None

    def list_for_task(self, task_id: str) -> list[Session]:
        rows = self._db.query(
            "SELECT * FROM sessions WHERE task_id = ? ORDER BY start_time DESC",
            (task_id,),
        )
        return [self._row_to_session(r) for r in rows]

    # ---- mutations ----

    def start(self, task_id: str, *, now: datetime | None = None) -> Session | None:
        """
        Begin focusing on a task and return the active session.

        Same task already active -> the existing session, unchanged.
        Another task active -> that session is stopped first (duration and
        analytics included). The task moves to IN_PROGRESS.
        Returns None if the task does not exist.
        """
        ts = now or utc_now()
        stopped_minutes: int | None = None

        with self._lock:
            with self._db.transaction():
                if self._tasks.get_by_id(task_id) is None:
                    return None

                active = self.get_active()
                if active is not None:
                    if active.task_id == task_id:
                        return active
                    _, stopped_minutes = self._close(active, ts)
                    logger.info(
                        "Session switched from task=%s to task=%s", active.task_id, task_id
                    )

                session_id = str(uuid.uuid4())
                self._db.execute(
                    "INSERT INTO sessions(id, task_id, start_time) VALUES (?, ?, ?)",
                    (session_id, task_id, to_db_ts(ts)),
                )
                self._tasks.update(task_id, TaskPatch(status=TaskStatus.IN_PROGRESS))

        if stopped_minutes is not None:
            self._report_focus(stopped_minutes, ts)

        logger.info("Session started id=%s task=%s", session_id, task_id)
        return self.get_by_id(session_id)

    def stop(self, task_id: str, *, now: datetime | None = None) -> Session | None:
        """
        Close the active session of task_id and return it.

        Returns None (no-op) when nothing is active or another task is active.
        """
        ts = now or utc_now()

        with self._lock:
            with self._db.transaction():
                active = self.get_active()
                if active is None or active.task_id != task_id:
                    return None
                closed, minutes = self._close(active, ts)

        self._report_focus(minutes, ts)
        logger.info(
            "Session stopped id=%s task=%s seconds=%s", closed.id, task_id, closed.duration_seconds
        )
        return closed

    def _close(self, session: Session, end: datetime) -> tuple[Session, int]:
        # Caller holds the lock and an open transaction.
        seconds = elapsed_seconds(session.start_time, end)
        minutes = seconds // 60

        self._db.execute(
            "UPDATE sessions SET end_time = ?, duration_seconds = ? WHERE id = ? AND end_time IS NULL",
            (to_db_ts(end), seconds, session.id),
        )
        self._tasks.add_actual_duration(session.task_id, minutes)

        closed = Session(
            id=session.id,
            task_id=session.task_id,
            start_time=session.start_time,
            end_time=end,
            duration_seconds=seconds,
        )
        return closed, minutes

    def _report_focus(self, minutes: int, now: datetime) -> None:
        if self._analytics is None or minutes <= 0:
            return
        try:
            self._analytics.record_focus_minutes(minutes, now=now)
        except Exception:
            logger.exception("record_focus_minutes failed minutes=%s", minutes)
