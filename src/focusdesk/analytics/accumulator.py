# src/focusdesk/analytics/accumulator.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.ports import Store
from ..core.timeutil import local_date_key, utc_now
from ..tasks.task_models import DailyAnalytics

logger = logging.getLogger(__name__)


class AnalyticsAccumulator:
    """
    Additive per-day rollups (completions, focus minutes).

    Rows are keyed by local calendar date and only ever incremented, so they
    outlive the tasks and sessions they were derived from (archival deletes
    those, never these).
    """

    def __init__(self, db: Store) -> None:
        self._db = db

    def record_completion(self, *, now: datetime | None = None) -> None:
        day = local_date_key(now or utc_now())
        self._db.execute(
            """
            INSERT INTO analytics_daily(date, tasks_completed, total_focus_time)
            VALUES (?, 1, 0)
            ON CONFLICT(date) DO UPDATE SET tasks_completed = tasks_completed + 1
            """,
            (day,),
        )
        logger.debug("Analytics completion recorded date=%s", day)

    def record_focus_minutes(self, minutes: int, *, now: datetime | None = None) -> None:
        if minutes < 0:
            raise ValueError("minutes must be >= 0")

        day = local_date_key(now or utc_now())
        self._db.execute(
            """
            INSERT INTO analytics_daily(date, tasks_completed, total_focus_time)
            VALUES (?, 0, ?)
            ON CONFLICT(date) DO UPDATE SET total_focus_time = total_focus_time + excluded.total_focus_time
            """,
            (day, int(minutes)),
        )
        logger.debug("Analytics focus recorded date=%s minutes=%s", day, minutes)

    def get_daily(self, days: int = 7) -> list[DailyAnalytics]:
        """The most recent `days` rows, newest first."""
        if days <= 0:
            return []
        rows = self._db.query(
            """
            SELECT date, tasks_completed, total_focus_time
            FROM analytics_daily
            ORDER BY date DESC
            LIMIT ?
            """,
            (int(days),),
        )
        return [
            DailyAnalytics(
                date=str(r["date"]),
                tasks_completed=int(r["tasks_completed"] or 0),
                total_focus_time=int(r["total_focus_time"] or 0),
            )
            for r in rows
        ]

    def get_day(self, day: str) -> DailyAnalytics | None:
        row = self._db.query_one("SELECT * FROM analytics_daily WHERE date = ?", (day,))
        if row is None:
            return None
        return DailyAnalytics(
            date=str(row["date"]),
            tasks_completed=int(row["tasks_completed"] or 0),
            total_focus_time=int(row["total_focus_time"] or 0),
        )
