# src/focusdesk/archive/archive_types.py

from __future__ import annotations

"""
Archive types and the calendar arithmetic behind them.

All boundaries and keys use the machine's local calendar:
- inbox/today -> daily buckets, window opens at local midnight today
- week        -> weekly buckets, window opens Sunday 00:00 of the current week
- month       -> monthly buckets, window opens on the 1st at 00:00
"""

import math
from datetime import date, datetime, time, timedelta
from enum import StrEnum

from ..core.timeutil import to_local
from ..tasks.task_models import Category, Task


class ArchiveType(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


_CATEGORY_ARCHIVE = {
    Category.INBOX: ArchiveType.DAILY,
    Category.TODAY: ArchiveType.DAILY,
    Category.WEEK: ArchiveType.WEEKLY,
    Category.MONTH: ArchiveType.MONTHLY,
}


def archive_type_for(category: Category | str) -> ArchiveType:
    return _CATEGORY_ARCHIVE.get(Category.from_db(str(category)), ArchiveType.DAILY)


def _local_midnight(day: date) -> datetime:
    # Naive -> astimezone() resolves the local offset valid on that day (DST-safe).
    return datetime.combine(day, time()).astimezone()


def window_start(category: Category | str, now: datetime) -> datetime:
    """Start of the current active window for a category."""
    today = to_local(now).date()
    category = Category.from_db(str(category))

    if category == Category.MONTH:
        return _local_midnight(today.replace(day=1))
    if category == Category.WEEK:
        # date.weekday(): Monday=0 .. Sunday=6; weeks start on Sunday.
        days_since_sunday = (today.weekday() + 1) % 7
        return _local_midnight(today - timedelta(days=days_since_sunday))
    return _local_midnight(today)


def is_archivable(task: Task, now: datetime) -> bool:
    """True if the task's reference time is strictly before its window start."""
    return task.reference_time() < window_start(task.category, now)


def week_key(day: date) -> str:
    """
    YYYY-W<n> with n = ceil((day_of_year0 + 1) / 7), counted from Jan 1.

    Not ISO-8601 week numbering. Existing archive files are keyed this way,
    so the scheme must not change.
    """
    day_of_year0 = day.timetuple().tm_yday - 1
    week = math.ceil((day_of_year0 + 1) / 7)
    return f"{day.year}-W{week}"


def bucket_key(archive_type: ArchiveType | str, reference: datetime) -> str:
    day = to_local(reference).date()
    archive_type = ArchiveType(archive_type)

    if archive_type == ArchiveType.WEEKLY:
        return week_key(day)
    if archive_type == ArchiveType.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    return day.isoformat()
