# src/focusdesk/core/timeutil.py

"""
Timestamp helpers.

Storage keeps instants as ISO-8601 UTC strings; calendar logic (day/week/month
boundaries, date keys) always works on the machine's local time.
"""

from __future__ import annotations

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_aware(dt: datetime) -> datetime:
    # Naive values are treated as UTC (SQLite's datetime('now') format).
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt


def to_db_ts(dt: datetime) -> str:
    return ensure_aware(dt).astimezone(UTC).isoformat()


def from_db_ts(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return ensure_aware(datetime.fromisoformat(str(raw)))
    except ValueError:
        return None


def to_local(dt: datetime) -> datetime:
    return ensure_aware(dt).astimezone()


def local_date_key(dt: datetime) -> str:
    """YYYY-MM-DD of the local calendar day containing dt."""
    return to_local(dt).date().isoformat()


def to_db_date(d: date | None) -> str | None:
    return d.isoformat() if d is not None else None


def from_db_date(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        return None
