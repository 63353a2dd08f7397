# tests/test_session_tracker.py

from __future__ import annotations

import logging
import threading
from datetime import timedelta

import pytest

from focusdesk.analytics.accumulator import AnalyticsAccumulator
from focusdesk.errors import InvariantViolation
from focusdesk.sessions.session_tracker import SessionTracker, elapsed_seconds
from focusdesk.storage.database import Database
from focusdesk.tasks.task_models import TaskStatus
from focusdesk.tasks.task_store import TaskStore

from .conftest import NOW
from .fakes import FailingRecorder


def _open_sessions(db: Database) -> int:
    row = db.query_one("SELECT COUNT(*) AS n FROM sessions WHERE end_time IS NULL")
    assert row is not None
    return int(row["n"])


def test_elapsed_seconds_floors_and_clamps() -> None:
    assert elapsed_seconds(NOW, NOW + timedelta(seconds=59, milliseconds=999)) == 59
    assert elapsed_seconds(NOW, NOW - timedelta(seconds=5)) == 0


def test_start_creates_active_session_and_marks_in_progress(
    tasks: TaskStore, sessions: SessionTracker
) -> None:
    task = tasks.create("a")

    session = sessions.start(task.id, now=NOW)

    assert session is not None
    assert session.is_active
    assert session.task_id == task.id
    assert session.start_time == NOW
    assert sessions.get_active() == session
    reloaded = tasks.get_by_id(task.id)
    assert reloaded is not None and reloaded.status == TaskStatus.IN_PROGRESS


def test_start_same_task_is_idempotent(db: Database, tasks: TaskStore, sessions: SessionTracker) -> None:
    task = tasks.create("a")

    first = sessions.start(task.id, now=NOW)
    second = sessions.start(task.id, now=NOW + timedelta(minutes=10))

    assert first is not None and second is not None
    assert second.id == first.id
    assert second.start_time == NOW
    assert _open_sessions(db) == 1


def test_start_missing_task_returns_none(db: Database, sessions: SessionTracker) -> None:
    assert sessions.start("nope", now=NOW) is None
    assert _open_sessions(db) == 0


def test_switching_tasks_stops_previous_session(
    db: Database, tasks: TaskStore, sessions: SessionTracker, analytics: AnalyticsAccumulator
) -> None:
    b = tasks.create("B")
    c = tasks.create("C")

    first = sessions.start(b.id, now=NOW)
    second = sessions.start(c.id, now=NOW + timedelta(seconds=300))

    assert first is not None and second is not None
    closed = sessions.get_by_id(first.id)
    assert closed is not None
    assert closed.end_time == NOW + timedelta(seconds=300)
    assert closed.duration_seconds == 300

    active = sessions.get_active()
    assert active is not None and active.task_id == c.id
    assert _open_sessions(db) == 1

    b_now = tasks.get_by_id(b.id)
    assert b_now is not None
    assert b_now.actual_duration == 5
    # Switching away does not reset the previous task's status.
    assert b_now.status == TaskStatus.IN_PROGRESS

    day = analytics.get_day(NOW.date().isoformat())
    assert day is not None and day.total_focus_time == 5


def test_stop_records_duration(tasks: TaskStore, sessions: SessionTracker) -> None:
    task = tasks.create("a")
    sessions.start(task.id, now=NOW)

    closed = sessions.stop(task.id, now=NOW + timedelta(seconds=150))

    assert closed is not None
    assert closed.duration_seconds == 150
    assert closed.is_active is False
    assert sessions.get_active() is None
    reloaded = tasks.get_by_id(task.id)
    assert reloaded is not None and reloaded.actual_duration == 2


def test_stop_without_matching_session_is_noop(tasks: TaskStore, sessions: SessionTracker) -> None:
    a = tasks.create("a")
    b = tasks.create("b")

    assert sessions.stop(a.id, now=NOW) is None

    sessions.start(a.id, now=NOW)
    assert sessions.stop(b.id, now=NOW + timedelta(minutes=1)) is None
    active = sessions.get_active()
    assert active is not None and active.task_id == a.id


def test_actual_duration_sums_floored_minutes(tasks: TaskStore, sessions: SessionTracker) -> None:
    task = tasks.create("a")
    start = NOW
    for seconds in (59, 61, 150, 3600):
        sessions.start(task.id, now=start)
        sessions.stop(task.id, now=start + timedelta(seconds=seconds))
        start += timedelta(hours=2)

    reloaded = tasks.get_by_id(task.id)
    assert reloaded is not None
    assert reloaded.actual_duration == 0 + 1 + 2 + 60

    history = sessions.list_for_task(task.id)
    assert [s.duration_seconds for s in history] == [3600, 150, 61, 59]


def test_short_session_reports_no_focus_minutes(
    tasks: TaskStore, sessions: SessionTracker, analytics: AnalyticsAccumulator
) -> None:
    task = tasks.create("a")
    sessions.start(task.id, now=NOW)
    sessions.stop(task.id, now=NOW + timedelta(seconds=45))

    assert analytics.get_daily() == []


def test_focus_analytics_failure_does_not_block_stop(
    db: Database, tasks: TaskStore, caplog
) -> None:
    recorder = FailingRecorder()
    tracker = SessionTracker(db, tasks, analytics=recorder)
    task = tasks.create("a")
    tracker.start(task.id, now=NOW)

    with caplog.at_level(logging.ERROR):
        closed = tracker.stop(task.id, now=NOW + timedelta(minutes=3))

    assert closed is not None and closed.duration_seconds == 180
    assert recorder.calls == 1
    assert "record_focus_minutes failed" in caplog.text


def test_storage_rejects_second_open_session(db: Database, tasks: TaskStore) -> None:
    a = tasks.create("a")
    b = tasks.create("b")
    db.execute(
        "INSERT INTO sessions(id, task_id, start_time) VALUES ('s1', ?, '2024-05-15T08:00:00+00:00')",
        (a.id,),
    )

    with pytest.raises(InvariantViolation):
        db.execute(
            "INSERT INTO sessions(id, task_id, start_time) VALUES ('s2', ?, '2024-05-15T08:01:00+00:00')",
            (b.id,),
        )


def test_concurrent_starts_leave_one_active_session(
    db: Database, tasks: TaskStore, sessions: SessionTracker
) -> None:
    task_ids = [tasks.create(f"t{i}").id for i in range(8)]
    errors: list[BaseException] = []
    barrier = threading.Barrier(len(task_ids))

    def worker(task_id: str) -> None:
        try:
            barrier.wait()
            for _ in range(10):
                assert sessions.start(task_id) is not None
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(tid,)) for tid in task_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    assert _open_sessions(db) == 1
    active = sessions.get_active()
    assert active is not None and active.task_id in task_ids
