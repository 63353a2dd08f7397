# tests/test_archive_types.py

from __future__ import annotations

from datetime import date

import pytest

from focusdesk.archive.archive_types import (
    ArchiveType,
    archive_type_for,
    bucket_key,
    is_archivable,
    week_key,
    window_start,
)
from focusdesk.tasks.task_models import Category, TaskStatus
from focusdesk.tasks.task_store import TaskStore

from .conftest import NOW, local_dt


@pytest.mark.parametrize(
    ("category", "expected"),
    [
        (Category.INBOX, ArchiveType.DAILY),
        (Category.TODAY, ArchiveType.DAILY),
        (Category.WEEK, ArchiveType.WEEKLY),
        (Category.MONTH, ArchiveType.MONTHLY),
        ("garbage", ArchiveType.DAILY),
    ],
)
def test_archive_type_for_category(category, expected) -> None:
    assert archive_type_for(category) == expected


def test_window_starts() -> None:
    assert window_start(Category.TODAY, NOW) == local_dt(2024, 5, 15)
    assert window_start(Category.INBOX, NOW) == local_dt(2024, 5, 15)
    assert window_start(Category.WEEK, NOW) == local_dt(2024, 5, 12)
    assert window_start(Category.MONTH, NOW) == local_dt(2024, 5, 1)


def test_week_window_on_sunday_is_that_sunday() -> None:
    sunday = local_dt(2024, 5, 12, 9, 30)
    assert window_start(Category.WEEK, sunday) == local_dt(2024, 5, 12)


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2024, 1, 1), "2024-W1"),
        (date(2024, 1, 7), "2024-W1"),
        (date(2024, 1, 8), "2024-W2"),
        (date(2024, 5, 15), "2024-W20"),
        (date(2024, 12, 31), "2024-W53"),
    ],
)
def test_week_key_counts_from_january_first(day, expected) -> None:
    assert week_key(day) == expected


def test_bucket_keys() -> None:
    ref = local_dt(2024, 4, 30, 22, 15)
    assert bucket_key(ArchiveType.DAILY, ref) == "2024-04-30"
    assert bucket_key(ArchiveType.WEEKLY, ref) == "2024-W18"
    assert bucket_key(ArchiveType.MONTHLY, ref) == "2024-04"


@pytest.mark.parametrize(
    ("category", "completed", "expected"),
    [
        (Category.TODAY, local_dt(2024, 5, 14, 23, 59, 59), True),
        (Category.TODAY, local_dt(2024, 5, 15, 0, 0, 1), False),
        (Category.TODAY, local_dt(2024, 5, 15, 0, 0, 0), False),
        (Category.WEEK, local_dt(2024, 5, 11, 23, 0), True),
        (Category.WEEK, local_dt(2024, 5, 12, 0, 30), False),
        (Category.MONTH, local_dt(2024, 4, 30, 12, 0), True),
        (Category.MONTH, local_dt(2024, 5, 1, 8, 0), False),
    ],
)
def test_is_archivable_uses_window_boundary(
    tasks: TaskStore, category, completed, expected
) -> None:
    task = tasks.create("t", category=category, now=local_dt(2024, 3, 1))
    done = tasks.complete(task.id, now=completed)

    assert done is not None
    assert is_archivable(done, NOW) is expected


def test_open_task_uses_created_at(tasks: TaskStore) -> None:
    old = tasks.create("old", category=Category.TODAY, now=local_dt(2024, 5, 14, 9))
    fresh = tasks.create("fresh", category=Category.TODAY, now=local_dt(2024, 5, 15, 8))

    assert old.status == TaskStatus.TODO
    assert is_archivable(old, NOW) is True
    assert is_archivable(fresh, NOW) is False
