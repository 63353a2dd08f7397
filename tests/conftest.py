# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from focusdesk.analytics.accumulator import AnalyticsAccumulator
from focusdesk.archive.archive_engine import ArchiveEngine
from focusdesk.archive.file_store import JsonArchiveFileStore
from focusdesk.cli.bootstrap import build_state
from focusdesk.core.state import AppState
from focusdesk.sessions.session_tracker import SessionTracker
from focusdesk.storage.database import Database
from focusdesk.tasks.task_store import TaskStore


def local_dt(*args: int) -> datetime:
    """Aware datetime for a wall-clock time on this machine's local timezone."""
    return datetime(*args).astimezone()


# Wednesday; the current week started Sunday 2024-05-12.
NOW = local_dt(2024, 5, 15, 10, 0, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="focusdesk-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        db_path=tmp_path / "focusdesk.sqlite3",
        archive_dir=tmp_path / "archives",
        schema_path=None,
        auto_archive_on_startup=True,
        stats_days=7,
    )


@pytest.fixture()
def db(tmp_path: Path) -> Database:
    return Database(tmp_path / "focusdesk.sqlite3")


@pytest.fixture()
def analytics(db: Database) -> AnalyticsAccumulator:
    return AnalyticsAccumulator(db)


@pytest.fixture()
def tasks(db: Database, analytics: AnalyticsAccumulator) -> TaskStore:
    return TaskStore(db, analytics=analytics)


@pytest.fixture()
def sessions(db: Database, tasks: TaskStore, analytics: AnalyticsAccumulator) -> SessionTracker:
    return SessionTracker(db, tasks, analytics=analytics)


@pytest.fixture()
def archive_files(tmp_path: Path) -> JsonArchiveFileStore:
    return JsonArchiveFileStore(tmp_path / "archives")


@pytest.fixture()
def archive(db: Database, tasks: TaskStore, archive_files: JsonArchiveFileStore) -> ArchiveEngine:
    return ArchiveEngine(db, tasks, archive_files)


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired exactly like the app, on tmp paths.

    NOTE: real SQLite and real archive files are used here because their
    correctness is part of what we want to test.
    """
    return build_state(settings)
