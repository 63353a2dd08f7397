# src/focusdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires one instance of every component into AppState,
- runs the startup auto-archive sweep.
"""

from __future__ import annotations

import logging

from ..analytics.accumulator import AnalyticsAccumulator
from ..archive.archive_engine import ArchiveEngine
from ..archive.file_store import JsonArchiveFileStore
from ..config import get_settings
from ..core.state import AppState
from ..sessions.session_tracker import SessionTracker
from ..storage.database import Database
from ..tasks.project_store import ProjectStore
from ..tasks.recurring_store import RecurringTaskStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.archive_dir.mkdir(parents=True, exist_ok=True)


def build_state(settings) -> AppState:
    """Wire components from settings without running any sweep."""
    db = Database(settings.db_path, schema_path=getattr(settings, "schema_path", None))
    analytics = AnalyticsAccumulator(db)
    tasks = TaskStore(db, analytics=analytics)
    return AppState(
        settings=settings,
        db=db,
        tasks=tasks,
        sessions=SessionTracker(db, tasks, analytics=analytics),
        analytics=analytics,
        archive=ArchiveEngine(db, tasks, JsonArchiveFileStore(settings.archive_dir)),
        projects=ProjectStore(db),
        recurring=RecurringTaskStore(db, tasks),
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)
    state = build_state(settings)

    if getattr(settings, "auto_archive_on_startup", True):
        archived = state.archive.auto_archive_on_startup()
        logger.info("Startup auto-archive done archived=%s", archived)

    return state
