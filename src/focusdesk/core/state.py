# src/focusdesk/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..analytics.accumulator import AnalyticsAccumulator
from ..archive.archive_engine import ArchiveEngine
from ..sessions.session_tracker import SessionTracker
from ..storage.database import Database
from ..tasks.project_store import ProjectStore
from ..tasks.recurring_store import RecurringTaskStore
from ..tasks.task_store import TaskStore


@dataclass(slots=True)
class AppState:
    """One instance of every component, built once by the composition root."""

    # Settings object (focusdesk.config.Settings or a test stand-in).
    settings: Any

    db: Database
    tasks: TaskStore
    sessions: SessionTracker
    analytics: AnalyticsAccumulator
    archive: ArchiveEngine
    projects: ProjectStore
    recurring: RecurringTaskStore
