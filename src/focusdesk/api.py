# src/focusdesk/api.py

"""
Caller-facing operations.

Thin functions over the components held by AppState; this is what a UI or any
other driver calls. Every function returns the resulting entity/entities or an
explicit empty result (None, [], False, 0). Only storage failures raise.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from .archive.archive_types import ArchiveType
from .core.ports import TaskSnapshot
from .core.state import AppState
from .core.timeutil import local_date_key, utc_now
from .tasks.task_models import (
    Category,
    DailyAnalytics,
    Priority,
    Project,
    ProjectPatch,
    ProjectStatus,
    RecurringTask,
    Session,
    Subtask,
    Task,
    TaskPatch,
    TaskStatus,
)


# ---- tasks ----


def create_task(state: AppState, title: str, **fields: Any) -> Task:
    return state.tasks.create(title, **fields)


def get_task(state: AppState, task_id: str) -> Task | None:
    return state.tasks.get_by_id(task_id)


def list_tasks(
    state: AppState,
    *,
    status: TaskStatus | str | None = None,
    project_id: str | None = None,
) -> list[Task]:
    return state.tasks.list(status=status, project_id=project_id)


def update_task(
    state: AppState, task_id: str, updates: TaskPatch | Mapping[str, Any]
) -> Task | None:
    """Accepts a TaskPatch or a plain mapping (id/subtasks keys are ignored)."""
    patch = updates if isinstance(updates, TaskPatch) else TaskPatch.from_mapping(updates)
    return state.tasks.update(task_id, patch)


def complete_task(state: AppState, task_id: str) -> Task | None:
    return state.tasks.complete(task_id)


def delete_task(state: AppState, task_id: str) -> bool:
    return state.tasks.delete(task_id)


def reorder_tasks(state: AppState, ordered_ids: Sequence[str]) -> int:
    return state.tasks.reorder(ordered_ids)


# ---- subtasks ----


def add_subtask(state: AppState, task_id: str, title: str) -> list[Subtask]:
    return state.tasks.add_subtask(task_id, title)


def toggle_subtask(state: AppState, subtask_id: str, is_completed: bool) -> Subtask | None:
    return state.tasks.toggle_subtask(subtask_id, is_completed)


def delete_subtask(state: AppState, subtask_id: str) -> bool:
    return state.tasks.delete_subtask(subtask_id)


# ---- sessions ----


def start_session(state: AppState, task_id: str) -> Session | None:
    return state.sessions.start(task_id)


def stop_session(state: AppState, task_id: str) -> Session | None:
    return state.sessions.stop(task_id)


def get_active_session(state: AppState) -> Session | None:
    return state.sessions.get_active()


def get_task_sessions(state: AppState, task_id: str) -> list[Session]:
    return state.sessions.list_for_task(task_id)


# ---- analytics ----


def get_daily_stats(state: AppState, days: int | None = None) -> list[DailyAnalytics]:
    if days is None:
        days = int(getattr(state.settings, "stats_days", 7))
    return state.analytics.get_daily(days)


def get_day_stats(state: AppState, day: str | None = None) -> DailyAnalytics | None:
    """One day's rollup (YYYY-MM-DD, local calendar); today when day is None."""
    return state.analytics.get_day(day or local_date_key(utc_now()))


# ---- archive ----


def run_archival(state: AppState) -> int:
    return state.archive.archive_tasks()


def auto_archive_on_startup(state: AppState) -> int:
    return state.archive.auto_archive_on_startup()


def get_archived_tasks(
    state: AppState, archive_type: ArchiveType | str = ArchiveType.DAILY, date_key: str | None = None
) -> list[TaskSnapshot] | list[str]:
    return state.archive.get_archived_tasks(archive_type, date_key)


# ---- projects ----


def create_project(
    state: AppState,
    name: str,
    *,
    description: str | None = None,
    deadline: date | None = None,
    status: ProjectStatus | str = ProjectStatus.ACTIVE,
) -> Project:
    return state.projects.create(name, description=description, deadline=deadline, status=status)


def list_projects(state: AppState, status: ProjectStatus | str | None = None) -> list[Project]:
    return state.projects.list(status)


def update_project(state: AppState, project_id: str, patch: ProjectPatch) -> Project | None:
    return state.projects.update(project_id, patch)


def delete_project(state: AppState, project_id: str) -> bool:
    return state.projects.delete(project_id)


# ---- recurring templates ----


def list_recurring(state: AppState) -> list[RecurringTask]:
    return state.recurring.list()


def create_recurring(
    state: AppState,
    title: str,
    *,
    description: str | None = None,
    priority: Priority | str = Priority.P4,
) -> RecurringTask:
    return state.recurring.create(title, description=description, priority=priority)


def delete_recurring(state: AppState, template_id: str) -> bool:
    return state.recurring.delete(template_id)


def instantiate_recurring(
    state: AppState, template_id: str, *, category: Category | str = Category.TODAY
) -> Task | None:
    return state.recurring.instantiate(template_id, category=category)
