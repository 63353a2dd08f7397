# src/focusdesk/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from ..core.timeutil import to_db_date, to_db_ts


# Marker for "field not supplied" in partial updates (None means "clear").
UNSET: Any = object()


class TaskStatus(StrEnum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    DONE = "DONE"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


class Priority(StrEnum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.P4
        try:
            return cls(raw)
        except ValueError:
            return cls.P4


class Category(StrEnum):
    """Time horizon of a task; drives both grouping and the archival window."""

    INBOX = "inbox"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def from_db(cls, raw: str | None) -> Category:
        if not raw:
            return cls.INBOX
        try:
            return cls(raw)
        except ValueError:
            return cls.INBOX


class ProjectStatus(StrEnum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"

    @classmethod
    def from_db(cls, raw: str | None) -> ProjectStatus:
        if not raw:
            return cls.ACTIVE
        try:
            return cls(raw)
        except ValueError:
            return cls.ACTIVE


@dataclass(slots=True)
class Subtask:
    id: str
    task_id: str
    title: str
    is_completed: bool


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: Priority
    due_date: date | None
    created_at: datetime
    completed_at: datetime | None
    project_id: str | None
    estimated_duration: int | None
    actual_duration: int
    category: Category
    is_locked: bool
    timer_elapsed: int
    position: int

    subtasks: list[Subtask] = field(default_factory=list)

    def reference_time(self) -> datetime:
        """completed_at for finished tasks, created_at otherwise."""
        if self.status == TaskStatus.DONE and self.completed_at is not None:
            return self.completed_at
        return self.created_at

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-ready deep copy used as the archive record."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "due_date": to_db_date(self.due_date),
            "created_at": to_db_ts(self.created_at),
            "completed_at": to_db_ts(self.completed_at) if self.completed_at else None,
            "project_id": self.project_id,
            "estimated_duration": self.estimated_duration,
            "actual_duration": self.actual_duration,
            "category": self.category.value,
            "is_locked": int(self.is_locked),
            "timer_elapsed": self.timer_elapsed,
            "position": self.position,
            "subtasks": [
                {
                    "id": s.id,
                    "task_id": s.task_id,
                    "title": s.title,
                    "is_completed": int(s.is_completed),
                }
                for s in self.subtasks
            ],
        }


@dataclass(slots=True)
class Session:
    id: str
    task_id: str
    start_time: datetime
    end_time: datetime | None = None
    duration_seconds: int | None = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None


@dataclass(slots=True)
class Project:
    id: str
    name: str
    description: str | None
    deadline: date | None
    status: ProjectStatus
    created_at: datetime
    completed_at: datetime | None = None


@dataclass(slots=True)
class RecurringTask:
    """Template; instantiated into a concrete Task on demand."""

    id: str
    title: str
    description: str | None
    priority: Priority
    created_at: datetime


@dataclass(frozen=True, slots=True)
class DailyAnalytics:
    date: str  # YYYY-MM-DD, local calendar day
    tasks_completed: int
    total_focus_time: int  # minutes


# ---- partial updates ----

# Keys a caller may send along with a patch that must never reach the row.
FORBIDDEN_PATCH_KEYS = frozenset({"id", "subtasks"})


@dataclass(slots=True)
class TaskPatch:
    """
    Partial update for a Task.

    Every field defaults to UNSET; only fields that were supplied are written.
    Passing None for a nullable column clears it.
    id, created_at, completed_at and actual_duration are not patchable:
    they change only through complete() and session accounting.
    """

    title: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET
    priority: Any = UNSET
    due_date: Any = UNSET
    project_id: Any = UNSET
    estimated_duration: Any = UNSET
    category: Any = UNSET
    is_locked: Any = UNSET
    timer_elapsed: Any = UNSET
    position: Any = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TaskPatch:
        allowed = {f.name for f in fields(cls)}
        clean = {k: v for k, v in data.items() if k not in FORBIDDEN_PATCH_KEYS}
        unknown = sorted(set(clean) - allowed)
        if unknown:
            raise ValueError(f"unknown task fields: {', '.join(unknown)}")
        return cls(**clean)

    def items(self) -> list[tuple[str, Any]]:
        """(name, value) for every supplied field, in declaration order."""
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        ]


@dataclass(slots=True)
class ProjectPatch:
    name: Any = UNSET
    description: Any = UNSET
    deadline: Any = UNSET
    status: Any = UNSET

    def items(self) -> list[tuple[str, Any]]:
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        ]
