# src/focusdesk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

Components depend on Protocols instead of concrete implementations, so the
SQLite store, the JSON archive directory and the analytics sink stay swappable
and tests can plug in fakes.
"""

import sqlite3
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Protocol, TypeVar

T = TypeVar("T")

# One archived task: a JSON-ready dict with its subtasks inlined.
TaskSnapshot = dict[str, Any]


class Store(Protocol):
    """Relational persistent store with transactional multi-statement writes."""

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int: ...
    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]: ...
    def query_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None: ...
    def transaction(self) -> AbstractContextManager[sqlite3.Connection]: ...
    def savepoint(self, name: str) -> AbstractContextManager[None]: ...
    def run_in_transaction(self, fn: Callable[[], T]) -> T: ...


class ArchiveFileStore(Protocol):
    """
    Durable home of archive buckets, addressed by (archive type, date key).

    write_bucket replaces the whole bucket; there is no record-level append.
    """

    def read_bucket(self, archive_type: str, date_key: str) -> list[TaskSnapshot]: ...
    def write_bucket(self, archive_type: str, date_key: str, records: list[TaskSnapshot]) -> None: ...
    def list_bucket_keys(self, archive_type: str) -> list[str]: ...


class CompletionRecorder(Protocol):
    def record_completion(self, *, now: datetime | None = None) -> None: ...


class FocusRecorder(Protocol):
    def record_focus_minutes(self, minutes: int, *, now: datetime | None = None) -> None: ...
