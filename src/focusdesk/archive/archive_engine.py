# src/focusdesk/archive/archive_engine.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from ..core.ports import ArchiveFileStore, Store, TaskSnapshot
from ..core.timeutil import utc_now
from ..errors import StorageError
from ..tasks.task_models import Task, TaskStatus
from ..tasks.task_store import TaskStore
from .archive_types import ArchiveType, archive_type_for, bucket_key, is_archivable

logger = logging.getLogger(__name__)

BucketId = tuple[ArchiveType, str]


class ArchiveEngine:
    """
    Moves aged-out tasks from the live store into archive buckets.

    One run:
    1. select candidates (auto: category window rule, manual: every DONE task)
    2. group them into (archive type, date key) buckets
    3. per bucket: read existing records, append the new snapshots, rewrite the file
    4. delete each archived task's sessions, subtasks and row

    Steps 1-4 share one store transaction. Each task's deletes run under a
    savepoint: a failure there is logged, that task is left in place and not
    counted, and the run continues. Its snapshot is already on disk, so
    re-running archival later finishes the job.
    """

    def __init__(self, db: Store, task_store: TaskStore, file_store: ArchiveFileStore) -> None:
        self._db = db
        self._tasks = task_store
        self._files = file_store

    # ---- sweeps ----

    def auto_archive_tasks(self, *, now: datetime | None = None) -> int:
        """Archive every task whose reference time precedes its category window."""
        ts = now or utc_now()
        with self._db.transaction():
            candidates = [t for t in self._tasks.list() if is_archivable(t, ts)]
            total = self._process(candidates, ts)
        if total:
            logger.info("Auto-archive moved %d task(s)", total)
        return total

    def archive_tasks(self, *, now: datetime | None = None) -> int:
        """Archive every DONE task, regardless of age or category."""
        ts = now or utc_now()
        with self._db.transaction():
            total = self._process(self._tasks.list(status=TaskStatus.DONE), ts)
        logger.info("Manual archive moved %d task(s)", total)
        return total

    def auto_archive_on_startup(self, *, now: datetime | None = None) -> int:
        """Startup sweep; failures are logged and never block startup."""
        try:
            return self.auto_archive_tasks(now=now)
        except (StorageError, OSError):
            logger.exception("Auto-archive on startup failed")
            return 0

    # ---- internals ----

    @staticmethod
    def group(tasks: Iterable[Task], now: datetime) -> dict[BucketId, list[Task]]:
        """Assign each task to exactly one (archive type, date key) bucket."""
        buckets: dict[BucketId, list[Task]] = {}
        for task in tasks:
            archive_type = archive_type_for(task.category)
            key = bucket_key(archive_type, task.completed_at or now)
            buckets.setdefault((archive_type, key), []).append(task)
        return buckets

    def _process(self, tasks: list[Task], now: datetime) -> int:
        if not tasks:
            return 0

        buckets = self.group(tasks, now)
        total = 0

        for archive_type in ArchiveType:
            for (bucket_type, key), group in buckets.items():
                if bucket_type != archive_type:
                    continue

                records = self._files.read_bucket(archive_type, key)
                records.extend(t.to_snapshot() for t in group)
                self._files.write_bucket(archive_type, key, records)

                for task in group:
                    if self._remove(task):
                        total += 1

        return total

    def _remove(self, task: Task) -> bool:
        try:
            with self._db.savepoint("archive_task"):
                self._db.execute("DELETE FROM sessions WHERE task_id = ?", (task.id,))
                self._db.execute("DELETE FROM subtasks WHERE task_id = ?", (task.id,))
                self._db.execute("DELETE FROM tasks WHERE id = ?", (task.id,))
        except StorageError:
            logger.exception("Failed to archive task id=%s", task.id)
            return False
        return True

    # ---- reads ----

    def get_archived_tasks(
        self, archive_type: ArchiveType | str = ArchiveType.DAILY, date: str | None = None
    ) -> list[TaskSnapshot] | list[str]:
        """
        With a date key: the records of that bucket (empty if it does not exist).
        Without: the bucket keys available for the type, newest first.
        """
        archive_type = ArchiveType(archive_type)
        if date:
            return self._files.read_bucket(archive_type, date)
        return self._files.list_bucket_keys(archive_type)
