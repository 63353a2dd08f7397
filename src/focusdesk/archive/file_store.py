# src/focusdesk/archive/file_store.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from ..core.ports import TaskSnapshot
from .archive_types import ArchiveType

logger = logging.getLogger(__name__)

_PREFIX = "archive_"
_SUFFIX = ".json"
_CORRUPT_SUFFIX = ".corrupt"


class JsonArchiveFileStore:
    """
    Archive buckets as pretty-printed JSON files.

    Layout: <root>/<archive type>/archive_<date key>.json, one list of task
    snapshots per file. Writes replace the whole file (temp file + os.replace),
    which is enough for a single-process desktop tool.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir)
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info("ArchiveFileStore ready dir=%s", self._root)

    @property
    def root(self) -> Path:
        return self._root

    def _type_dir(self, archive_type: str) -> Path:
        path = self._root / ArchiveType(archive_type).value
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _bucket_path(self, archive_type: str, date_key: str) -> Path:
        key = (date_key or "").strip()
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"invalid archive date key: {date_key!r}")
        return self._type_dir(archive_type) / f"{_PREFIX}{key}{_SUFFIX}"

    def read_bucket(self, archive_type: str, date_key: str) -> list[TaskSnapshot]:
        path = self._bucket_path(archive_type, date_key)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read archive bucket %s", path)
            self._quarantine(path)
            return []
        if not isinstance(data, list):
            logger.warning("Archive bucket %s is not a list", path)
            self._quarantine(path)
            return []
        return [item for item in data if isinstance(item, dict)]

    @staticmethod
    def _quarantine(path: Path) -> None:
        # Bucket starts over; the old file is kept next to it for manual recovery.
        target = path.with_name(path.name + _CORRUPT_SUFFIX)
        n = 1
        while target.exists():
            n += 1
            target = path.with_name(f"{path.name}{_CORRUPT_SUFFIX}{n}")
        os.replace(path, target)
        logger.warning("Archive bucket moved aside to %s", target)

    def write_bucket(self, archive_type: str, date_key: str, records: list[TaskSnapshot]) -> None:
        path = self._bucket_path(archive_type, date_key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(records, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)
        logger.debug("Archive bucket written %s records=%d", path, len(records))

    def list_bucket_keys(self, archive_type: str) -> list[str]:
        """Available date keys for one archive type, newest first."""
        keys = {
            p.name[len(_PREFIX) : -len(_SUFFIX)]
            for p in self._type_dir(archive_type).iterdir()
            if p.is_file()
            and p.name.startswith(_PREFIX)
            and p.name.endswith(_SUFFIX)
            and len(p.name) > len(_PREFIX) + len(_SUFFIX)
        }
        return sorted(keys, reverse=True)
