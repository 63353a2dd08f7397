# tests/test_archive_file_store.py

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from focusdesk.archive.file_store import JsonArchiveFileStore


def test_missing_bucket_reads_empty(archive_files: JsonArchiveFileStore) -> None:
    assert archive_files.read_bucket("daily", "2024-05-14") == []


def test_write_then_read_bucket(archive_files: JsonArchiveFileStore) -> None:
    records = [{"id": "a", "title": "Ünïcode"}, {"id": "b", "title": "second"}]

    archive_files.write_bucket("daily", "2024-05-14", records)

    path = archive_files.root / "daily" / "archive_2024-05-14.json"
    assert json.loads(path.read_text("utf-8")) == records
    assert archive_files.read_bucket("daily", "2024-05-14") == records
    assert not path.with_suffix(".tmp").exists()


def test_write_replaces_whole_bucket(archive_files: JsonArchiveFileStore) -> None:
    archive_files.write_bucket("monthly", "2024-04", [{"id": "a"}])
    archive_files.write_bucket("monthly", "2024-04", [{"id": "b"}])

    assert archive_files.read_bucket("monthly", "2024-04") == [{"id": "b"}]


def test_corrupt_bucket_reads_empty_and_logs(
    archive_files: JsonArchiveFileStore, caplog
) -> None:
    path = archive_files.root / "daily" / "archive_2024-05-14.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{not json", "utf-8")

    with caplog.at_level(logging.ERROR):
        assert archive_files.read_bucket("daily", "2024-05-14") == []
    assert "Failed to read archive bucket" in caplog.text


def test_non_list_bucket_is_ignored(archive_files: JsonArchiveFileStore) -> None:
    path = archive_files.root / "weekly" / "archive_2024-W20.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('{"id": "a"}', "utf-8")

    assert archive_files.read_bucket("weekly", "2024-W20") == []


def test_list_bucket_keys_newest_first(archive_files: JsonArchiveFileStore) -> None:
    for key in ("2024-05-01", "2024-05-14", "2024-04-30"):
        archive_files.write_bucket("daily", key, [])
    (archive_files.root / "daily" / "notes.txt").write_text("x", "utf-8")

    assert archive_files.list_bucket_keys("daily") == ["2024-05-14", "2024-05-01", "2024-04-30"]
    assert archive_files.list_bucket_keys("weekly") == []


@pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
def test_invalid_date_key_rejected(archive_files: JsonArchiveFileStore, key: str) -> None:
    with pytest.raises(ValueError):
        archive_files.read_bucket("daily", key)


def test_unknown_archive_type_rejected(archive_files: JsonArchiveFileStore) -> None:
    with pytest.raises(ValueError):
        archive_files.write_bucket("yearly", "2024", [])


def test_root_created_on_init(tmp_path: Path) -> None:
    store = JsonArchiveFileStore(tmp_path / "nested" / "archives")
    assert store.root.is_dir()


def test_corrupt_bucket_is_moved_aside_before_rewrite(archive_files: JsonArchiveFileStore) -> None:
    path = archive_files.root / "daily" / "archive_2024-05-14.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('[{"id": "old"', "utf-8")

    assert archive_files.read_bucket("daily", "2024-05-14") == []
    archive_files.write_bucket("daily", "2024-05-14", [{"id": "new"}])

    kept = path.with_name("archive_2024-05-14.json.corrupt")
    assert kept.read_text("utf-8") == '[{"id": "old"'
    assert archive_files.read_bucket("daily", "2024-05-14") == [{"id": "new"}]
    assert archive_files.list_bucket_keys("daily") == ["2024-05-14"]


def test_second_corrupt_copy_does_not_replace_first(archive_files: JsonArchiveFileStore) -> None:
    path = archive_files.root / "weekly" / "archive_2024-W20.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("first", "utf-8")
    archive_files.read_bucket("weekly", "2024-W20")
    path.write_text('"second"', "utf-8")
    archive_files.read_bucket("weekly", "2024-W20")

    assert path.with_name("archive_2024-W20.json.corrupt").read_text("utf-8") == "first"
    assert path.with_name("archive_2024-W20.json.corrupt2").read_text("utf-8") == '"second"'
