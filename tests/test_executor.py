"""Transfer executor and destination planner tests."""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

import pytest
from conftest import write_file

from mediaingest.organization import (
    TransferExecutor,
    TransferOutcome,
    bucket_name,
    destination_for,
    is_duplicate,
)


def test_destination_for_nested_keeps_tree() -> None:
    root = Path("/library/videos")

    assert destination_for(Path("Show/S01/e1.mkv"), root, "2026-10-16-09") == (
        root / "Show" / "S01" / "e1.mkv"
    )


def test_destination_for_loose_uses_bucket() -> None:
    root = Path("/library/videos")

    assert destination_for(Path("clip.mkv"), root, "2026-10-16-09") == (
        root / "2026-10-16-09" / "clip.mkv"
    )


def test_bucket_name_default_format() -> None:
    assert bucket_name(datetime(2026, 10, 16, 9, 59, 59)) == "2026-10-16-09"
    assert bucket_name(datetime(2026, 10, 16, 9, 0), "%Y/%m") == "2026/10"


def test_transfer_moves_and_creates_parents(tmp_path: Path) -> None:
    source = write_file(tmp_path / "queue" / "a.mkv", b"video")
    destination = tmp_path / "library" / "bucket" / "a.mkv"

    result = TransferExecutor().transfer(source, destination)

    assert result.outcome is TransferOutcome.MOVED
    assert result.ok
    assert destination.read_bytes() == b"video"
    assert not source.exists()
    assert not (destination.parent / ".a.mkv.partial").exists()


def test_same_size_destination_is_a_duplicate(tmp_path: Path) -> None:
    source = write_file(tmp_path / "queue" / "a.mkv", b"12345")
    destination = write_file(tmp_path / "library" / "a.mkv", b"abcde")

    result = TransferExecutor().transfer(source, destination, "fail")

    assert result.outcome is TransferOutcome.DUPLICATE
    assert not source.exists()
    assert destination.read_bytes() == b"abcde"


def test_different_size_destination_fails_under_fail_policy(tmp_path: Path) -> None:
    source = write_file(tmp_path / "queue" / "a.mkv", b"new content")
    destination = write_file(tmp_path / "library" / "a.mkv", b"old")

    result = TransferExecutor().transfer(source, destination, "fail")

    assert result.outcome is TransferOutcome.FAILED
    assert result.reason
    assert source.exists()
    assert destination.read_bytes() == b"old"


def test_rename_policy_picks_next_free_name(tmp_path: Path) -> None:
    source = write_file(tmp_path / "queue" / "notes.txt", b"third version")
    destination = write_file(tmp_path / "misc" / "notes.txt", b"v1")
    write_file(tmp_path / "misc" / "notes-1.txt", b"second")

    result = TransferExecutor().transfer(source, destination, "rename")

    assert result.outcome is TransferOutcome.RENAMED
    assert result.destination == tmp_path / "misc" / "notes-2.txt"
    assert result.destination.read_bytes() == b"third version"
    assert destination.read_bytes() == b"v1"


def test_rename_policy_detects_duplicate_of_renamed_copy(tmp_path: Path) -> None:
    source = write_file(tmp_path / "queue" / "notes.txt", b"same!")
    write_file(tmp_path / "misc" / "notes.txt", b"v1")
    write_file(tmp_path / "misc" / "notes-1.txt", b"same!")

    result = TransferExecutor().transfer(source, tmp_path / "misc" / "notes.txt", "rename")

    assert result.outcome is TransferOutcome.DUPLICATE
    assert result.destination == tmp_path / "misc" / "notes-1.txt"
    assert not source.exists()


def test_empty_files_are_never_duplicates(tmp_path: Path) -> None:
    source = write_file(tmp_path / "queue" / "empty.txt", b"")
    destination = write_file(tmp_path / "misc" / "empty.txt", b"")

    assert is_duplicate(source, destination) is False
    result = TransferExecutor().transfer(source, destination, "fail")
    assert result.outcome is TransferOutcome.FAILED
    assert source.exists()


def test_missing_source_fails_without_touching_destination(tmp_path: Path) -> None:
    result = TransferExecutor().transfer(tmp_path / "gone.mkv", tmp_path / "lib" / "gone.mkv")

    assert result.outcome is TransferOutcome.FAILED
    assert not (tmp_path / "lib").exists()


def test_copy_failure_keeps_source_and_cleans_partial(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    source = write_file(tmp_path / "queue" / "a.mkv", b"video")
    destination = tmp_path / "library" / "a.mkv"

    def _broken_copy(src, dst, *args, **kwargs):
        Path(dst).write_bytes(b"vi")
        raise OSError("disk full")

    monkeypatch.setattr(shutil, "copy2", _broken_copy)

    result = TransferExecutor().transfer(source, destination)

    assert result.outcome is TransferOutcome.FAILED
    assert "disk full" in (result.reason or "")
    assert source.exists()
    assert not destination.exists()
    assert list(destination.parent.iterdir()) == []
