"""Queue duplicate sweep tests."""

from __future__ import annotations

from pathlib import Path

from conftest import write_file

from mediaingest.organization import sweep_queue_duplicates


def test_sweep_removes_same_size_copies_only(tmp_path: Path) -> None:
    queue_root = tmp_path / ".ingest-queue"
    library = tmp_path / "videos"
    write_file(library / "Show" / "e1.mkv", b"12345")
    write_file(library / "Show" / "e2.mkv", b"123")
    delivered = write_file(queue_root / "2026-10-16-080000" / "Show" / "e1.mkv", b"abcde")
    changed = write_file(queue_root / "2026-10-16-080000" / "Show" / "e2.mkv", b"abcdef")
    new = write_file(queue_root / "2026-10-16-090000" / "Show" / "e3.mkv", b"xyz")

    removed = sweep_queue_duplicates(queue_root, library)

    assert removed == [delivered]
    assert not delivered.exists()
    assert changed.exists()
    assert new.exists()


def test_sweep_prunes_emptied_directories(tmp_path: Path) -> None:
    queue_root = tmp_path / ".ingest-queue"
    library = tmp_path / "videos"
    write_file(library / "Movie" / "movie.mkv", b"12345")
    write_file(queue_root / "2026-10-16-080000" / "Movie" / "movie.mkv", b"12345")

    sweep_queue_duplicates(queue_root, library)

    assert queue_root.is_dir()
    assert list(queue_root.iterdir()) == []


def test_sweep_without_queue_root(tmp_path: Path) -> None:
    assert sweep_queue_duplicates(tmp_path / "missing", tmp_path / "videos") == []


def test_sweep_ignores_files_directly_in_queue_root(tmp_path: Path) -> None:
    queue_root = tmp_path / ".ingest-queue"
    library = tmp_path / "videos"
    write_file(library / "stray.mkv", b"12345")
    stray = write_file(queue_root / "stray.mkv", b"12345")

    assert sweep_queue_duplicates(queue_root, library) == []
    assert stray.exists()
