"""Run queue directories and filesystem helpers shared by the claim and cleanup steps."""

from __future__ import annotations

import os
from pathlib import Path


def iter_files(root: Path) -> list[Path]:
    """Return every regular file below ``root`` in sorted order."""
    found: list[Path] = []
    for current, _dirnames, filenames in os.walk(root):
        for name in filenames:
            path = Path(current) / name
            if path.is_file() and not path.is_symlink():
                found.append(path)
    return sorted(found)


def has_files(root: Path) -> bool:
    """Return True when at least one file exists anywhere below ``root``."""
    for _current, _dirnames, filenames in os.walk(root):
        if filenames:
            return True
    return False


def prune_empty_dirs(root: Path, *, include_root: bool = False) -> int:
    """Remove empty directories below ``root``, deepest first.

    Args:
        root: Directory whose empty descendants should be removed.
        include_root: Also remove ``root`` itself when it ends up empty.

    Returns:
        int: Number of directories removed.
    """
    removed = 0
    if not root.is_dir():
        return removed
    for current, _dirnames, _filenames in os.walk(root, topdown=False):
        path = Path(current)
        if path == root and not include_root:
            continue
        try:
            path.rmdir()
        except OSError:
            continue
        removed += 1
    return removed


class RunQueue:
    """A per-run working directory holding claimed files.

    Files keep the path they had relative to the drop root, so a file's
    relative path inside the queue decides whether it is loose or nested.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f"RunQueue({str(self.path)!r})"

    @property
    def run_id(self) -> str:
        return self.path.name

    def files(self) -> list[Path]:
        """List the files currently in the queue; callers get a fresh view each time."""
        return iter_files(self.path)

    def relative(self, path: Path) -> Path:
        """Return ``path`` relative to the queue directory."""
        return path.relative_to(self.path)

    def is_empty(self) -> bool:
        return not has_files(self.path)

    def prune_empty_dirs(self) -> int:
        """Remove empty subdirectories left behind by routed files."""
        return prune_empty_dirs(self.path)

    def remove_if_empty(self) -> bool:
        """Remove the queue directory when no files remain in it."""
        if not self.path.exists():
            return True
        if not self.is_empty():
            return False
        prune_empty_dirs(self.path, include_root=True)
        return not self.path.exists()


__all__ = ["RunQueue", "has_files", "iter_files", "prune_empty_dirs"]
