"""File discovery utilities."""

from __future__ import annotations

import os
import stat as stat_module
import time
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from .models import ClaimSnapshot, IncomingEntry


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


def creation_time(stat: os.stat_result) -> float:
    """Return the birth time when the platform records one, otherwise ctime."""
    birth = getattr(stat, "st_birthtime", None)
    if birth:
        return float(birth)
    return float(stat.st_ctime)


def entry_for(path: Path) -> Optional[IncomingEntry]:
    """Stat ``path`` and return an entry, or ``None`` when it is gone or not a file."""
    try:
        stat = path.stat(follow_symlinks=False)
    except OSError:
        return None
    if not stat_module.S_ISREG(stat.st_mode):
        return None
    return IncomingEntry(
        path=path,
        size_bytes=stat.st_size,
        modified_time=stat.st_mtime,
        created_time=creation_time(stat),
    )


class DirectoryScanner:
    """Discover regular files below the drop root."""

    def __init__(
        self,
        *,
        include_hidden: bool = False,
        exclude: Iterable[Path] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.include_hidden = include_hidden
        self.exclude = [path.expanduser().absolute() for path in exclude]
        self._clock = clock

    def scan(self, root: Path) -> Iterator[IncomingEntry]:
        """Yield entries found under ``root`` in sorted path order."""
        root = root.expanduser().absolute()
        if not root.is_dir():
            return

        for path in sorted(self._iter_paths(root)):
            relative = path.relative_to(root)
            if not self.include_hidden and _is_hidden(relative):
                continue
            entry = entry_for(path)
            if entry is not None:
                yield entry

    def snapshot(self, root: Path) -> ClaimSnapshot:
        """Capture every candidate under ``root`` in one pass."""
        root = root.expanduser().absolute()
        captured_at = self._clock()
        entries = list(self.scan(root))
        return ClaimSnapshot(root=root, captured_at=captured_at, entries=entries)

    def _iter_paths(self, root: Path) -> Iterable[Path]:
        for current, dirnames, filenames in os.walk(root):
            current_path = Path(current)
            dirnames[:] = [
                name for name in dirnames if not self._is_excluded(current_path / name)
            ]
            for name in filenames:
                yield current_path / name

    def _is_excluded(self, path: Path) -> bool:
        return any(path == excluded or excluded in path.parents for excluded in self.exclude)


__all__ = ["DirectoryScanner", "creation_time", "entry_for"]
