"""Claim and queue management for ingest runs.

All state lives on the filesystem: the queue root holds one directory per
run, named by a sortable timestamp. A run directory that still holds files
belongs to an interrupted run and is resumed before anything new is claimed.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .errors import QueueError, StateError
from .queue import RunQueue, has_files, iter_files, prune_empty_dirs

LOGGER = logging.getLogger(__name__)

RUN_ID_FORMAT = "%Y-%m-%d-%H%M%S"


def find_resumable_run(queue_root: Path) -> Optional[Path]:
    """Return the oldest run directory under ``queue_root`` that still holds files.

    Args:
        queue_root: Directory containing one subdirectory per run.

    Returns:
        Optional[Path]: Oldest non-empty run directory, or ``None``.
    """
    if not queue_root.is_dir():
        return None
    for candidate in sorted(child for child in queue_root.iterdir() if child.is_dir()):
        if has_files(candidate):
            return candidate
    return None


class QueueRepository:
    """Create, resume and clean up run queues below a queue root."""

    def __init__(self, queue_root: Path) -> None:
        self._queue_root = queue_root

    @property
    def queue_root(self) -> Path:
        """Return the directory holding run queues."""
        return self._queue_root

    def initialize(self) -> Path:
        """Create the queue root when missing.

        Raises:
            QueueError: If the directory cannot be created.
        """
        try:
            self._queue_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise QueueError(f"Cannot create queue root {self._queue_root}: {exc}") from exc
        return self._queue_root

    def runs(self) -> list[RunQueue]:
        """Return every run directory, oldest first."""
        if not self._queue_root.is_dir():
            return []
        return [
            RunQueue(child)
            for child in sorted(self._queue_root.iterdir())
            if child.is_dir()
        ]

    def find_resumable(self) -> Optional[RunQueue]:
        """Return the oldest interrupted run, if any."""
        path = find_resumable_run(self._queue_root)
        return self.open_run(path) if path is not None else None

    def discard_empty_runs(self) -> int:
        """Remove run directories that no longer contain files."""
        removed = 0
        for run in self.runs():
            if run.remove_if_empty():
                removed += 1
        return removed

    def new_run_id(self, now: datetime) -> str:
        """Return a timestamp run id not yet used under the queue root."""
        base = now.strftime(RUN_ID_FORMAT)
        candidate = base
        counter = 1
        while (self._queue_root / candidate).exists():
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    def create_run(self, now: datetime) -> RunQueue:
        """Create a fresh, uniquely named run directory.

        Raises:
            QueueError: If the directory cannot be created.
        """
        self.initialize()
        while True:
            path = self._queue_root / self.new_run_id(now)
            try:
                path.mkdir()
            except FileExistsError:
                continue
            except OSError as exc:
                raise QueueError(f"Cannot create run queue {path}: {exc}") from exc
            return RunQueue(path)

    def open_run(self, path: Path) -> RunQueue:
        """Wrap an existing run directory.

        Raises:
            QueueError: If ``path`` is not a directory below the queue root.
        """
        if not path.is_dir() or path.parent != self._queue_root:
            raise QueueError(f"{path} is not a run queue under {self._queue_root}")
        return RunQueue(path)

    def claim(self, drop_root: Path, paths: Iterable[Path], now: datetime) -> Optional[RunQueue]:
        """Move ``paths`` from ``drop_root`` into a new run queue.

        Each file is renamed individually; a failed rename leaves that file in
        the drop root for the next run. Empty directories left behind in the
        drop root are pruned afterwards.

        Args:
            drop_root: Directory the paths were discovered under.
            paths: Files judged stable.
            now: Claim instant used to name the run.

        Returns:
            Optional[RunQueue]: The populated queue, or ``None`` when nothing moved.
        """
        run = self.create_run(now)
        claimed = 0
        for source in paths:
            try:
                relative = source.relative_to(drop_root)
            except ValueError:
                LOGGER.warning("Not under drop root, skipping claim: %s", source)
                continue
            destination = run.path / relative
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                os.rename(source, destination)
            except OSError as exc:
                LOGGER.warning("Claim failed for %s: %s", relative, exc)
                continue
            claimed += 1

        if claimed == 0:
            prune_empty_dirs(run.path, include_root=True)
            return None

        prune_empty_dirs(drop_root)
        return run


__all__ = [
    "QueueError",
    "QueueRepository",
    "RUN_ID_FORMAT",
    "RunQueue",
    "StateError",
    "find_resumable_run",
    "iter_files",
    "prune_empty_dirs",
]
