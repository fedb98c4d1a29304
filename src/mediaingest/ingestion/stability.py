"""Decide whether incoming files have finished being written.

Three policies are supported, selected by ``stability.policy``:

``double_sample``
    Capture size and mtime for every candidate, drop the ones younger than the
    threshold, sleep once for the whole batch, then re-stat the survivors and
    keep those whose size and mtime did not move. The sleep is paid once per
    run rather than once per file.

``per_file``
    For each file check the mtime age, ask ``lsof`` whether a writer still has
    it open, and compare two size samples taken around a short sleep. Latency
    grows linearly with the batch, so this suits small drop directories.

``creation_age``
    Accept files whose creation time is older than the threshold. Intended for
    producers that preserve original modification times, where mtime says
    nothing about when the copy finished.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from mediaingest.config.models import StabilitySettings

from .detectors import OpenFileChecker
from .discovery import entry_for
from .models import ClaimSnapshot, IncomingEntry

LOGGER = logging.getLogger(__name__)


class StabilityDetector:
    """Select the entries of a snapshot that are safe to claim now."""

    def __init__(
        self,
        settings: StabilitySettings,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        open_checker: Optional[OpenFileChecker] = None,
    ) -> None:
        self.settings = settings
        self._clock = clock
        self._sleep = sleep
        if open_checker is None and settings.check_open_files:
            open_checker = OpenFileChecker()
        self._open_checker = open_checker

    def select_stable(self, snapshot: ClaimSnapshot) -> list[Path]:
        """Return the paths of ``snapshot`` that pass the configured policy."""
        if not snapshot.entries:
            return []
        policy = self.settings.policy
        if policy == "double_sample":
            return self._double_sample(snapshot.entries)
        if policy == "per_file":
            return [entry.path for entry in snapshot.entries if self._per_file(entry)]
        if policy == "creation_age":
            now = self._clock()
            return [entry.path for entry in snapshot.entries if self._old_enough(entry, now)]
        raise ValueError(f"Unsupported stability policy '{policy}'.")

    def is_stable(self, path: Path) -> bool:
        """Return True when ``path`` alone would be claimed right now."""
        entry = entry_for(path)
        if entry is None:
            return False
        snapshot = ClaimSnapshot(root=path.parent, captured_at=self._clock(), entries=[entry])
        return bool(self.select_stable(snapshot))

    # ------------------------------------------------------------------ #
    # Policies                                                           #
    # ------------------------------------------------------------------ #

    def _double_sample(self, entries: list[IncomingEntry]) -> list[Path]:
        now = self._clock()
        threshold = self.settings.threshold_seconds
        aged = [entry for entry in entries if now - entry.modified_time >= threshold]
        if not aged:
            return []

        self._sleep(self.settings.sample_window_seconds)

        stable: list[Path] = []
        for first in aged:
            second = entry_for(first.path)
            if second is None:
                continue
            if (
                second.size_bytes == first.size_bytes
                and second.modified_time == first.modified_time
            ):
                stable.append(first.path)
            else:
                LOGGER.debug("Still changing, leaving for next run: %s", first.path)
        return stable

    def _per_file(self, entry: IncomingEntry) -> bool:
        if self._clock() - entry.modified_time < self.settings.threshold_seconds:
            return False

        if self._open_checker is not None and self._open_checker.is_open_for_write(entry.path):
            LOGGER.debug("Open for writing, leaving for next run: %s", entry.path)
            return False

        first = entry_for(entry.path)
        if first is None:
            return False
        self._sleep(self.settings.per_file_sleep_seconds)
        second = entry_for(entry.path)
        if second is None:
            return False
        return first.size_bytes == second.size_bytes

    def _old_enough(self, entry: IncomingEntry, now: float) -> bool:
        return now - entry.created_time >= self.settings.threshold_seconds


__all__ = ["StabilityDetector"]
