"""Sweep run queues for files that already exist in a library root."""

from __future__ import annotations

import logging
from pathlib import Path

from mediaingest.state import iter_files, prune_empty_dirs

from .executor import is_duplicate

LOGGER = logging.getLogger(__name__)


def sweep_queue_duplicates(queue_root: Path, library_root: Path) -> list[Path]:
    """Delete queued files already delivered to ``library_root``.

    A queued file ``<queue_root>/<run id>/<rel>`` counts as delivered when
    ``<library_root>/<rel>`` exists with the same non-zero size. Empty
    directories under the queue root are pruned afterwards.

    Args:
        queue_root: Directory holding run queues.
        library_root: Library root to compare against.

    Returns:
        list[Path]: Queued files that were deleted.
    """
    removed: list[Path] = []
    if not queue_root.is_dir():
        return removed

    for source in iter_files(queue_root):
        relative = source.relative_to(queue_root)
        if len(relative.parts) < 2:
            continue
        target = library_root.joinpath(*relative.parts[1:])
        if not is_duplicate(source, target):
            continue
        try:
            source.unlink()
        except OSError as exc:
            LOGGER.warning("Could not remove queued duplicate %s: %s", relative, exc)
            continue
        LOGGER.info("DUPLICATE removed from queue: %s (matches %s)", relative, target)
        removed.append(source)

    prune_empty_dirs(queue_root)
    return removed


__all__ = ["sweep_queue_duplicates"]
