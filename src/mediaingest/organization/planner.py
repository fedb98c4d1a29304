"""Destination planning for routed files."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path


def bucket_name(moment: datetime, bucket_format: str = "%Y-%m-%d-%H") -> str:
    """Return the coarse timestamp bucket for ``moment``."""
    return moment.strftime(bucket_format)


def destination_for(relative: Path, root: Path, bucket: str) -> Path:
    """Compute where a queued file lands inside a library root.

    Nested files keep their directory structure under ``root``; loose files
    (no directory component) are grouped under ``root / bucket``.

    Args:
        relative: Path of the file relative to its run queue.
        root: Library root of the tier.
        bucket: Coarse timestamp bucket of the run.

    Returns:
        Path: Destination path.
    """
    if len(relative.parts) > 1:
        return root / relative
    return root / bucket / relative.name


__all__ = ["bucket_name", "destination_for"]
