"""Data models describing files observed in the drop root."""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


class IncomingEntry(BaseModel):
    """A file observed under the drop root at one instant.

    Attributes:
        path: Absolute path of the file.
        size_bytes: Size reported by ``stat`` at capture time.
        modified_time: Modification time (epoch seconds) at capture time.
        created_time: Birth time where the platform exposes it, otherwise ctime.
    """

    path: Path
    size_bytes: int
    modified_time: float
    created_time: float


class ClaimSnapshot(BaseModel):
    """Ordered set of entries captured in a single scan of the drop root."""

    root: Path
    captured_at: float
    entries: List[IncomingEntry] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def paths(self) -> list[Path]:
        """Return entry paths in snapshot order."""
        return [entry.path for entry in self.entries]


__all__ = ["IncomingEntry", "ClaimSnapshot"]
