"""Routing data models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class Tier(str, Enum):
    """Library tier a routing pass delivers into."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    MISC = "misc"

    @property
    def label(self) -> str:
        """Upper-case name used in run log lines."""
        return self.value.upper()


class TransferOutcome(str, Enum):
    """How a copy-then-remove transfer ended."""

    MOVED = "moved"
    DUPLICATE = "duplicate"
    RENAMED = "renamed"
    FAILED = "failed"


class TransferResult(BaseModel):
    """Represents one copy-then-remove transfer.

    Attributes:
        source: Queued file that was offered for transfer.
        destination: Final destination path (after any collision rename).
        outcome: How the transfer ended.
        reason: Explanation for failed transfers.
    """

    source: Path
    destination: Path
    outcome: TransferOutcome
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not TransferOutcome.FAILED


class RouteRecord(BaseModel):
    """A routing decision made during a pass.

    Attributes:
        tier: Tier the file was routed to.
        relative: Path relative to the run queue.
        result: Transfer result.
    """

    tier: Tier
    relative: Path
    result: TransferResult


__all__ = ["RouteRecord", "Tier", "TransferOutcome", "TransferResult"]
