"""Copy-then-remove transfers into library roots."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from mediaingest.config.models import CollisionPolicy

from .models import TransferOutcome, TransferResult

LOGGER = logging.getLogger(__name__)


def _size(path: Path) -> int | None:
    try:
        if not path.is_file():
            return None
        return path.stat().st_size
    except OSError:
        return None


def is_duplicate(source: Path, destination: Path) -> bool:
    """Return True when both files exist with the same non-zero size."""
    source_size = _size(source)
    return source_size is not None and source_size > 0 and source_size == _size(destination)


class TransferExecutor:
    """Deliver queued files to their destinations exactly once.

    A transfer never overwrites an existing destination. Equal-sized files
    are treated as duplicates and the queued copy is dropped; anything else
    either fails (leaving both files in place) or, with the ``rename`` policy,
    lands next to the existing file under a numbered name.
    """

    def transfer(
        self,
        source: Path,
        destination: Path,
        policy: CollisionPolicy = "fail",
    ) -> TransferResult:
        """Move ``source`` to ``destination`` using copy-then-remove.

        Args:
            source: Queued file.
            destination: Planned destination path.
            policy: Collision policy when ``destination`` holds different content.

        Returns:
            TransferResult: Outcome and final destination.

        Raises:
            OSError: If the destination directory cannot be created.
        """
        if not source.is_file():
            return self._failed(source, destination, "source no longer present")

        destination.parent.mkdir(parents=True, exist_ok=True)

        if not os.path.lexists(destination):
            return self._copy_then_remove(source, destination, TransferOutcome.MOVED)

        if is_duplicate(source, destination):
            return self._drop_duplicate(source, destination)

        if policy != "rename":
            return self._failed(source, destination, "destination exists with a different size")

        counter = 1
        while True:
            candidate = destination.with_name(f"{destination.stem}-{counter}{destination.suffix}")
            if not os.path.lexists(candidate):
                return self._copy_then_remove(source, candidate, TransferOutcome.RENAMED)
            if is_duplicate(source, candidate):
                return self._drop_duplicate(source, candidate)
            counter += 1

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _copy_then_remove(
        self, source: Path, target: Path, outcome: TransferOutcome
    ) -> TransferResult:
        partial = target.with_name(f".{target.name}.partial")
        try:
            shutil.copy2(source, partial)
            os.replace(partial, target)
        except OSError as exc:
            partial.unlink(missing_ok=True)
            return self._failed(source, target, f"copy failed: {exc}")

        try:
            source.unlink()
        except OSError as exc:
            return self._failed(source, target, f"copied but source not removed: {exc}")
        return TransferResult(source=source, destination=target, outcome=outcome)

    def _drop_duplicate(self, source: Path, destination: Path) -> TransferResult:
        try:
            source.unlink()
        except OSError as exc:
            return self._failed(source, destination, f"duplicate not removed: {exc}")
        return TransferResult(
            source=source, destination=destination, outcome=TransferOutcome.DUPLICATE
        )

    def _failed(self, source: Path, destination: Path, reason: str) -> TransferResult:
        LOGGER.debug("Transfer %s -> %s failed: %s", source, destination, reason)
        return TransferResult(
            source=source,
            destination=destination,
            outcome=TransferOutcome.FAILED,
            reason=reason,
        )


__all__ = ["TransferExecutor", "is_duplicate"]
