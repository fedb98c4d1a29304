"""Hand sane audio files to the external tagging tool, one file per call."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Protocol, Sequence

LOGGER = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124
NOT_FOUND_EXIT_CODE = 127


@dataclass(slots=True)
class TagResult:
    """Outcome of one tagging call.

    Attributes:
        exit_code: Process exit status; non-zero means the call failed.
        output: Combined stdout/stderr of the tool.
    """

    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class Tagger(Protocol):
    """Tag or organize a single audio file."""

    def tag(self, path: Path) -> TagResult: ...


class BeetsTagger:
    """Run ``beet import`` on a single file."""

    def __init__(self, command: Sequence[str], timeout_seconds: float | None = None) -> None:
        self.command = list(command)
        self.timeout_seconds = timeout_seconds

    def tag(self, path: Path) -> TagResult:
        """Invoke the tool on ``path``; failures are reported, never raised."""
        argv = [*self.command, str(path)]
        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            output = exc.output or ""
            if isinstance(output, bytes):
                output = output.decode("utf-8", errors="replace")
            output += f"\ntimed out after {self.timeout_seconds}s"
            return TagResult(TIMEOUT_EXIT_CODE, output)
        except OSError as exc:
            return TagResult(NOT_FOUND_EXIT_CODE, str(exc))
        return TagResult(completed.returncode, completed.stdout or "")


class TaggingInvoker:
    """Feed files to a tagger individually and isolate per-file failures."""

    def __init__(self, tagger: Tagger, logger: logging.Logger | None = None) -> None:
        self._tagger = tagger
        self._log = logger or LOGGER

    def invoke(
        self,
        paths: Iterable[Path],
        describe: Callable[[Path], object] = str,
    ) -> tuple[int, int]:
        """Tag each path in turn.

        Args:
            paths: Sane audio files, in processing order.
            describe: Renders a path for log lines (usually the queue-relative path).

        Returns:
            tuple[int, int]: Number of successful and failed calls.
        """
        targets = list(paths)
        if not targets:
            self._log.info("Skipping tagging (no sane audio files in queue)")
            return 0, 0

        self._log.info("Running tagger on %d file(s)...", len(targets))
        succeeded = failed = 0
        for path in targets:
            result = self._tagger.tag(path)
            for line in result.output.splitlines():
                if line.strip():
                    self._log.info("  tagger: %s", line.rstrip())
            if result.ok:
                succeeded += 1
            else:
                failed += 1
                self._log.warning("Tagging failed (exit %s): %s", result.exit_code, describe(path))
        return succeeded, failed


__all__ = ["BeetsTagger", "TagResult", "Tagger", "TaggingInvoker"]
