"""External probing capabilities: stream probing, MIME sniffing and open-file checks."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

try:  # pragma: no cover - optional dependency wiring
    import magic
except ImportError:  # pragma: no cover - libmagic missing on the host
    magic = None

from mediaingest.classification.models import ProbeResult

LOGGER = logging.getLogger(__name__)

FALLBACK_MIME = "application/octet-stream"


class StreamProber(Protocol):
    """Report which stream types a media file carries."""

    def probe(self, path: Path) -> ProbeResult: ...


class MimeSniffer(Protocol):
    """Guess a MIME type from file content."""

    def sniff(self, path: Path) -> str: ...


class FFprobeProber:
    """Probe media streams with ``ffprobe`` under a bounded timeout."""

    def __init__(self, binary: str = "ffprobe", timeout_seconds: float = 10.0) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds

    def command(self, path: Path) -> list[str]:
        """Return the argument vector used to probe ``path``."""
        return [
            self.binary,
            "-v",
            "error",
            "-show_entries",
            "stream=codec_type",
            "-of",
            "json",
            str(path),
        ]

    def probe(self, path: Path) -> ProbeResult:
        """Return stream facts for ``path``; any failure yields an unavailable result."""
        try:
            completed = subprocess.run(
                self.command(path),
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired:
            LOGGER.debug("ffprobe timed out after %ss on %s", self.timeout_seconds, path)
            return ProbeResult.unavailable()
        except OSError as exc:
            LOGGER.debug("ffprobe could not run on %s: %s", path, exc)
            return ProbeResult.unavailable()

        if completed.returncode != 0:
            LOGGER.debug("ffprobe exited %s on %s", completed.returncode, path)
            return ProbeResult.unavailable()

        try:
            payload = json.loads(completed.stdout or "{}")
        except json.JSONDecodeError:
            return ProbeResult.unavailable()

        codec_types = {
            stream.get("codec_type")
            for stream in payload.get("streams", [])
            if isinstance(stream, dict)
        }
        return ProbeResult(
            has_video_stream="video" in codec_types,
            has_audio_stream="audio" in codec_types,
            parses_ok=True,
        )


class MagicSniffer:
    """Identify MIME types using python-magic (libmagic)."""

    def __init__(self) -> None:
        if magic is None:
            raise RuntimeError(
                "python-magic and libmagic are required for MIME sniffing. Install python-magic."
            )

    def sniff(self, path: Path) -> str:
        """Return the MIME type of ``path`` or a generic binary type on failure."""
        try:
            return magic.from_file(str(path), mime=True) or FALLBACK_MIME
        except (OSError, magic.MagicException) as exc:
            LOGGER.debug("MIME sniffing failed for %s: %s", path, exc)
            return FALLBACK_MIME


class OpenFileChecker:
    """Best-effort check whether another process holds a file open for writing."""

    def __init__(self, binary: str = "lsof", timeout_seconds: float = 5.0) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds

    def is_open_for_write(self, path: Path) -> bool:
        """Return True when ``lsof`` reports a writer; False when unsure."""
        executable = shutil.which(self.binary)
        if executable is None:
            return False
        try:
            completed = subprocess.run(
                [executable, "-F", "a", "--", str(path)],
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except (subprocess.TimeoutExpired, OSError):
            return False

        # Field output: one "a<mode>" line per open descriptor, mode in r/w/u.
        for line in completed.stdout.splitlines():
            if line.startswith("a") and any(mode in line[1:] for mode in ("w", "u")):
                return True
        return False


__all__ = [
    "FALLBACK_MIME",
    "FFprobeProber",
    "MagicSniffer",
    "MimeSniffer",
    "OpenFileChecker",
    "StreamProber",
]
