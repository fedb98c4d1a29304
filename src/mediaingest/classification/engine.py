"""Content classifier for queued files.

Extensions are only a hint. Containers that can carry either audio or video
are confirmed with a stream probe, audio is trusted only after the probe
parses it, and unknown extensions fall back to MIME sniffing. The classifier
never moves or modifies anything, so every pass can call it again without a
cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, FrozenSet

from .models import MediaClass

if TYPE_CHECKING:
    from mediaingest.ingestion.detectors import MimeSniffer, StreamProber

LOGGER = logging.getLogger(__name__)


def _exts(*names: str) -> FrozenSet[str]:
    return frozenset(f".{name}" for name in names)


@dataclass(frozen=True)
class MediaExtensions:
    """Extension allow-lists per media family (lower case, with leading dot)."""

    video: FrozenSet[str] = field(
        default_factory=lambda: _exts(
            "mkv", "avi", "mov", "webm", "ts", "m2ts", "mpg", "mpeg", "wmv"
        )
    )
    ambiguous: FrozenSet[str] = field(default_factory=lambda: _exts("mp4", "m4v"))
    audio: FrozenSet[str] = field(
        default_factory=lambda: _exts(
            "wav", "flac", "mp3", "m4a", "aac", "ogg", "opus", "alac", "aiff", "aif", "wma"
        )
    )
    image: FrozenSet[str] = field(
        default_factory=lambda: _exts(
            "jpg", "jpeg", "png", "gif", "bmp", "webp", "heic", "heif",
            "tif", "tiff", "dng", "raw", "cr2", "nef", "arw",
        )
    )


class ContentClassifier:
    """Label queued files as video, sane audio, ambiguous audio, image, or other."""

    def __init__(
        self,
        prober: "StreamProber",
        sniffer: "MimeSniffer",
        extensions: MediaExtensions | None = None,
    ) -> None:
        self._prober = prober
        self._sniffer = sniffer
        self.extensions = extensions or MediaExtensions()

    def classify(self, path: Path) -> MediaClass:
        """Return the media class of ``path``.

        Args:
            path: Queued file to inspect.

        Returns:
            MediaClass: Label derived from extension, probing and sniffing.
        """
        suffix = path.suffix.lower()
        exts = self.extensions

        if suffix in exts.video:
            return MediaClass.VIDEO

        if suffix in exts.ambiguous:
            # No video stream means the file is held back, never re-read as audio.
            if self._prober.probe(path).has_video_stream:
                return MediaClass.VIDEO
            return MediaClass.AMBIGUOUS_AUDIO

        if suffix in exts.audio:
            return self._confirm_audio(path)

        if suffix in exts.image:
            return MediaClass.IMAGE

        mime = (self._sniffer.sniff(path) or "").lower()
        if mime.startswith("video/"):
            return MediaClass.VIDEO
        if mime.startswith("image/"):
            return MediaClass.IMAGE
        # Unlisted extensions still count as audio when the MIME type and probe agree.
        if mime.startswith("audio/"):
            return self._confirm_audio(path)
        return MediaClass.OTHER

    def _confirm_audio(self, path: Path) -> MediaClass:
        result = self._prober.probe(path)
        if result.sane_audio:
            return MediaClass.SANE_AUDIO
        LOGGER.debug("Audio probe rejected %s: %s", path, result)
        return MediaClass.AMBIGUOUS_AUDIO


__all__ = ["ContentClassifier", "MediaExtensions"]
