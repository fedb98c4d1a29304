"""Classification data models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class MediaClass(str, Enum):
    """Label assigned to a queued file by the content classifier."""

    VIDEO = "video"
    SANE_AUDIO = "sane-audio"
    AMBIGUOUS_AUDIO = "ambiguous-audio"
    IMAGE = "image"
    OTHER = "other"


class ProbeResult(BaseModel):
    """Stream facts reported by the probing tool.

    Attributes:
        has_video_stream: At least one video stream was listed.
        has_audio_stream: At least one audio stream was listed.
        parses_ok: The probe exited cleanly.
    """

    has_video_stream: bool = False
    has_audio_stream: bool = False
    parses_ok: bool = False

    @classmethod
    def unavailable(cls) -> "ProbeResult":
        """Result used when probing timed out, failed, or could not run."""
        return cls()

    @property
    def sane_audio(self) -> bool:
        return self.parses_ok and self.has_audio_stream


__all__ = ["MediaClass", "ProbeResult"]
