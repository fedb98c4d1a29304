"""Configuration models describing mediaingest settings."""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CollisionPolicy = Literal["fail", "rename"]


class IngestBaseModel(BaseModel):
    """Shared configuration for mediaingest Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class PathSettings(IngestBaseModel):
    """Filesystem locations used by a run.

    Attributes:
        drop_root: Directory external producers write new files into.
        queue_root: Hidden directory holding one subdirectory per run.
        video_root: Library root for video files.
        audio_root: Library root for audio files the tagger did not absorb.
        image_root: Optional library root for images; ``None`` disables the image pass.
        misc_root: Catch-all library root.
        lock_file: Path of the single-instance lock file.
        log_file: Path of the append-only run log.
    """

    drop_root: Path = Path("/srv/ingest/incoming")
    queue_root: Path = Path("/srv/ingest/.ingest-queue")
    video_root: Path = Path("/srv/library/videos")
    audio_root: Path = Path("/srv/library/music/unmatched")
    image_root: Optional[Path] = None
    misc_root: Path = Path("/srv/library/misc")
    lock_file: Path = Path("/run/lock/mediaingest.lock")
    log_file: Path = Path("/var/log/mediaingest.log")

    @field_validator("*")
    @classmethod
    def _expand(cls, value: Optional[Path]) -> Optional[Path]:
        # Every consumer receives absolute paths; ``~`` is resolved once here.
        if value is None:
            return None
        return value.expanduser().resolve()


class StabilitySettings(IngestBaseModel):
    """Policy deciding when an incoming file is safe to claim.

    Attributes:
        policy: Stability policy to apply to candidate files.
        threshold_seconds: Minimum age (mtime or creation time) before a claim.
        sample_window_seconds: Global sleep between the two samples of ``double_sample``.
        per_file_sleep_seconds: Sleep between the size samples of ``per_file``.
        check_open_files: Whether ``per_file`` consults ``lsof`` for open writers.
        include_hidden: Whether dot-files in the drop root are considered at all.
    """

    policy: Literal["double_sample", "per_file", "creation_age"] = "double_sample"
    threshold_seconds: float = 44.0
    sample_window_seconds: float = 5.0
    per_file_sleep_seconds: float = 3.0
    check_open_files: bool = True
    include_hidden: bool = False

    @field_validator("threshold_seconds", "sample_window_seconds", "per_file_sleep_seconds")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be zero or greater")
        return value


class ProbeSettings(IngestBaseModel):
    """Stream probing options.

    Attributes:
        ffprobe_binary: Executable used for stream probing.
        timeout_seconds: Upper bound for a single probe call.
        big_file_bytes: Video files above this size need a passing sanity probe.
    """

    ffprobe_binary: str = "ffprobe"
    timeout_seconds: float = 10.0
    big_file_bytes: int = 3 * 1024 * 1024 * 1024


class TaggingSettings(IngestBaseModel):
    """External tagging tool options.

    Attributes:
        enabled: Whether the tagging pass runs at all.
        command: Command prefix; the queued file path is appended per call.
        timeout_seconds: Upper bound for a single tagging call.
    """

    enabled: bool = True
    command: List[str] = Field(default_factory=lambda: ["beet", "import", "-q", "-s"])
    timeout_seconds: float = 600.0

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("command must name an executable")
        return value


class RoutingSettings(IngestBaseModel):
    """Destination and collision behaviour for each library tier.

    Attributes:
        bucket_format: ``strftime`` pattern naming loose-file buckets.
        video_collision: Collision policy for the video tier.
        audio_collision: Collision policy for the audio tier.
        image_collision: Collision policy for the image tier.
        misc_collision: Collision policy for the misc tier.
    """

    bucket_format: str = "%Y-%m-%d-%H"
    video_collision: CollisionPolicy = "fail"
    audio_collision: CollisionPolicy = "fail"
    image_collision: CollisionPolicy = "rename"
    misc_collision: CollisionPolicy = "rename"


class LoggingSettings(IngestBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation; ``0`` disables rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "INFO"
    max_size_mb: int = 100
    backup_count: int = 5


class IngestConfig(IngestBaseModel):
    """Top-level configuration struct for mediaingest.

    Attributes:
        paths: Filesystem locations.
        stability: Stability detector settings.
        probing: Stream probing settings.
        tagging: Tagging tool settings.
        routing: Router settings.
        logging: Logging configuration.
    """

    paths: PathSettings = Field(default_factory=PathSettings)
    stability: StabilitySettings = Field(default_factory=StabilitySettings)
    probing: ProbeSettings = Field(default_factory=ProbeSettings)
    tagging: TaggingSettings = Field(default_factory=TaggingSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "CollisionPolicy",
    "IngestBaseModel",
    "PathSettings",
    "StabilitySettings",
    "ProbeSettings",
    "TaggingSettings",
    "RoutingSettings",
    "LoggingSettings",
    "IngestConfig",
]
