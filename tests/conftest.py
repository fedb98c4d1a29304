"""Shared fixtures and fakes for the mediaingest test suite."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

import pytest

from mediaingest.classification import ProbeResult
from mediaingest.config import IngestConfig
from mediaingest.tagging import TagResult

VIDEO_AND_AUDIO = ProbeResult(has_video_stream=True, has_audio_stream=True, parses_ok=True)
AUDIO_ONLY = ProbeResult(has_video_stream=False, has_audio_stream=True, parses_ok=True)
BROKEN = ProbeResult.unavailable()


@dataclass
class FakeProber:
    """Stream prober answering from a filename lookup table.

    Files not listed probe as unavailable.
    """

    results: Mapping[str, ProbeResult] = field(default_factory=dict)
    calls: list[Path] = field(default_factory=list)

    def probe(self, path: Path) -> ProbeResult:
        self.calls.append(path)
        return self.results.get(path.name, BROKEN)


@dataclass
class FakeSniffer:
    """MIME sniffer answering from a filename lookup table."""

    mimes: Mapping[str, str] = field(default_factory=dict)
    default: str = "application/octet-stream"

    def sniff(self, path: Path) -> str:
        return self.mimes.get(path.name, self.default)


@dataclass
class FakeTagger:
    """Tagger recording calls; exit codes can be forced per filename."""

    exit_codes: Mapping[str, int] = field(default_factory=dict)
    output: str = ""
    calls: list[Path] = field(default_factory=list)

    def tag(self, path: Path) -> TagResult:
        self.calls.append(path)
        return TagResult(self.exit_codes.get(path.name, 0), self.output)


def write_file(path: Path, content: bytes = b"data", *, age: float | None = None) -> Path:
    """Create ``path`` with ``content`` and optionally backdate its mtime by ``age`` seconds."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if age is not None:
        stamp = time.time() - age
        os.utime(path, (stamp, stamp))
    return path


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., IngestConfig]:
    """Return a factory for configs rooted inside ``tmp_path``.

    Stability waits are zeroed so freshly written files are claimable, and
    keyword overrides are applied per section.
    """

    def _factory(**sections: Mapping[str, object]) -> IngestConfig:
        data: dict[str, dict[str, object]] = {
            "paths": {
                "drop_root": str(tmp_path / "incoming"),
                "queue_root": str(tmp_path / ".ingest-queue"),
                "video_root": str(tmp_path / "library" / "videos"),
                "audio_root": str(tmp_path / "library" / "music"),
                "misc_root": str(tmp_path / "library" / "misc"),
                "lock_file": str(tmp_path / "run" / "mediaingest.lock"),
                "log_file": str(tmp_path / "log" / "mediaingest.log"),
            },
            "stability": {
                "threshold_seconds": 0,
                "sample_window_seconds": 0,
                "per_file_sleep_seconds": 0,
                "check_open_files": False,
            },
        }
        for name, values in sections.items():
            data.setdefault(name, {}).update(values)
        return IngestConfig.model_validate(data)

    return _factory
