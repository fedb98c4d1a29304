"""Tests for the subprocess-backed probing capabilities."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from mediaingest.ingestion import detectors
from mediaingest.ingestion.detectors import FFprobeProber, OpenFileChecker


def _completed(stdout: str, returncode: int = 0) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr="")


def test_ffprobe_reports_stream_types(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"streams": [{"codec_type": "video"}, {"codec_type": "audio"}]}
    seen: dict[str, object] = {}

    def _fake_run(argv, **kwargs):
        seen["argv"] = argv
        seen["timeout"] = kwargs["timeout"]
        return _completed(json.dumps(payload))

    monkeypatch.setattr(subprocess, "run", _fake_run)

    result = FFprobeProber("ffprobe", timeout_seconds=10).probe(Path("/q/clip.mp4"))

    assert result.has_video_stream and result.has_audio_stream and result.parses_ok
    assert seen["argv"][0] == "ffprobe"
    assert seen["argv"][-1] == "/q/clip.mp4"
    assert seen["timeout"] == 10


def test_ffprobe_audio_only(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"streams": [{"codec_type": "audio"}]}
    monkeypatch.setattr(subprocess, "run", lambda argv, **kwargs: _completed(json.dumps(payload)))

    result = FFprobeProber().probe(Path("song.m4a"))

    assert result.sane_audio
    assert not result.has_video_stream


@pytest.mark.parametrize(
    "behaviour",
    ["timeout", "missing", "exit", "garbage"],
)
def test_ffprobe_failures_are_unavailable(
    monkeypatch: pytest.MonkeyPatch, behaviour: str
) -> None:
    def _fake_run(argv, **kwargs):
        if behaviour == "timeout":
            raise subprocess.TimeoutExpired(argv, kwargs["timeout"])
        if behaviour == "missing":
            raise FileNotFoundError(argv[0])
        if behaviour == "exit":
            return _completed("", returncode=1)
        return _completed("not json")

    monkeypatch.setattr(subprocess, "run", _fake_run)

    result = FFprobeProber().probe(Path("broken.mkv"))

    assert not result.parses_ok
    assert not result.has_video_stream
    assert not result.sane_audio


def test_open_file_checker_detects_writers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(detectors.shutil, "which", lambda name: "/usr/bin/lsof")
    outputs = iter(["p123\nf4\nar\n", "p456\nf5\naw\n"])
    monkeypatch.setattr(subprocess, "run", lambda argv, **kwargs: _completed(next(outputs)))
    checker = OpenFileChecker()

    assert checker.is_open_for_write(Path("reading.mkv")) is False
    assert checker.is_open_for_write(Path("writing.mkv")) is True


def test_open_file_checker_without_lsof(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(detectors.shutil, "which", lambda name: None)

    assert OpenFileChecker().is_open_for_write(Path("any.mkv")) is False
