"""CLI tests driven through Click's runner."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest
from click.testing import CliRunner
from conftest import FakeProber, FakeSniffer, FakeTagger, write_file
from rich.console import Console

import mediaingest.cli as cli_module
from mediaingest.cli import cli
from mediaingest.config import ConfigManager
from mediaingest.coordinator import InstanceLock, RunCoordinator
from mediaingest.logsetup import RUN_LOGGER_NAME


@pytest.fixture(autouse=True)
def _wide_console_and_clean_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(cli_module, "console", Console(width=240))
    yield
    logger = logging.getLogger(RUN_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def config_file(tmp_path: Path, make_config) -> Path:
    path = tmp_path / "config.yaml"
    ConfigManager(path, env={}).save(make_config(tagging={"enabled": False}))
    return path


@pytest.fixture
def fake_capabilities(monkeypatch: pytest.MonkeyPatch) -> None:
    def _build(config):
        return RunCoordinator(
            config, prober=FakeProber(), sniffer=FakeSniffer(), tagger=FakeTagger()
        )

    monkeypatch.setattr(cli_module, "_build_coordinator", _build)


def _load(config_file: Path):
    return ConfigManager(config_file, env={}).load()


def test_cli_help_displays_commands() -> None:
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Claim settled files from the drop directory" in result.output
    for command in ("run", "status", "dedupe-queue", "config"):
        assert command in result.output


def test_bare_invocation_runs_once(config_file: Path, fake_capabilities) -> None:
    config = _load(config_file)
    write_file(config.paths.drop_root / "clip.mkv")

    result = CliRunner().invoke(cli, ["--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert result.output == ""
    assert len(list(config.paths.video_root.rglob("clip.mkv"))) == 1
    log_text = config.paths.log_file.read_text(encoding="utf-8")
    assert "==== RUN START (1 files claimed) ====" in log_text
    assert "VIDEO -> " in log_text
    assert "==== RUN END ====" in log_text


def test_run_summary_flag(config_file: Path, fake_capabilities) -> None:
    config = _load(config_file)
    write_file(config.paths.drop_root / "notes.txt")

    result = CliRunner().invoke(cli, ["--config", str(config_file), "run", "--summary"])

    assert result.exit_code == 0, result.output
    assert "claimed=1" in result.output
    assert "routed=1" in result.output


def test_run_exits_quietly_when_locked(config_file: Path, fake_capabilities) -> None:
    config = _load(config_file)
    write_file(config.paths.drop_root / "clip.mkv")

    with InstanceLock(config.paths.lock_file):
        result = CliRunner().invoke(cli, ["--config", str(config_file), "run", "--summary"])

    assert result.exit_code == 0
    assert result.output == ""
    assert (config.paths.drop_root / "clip.mkv").exists()


def test_invalid_config_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- not-a-mapping\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(path), "run"])

    assert result.exit_code != 0
    assert "mapping" in result.output


def test_status_lists_queues_and_backlog(config_file: Path) -> None:
    config = _load(config_file)
    write_file(config.paths.queue_root / "2026-10-16-080000" / "a.mkv")
    (config.paths.queue_root / "2026-10-16-090000").mkdir(parents=True)
    write_file(config.paths.drop_root / "waiting.mp3")
    write_file(config.paths.drop_root / ".hidden.part")

    result = CliRunner().invoke(cli, ["--config", str(config_file), "status"])

    assert result.exit_code == 0, result.output
    assert "2026-10-16-080000" in result.output
    assert "resumes next" in result.output
    assert "2026-10-16-090000" in result.output
    assert "1 file(s) waiting" in result.output


def test_dedupe_queue_removes_delivered_copies(config_file: Path) -> None:
    config = _load(config_file)
    write_file(config.paths.video_root / "Show" / "e1.mkv", b"12345")
    queued = write_file(config.paths.queue_root / "2026-10-16-080000" / "Show" / "e1.mkv", b"12345")

    result = CliRunner().invoke(cli, ["--config", str(config_file), "dedupe-queue"])

    assert result.exit_code == 0, result.output
    assert "Removed 1 queued duplicate(s)." in result.output
    assert not queued.exists()


def test_dedupe_queue_requires_configured_tier(config_file: Path) -> None:
    result = CliRunner().invoke(
        cli, ["--config", str(config_file), "dedupe-queue", "--tier", "image"]
    )

    assert result.exit_code != 0
    assert "No library root configured" in result.output


def test_config_view_shows_effective_values(config_file: Path) -> None:
    result = CliRunner().invoke(cli, ["--config", str(config_file), "config", "view", "--no-env"])

    assert result.exit_code == 0, result.output
    assert "threshold_seconds" in result.output
    assert "double_sample" in result.output


def test_config_set_persists_and_validates(config_file: Path) -> None:
    runner = CliRunner()
    base = ["--config", str(config_file), "config", "set", "stability.threshold_seconds"]

    result = runner.invoke(cli, [*base, "--value", "60"])

    assert result.exit_code == 0, result.output
    assert "Updated stability.threshold_seconds." in result.output
    assert _load(config_file).stability.threshold_seconds == 60

    repeat = runner.invoke(cli, [*base, "--value", "60"])
    assert "No changes applied" in repeat.output

    invalid = runner.invoke(cli, [*base, "--value=-5"])
    assert invalid.exit_code != 0
    assert _load(config_file).stability.threshold_seconds == 60


def test_uncreatable_queue_root_aborts_the_run(
    tmp_path: Path, make_config, fake_capabilities
) -> None:
    blocker = write_file(tmp_path / "blocker")
    path = tmp_path / "config.yaml"
    ConfigManager(path, env={}).save(
        make_config(paths={"queue_root": str(blocker / "queue")}, tagging={"enabled": False})
    )

    result = CliRunner().invoke(cli, ["--config", str(path), "run"])

    assert result.exit_code == 1
    assert "Run aborted" in result.output
    assert "Cannot create queue root" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
