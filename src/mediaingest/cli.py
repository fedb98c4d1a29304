"""Command line interface for mediaingest."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from mediaingest.config import ConfigError, ConfigManager, IngestConfig
from mediaingest.coordinator import InstanceLock, RunCoordinator, RunReport
from mediaingest.ingestion import DirectoryScanner
from mediaingest.logsetup import configure_logging
from mediaingest.organization import Tier, sweep_queue_duplicates
from mediaingest.state import QueueError, QueueRepository

console = Console()


def _load_config(config_path: Optional[Path]) -> IngestConfig:
    """Load configuration or convert failures into a CLI error.

    Args:
        config_path: Optional explicit configuration file.

    Returns:
        IngestConfig: Effective configuration.

    Raises:
        click.ClickException: If the configuration cannot be loaded.
    """

    manager = ConfigManager(config_path)
    try:
        return manager.load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _build_coordinator(config: IngestConfig) -> RunCoordinator:
    return RunCoordinator(config)


def _library_root(config: IngestConfig, tier: Tier) -> Path:
    paths = config.paths
    roots = {
        Tier.VIDEO: paths.video_root,
        Tier.AUDIO: paths.audio_root,
        Tier.IMAGE: paths.image_root,
        Tier.MISC: paths.misc_root,
    }
    root = roots[tier]
    if root is None:
        raise click.ClickException(f"No library root configured for the {tier.value} tier.")
    return root


def _format_summary_line(report: RunReport) -> str:
    metrics: dict[str, Any] = {
        "run": report.run_id,
        "resumed": report.resumed,
        "claimed": report.claimed,
        "routed": len(report.routed),
        "failed": len(report.failed),
        "held": len(report.held),
        "tagged": report.tagged,
        "tag_failures": report.tag_failures,
        "remaining": report.remaining,
    }
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]Run summary: {parts}.[/green]"


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (defaults to ~/.mediaingest/config.yaml).",
)
@click.version_option(package_name="mediaingest")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """Claim settled files from the drop directory and route them into the media library.

    Without a sub-command a single run is executed.
    """

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.option("--summary", "summary_mode", is_flag=True, help="Print a summary line after the run.")
@click.pass_context
def run(ctx: click.Context, summary_mode: bool = False) -> None:
    """Run the pipeline once: claim, tag, route and clean up.

    Exits quietly when another run holds the lock or nothing is ready.
    """

    config = _load_config(ctx.obj.get("config_path"))
    try:
        configure_logging(config.logging, config.paths.log_file)
        report = _build_coordinator(config).run_once()
    except (QueueError, OSError) as exc:
        raise click.ClickException(f"Run aborted: {exc}") from exc

    if report is None or not summary_mode:
        return
    console.print(_format_summary_line(report))


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show pending run queues and the drop-root backlog."""

    config = _load_config(ctx.obj.get("config_path"))
    repository = QueueRepository(config.paths.queue_root)

    table = Table(title=f"Run queues in {config.paths.queue_root}")
    table.add_column("Run", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("State")
    resumable = repository.find_resumable()
    for queue in repository.runs():
        count = len(queue.files())
        if resumable is not None and queue.path == resumable.path:
            state = "[yellow]resumes next[/yellow]"
        elif count:
            state = "pending"
        else:
            state = "[dim]empty[/dim]"
        table.add_row(queue.run_id, str(count), state)
    console.print(table)

    scanner = DirectoryScanner(
        include_hidden=config.stability.include_hidden,
        exclude=[config.paths.queue_root],
    )
    backlog = sum(1 for _ in scanner.scan(config.paths.drop_root))
    console.print(f"Drop root {config.paths.drop_root}: {backlog} file(s) waiting.")


@cli.command("dedupe-queue")
@click.option(
    "--tier",
    type=click.Choice([tier.value for tier in Tier]),
    default=Tier.VIDEO.value,
    show_default=True,
    help="Library tier to compare queued files against.",
)
@click.pass_context
def dedupe_queue(ctx: click.Context, tier: str) -> None:
    """Delete queued files that already exist, same size, in a library tier."""

    config = _load_config(ctx.obj.get("config_path"))
    library_root = _library_root(config, Tier(tier))
    configure_logging(config.logging, config.paths.log_file)

    lock = InstanceLock(config.paths.lock_file)
    try:
        acquired = lock.acquire()
    except OSError as exc:
        raise click.ClickException(f"Cannot open lock file: {exc}") from exc
    if not acquired:
        console.print("[yellow]A run is in progress; try again later.[/yellow]")
        return
    try:
        removed = sweep_queue_duplicates(config.paths.queue_root, library_root)
    finally:
        lock.release()
    console.print(f"[green]Removed {len(removed)} queued duplicate(s).[/green]")


@cli.group()
def config() -> None:
    """Manage mediaingest configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager(ctx.obj.get("config_path"))
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager(ctx.obj.get("config_path"))
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    before = manager.read_text().splitlines()
    try:
        changed = manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        before,
        manager.read_text().splitlines(),
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
