"""Invoke tasks for developing, testing, and trying out mediaingest.

Every task shells out to the `uv` CLI so local workflows match CI.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
SANDBOX_DIR = PROJECT_ROOT / ".sandbox"


def _run_uv(
    ctx: Context,
    args: Sequence[str],
    *,
    echo: bool = True,
    env: Mapping[str, str] | None = None,
) -> None:
    """Execute a uv command with consistent quoting and PTY defaults.

    Args:
        ctx: Invoke execution context.
        args: Arguments appended after the `uv` executable.
        echo: Whether to echo the command before running it.
        env: Optional environment variables layered onto the invocation.
    """
    command = shlex.join(("uv", *args))
    run_env = dict(ctx.config.run.env or {})
    if env:
        run_env.update(env)
    ctx.run(command, echo=echo, pty=True, env=run_env)


def _sandbox_env(root: Path) -> dict[str, str]:
    """Point every configured path at a throwaway tree under ``root``."""
    return {
        "MEDIAINGEST__PATHS__DROP_ROOT": str(root / "incoming"),
        "MEDIAINGEST__PATHS__QUEUE_ROOT": str(root / ".ingest-queue"),
        "MEDIAINGEST__PATHS__VIDEO_ROOT": str(root / "library" / "videos"),
        "MEDIAINGEST__PATHS__AUDIO_ROOT": str(root / "library" / "music"),
        "MEDIAINGEST__PATHS__MISC_ROOT": str(root / "library" / "misc"),
        "MEDIAINGEST__PATHS__LOCK_FILE": str(root / "mediaingest.lock"),
        "MEDIAINGEST__PATHS__LOG_FILE": str(root / "mediaingest.log"),
        "MEDIAINGEST__STABILITY__THRESHOLD_SECONDS": "0",
        "MEDIAINGEST__STABILITY__SAMPLE_WINDOW_SECONDS": "0",
        "MEDIAINGEST__TAGGING__ENABLED": "false",
    }


@task
def sync(ctx: Context, dev: bool = True) -> None:
    """Synchronize the virtual environment, including dev extras by default."""
    args = ["sync"]
    if dev:
        args.extend(["--extra", "dev"])
    _run_uv(ctx, args)


@task(help={"clean": "Remove existing artifacts from dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build source and wheel distributions in `dist/`."""
    if clean and DIST_DIR.exists():
        for artifact in DIST_DIR.iterdir():
            if artifact.is_file():
                artifact.unlink()
            else:
                shutil.rmtree(artifact)
    _run_uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional CLI flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite via uv.

    Args:
        ctx: Invoke execution context.
        k: `pytest -k` expression to select tests.
        path: Target path for pytest discovery.
        options: Extra CLI arguments appended to the pytest call.
    """
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    if path:
        args.append(path)
    _run_uv(ctx, args)


@task(help={"fix": "Apply auto-fixes where possible (ruff --fix)."})
def lint(ctx: Context, fix: bool = False) -> None:
    """Run Ruff format checks and lint rules."""
    _run_uv(ctx, ["run", "ruff", "format", "--check", "src", "tests"])
    lint_args: list[str] = ["run", "ruff", "check", "src", "tests"]
    if fix:
        lint_args.append("--fix")
    _run_uv(ctx, lint_args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the package sources."""
    _run_uv(ctx, ["run", "mypy", "src"])


@task(
    help={
        "root": "Sandbox directory (defaults to .sandbox/ in the project).",
        "reset": "Delete the sandbox before running.",
    }
)
def sandbox(ctx: Context, root: str = "", reset: bool = False) -> None:
    """Run one ingest pass against a throwaway directory tree.

    Drop files into ``<root>/incoming`` and run the task again to watch them
    move into ``<root>/library``. Tagging is disabled in the sandbox.
    """
    sandbox_root = Path(root) if root else SANDBOX_DIR
    if reset and sandbox_root.exists():
        shutil.rmtree(sandbox_root)
    (sandbox_root / "incoming").mkdir(parents=True, exist_ok=True)
    config_path = sandbox_root / "config.yaml"
    env = _sandbox_env(sandbox_root)
    _run_uv(
        ctx,
        ["run", "mediaingest", "--config", str(config_path), "run", "--summary"],
        env=env,
    )
    _run_uv(ctx, ["run", "mediaingest", "--config", str(config_path), "status"], env=env)


@task
def ci(ctx: Context) -> None:
    """Replicate the CI workflow locally."""
    ctx.invoke(lint)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, mypy, sandbox, ci)
