"""Invoke tasks for developing Mane.

Every task shells out to the `uv` CLI so the project's virtual environment is
used consistently for syncing, linting, type checking, and tests.
"""

from __future__ import annotations

import os
import shlex
import shutil
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
FAKE_TEXT_EMBEDDER = "fake_embeddings:HashingTextEmbedder"


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


@task(help={"extras": "Comma-separated extras to install (default: dev)."})
def sync(ctx: Context, extras: str = "dev") -> None:
    """Synchronize the virtual environment, e.g. `invoke sync --extras dev,llm,vision`."""
    args = ["sync"]
    for extra in filter(None, (item.strip() for item in extras.split(","))):
        args.extend(["--extra", extra])
    _run_uv(ctx, args)


@task(help={"clean": "Remove existing artifacts in dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build sdist and wheel artifacts into `dist/`."""
    if clean and DIST_DIR.exists():
        shutil.rmtree(DIST_DIR)
    _run_uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional CLI flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite via uv."""
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
    """Check formatting and run Ruff lint rules over src/ and tests/."""
    _run_uv(ctx, ["run", "ruff", "format", "--check", "src", "tests"])
    lint_args: list[str] = ["run", "ruff", "check", "src", "tests"]
    if fix:
        lint_args.append("--fix")
    _run_uv(ctx, lint_args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the package with MyPy."""
    _run_uv(ctx, ["run", "mypy", "src"])


@task(help={"path": "Directory to index (defaults to the tests/ folder)."})
def smoke(ctx: Context, path: str = "tests") -> None:
    """Index, search, and plan an organization inside a throwaway HOME.

    Uses the hashing test embedder so no model download is required.
    """
    with tempfile.TemporaryDirectory(prefix="mane-smoke-") as home:
        python_path = [str(PROJECT_ROOT / "tests"), os.environ.get("PYTHONPATH", "")]
        env = {
            "HOME": home,
            "PYTHONPATH": os.pathsep.join(filter(None, python_path)),
            "MANE__EMBEDDINGS__TEXT_FUNCTION": FAKE_TEXT_EMBEDDER,
            "MANE__PROCESSING__PROCESS_IMAGES": "false",
        }
        _run_uv(ctx, ["run", "mane", "index", path, "--summary"], env=env)
        _run_uv(ctx, ["run", "mane", "search", "action history", "--limit", "3"], env=env)
        _run_uv(ctx, ["run", "mane", "organize", "--dry-run", "--summary"], env=env)


@task
def ci(ctx: Context) -> None:
    """Replicate the CI workflow locally."""
    ctx.invoke(lint)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, mypy, smoke, ci)
