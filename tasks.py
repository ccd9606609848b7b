"""Invoke tasks for developing namewise.

Every task shells out to ``uv`` so the virtual environment, test run, and
lint configuration match what CI uses.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
SOURCE_DIRS = ("src", "tests")


def _uv(
    ctx: Context,
    args: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
) -> None:
    """Run ``uv`` with ``args``, layering ``env`` over the configured environment."""
    run_env = dict(ctx.config.run.env or {})
    if env:
        run_env.update(env)
    ctx.run(shlex.join(("uv", *args)), echo=True, pty=True, env=run_env)


@task(help={"llm": "Also install the optional DSPy backend."})
def sync(ctx: Context, llm: bool = False) -> None:
    """Install namewise with its dev extra (and optionally the llm extra)."""
    args = ["sync", "--extra", "dev"]
    if llm:
        args.extend(["--extra", "llm"])
    _uv(ctx, args)


@task(help={"clean": "Remove existing artifacts from dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build the sdist and wheel into ``dist/``."""
    if clean and DIST_DIR.exists():
        shutil.rmtree(DIST_DIR)
    _uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional CLI flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite."""
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    args.append(path)
    _uv(ctx, args)


@task(help={"fix": "Apply auto-fixes where possible (ruff --fix)."})
def lint(ctx: Context, fix: bool = False) -> None:
    """Check formatting and lint rules with Ruff."""
    _uv(ctx, ["run", "ruff", "format", "--check", *SOURCE_DIRS])
    args = ["run", "ruff", "check", *SOURCE_DIRS]
    if fix:
        args.append("--fix")
    _uv(ctx, args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the package sources."""
    _uv(ctx, ["run", "mypy", "src"])


@task
def ci(ctx: Context) -> None:
    """Run lint, type checks, and tests in CI order."""
    ctx.invoke(lint)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, mypy, ci)
