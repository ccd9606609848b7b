"""Command line interface for namewise."""

from __future__ import annotations

import asyncio
import difflib
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from namewise.config import (
    ConfigError,
    ConfigManager,
    NamewiseConfig,
    assign_nested,
    resolve_with_precedence,
)
from namewise.invocation import InvocationMetrics
from namewise.pipeline import NamingPipeline, PipelineResult, PipelineStats
from namewise.providers.base import GenerativeTextService
from namewise.providers.dspy_service import DSPyTextService
from namewise.providers.errors import ProviderError

console = Console()


def _configure_logging(level: str) -> None:
    """Route package logs through a Rich handler on stderr."""
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.WARNING

    logger = logging.getLogger("namewise")
    logger.setLevel(numeric)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _format_summary_line(command: str, target: str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _collect_files(paths: Iterable[str], recursive: bool) -> List[Path]:
    """Expand PATHS into files, skipping hidden entries inside directories."""
    files: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            files.append(path)
            continue
        candidates = path.rglob("*") if recursive else path.iterdir()
        for candidate in sorted(candidates):
            relative = candidate.relative_to(path)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if candidate.is_file():
                files.append(candidate)
    return files


def _build_service(config: NamewiseConfig) -> GenerativeTextService:
    """Return the text-generation service described by ``config.llm``."""
    return DSPyTextService(config.llm)


def _results_table(results: List[PipelineResult]) -> Table:
    table = Table(title="Suggested names")
    table.add_column("File", overflow="fold")
    table.add_column("Suggestion", overflow="fold")
    table.add_column("Stage")
    table.add_column("Confidence", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right")

    for result in results:
        suffix = Path(result.original).suffix
        if result.error is not None:
            suggestion = f"[red]{result.error.code}[/red]"
        elif result.suggested_name:
            suggestion = f"{result.suggested_name}{suffix}"
        else:
            suggestion = "-"
        table.add_row(
            Path(result.original).name,
            suggestion,
            result.stage.value if result.stage else "-",
            f"{result.confidence:.2f}",
            str(result.tokens_used),
            f"${result.cost:.6f}",
        )
    return table


def _stats_metrics(stats: PipelineStats) -> dict[str, Any]:
    return {
        "files": stats.total,
        "metadata": stats.by_stage.metadata,
        "cheap": stats.by_stage.cheap_model,
        "premium": stats.by_stage.premium_model,
        "pattern": stats.by_stage.batch_pattern,
        "failed": stats.failed,
        "tokens": stats.total_tokens,
        "cost": f"${stats.total_cost:.6f}",
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="namewise")
def cli() -> None:
    """Suggest descriptive file names while spending as few tokens as possible."""


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=str))
@click.option("-r", "--recursive", is_flag=True, help="Include files in subdirectories.")
@click.option(
    "--strategy",
    type=click.Choice(["aggressive", "balanced", "quality"]),
    help="Cost/quality preset to apply.",
)
@click.option("--concurrency", type=click.IntRange(1, 100), help="Files processed in parallel.")
@click.option(
    "--fail-fast/--no-fail-fast",
    default=None,
    help="Stop outstanding work after the first terminal failure.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON results and statistics.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
def suggest(
    paths: tuple[str, ...],
    recursive: bool,
    strategy: Optional[str],
    concurrency: Optional[int],
    fail_fast: Optional[bool],
    json_output: bool,
    quiet: bool,
) -> None:
    """Suggest names for the files under PATHS without renaming anything."""
    cli_overrides: dict[str, Any] = {}
    if strategy is not None:
        cli_overrides["pipeline.strategy"] = strategy
    if concurrency is not None:
        cli_overrides["pipeline.concurrency"] = concurrency
    if fail_fast is not None:
        cli_overrides["pipeline.fail_fast"] = fail_fast

    json_enabled = json_output
    try:
        config = ConfigManager().load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
        return

    _configure_logging(config.logging.level)
    json_enabled = json_output or config.cli.json_default
    quiet_enabled = quiet or config.cli.quiet_default

    files = _collect_files(paths, recursive)
    if not files:
        if json_enabled:
            console.print_json(
                data={
                    "results": [],
                    "stats": PipelineStats().model_dump(),
                    "metrics": InvocationMetrics().snapshot(),
                }
            )
        elif not quiet_enabled:
            console.print("[yellow]No files found.[/yellow]")
        return

    try:
        service = _build_service(config)
    except (ProviderError, RuntimeError) as exc:
        _handle_cli_error(
            str(exc), code="provider_unavailable", json_output=json_enabled, original=exc
        )
        return

    pipeline = NamingPipeline(service, config)
    try:
        results = asyncio.run(pipeline.process_batch(files))
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while naming files: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )
        return

    stats = pipeline.get_stats(results)
    if json_enabled:
        console.print_json(
            data={
                "results": [result.model_dump(mode="json") for result in results],
                "stats": stats.model_dump(mode="json"),
                "metrics": pipeline.metrics.snapshot(),
            }
        )
        return

    if quiet_enabled:
        return

    console.print(_results_table(results))
    console.print(_format_summary_line("Suggest", ", ".join(paths), _stats_metrics(stats)))


@cli.group()
def config() -> None:
    """Manage namewise configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        file_data = manager.load_file_overrides()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'llm.temperature'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=NamewiseConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    changed = [
        line
        for line in diff
        if line.startswith(("+", "-"))
        and not line.startswith(("+++", "---", "+# Last updated", "-# Last updated"))
    ]

    if changed:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
