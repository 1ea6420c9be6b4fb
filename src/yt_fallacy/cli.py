# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""CLI entry point for yt-fallacy."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import click

from yt_fallacy import __version__
from yt_fallacy.config import AppConfig, load_config
from yt_fallacy.logging import get_logger, setup_logging
from yt_fallacy.models import Analysis, Severity

# Exit codes
EXIT_SUCCESS = 0
EXIT_GENERAL = 1
EXIT_TRANSCRIPT = 2
EXIT_LLM = 3
EXIT_STORAGE = 4
EXIT_RATE_LIMITED = 5

_SEVERITY_COLORS: dict[Severity, str] = {
    Severity.MINOR: "yellow",
    Severity.MODERATE: "bright_red",
    Severity.SEVERE: "red",
}


@click.group()
def cli() -> None:
    """yt-fallacy: Flag logical fallacies in YouTube videos."""


@cli.command()
def version() -> None:
    """Print yt-fallacy version."""
    click.echo(f"yt-fallacy {__version__}")


def _store_option(func: Any) -> Any:
    return click.option(
        "--store-dir",
        type=click.Path(file_okay=False),
        default=None,
        help="Directory holding stored analyses.",
    )(func)


def _config_option(func: Any) -> Any:
    return click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True),
        default=None,
        help="Config file path.",
    )(func)


def _load(kwargs: dict[str, Any], overrides: dict[str, Any]) -> AppConfig:
    config_file = Path(kwargs["config_path"]) if kwargs.get("config_path") else None
    return load_config(cli_overrides=overrides, config_path=config_file)


@cli.command()
@click.argument("video", type=str)
@click.option("--model", default=None, help="LLM model identifier.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "markdown"]),
    default=None,
    help="Output format (default: json).",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(),
    default=None,
    help="Output file path (default: stdout).",
)
@_config_option
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging verbosity (default: INFO).",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log output format (default: console).",
)
@_store_option
@click.option("--api-base", default=None, help="LLM API base URL.")
@click.option("--api-key", default=None, help="LLM API key (prefer env var YT_FALLACY_API_KEY).")
@click.option("--temperature", type=float, default=None, help="LLM temperature (default: 0.0).")
@click.option(
    "--language",
    "languages",
    multiple=True,
    help="Caption language code (repeatable, default: en).",
)
@click.option(
    "--no-cache",
    is_flag=True,
    default=False,
    help="Re-analyze even if this video was analyzed before.",
)
def analyze(video: str, **kwargs: Any) -> None:
    """Fetch a video's transcript and flag logical fallacies."""
    cli_overrides: dict[str, Any] = {
        "model": kwargs.get("model"),
        "output_format": kwargs.get("output_format"),
        "output_path": kwargs.get("output_path"),
        "log_level": kwargs.get("log_level"),
        "log_format": kwargs.get("log_format"),
        "store_dir": kwargs.get("store_dir"),
        "api_base": kwargs.get("api_base"),
        "api_key": kwargs.get("api_key"),
        "temperature": kwargs.get("temperature"),
    }
    if kwargs.get("languages"):
        cli_overrides["languages"] = list(kwargs["languages"])
    if kwargs.get("no_cache"):
        cli_overrides["use_cache"] = False

    config = _load(kwargs, cli_overrides)

    setup_logging(config.log_level, config.log_format)
    log = get_logger("cli")
    log.info("starting analysis", video=video, model=config.model)

    from yt_fallacy.pipeline import PipelineError, run_analysis
    from yt_fallacy.rendering import render_json, render_markdown, write_output

    try:
        analysis = asyncio.run(run_analysis(video, config))
    except PipelineError as exc:
        exit_code = _classify_error(exc)
        log.error("analysis_failed", error=str(exc), exit_code=exit_code)
        click.echo(f"Error: {exc.user_message}", err=True)
        sys.exit(exit_code)
    except Exception as exc:
        log.error("unexpected_error", error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_GENERAL)

    fmt = config.output_format
    output = render_markdown(analysis) if fmt == "markdown" else render_json(analysis)

    if config.output_path:
        out = _resolve_output_path(config.output_path, analysis.video.video_id, fmt)
        write_output(output, out)
        click.echo(f"Output written to {out}")
    else:
        click.echo(output)


@cli.command()
@click.argument("analysis_id", type=str)
@click.option(
    "--at",
    "at_seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Playback position in seconds; marks the word spoken then.",
)
@_store_option
@_config_option
def show(analysis_id: str, at_seconds: float | None, **kwargs: Any) -> None:
    """Print a stored transcript with fallacies highlighted."""
    from yt_fallacy.store import AnalysisNotFoundError, JsonFileStore, StoreError

    config = _load(kwargs, {"store_dir": kwargs.get("store_dir")})
    store = JsonFileStore(config.store_dir)
    try:
        analysis = store.load(analysis_id)
    except AnalysisNotFoundError:
        click.echo(f"Error: no analysis with id {analysis_id}", err=True)
        sys.exit(EXIT_STORAGE)
    except StoreError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_STORAGE)

    try:
        painted = paint_transcript(analysis, at_seconds)
    except ValueError as exc:
        # FloatRange lets NaN through.
        click.echo(f"Error: invalid playback position: {exc}", err=True)
        sys.exit(EXIT_GENERAL)
    click.echo(painted)


@cli.command(name="list")
@click.option("--limit", type=click.IntRange(min=1), default=20, help="Entries per page.")
@click.option("--offset", type=click.IntRange(min=0), default=0, help="Entries to skip.")
@_store_option
@_config_option
def list_analyses(limit: int, offset: int, **kwargs: Any) -> None:
    """List stored analyses, newest first."""
    from yt_fallacy.store import JsonFileStore

    config = _load(kwargs, {"store_dir": kwargs.get("store_dir")})
    summaries = JsonFileStore(config.store_dir).list(limit=limit, offset=offset)
    if not summaries:
        click.echo("No analyses found.")
        return
    for summary in summaries:
        title = summary.title or summary.video_id
        click.echo(
            f"{summary.id}  {summary.created_at:%Y-%m-%d %H:%M}  "
            f"{summary.fallacy_count:>3} fallacies  {title}"
        )


def paint_transcript(analysis: Analysis, at_seconds: float | None = None) -> str:
    """Render a stored analysis for the terminal.

    Fallacy runs are coloured by severity and the word playing at
    ``at_seconds`` is shown in reverse video.
    """
    from yt_fallacy.cursor import NOT_STARTED, locate
    from yt_fallacy.projector import FallacyRunSegment, project
    from yt_fallacy.rendering import format_seconds, span_time_range

    cursor = NOT_STARTED if at_seconds is None else locate(analysis.words, at_seconds)
    pieces: list[str] = []
    for segment in project(analysis.words, analysis.fallacies, cursor):
        if isinstance(segment, FallacyRunSegment):
            color = _SEVERITY_COLORS[segment.span.severity]
            words = [
                click.style(
                    analysis.words[i].text,
                    fg=color,
                    underline=True,
                    reverse=i == segment.current_index,
                )
                for i in range(segment.first_word_index, segment.last_word_index + 1)
            ]
            pieces.append(" ".join(words))
        else:
            pieces.append(click.style(segment.text, reverse=segment.is_current))

    title = analysis.video.title or analysis.video.video_id
    header = click.style(title, bold=True)
    if cursor != NOT_STARTED and at_seconds is not None:
        header += f"  @ {format_seconds(at_seconds)}"
    lines = [header, "", " ".join(pieces), ""]
    for n, span in enumerate(analysis.fallacies, start=1):
        color = _SEVERITY_COLORS[span.severity]
        label = click.style(f"{span.category} ({span.severity.value})", fg=color, bold=True)
        lines.append(f"{n}. {label} [{span_time_range(span, analysis.words)}]")
        lines.append(f'   "{span.quoted_text}"')
        if span.rationale:
            lines.append(f"   {span.rationale}")
    return "\n".join(lines)


def _resolve_output_path(
    raw: str,
    video_id: str,
    fmt: str,
) -> Path:
    """Resolve the output path, auto-naming when *raw* is a directory.

    Rules:
        - Trailing ``/`` → treat as directory, auto-generate filename.
        - Existing directory → auto-generate filename.
        - Otherwise → use as-is (explicit filename).

    Auto-generated filenames use ``<video_id>.<ext>`` where *ext* is
    ``md`` for markdown and ``json`` for everything else.
    """
    p = Path(raw)
    is_dir = raw.endswith(("/", "\\")) or p.is_dir()
    if is_dir:
        ext = "md" if fmt == "markdown" else "json"
        return p / f"{video_id}.{ext}"
    return p


def _classify_error(exc: Exception) -> int:
    """Map a pipeline failure to an exit code."""
    from yt_fallacy.pipeline import (
        AcquisitionError,
        InvalidRequestError,
        OracleError,
        RateLimitExceededError,
        StorageError,
    )

    if isinstance(exc, AcquisitionError | InvalidRequestError):
        return EXIT_TRANSCRIPT
    if isinstance(exc, OracleError):
        return EXIT_LLM
    if isinstance(exc, StorageError):
        return EXIT_STORAGE
    if isinstance(exc, RateLimitExceededError):
        return EXIT_RATE_LIMITED
    return EXIT_GENERAL
