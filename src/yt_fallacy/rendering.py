# Copyright (c) 2026 Pointmatic
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0

"""JSON and Markdown output rendering."""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

import structlog

from yt_fallacy.cursor import NOT_STARTED, locate
from yt_fallacy.models import Analysis, FallacySpan, Word
from yt_fallacy.projector import FallacyRunSegment, project

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------


def render_json(analysis: Analysis, *, indent: int = 2) -> str:
    """Serialize an Analysis to a JSON string.

    Args:
        analysis: The analysis to serialize.
        indent: JSON indentation level.

    Returns:
        JSON string representation.
    """
    return analysis.model_dump_json(indent=indent)


# ---------------------------------------------------------------------------
# Markdown rendering
# ---------------------------------------------------------------------------


def format_seconds(seconds: float) -> str:
    """Format seconds as H:MM:SS or M:SS."""
    total_seconds = int(seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def span_time_range(span: FallacySpan, words: Sequence[Word]) -> str:
    start = words[span.start_index].start_time
    end = words[span.end_index].end_time
    return f"{format_seconds(start)}–{format_seconds(end)}"


def _render_video_info(analysis: Analysis) -> str:
    """Render the Video Info section."""
    video = analysis.video
    lines = ["## Video Info", ""]
    lines.append(f"- **Video ID:** {video.video_id}")
    if video.title:
        lines.append(f"- **Title:** {video.title}")
    if video.channel_name:
        lines.append(f"- **Channel:** {video.channel_name}")
    lines.append(f"- **URL:** {video.url}")
    if analysis.language:
        lines.append(f"- **Language:** {analysis.language}")
    lines.append(f"- **Model:** {analysis.model_id}")
    lines.append(f"- **Analyzed:** {analysis.created_at.isoformat()}")
    return "\n".join(lines)


def _render_fallacy_summary(analysis: Analysis) -> str:
    """Render the numbered list of detected fallacies."""
    count = analysis.fallacy_count
    noun = "fallacy" if count == 1 else "fallacies"
    lines = ["## Fallacies", "", f"{count} {noun} detected.", ""]
    for n, span in enumerate(analysis.fallacies, start=1):
        lines.append(f"### {n}. {span.category} ({span.severity.value})")
        lines.append("")
        lines.append(f'> "{span.quoted_text}"')
        lines.append("")
        lines.append(f"*[{span_time_range(span, analysis.words)}]*")
        lines.append("")
        if span.rationale:
            lines.append(span.rationale)
            lines.append("")
    return "\n".join(lines)


def _mark(text: str, current: bool) -> str:
    return f"<mark>{text}</mark>" if current else text


def _render_run(segment: FallacyRunSegment, words: Sequence[Word], footnote: int) -> str:
    parts = [
        _mark(words[i].text, i == segment.current_index)
        for i in range(segment.first_word_index, segment.last_word_index + 1)
    ]
    return f"**{' '.join(parts)}**[^{footnote}]"


def _render_transcript(analysis: Analysis, cursor_index: int) -> str:
    """Render the transcript with fallacy runs in bold and footnoted."""
    footnotes = {id(span): n for n, span in enumerate(analysis.fallacies, start=1)}
    pieces: list[str] = []
    for segment in project(analysis.words, analysis.fallacies, cursor_index):
        if isinstance(segment, FallacyRunSegment):
            pieces.append(_render_run(segment, analysis.words, footnotes[id(segment.span)]))
        else:
            pieces.append(_mark(segment.text, segment.is_current))

    lines = ["## Transcript", "", " ".join(pieces), ""]
    for n, span in enumerate(analysis.fallacies, start=1):
        lines.append(f"[^{n}]: **{span.category}** ({span.severity.value}): {span.rationale}")
    return "\n".join(lines)


def render_markdown(analysis: Analysis, current_time: float | None = None) -> str:
    """Render an Analysis as a human-readable Markdown report.

    Sections:
        - Video Info
        - Fallacies
        - Transcript (fallacy runs in bold, footnoted with their rationale;
          the word playing at ``current_time`` wrapped in ``<mark>``)

    Args:
        analysis: The analysis to render.
        current_time: Optional playback position in seconds.

    Returns:
        Markdown string.
    """
    cursor_index = NOT_STARTED if current_time is None else locate(analysis.words, current_time)
    title = analysis.video.title or analysis.video.video_id

    sections = [
        f"# yt-fallacy Report: {title}",
        "",
        _render_video_info(analysis),
        "",
        _render_fallacy_summary(analysis),
        _render_transcript(analysis, cursor_index),
    ]

    content = "\n".join(s for s in sections if s)
    if not content.endswith("\n"):
        content += "\n"
    return content


# ---------------------------------------------------------------------------
# Atomic file writing
# ---------------------------------------------------------------------------


def write_output(content: str, output_path: Path) -> None:
    """Write content to a file atomically.

    Writes to a temporary file in the same directory, then renames
    to the target path. This ensures the output file is never in a
    partial state.

    Args:
        content: String content to write.
        output_path: Destination file path.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        dir=output_path.parent,
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, output_path)
        logger.debug("output_written", path=str(output_path))
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
