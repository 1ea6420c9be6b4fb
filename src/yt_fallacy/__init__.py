# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""yt-fallacy: Flag logical fallacies in YouTube transcripts, synced to playback.

Library API
-----------

Async usage::

    from yt_fallacy import analyze, AppConfig

    analysis = await analyze("https://youtu.be/dQw4w9WgXcQ")

Sync usage::

    from yt_fallacy import analyze_sync

    analysis = analyze_sync("dQw4w9WgXcQ")

Playback sync::

    from yt_fallacy import CursorMapper, project, activate

    mapper = CursorMapper(analysis.words)
    segments = project(analysis.words, analysis.fallacies, mapper.locate(12.5))
    for segment in segments:
        ...  # paint; on click: activate(segment, player.seek)
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

__version__ = "0.1.0"


# Re-exports for public API
from yt_fallacy.config import AppConfig as AppConfig
from yt_fallacy.cursor import CursorMapper as CursorMapper
from yt_fallacy.cursor import locate as locate
from yt_fallacy.hover import TooltipController as TooltipController
from yt_fallacy.indexer import index_transcript as index_transcript
from yt_fallacy.models import Analysis as Analysis
from yt_fallacy.models import FallacySpan as FallacySpan
from yt_fallacy.models import RawFallacySpan as RawFallacySpan
from yt_fallacy.models import Word as Word
from yt_fallacy.pipeline import PipelineError as PipelineError
from yt_fallacy.pipeline import run_analysis
from yt_fallacy.projector import FallacyRunSegment as FallacyRunSegment
from yt_fallacy.projector import WordSegment as WordSegment
from yt_fallacy.projector import activate as activate
from yt_fallacy.projector import project as project
from yt_fallacy.reconcile import reconcile_spans as reconcile_spans
from yt_fallacy.rendering import render_json as render_json
from yt_fallacy.rendering import render_markdown as render_markdown
from yt_fallacy.timeline import EmptyTranscriptError as EmptyTranscriptError
from yt_fallacy.timeline import WordTimeline as WordTimeline

if TYPE_CHECKING:
    from yt_fallacy.ratelimit import RequestRateLimiter
    from yt_fallacy.store import AnalysisStore
    from yt_fallacy.transcript import TranscriptProvider


async def analyze(
    video: str,
    config: AppConfig | None = None,
    *,
    store: AnalysisStore | None = None,
    provider: TranscriptProvider | None = None,
    rate_limiter: RequestRateLimiter | None = None,
    client_key: str = "local",
) -> Analysis:
    """Analyze a YouTube video for logical fallacies.

    This is the primary library API entry point. It wraps
    ``run_analysis()`` with sensible defaults.

    Args:
        video: YouTube URL or video id.
        config: Optional ``AppConfig``. If not provided, loads
            configuration from environment variables and defaults.
        store: Optional analysis store (default: JSON files).
        provider: Optional transcript provider (default: yt-fetch).
        rate_limiter: Optional per-client limiter.
        client_key: Key the limiter counts against.

    Returns:
        The stored ``Analysis`` with its word timeline and reconciled
        fallacy spans.

    Raises:
        PipelineError: If the request fails; ``exc.user_message`` is safe
            to show.
    """
    if config is None:
        from yt_fallacy.config import load_config

        config = load_config()

    return await run_analysis(
        video,
        config,
        provider=provider,
        store=store,
        rate_limiter=rate_limiter,
        client_key=client_key,
    )


def analyze_sync(
    video: str,
    config: AppConfig | None = None,
    **kwargs: object,
) -> Analysis:
    """Synchronous wrapper for :func:`analyze`.

    Args:
        video: YouTube URL or video id.
        config: Optional ``AppConfig``.
        **kwargs: Passed through to :func:`analyze`.

    Returns:
        An ``Analysis``.
    """
    return asyncio.run(analyze(video, config, **kwargs))  # type: ignore[arg-type]
