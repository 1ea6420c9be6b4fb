# Copyright (c) 2026 Pointmatic
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0

"""Pipeline orchestration: wires the services into the full analysis flow."""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime

import structlog
from gentlify import Throttle

from yt_fallacy import __version__
from yt_fallacy.config import AppConfig
from yt_fallacy.detection import detect_fallacies
from yt_fallacy.models import Analysis, VideoMetadata
from yt_fallacy.prompts import hash_prompts
from yt_fallacy.prompts.detection import DETECTION_INSTRUCTIONS, DETECTION_SYSTEM_PROMPT
from yt_fallacy.ratelimit import RequestRateLimiter
from yt_fallacy.reconcile import reconcile_spans
from yt_fallacy.store import AnalysisStore, JsonFileStore
from yt_fallacy.timeline import EmptyTranscriptError, WordTimeline
from yt_fallacy.transcript import (
    InvalidVideoError,
    NoCaptionsError,
    ProviderAuthError,
    TranscriptProvider,
    VideoUnavailableError,
    YtFetchProvider,
    canonical_url,
    parse_video_id,
)

logger = structlog.get_logger()


class PipelineError(Exception):
    """Raised when an analysis request fails.

    ``user_message`` is safe to show to end users; the internal cause is
    chained and logged, never shown.
    """

    user_message = "Something went wrong while analyzing this video. Please try again."
    retryable = True

    def __init__(self, message: str, user_message: str | None = None) -> None:
        super().__init__(message)
        if user_message is not None:
            self.user_message = user_message


class InvalidRequestError(PipelineError):
    """The request itself is unusable (e.g. not a YouTube URL)."""

    user_message = "Please provide a valid YouTube URL or video id."
    retryable = False


class AcquisitionError(PipelineError):
    """The transcript or video metadata could not be obtained."""

    user_message = "Could not fetch the transcript for this video. Please try again."


class OracleError(PipelineError):
    """The fallacy classification call failed or returned unusable content."""

    user_message = "Failed to analyze the speech. Please try again."


class StorageError(PipelineError):
    """The finished analysis could not be saved."""

    user_message = "The analysis finished but could not be saved. Please try again."


class RateLimitExceededError(PipelineError):
    """The client has used up its request budget."""

    user_message = "Rate limit exceeded. Please try again later."

    def __init__(self, message: str, retry_after: float) -> None:
        super().__init__(message)
        self.retry_after = retry_after


def _acquisition_message(exc: Exception) -> str:
    if isinstance(exc, (NoCaptionsError, EmptyTranscriptError)):
        return "No captions are available for this video."
    if isinstance(exc, VideoUnavailableError):
        return "This video is unavailable. It may be private, deleted, or region-restricted."
    if isinstance(exc, ProviderAuthError):
        return "The transcript service is temporarily unavailable. Please try again later."
    return AcquisitionError.user_message


def prompt_version() -> str:
    return hash_prompts(DETECTION_SYSTEM_PROMPT, DETECTION_INSTRUCTIONS)


async def run_analysis(
    video: str,
    config: AppConfig,
    *,
    provider: TranscriptProvider | None = None,
    store: AnalysisStore | None = None,
    rate_limiter: RequestRateLimiter | None = None,
    client_key: str = "local",
    throttle: Throttle | None = None,
) -> Analysis:
    """Run the full analysis for one video.

    Steps:
        1. Check the client's rate limit.
        2. Resolve the video id.
        3. Return a stored analysis of the same video, if caching is on.
        4. Fetch the transcript and build the word timeline.
        5. Ask the oracle for fallacy spans over the indexed transcript.
        6. Reconcile the spans against the timeline.
        7. Persist and return the analysis.

    Nothing is stored unless every step succeeds.

    Args:
        video: YouTube URL or video id.
        config: Application configuration.
        provider: Transcript provider (default: yt-fetch).
        store: Analysis store (default: JSON files under ``config.store_dir``).
        rate_limiter: Optional per-client limiter.
        client_key: Key the limiter counts against.
        throttle: Optional shared throttle for LLM calls.

    Returns:
        The stored ``Analysis``.

    Raises:
        PipelineError: One of its subclasses, carrying a ``user_message``.
    """
    started = time.monotonic()

    # 1. Rate limit
    if rate_limiter is not None:
        decision = rate_limiter.check(client_key)
        if not decision.allowed:
            raise RateLimitExceededError(
                f"Rate limit exceeded for {client_key}", retry_after=decision.retry_after
            )

    # 2. Resolve video id
    try:
        video_id = parse_video_id(video)
    except InvalidVideoError as exc:
        raise InvalidRequestError(str(exc)) from exc

    provider = provider or YtFetchProvider(config)
    store = store or JsonFileStore(config.store_dir)
    log = logger.bind(video_id=video_id)
    log.info("analysis_started")

    # 3. Cached analysis
    if config.use_cache:
        try:
            cached = store.find_by_video_id(video_id)
        except Exception as exc:
            log.warning("cache_lookup_failed", error=str(exc))
            cached = None
        if cached is not None:
            log.info("analysis_cache_hit", analysis_id=cached.id)
            return cached

    # 4. Transcript
    try:
        transcript = provider.fetch(video_id)
        timeline = WordTimeline.from_transcript(transcript)
    except Exception as exc:
        log.error("acquisition_failed", error=str(exc), error_type=type(exc).__name__)
        raise AcquisitionError(
            f"Failed to fetch transcript for {video_id}: {exc}",
            user_message=_acquisition_message(exc),
        ) from exc
    title = transcript.metadata.title if transcript.metadata else None
    log.info("timeline_ready", word_count=len(timeline), duration=timeline.duration)

    # 5. Oracle
    throttle = throttle or Throttle(
        max_concurrency=config.max_concurrent_requests,
        total_tasks=1,
    )
    try:
        raw_spans = await detect_fallacies(timeline, config, title=title, throttle=throttle)
    except Exception as exc:
        log.error("oracle_failed", error=str(exc), error_type=type(exc).__name__)
        raise OracleError(f"Fallacy detection failed for {video_id}: {exc}") from exc

    # 6. Reconcile (never fails on data)
    report = reconcile_spans(raw_spans, timeline)
    log.info(
        "spans_reconciled",
        raw=len(raw_spans),
        kept=len(report.spans),
        discarded=len(report.discarded),
        clamped=report.clamped,
        merged=report.merged,
        quote_mismatches=report.quote_mismatches,
    )

    # 7. Persist
    metadata = transcript.metadata
    if metadata is None:
        metadata = VideoMetadata(video_id=video_id, url=canonical_url(video_id))

    analysis = Analysis(
        id=uuid.uuid4().hex,
        video=metadata,
        transcript_text=transcript.text,
        language=transcript.language,
        words=list(timeline),
        fallacies=report.spans,
        model_id=config.model,
        prompt_hash=prompt_version(),
        created_at=datetime.now(tz=UTC),
        processing_time_ms=int((time.monotonic() - started) * 1000),
        yt_fallacy_version=__version__,
    )

    try:
        store.save(analysis)
    except Exception as exc:
        log.error("store_failed", error=str(exc))
        raise StorageError(f"Failed to save analysis for {video_id}: {exc}") from exc

    log.info(
        "analysis_complete",
        analysis_id=analysis.id,
        fallacy_count=analysis.fallacy_count,
        processing_time_ms=analysis.processing_time_ms,
    )
    return analysis
