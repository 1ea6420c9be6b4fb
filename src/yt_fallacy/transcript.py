# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Transcript acquisition: video ids, caption fetching, word timing."""

from __future__ import annotations

import re
import time
import unicodedata
from collections.abc import Sequence
from typing import Protocol

import structlog

from yt_fallacy.config import AppConfig
from yt_fallacy.models import CaptionSegment, TranscriptResult, VideoMetadata, Word

logger = structlog.get_logger()


class TranscriptFetchError(Exception):
    """Raised when a transcript cannot be fetched."""


class NoCaptionsError(TranscriptFetchError):
    """The video exists but has no usable captions."""


class VideoUnavailableError(TranscriptFetchError):
    """The video is private, deleted, region-locked or does not exist."""


class ProviderAuthError(TranscriptFetchError):
    """The caption provider rejected our credentials or throttled us."""


class InvalidVideoError(ValueError):
    """Raised when a string is neither a YouTube URL nor a video id."""


# ---------------------------------------------------------------------------
# Video ids
# ---------------------------------------------------------------------------

_VIDEO_ID_PATTERNS = [
    re.compile(
        r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/|youtube\.com/(?:embed|shorts)/)"
        r"([a-zA-Z0-9_-]{11})"
    ),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),
]


def parse_video_id(video: str) -> str:
    """Extract the 11-character video id from a YouTube URL or bare id.

    Raises:
        InvalidVideoError: If no video id can be found.
    """
    candidate = video.strip()
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(candidate)
        if match:
            return match.group(1)
    raise InvalidVideoError(f"Not a YouTube URL or video id: {video!r}")


def canonical_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


# ---------------------------------------------------------------------------
# Caption segments → words
# ---------------------------------------------------------------------------


def _normalize_text(text: str) -> str:
    """Normalize a text string: Unicode NFC, collapse whitespace, strip."""
    text = unicodedata.normalize("NFC", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def words_from_segments(segments: Sequence[CaptionSegment]) -> list[Word]:
    """Split caption segments into words with evenly distributed timings.

    Caption sources only time whole segments, so each word gets an equal
    share of its segment's duration. Auto-generated captions often overlap
    the following segment; a segment's window is cut at the next segment's
    start so that word start times never go backwards.

    Args:
        segments: Caption segments in any order.

    Returns:
        Words ordered by start time. Empty segments produce no words.
    """
    ordered = sorted(segments, key=lambda s: s.start)
    words: list[Word] = []
    for i, seg in enumerate(ordered):
        tokens = _normalize_text(seg.text).split(" ")
        tokens = [t for t in tokens if t]
        if not tokens:
            continue
        end = seg.start + max(seg.duration, 0.0)
        if i + 1 < len(ordered) and ordered[i + 1].start < end:
            end = ordered[i + 1].start
        share = (end - seg.start) / len(tokens)
        for j, token in enumerate(tokens):
            word_start = seg.start + j * share
            words.append(Word(text=token, start_time=word_start, end_time=word_start + share))
    return words


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class TranscriptProvider(Protocol):
    """Anything that can turn a video id into a timed transcript."""

    def fetch(self, video_id: str) -> TranscriptResult: ...


_AUTH_MARKERS = ("401", "403", "api key", "unauthorized", "forbidden", "429", "too many requests")
_UNAVAILABLE_MARKERS = (
    "404",
    "not found",
    "unavailable",
    "private",
    "deleted",
    "removed",
    "region",
    "age-restricted",
)


def _classify_fetch_errors(video_id: str, errors: Sequence[str]) -> TranscriptFetchError:
    """Map provider error strings to a distinct failure class."""
    joined = "; ".join(errors)
    lower = joined.lower()
    if any(marker in lower for marker in _AUTH_MARKERS):
        return ProviderAuthError(f"Caption provider refused the request for {video_id}: {joined}")
    if any(marker in lower for marker in _UNAVAILABLE_MARKERS):
        return VideoUnavailableError(f"Video {video_id} is unavailable: {joined}")
    if "caption" in lower or "transcript" in lower or "subtitle" in lower:
        return NoCaptionsError(f"No captions available for {video_id}: {joined}")
    return TranscriptFetchError(f"Failed to fetch transcript for {video_id}: {joined}")


def _build_video_metadata(result: object, video_id: str) -> VideoMetadata:
    """Build VideoMetadata from a yt-fetch FetchResult, filling known defaults."""
    meta = getattr(result, "metadata", None)
    duration = getattr(meta, "duration_seconds", None)
    return VideoMetadata(
        video_id=video_id,
        url=canonical_url(video_id),
        title=getattr(meta, "title", None),
        channel_name=getattr(meta, "channel_title", None),
        thumbnail_url=getattr(meta, "thumbnail_url", None) or thumbnail_url(video_id),
        duration_seconds=int(duration) if duration is not None else None,
    )


class YtFetchProvider:
    """Transcript provider backed by ``yt_fetch.fetch_video``.

    Args:
        config: Application configuration (caption languages).
        retry_delay: Seconds to wait before the single retry of a
            transient "no transcript" result.
    """

    max_fetch_attempts = 2

    def __init__(self, config: AppConfig, retry_delay: float = 5.0) -> None:
        self._config = config
        self._retry_delay = retry_delay

    def fetch(self, video_id: str) -> TranscriptResult:
        """Fetch captions and metadata for ``video_id``.

        Raises:
            ProviderAuthError: Credentials rejected or rate limited.
            VideoUnavailableError: The video cannot be accessed.
            NoCaptionsError: The video has no captions.
            TranscriptFetchError: Any other provider failure.
        """
        try:
            from yt_fetch import FetchOptions, fetch_video
        except ImportError as exc:
            raise TranscriptFetchError(
                "yt-fetch is not installed. Install with: pip install yt-fetch"
            ) from exc

        opts = FetchOptions(
            languages=self._config.languages,
            allow_generated=True,
            download="none",
            force_transcript=True,
            force_metadata=True,
        )

        for attempt in range(1, self.max_fetch_attempts + 1):
            result = fetch_video(video_id, opts)

            # Explicit provider errors are final.
            if not result.success and result.errors:
                raise _classify_fetch_errors(video_id, result.errors)

            if result.transcript is not None:
                break

            if attempt < self.max_fetch_attempts:
                logger.warning(
                    "transcript_fetch_retry",
                    video_id=video_id,
                    attempt=attempt,
                    retry_in_seconds=self._retry_delay,
                    reason="no transcript returned, may be a transient YouTube block",
                )
                time.sleep(self._retry_delay)
                continue

            if not result.success:
                raise TranscriptFetchError(
                    f"Failed to fetch transcript for {video_id}: unknown error"
                )
            raise NoCaptionsError(f"No captions available for {video_id}")

        segments = [
            CaptionSegment(text=seg.text, start=seg.start, duration=seg.duration)
            for seg in result.transcript.segments
        ]
        words = words_from_segments(segments)
        if not words:
            raise NoCaptionsError(f"Captions for {video_id} contain no words")

        logger.info(
            "transcript_fetched",
            video_id=video_id,
            segment_count=len(segments),
            word_count=len(words),
            language=result.transcript.language,
        )

        return TranscriptResult(
            text=" ".join(w.text for w in words),
            words=words,
            language=result.transcript.language,
            metadata=_build_video_metadata(result, video_id),
        )
