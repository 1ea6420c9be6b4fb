# Copyright (c) 2026 Pointmatic
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0

"""Tests for yt_fallacy.transcript."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from yt_fallacy.config import AppConfig
from yt_fallacy.models import CaptionSegment
from yt_fallacy.transcript import (
    InvalidVideoError,
    NoCaptionsError,
    ProviderAuthError,
    TranscriptFetchError,
    VideoUnavailableError,
    YtFetchProvider,
    _classify_fetch_errors,
    _normalize_text,
    canonical_url,
    parse_video_id,
    thumbnail_url,
    words_from_segments,
)


def _mock_yt_fetch(
    segments: list[tuple[str, float, float]] | None,
    *,
    success: bool = True,
    errors: list[str] | None = None,
    metadata: object = None,
    language: str = "en",
) -> MagicMock:
    if segments is None:
        transcript = None
    else:
        transcript = MagicMock()
        transcript.segments = [
            SimpleNamespace(text=text, start=start, duration=duration)
            for text, start, duration in segments
        ]
        transcript.language = language

    result = MagicMock()
    result.success = success
    result.transcript = transcript
    result.errors = errors or []
    result.metadata = metadata

    module = MagicMock()
    module.fetch_video.return_value = result
    module.FetchOptions = MagicMock()
    return module


class TestNormalizeText:
    def test_strips_whitespace(self) -> None:
        assert _normalize_text("  hello  ") == "hello"

    def test_collapses_internal_whitespace(self) -> None:
        assert _normalize_text("hello   \n  world") == "hello world"

    def test_unicode_normalization(self) -> None:
        assert _normalize_text("café") == "café"


class TestParseVideoId:
    @pytest.mark.parametrize(
        "video",
        [
            "dQw4w9WgXcQ",
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ&t=10s",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ?t=42",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://youtube.com/shorts/dQw4w9WgXcQ",
            "  dQw4w9WgXcQ  ",
        ],
    )
    def test_accepted(self, video: str) -> None:
        assert parse_video_id(video) == "dQw4w9WgXcQ"

    @pytest.mark.parametrize(
        "video",
        ["", "not a url", "https://vimeo.com/12345", "short", "https://www.youtube.com/"],
    )
    def test_rejected(self, video: str) -> None:
        with pytest.raises(InvalidVideoError):
            parse_video_id(video)

    def test_urls(self) -> None:
        assert canonical_url("abc") == "https://www.youtube.com/watch?v=abc"
        assert thumbnail_url("abc") == "https://img.youtube.com/vi/abc/maxresdefault.jpg"


class TestWordsFromSegments:
    def test_even_split(self) -> None:
        words = words_from_segments([CaptionSegment(text="one two", start=1.0, duration=2.0)])
        assert [w.text for w in words] == ["one", "two"]
        assert words[0].start_time == 1.0
        assert words[0].end_time == 2.0
        assert words[1].start_time == 2.0
        assert words[1].end_time == 3.0

    def test_overlapping_segment_is_cut(self) -> None:
        segments = [
            CaptionSegment(text="a b", start=0.0, duration=4.0),
            CaptionSegment(text="c", start=2.0, duration=1.0),
        ]
        words = words_from_segments(segments)
        assert [w.start_time for w in words] == [0.0, 1.0, 2.0]
        assert words[1].end_time == 2.0

    def test_unsorted_segments_sorted(self) -> None:
        segments = [
            CaptionSegment(text="later", start=5.0, duration=1.0),
            CaptionSegment(text="first", start=0.0, duration=1.0),
        ]
        assert [w.text for w in words_from_segments(segments)] == ["first", "later"]

    def test_blank_segments_skipped(self) -> None:
        segments = [
            CaptionSegment(text="   ", start=0.0, duration=1.0),
            CaptionSegment(text="hi", start=1.0, duration=1.0),
        ]
        assert [w.text for w in words_from_segments(segments)] == ["hi"]

    def test_start_times_never_decrease(self) -> None:
        segments = [
            CaptionSegment(text="a b c d", start=0.0, duration=10.0),
            CaptionSegment(text="e f", start=1.0, duration=3.0),
            CaptionSegment(text="g", start=1.5, duration=1.0),
        ]
        starts = [w.start_time for w in words_from_segments(segments)]
        assert starts == sorted(starts)

    def test_empty(self) -> None:
        assert words_from_segments([]) == []


class TestClassifyFetchErrors:
    def test_auth(self) -> None:
        assert isinstance(_classify_fetch_errors("v", ["HTTP 403 Forbidden"]), ProviderAuthError)

    def test_throttled(self) -> None:
        assert isinstance(_classify_fetch_errors("v", ["429 Too Many Requests"]), ProviderAuthError)

    def test_unavailable(self) -> None:
        exc = _classify_fetch_errors("v", ["Video unavailable: private video"])
        assert isinstance(exc, VideoUnavailableError)

    def test_no_captions(self) -> None:
        exc = _classify_fetch_errors("v", ["Subtitles are disabled: no captions"])
        assert isinstance(exc, NoCaptionsError)

    def test_other(self) -> None:
        exc = _classify_fetch_errors("v", ["connection reset"])
        assert type(exc) is TranscriptFetchError
        assert "connection reset" in str(exc)


class TestYtFetchProvider:
    def test_successful_fetch(self) -> None:
        module = _mock_yt_fetch([("Hello world", 0.0, 2.0), ("again", 2.0, 1.0)])
        with patch.dict("sys.modules", {"yt_fetch": module}):
            result = YtFetchProvider(AppConfig()).fetch("dQw4w9WgXcQ")
        assert [w.text for w in result.words] == ["Hello", "world", "again"]
        assert result.text == "Hello world again"
        assert result.language == "en"
        assert result.metadata is not None
        assert result.metadata.url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert result.metadata.thumbnail_url == thumbnail_url("dQw4w9WgXcQ")
        assert result.metadata.title is None

    def test_metadata_passthrough(self) -> None:
        metadata = SimpleNamespace(
            title="Debate Night",
            channel_title="News Channel",
            duration_seconds=120.0,
            thumbnail_url="https://example.com/thumb.jpg",
        )
        module = _mock_yt_fetch([("Hi", 0.0, 1.0)], metadata=metadata)
        with patch.dict("sys.modules", {"yt_fetch": module}):
            result = YtFetchProvider(AppConfig()).fetch("dQw4w9WgXcQ")
        assert result.metadata is not None
        assert result.metadata.title == "Debate Night"
        assert result.metadata.channel_name == "News Channel"
        assert result.metadata.duration_seconds == 120
        assert result.metadata.thumbnail_url == "https://example.com/thumb.jpg"

    def test_configurable_languages(self) -> None:
        module = _mock_yt_fetch([("Bonjour", 0.0, 1.0)], language="fr")
        with patch.dict("sys.modules", {"yt_fetch": module}):
            result = YtFetchProvider(AppConfig(languages=["fr"])).fetch("dQw4w9WgXcQ")
        assert result.language == "fr"
        assert module.FetchOptions.call_args.kwargs["languages"] == ["fr"]

    def test_provider_error_classified(self) -> None:
        module = _mock_yt_fetch(None, success=False, errors=["Video not found"])
        with patch.dict("sys.modules", {"yt_fetch": module}):
            with pytest.raises(VideoUnavailableError, match="Video not found"):
                YtFetchProvider(AppConfig()).fetch("dQw4w9WgXcQ")
        assert module.fetch_video.call_count == 1

    def test_missing_transcript_retried_once(self) -> None:
        module = _mock_yt_fetch(None)
        with patch.dict("sys.modules", {"yt_fetch": module}):
            with pytest.raises(NoCaptionsError):
                YtFetchProvider(AppConfig(), retry_delay=0).fetch("dQw4w9WgXcQ")
        assert module.fetch_video.call_count == 2

    def test_blank_captions_raise(self) -> None:
        module = _mock_yt_fetch([("   ", 0.0, 1.0)])
        with patch.dict("sys.modules", {"yt_fetch": module}):
            with pytest.raises(NoCaptionsError):
                YtFetchProvider(AppConfig()).fetch("dQw4w9WgXcQ")
