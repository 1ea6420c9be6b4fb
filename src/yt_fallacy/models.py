# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pydantic data models for yt-fallacy."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from yt_fallacy.timeline import WordTimeline

# ---------------------------------------------------------------------------
# Core Enums
# ---------------------------------------------------------------------------


class Severity(StrEnum):
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"


# ---------------------------------------------------------------------------
# Transcript Models
# ---------------------------------------------------------------------------


class Word(BaseModel):
    """A single spoken token with its playback window in seconds."""

    model_config = ConfigDict(frozen=True)

    text: str
    start_time: float = Field(ge=0.0)
    end_time: float = Field(ge=0.0, allow_inf_nan=False)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> Word:
        if self.end_time < self.start_time:
            msg = f"end_time {self.end_time} is before start_time {self.start_time}"
            raise ValueError(msg)
        return self


class CaptionSegment(BaseModel):
    """A timed caption chunk as delivered by the caption source."""

    text: str
    start: float = Field(ge=0.0)
    duration: float


class VideoMetadata(BaseModel):
    """Video metadata returned alongside the transcript."""

    video_id: str
    url: str
    title: str | None = None
    channel_name: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: int | None = None


class TranscriptResult(BaseModel):
    """Transcript as returned by a transcript provider."""

    text: str
    words: list[Word]
    language: str | None = None
    metadata: VideoMetadata | None = None


# ---------------------------------------------------------------------------
# Fallacy Models
# ---------------------------------------------------------------------------


class RawFallacySpan(BaseModel):
    """A fallacy span exactly as the oracle returned it.

    Indices are left untyped: the oracle may send strings, floats, nulls or
    values outside the timeline. The reconciler decides what survives.
    """

    category: str = ""
    quoted_text: str = ""
    start_index: Any = None
    end_index: Any = None
    rationale: str = ""
    severity: str = Severity.MODERATE.value


class FallacySpan(BaseModel):
    """A reconciled fallacy span, guaranteed to lie inside its timeline."""

    category: str
    quoted_text: str
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    rationale: str
    severity: Severity

    @model_validator(mode="after")
    def _ordered_indices(self) -> FallacySpan:
        if self.start_index > self.end_index:
            msg = f"start_index {self.start_index} is after end_index {self.end_index}"
            raise ValueError(msg)
        return self

    def covers(self, index: int) -> bool:
        return self.start_index <= index <= self.end_index


class ReconciliationReport(BaseModel):
    """Outcome of reconciling raw oracle spans against a timeline."""

    spans: list[FallacySpan]
    discarded: list[RawFallacySpan] = Field(default_factory=list)
    clamped: int = 0
    merged: int = 0
    quote_mismatches: int = 0


# ---------------------------------------------------------------------------
# Output Models
# ---------------------------------------------------------------------------


class Analysis(BaseModel):
    """A stored analysis: one video, its word timeline and reconciled spans.

    ``fallacies`` is kept in precedence order; the first span covering a
    word wins when categories overlap.
    """

    id: str
    video: VideoMetadata
    transcript_text: str
    language: str | None = None
    words: list[Word]
    fallacies: list[FallacySpan] = Field(default_factory=list)
    model_id: str
    prompt_hash: str | None = None
    created_at: datetime
    processing_time_ms: int = Field(default=0, ge=0)
    yt_fallacy_version: str

    @property
    def fallacy_count(self) -> int:
        return len(self.fallacies)

    def timeline(self) -> WordTimeline:
        """Rebuild the immutable word timeline for this analysis."""
        from yt_fallacy.timeline import WordTimeline

        return WordTimeline(self.words)


class AnalysisSummary(BaseModel):
    """A lightweight listing entry for a stored analysis."""

    id: str
    video_id: str
    title: str | None = None
    fallacy_count: int
    created_at: datetime
