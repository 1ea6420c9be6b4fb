# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for yt_fallacy.projector."""

from __future__ import annotations

import pytest

from yt_fallacy.models import FallacySpan, Severity, Word
from yt_fallacy.projector import (
    FallacyRunSegment,
    WordSegment,
    activate,
    project,
    seek_time,
)


def _words(count: int) -> list[Word]:
    return [
        Word(text=f"w{i}", start_time=i * 0.5, end_time=i * 0.5 + 0.4) for i in range(count)
    ]


def _span(start: int, end: int, category: str = "Strawman") -> FallacySpan:
    return FallacySpan(
        category=category,
        quoted_text="",
        start_index=start,
        end_index=end,
        rationale=f"{category} rationale",
        severity=Severity.MODERATE,
    )


def _covered(segments: list[WordSegment | FallacyRunSegment]) -> list[int]:
    indices: list[int] = []
    for seg in segments:
        if isinstance(seg, FallacyRunSegment):
            indices.extend(range(seg.first_word_index, seg.last_word_index + 1))
        else:
            indices.append(seg.index)
    return indices


class TestProjectWithoutSpans:
    def test_one_segment_per_word(self) -> None:
        segments = list(project(_words(6), []))
        assert len(segments) == 6
        assert all(isinstance(s, WordSegment) for s in segments)
        assert [s.index for s in segments] == list(range(6))  # type: ignore[union-attr]

    def test_no_current_before_playback(self) -> None:
        segments = list(project(_words(3), [], -1))
        assert not any(s.is_current for s in segments)

    def test_current_word_flagged(self) -> None:
        segments = list(project(_words(3), [], 1))
        assert [s.is_current for s in segments] == [False, True, False]

    def test_empty_timeline(self) -> None:
        assert list(project([], [], -1)) == []


class TestProjectRuns:
    def test_single_span(self) -> None:
        words = _words(6)
        segments = list(project(words, [_span(1, 3)]))
        assert [type(s).__name__ for s in segments] == [
            "WordSegment",
            "FallacyRunSegment",
            "WordSegment",
            "WordSegment",
        ]
        run = segments[1]
        assert isinstance(run, FallacyRunSegment)
        assert run.text == "w1 w2 w3"
        assert run.word_count == 3
        assert run.start_time == words[1].start_time
        assert run.category == "Strawman"

    def test_every_index_covered_once(self) -> None:
        spans = [_span(0, 2), _span(2, 5, "Ad Hominem"), _span(8, 9, "Red Herring")]
        segments = list(project(_words(12), spans))
        assert _covered(segments) == list(range(12))

    def test_cursor_inside_run(self) -> None:
        segments = list(project(_words(6), [_span(1, 3)], 2))
        run = segments[1]
        assert isinstance(run, FallacyRunSegment)
        assert run.is_current
        assert run.current_index == 2
        assert not any(s.is_current for s in segments if s is not run)

    def test_cursor_outside_run(self) -> None:
        segments = list(project(_words(6), [_span(1, 3)], 5))
        run = segments[1]
        assert isinstance(run, FallacyRunSegment)
        assert run.current_index is None
        assert segments[-1].is_current

    def test_same_category_neighbours_collapse(self) -> None:
        spans = [_span(0, 2), _span(3, 5)]
        segments = list(project(_words(6), spans))
        assert len(segments) == 1
        run = segments[0]
        assert isinstance(run, FallacyRunSegment)
        assert (run.first_word_index, run.last_word_index) == (0, 5)
        assert run.span is spans[0]

    def test_different_category_neighbours_stay_apart(self) -> None:
        spans = [_span(0, 2), _span(3, 5, "Slippery Slope")]
        segments = list(project(_words(6), spans))
        categories = [s.category for s in segments]  # type: ignore[union-attr]
        assert categories == ["Strawman", "Slippery Slope"]


class TestOverlapPrecedence:
    def test_earlier_span_wins_overlap(self) -> None:
        strawman = _span(0, 4)
        ad_hominem = _span(2, 6, "Ad Hominem")
        segments = list(project(_words(8), [strawman, ad_hominem]))
        runs = [s for s in segments if isinstance(s, FallacyRunSegment)]
        assert [(r.span, r.first_word_index, r.last_word_index) for r in runs] == [
            (strawman, 0, 4),
            (ad_hominem, 5, 6),
        ]

    def test_order_of_list_decides(self) -> None:
        strawman = _span(0, 4)
        ad_hominem = _span(2, 6, "Ad Hominem")
        segments = list(project(_words(8), [ad_hominem, strawman]))
        runs = [s for s in segments if isinstance(s, FallacyRunSegment)]
        assert [(r.span, r.first_word_index, r.last_word_index) for r in runs] == [
            (strawman, 0, 1),
            (ad_hominem, 2, 6),
        ]

    def test_nested_span_splits_outer_run(self) -> None:
        outer = _span(0, 9)
        inner = _span(3, 4, "Red Herring")
        segments = list(project(_words(10), [inner, outer]))
        assert [(s.category, s.first_word_index) for s in segments] == [  # type: ignore[union-attr]
            ("Strawman", 0),
            ("Red Herring", 3),
            ("Strawman", 5),
        ]

    def test_nested_span_hidden_when_outer_first(self) -> None:
        outer = _span(0, 9)
        inner = _span(3, 4, "Red Herring")
        segments = list(project(_words(10), [outer, inner]))
        assert len(segments) == 1


class TestContract:
    def test_cursor_below_range(self) -> None:
        with pytest.raises(ValueError):
            list(project(_words(3), [], -2))

    def test_cursor_past_end(self) -> None:
        with pytest.raises(ValueError):
            list(project(_words(3), [], 3))

    def test_span_past_end(self) -> None:
        with pytest.raises(ValueError):
            list(project(_words(3), [_span(1, 5)]))

    def test_restartable(self) -> None:
        words = _words(5)
        spans = [_span(1, 2)]
        assert list(project(words, spans, 1)) == list(project(words, spans, 1))


class TestActivate:
    def test_word_segment_seeks_to_its_start(self) -> None:
        words = _words(4)
        seeks: list[float] = []
        segment = list(project(words, []))[2]
        assert activate(segment, seeks.append) == words[2].start_time
        assert seeks == [words[2].start_time]

    def test_run_seeks_to_first_word(self) -> None:
        words = _words(6)
        seeks: list[float] = []
        run = list(project(words, [_span(3, 5)]))[3]
        activate(run, seeks.append)
        assert seeks == [words[3].start_time]
        assert seek_time(run) == words[3].start_time
