# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Render projection: fold timeline, spans and cursor into display segments."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import ClassVar, Literal

from yt_fallacy.models import FallacySpan, Word

# ---------------------------------------------------------------------------
# Display segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WordSegment:
    """A single word outside any fallacy span."""

    kind: ClassVar[Literal["word"]] = "word"

    index: int
    text: str
    start_time: float
    is_current: bool


@dataclass(frozen=True)
class FallacyRunSegment:
    """A contiguous highlighted block of words under one fallacy category.

    ``span`` is the reconciled span that won the block's first word; it is
    the payload for hover and detail display. ``current_index`` is the
    cursor position when the cursor falls inside the block.
    """

    kind: ClassVar[Literal["fallacy_run"]] = "fallacy_run"

    span: FallacySpan
    first_word_index: int
    last_word_index: int
    text: str
    start_time: float
    current_index: int | None = None

    @property
    def category(self) -> str:
        return self.span.category

    @property
    def is_current(self) -> bool:
        return self.current_index is not None

    @property
    def word_count(self) -> int:
        return self.last_word_index - self.first_word_index + 1


type DisplaySegment = WordSegment | FallacyRunSegment


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def _winners(spans: Sequence[FallacySpan], length: int) -> list[FallacySpan | None]:
    """Map each word index to the earliest-precedence span covering it."""
    owner: list[FallacySpan | None] = [None] * length
    for span in spans:
        for index in range(span.start_index, span.end_index + 1):
            if owner[index] is None:
                owner[index] = span
    return owner


def _check_contract(words: Sequence[Word], spans: Sequence[FallacySpan], cursor_index: int) -> None:
    length = len(words)
    if cursor_index < -1 or cursor_index >= length:
        raise ValueError(f"cursor_index {cursor_index} outside [-1, {length - 1}]")
    for span in spans:
        if span.end_index >= length:
            raise ValueError(
                f"span {span.category!r} [{span.start_index}, {span.end_index}] "
                f"exceeds timeline of {length} words"
            )


def _run(
    words: Sequence[Word],
    span: FallacySpan,
    first: int,
    last: int,
    cursor_index: int,
) -> FallacyRunSegment:
    return FallacyRunSegment(
        span=span,
        first_word_index=first,
        last_word_index=last,
        text=" ".join(w.text for w in words[first : last + 1]),
        start_time=words[first].start_time,
        current_index=cursor_index if first <= cursor_index <= last else None,
    )


def project(
    words: Sequence[Word],
    spans: Sequence[FallacySpan],
    cursor_index: int = -1,
) -> Iterator[DisplaySegment]:
    """Yield display segments covering every word index exactly once.

    Each word is owned by the first span in ``spans`` that covers it, so
    ``spans`` must be in precedence order (as returned by the reconciler).
    Consecutive words owned by the same category collapse into a single
    ``FallacyRunSegment``; every other word becomes a ``WordSegment``.

    The function is a generator with no state of its own: calling it again
    with the same arguments restarts the sequence.

    Raises:
        ValueError: If ``cursor_index`` is outside ``[-1, len(words) - 1]``
            or a span reaches past the end of ``words``.
    """
    _check_contract(words, spans, cursor_index)
    owners = _winners(spans, len(words))

    run_span: FallacySpan | None = None
    run_first = 0
    for index, word in enumerate(words):
        owner = owners[index]
        if run_span is not None and owner is not None and owner.category == run_span.category:
            continue
        if run_span is not None:
            yield _run(words, run_span, run_first, index - 1, cursor_index)
            run_span = None
        if owner is not None:
            run_span = owner
            run_first = index
            continue
        yield WordSegment(
            index=index,
            text=word.text,
            start_time=word.start_time,
            is_current=index == cursor_index,
        )
    if run_span is not None:
        yield _run(words, run_span, run_first, len(words) - 1, cursor_index)


# ---------------------------------------------------------------------------
# Seeking
# ---------------------------------------------------------------------------


def seek_time(segment: DisplaySegment) -> float:
    """Return the playback time a segment jumps to: its first word's start."""
    return segment.start_time


def activate(segment: DisplaySegment, on_seek: Callable[[float], object]) -> float:
    """Handle a click on ``segment`` by seeking playback through ``on_seek``.

    Args:
        segment: The activated display segment.
        on_seek: Seek callback owned by the player.

    Returns:
        The timestamp passed to ``on_seek``.
    """
    timestamp = seek_time(segment)
    on_seek(timestamp)
    return timestamp
