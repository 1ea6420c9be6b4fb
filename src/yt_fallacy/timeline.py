# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""The word timeline: ordered, time-stamped tokens of one transcript."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import overload

from yt_fallacy.models import TranscriptResult, Word


class EmptyTranscriptError(Exception):
    """Raised when a transcript yields no words."""


class TimelineOrderError(ValueError):
    """Raised when word start times decrease."""


class WordTimeline(Sequence[Word]):
    """Immutable, index-addressed sequence of words.

    A word's index is its only identity. Start times are non-decreasing;
    neighbouring words may share a boundary or overlap slightly.
    """

    __slots__ = ("_words",)

    def __init__(self, words: Iterable[Word]) -> None:
        frozen = tuple(words)
        if not frozen:
            raise EmptyTranscriptError("Transcript has no words")
        for i in range(1, len(frozen)):
            if frozen[i].start_time < frozen[i - 1].start_time:
                raise TimelineOrderError(
                    f"Word {i} starts at {frozen[i].start_time}s, "
                    f"before word {i - 1} at {frozen[i - 1].start_time}s"
                )
        self._words = frozen

    @classmethod
    def from_transcript(cls, transcript: TranscriptResult) -> WordTimeline:
        """Build a timeline from a provider result.

        Raises:
            EmptyTranscriptError: If the provider returned no words.
        """
        if not transcript.words:
            raise EmptyTranscriptError("No captions available for this video")
        return cls(transcript.words)

    def word(self, index: int) -> Word:
        if index < 0 or index >= len(self._words):
            raise IndexError(f"word index {index} outside [0, {len(self._words) - 1}]")
        return self._words[index]

    @property
    def words(self) -> tuple[Word, ...]:
        return self._words

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self._words)

    @property
    def duration(self) -> float:
        return self._words[-1].end_time

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[Word]:
        return iter(self._words)

    @overload
    def __getitem__(self, index: int) -> Word: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Word, ...]: ...

    def __getitem__(self, index: int | slice) -> Word | tuple[Word, ...]:
        return self._words[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WordTimeline):
            return NotImplemented
        return self._words == other._words

    def __hash__(self) -> int:
        return hash(self._words)

    def __repr__(self) -> str:
        return f"WordTimeline({len(self._words)} words, {self.duration:.2f}s)"
