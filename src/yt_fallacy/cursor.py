# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Playback cursor mapping: from playback time to the currently spoken word.

Word ``i`` is current at time ``t`` when ``words[i].start_time <= t`` and
either ``words[i].end_time >= t`` or the next word has not started yet.
Silence between two words therefore keeps the previous word highlighted,
and any time past the last word holds the last index. When several words
qualify (overlapping boundaries) the lowest index wins. Before the first
word the cursor is ``-1``.
"""

from __future__ import annotations

import math
from bisect import bisect_left, bisect_right
from collections.abc import Sequence

from yt_fallacy.models import Word

NOT_STARTED = -1


def _check_time(time: float) -> None:
    if math.isnan(time):
        raise ValueError("playback time must be a number, got NaN")


def locate(words: Sequence[Word], time: float) -> int:
    """Return the index of the word current at ``time``.

    Linear scan, O(n) per call. Stateless, so it is equally correct for
    forward playback and arbitrary seeks.

    Args:
        words: Word timeline ordered by non-decreasing start time.
        time: Playback position in seconds.

    Returns:
        The current word index, or ``-1`` before the first word.
    """
    _check_time(time)
    count = len(words)
    if count == 0 or time < words[0].start_time:
        return NOT_STARTED
    for i, word in enumerate(words):
        if word.start_time > time:
            break
        if word.end_time >= time:
            return i
        if i + 1 == count or words[i + 1].start_time > time:
            return i
    # Unreachable for ordered input; kept for timelines with decreasing starts.
    return count - 1


class CursorMapper:
    """Binary-search variant of :func:`locate` for long transcripts.

    Precomputes start times and a running maximum of end times once per
    timeline; every query is then O(log n) and returns exactly what
    :func:`locate` returns.

    Usage::

        mapper = CursorMapper(timeline)
        index = mapper.locate(player.current_time)
    """

    __slots__ = ("_max_ends", "_starts")

    def __init__(self, words: Sequence[Word]) -> None:
        self._starts = [w.start_time for w in words]
        self._max_ends: list[float] = []
        running = -math.inf
        for word in words:
            running = max(running, word.end_time)
            self._max_ends.append(running)

    def __len__(self) -> int:
        return len(self._starts)

    def locate(self, time: float) -> int:
        _check_time(time)
        if not self._starts or time < self._starts[0]:
            return NOT_STARTED
        # Last word that has started; it always qualifies (hold-through-gap).
        last_started = bisect_right(self._starts, time) - 1
        # First word whose end reaches ``time``; may be an earlier overlap.
        first_reaching = bisect_left(self._max_ends, time)
        return min(first_reaching, last_started)
