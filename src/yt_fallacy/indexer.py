# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Index-annotated transcript serialization.

The annotated text is the only coordinate system shared between the word
timeline and the oracle's fallacy spans. Every word ``w`` at position ``i``
is written as ``w[i]``; the oracle must answer with those exact numbers.
"""

from __future__ import annotations

from collections.abc import Iterable

from yt_fallacy.models import Word

INDEX_CONTRACT = """\
Each word in the indexed transcript is followed by its index in brackets, \
like this: word[0] next[1] word[2]. start_word_index and end_word_index MUST \
be copied from these brackets: the index of the FIRST and the LAST word of \
the quote. Do not count words yourself and do not re-split the plain text; \
only the bracketed numbers are valid coordinates.\
"""


def annotate_word(text: str, index: int) -> str:
    """Return a single ``text[index]`` token."""
    return f"{text}[{index}]"


def index_transcript(words: Iterable[Word]) -> str:
    """Serialize words as ``text[i]`` tokens joined by single spaces.

    Args:
        words: A word timeline (or any ordered word sequence).

    Returns:
        The annotated transcript. Deterministic for a given input.
    """
    return " ".join(annotate_word(w.text, i) for i, w in enumerate(words))


def plain_text(words: Iterable[Word]) -> str:
    """Return the words joined by single spaces, without indices."""
    return " ".join(w.text for w in words)
