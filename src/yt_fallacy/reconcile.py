# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Span reconciliation: turn untrusted oracle spans into renderable ones.

Raw spans arrive from the oracle with untrusted word indices. Each span goes
through a strict pipeline:

1. Indices must be integer-parseable, otherwise the span is discarded.
2. ``start < 0`` clamps to 0 and ``end >= len`` clamps to ``len - 1``; a span
   whose start still exceeds its end is discarded.
3. Spans of the same category that overlap, touch, or sit one word apart
   (``next.start <= end + 2``) are merged into one span covering their
   union. The rationale and severity of the earliest-registered member are
   kept.
4. Spans of different categories may overlap. The output is ordered by
   registration (lowest raw index of any merged member); earlier spans take
   precedence when a word is covered by several categories.

Reconciliation never raises for bad data. An empty result means "no fallacies
found".
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from yt_fallacy.indexer import plain_text
from yt_fallacy.models import (
    FallacySpan,
    RawFallacySpan,
    ReconciliationReport,
    Severity,
    Word,
)

logger = structlog.get_logger()

_PUNCTUATION_RE = re.compile(r"[^\w\s']")


@dataclass
class _Candidate:
    """A raw span that passed validation and clamping."""

    order: int
    category: str
    quoted_text: str
    start: int
    end: int
    rationale: str
    severity: Severity


def parse_index(value: Any) -> int | None:
    """Parse an oracle-supplied word index.

    Accepts ints, integral floats (``12.0``) and strings holding either.
    Booleans, fractional numbers, NaN/inf, ``None`` and anything else are
    rejected with ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


def _parse_severity(value: str, order: int) -> Severity:
    normalized = value.strip().lower()
    try:
        return Severity(normalized)
    except ValueError:
        logger.warning("span_unknown_severity", index=order, severity=value)
        return Severity.MODERATE


def _normalize_tokens(text: str) -> list[str]:
    return _PUNCTUATION_RE.sub("", text.lower()).split()


def quote_matches(quoted_text: str, words: Sequence[Word], start: int, end: int) -> bool:
    """Check that a quote agrees with the words at ``[start, end]``.

    Comparison ignores case and punctuation. A quote that is a contiguous
    part of the covered words also counts as a match. An empty quote is
    never a mismatch.
    """
    quote_tokens = _normalize_tokens(quoted_text)
    if not quote_tokens:
        return True
    window_tokens = _normalize_tokens(plain_text(words[start : end + 1]))
    if quote_tokens == window_tokens:
        return True
    return f" {' '.join(quote_tokens)} " in f" {' '.join(window_tokens)} "


def _as_raw(span: RawFallacySpan | FallacySpan) -> RawFallacySpan:
    if isinstance(span, RawFallacySpan):
        return span
    return RawFallacySpan.model_validate(span.model_dump(mode="json"))


def _close_run(
    run: list[_Candidate],
    run_end: int,
    words: Sequence[Word],
) -> tuple[int, FallacySpan]:
    """Collapse a run of adjacent same-category candidates into one span."""
    first = min(run, key=lambda c: c.order)
    start = run[0].start
    quoted = first.quoted_text if len(run) == 1 else plain_text(words[start : run_end + 1])
    span = FallacySpan(
        category=first.category,
        quoted_text=quoted,
        start_index=start,
        end_index=run_end,
        rationale=first.rationale,
        severity=first.severity,
    )
    return first.order, span


def reconcile_spans(
    raw_spans: Iterable[RawFallacySpan | FallacySpan],
    words: Sequence[Word],
) -> ReconciliationReport:
    """Turn untrusted oracle spans into the reconciled span set.

    Args:
        raw_spans: Spans in oracle registration order. Already reconciled
            spans are accepted too; reconciling them again is a no-op.
        words: The word timeline the indices refer to.

    Returns:
        A ``ReconciliationReport`` whose ``spans`` are in precedence order.
    """
    length = len(words)
    candidates: list[_Candidate] = []
    discarded: list[RawFallacySpan] = []
    clamped = 0
    quote_mismatches = 0
    total = 0

    for order, span in enumerate(raw_spans):
        total += 1
        raw = _as_raw(span)
        category = raw.category.strip()
        if not category:
            logger.warning("span_discarded", index=order, reason="missing_category")
            discarded.append(raw)
            continue

        start = parse_index(raw.start_index)
        end = parse_index(raw.end_index)
        if start is None or end is None:
            logger.warning(
                "span_discarded",
                index=order,
                reason="unparseable_index",
                category=category,
                start=repr(raw.start_index),
                end=repr(raw.end_index),
            )
            discarded.append(raw)
            continue

        clamped_start = max(start, 0)
        clamped_end = min(end, length - 1)
        if clamped_start > clamped_end:
            logger.warning(
                "span_discarded",
                index=order,
                reason="empty_after_clamp",
                category=category,
                start=start,
                end=end,
                word_count=length,
            )
            discarded.append(raw)
            continue
        if (clamped_start, clamped_end) != (start, end):
            clamped += 1
            logger.info(
                "span_clamped",
                index=order,
                category=category,
                start=start,
                end=end,
                clamped_start=clamped_start,
                clamped_end=clamped_end,
            )

        if not quote_matches(raw.quoted_text, words, clamped_start, clamped_end):
            quote_mismatches += 1
            logger.warning(
                "span_quote_mismatch",
                index=order,
                category=category,
                quote=raw.quoted_text[:80],
                start=clamped_start,
                end=clamped_end,
            )

        candidates.append(
            _Candidate(
                order=order,
                category=category,
                quoted_text=raw.quoted_text,
                start=clamped_start,
                end=clamped_end,
                rationale=raw.rationale,
                severity=_parse_severity(raw.severity, order),
            )
        )

    groups: dict[str, list[_Candidate]] = {}
    for cand in candidates:
        groups.setdefault(cand.category, []).append(cand)

    ordered: list[tuple[int, FallacySpan]] = []
    merged = 0
    for group in groups.values():
        group.sort(key=lambda c: (c.start, c.end))
        run = [group[0]]
        run_end = group[0].end
        for cand in group[1:]:
            # A single uncovered word between two runs is bridged.
            if cand.start <= run_end + 2:
                run.append(cand)
                run_end = max(run_end, cand.end)
                continue
            merged += len(run) - 1
            ordered.append(_close_run(run, run_end, words))
            run = [cand]
            run_end = cand.end
        merged += len(run) - 1
        ordered.append(_close_run(run, run_end, words))

    ordered.sort(key=lambda pair: pair[0])
    spans = [span for _, span in ordered]

    logger.info(
        "reconciliation_complete",
        total=total,
        kept=len(spans),
        discarded=len(discarded),
        clamped=clamped,
        merged=merged,
        quote_mismatches=quote_mismatches,
    )

    return ReconciliationReport(
        spans=spans,
        discarded=discarded,
        clamped=clamped,
        merged=merged,
        quote_mismatches=quote_mismatches,
    )
