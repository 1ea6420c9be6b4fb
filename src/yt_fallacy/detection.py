# Copyright (c) 2026 Pointmatic
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0

"""LLM-based fallacy detection over an index-annotated transcript."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from yt_fallacy.config import AppConfig
from yt_fallacy.indexer import index_transcript, plain_text
from yt_fallacy.llm import llm_completion
from yt_fallacy.models import RawFallacySpan, Word
from yt_fallacy.prompts.detection import build_detection_messages

if TYPE_CHECKING:
    from gentlify import Throttle

logger = structlog.get_logger()


class DetectionError(Exception):
    """Raised when the fallacy oracle fails or returns unusable content."""


# Oracle field name -> RawFallacySpan field name.
_FIELD_MAP: dict[str, str] = {
    "type": "category",
    "quote": "quoted_text",
    "start_word_index": "start_index",
    "end_word_index": "end_index",
    "explanation": "rationale",
    "severity": "severity",
}


def _strip_fences(text: str) -> str:
    """Strip markdown code fences from LLM response text."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:-1] if lines[-1].strip() == "```" else lines[1:]
        text = "\n".join(lines)
    return text


def _to_raw_span(entry: dict[str, Any]) -> RawFallacySpan:
    fields = {
        target: entry[source]
        for source, target in _FIELD_MAP.items()
        if entry.get(source) is not None
    }
    return RawFallacySpan.model_validate(fields)


def parse_detection_response(raw_text: str) -> list[RawFallacySpan]:
    """Parse the oracle's JSON answer into raw spans, in registration order.

    Only the envelope is checked here. Indices are left untouched for the
    reconciler; entries that are not JSON objects or carry mistyped text
    fields are skipped.

    Raises:
        json.JSONDecodeError: If the response is not valid JSON.
        ValueError: If the JSON has no ``fallacies`` list.
    """
    data = json.loads(_strip_fences(raw_text))
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict) and isinstance(data.get("fallacies"), list):
        entries = data["fallacies"]
    else:
        msg = f"Expected an object with a 'fallacies' array, got {type(data).__name__}"
        raise ValueError(msg)

    spans: list[RawFallacySpan] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning("skipping_invalid_fallacy", index=i, reason="not_an_object")
            continue
        try:
            spans.append(_to_raw_span(entry))
        except ValidationError as exc:
            logger.warning(
                "skipping_invalid_fallacy",
                index=i,
                reason="invalid_fields",
                error=str(exc),
            )
    return spans


async def detect_fallacies(
    words: Sequence[Word],
    config: AppConfig,
    *,
    title: str | None = None,
    throttle: Throttle | None = None,
) -> list[RawFallacySpan]:
    """Ask the oracle for fallacy spans over ``words``.

    The transcript is sent twice: index-annotated (the coordinate system the
    answer must use) and as plain text for reading. A malformed answer is
    retried once before giving up.

    Args:
        words: The word timeline.
        config: Application configuration.
        title: Optional video title for context.
        throttle: Optional shared throttle for rate coordination.

    Returns:
        Raw, unreconciled spans in the order the oracle listed them.

    Raises:
        DetectionError: If the call or parsing fails after retries.
    """
    messages = build_detection_messages(
        indexed_text=index_transcript(words),
        transcript_text=plain_text(words),
        title=title,
    )

    max_attempts = max(1, min(config.max_retries, 2))
    last_error: Exception | None = None

    for attempt in range(max_attempts):
        try:
            content = await llm_completion(
                messages=messages,
                config=config,
                max_attempts=1,  # outer loop handles parse retries
                context="detection",
                throttle=throttle,
            )
            if not content.strip():
                raise ValueError("Empty response from model")

            spans = parse_detection_response(content)
            logger.info(
                "fallacies_detected",
                word_count=len(words),
                span_count=len(spans),
                attempt=attempt + 1,
            )
            return spans

        except (json.JSONDecodeError, ValueError) as exc:
            last_error = exc
            logger.warning(
                "detection_parse_error",
                attempt=attempt + 1,
                error=str(exc),
            )
        except Exception as exc:
            last_error = exc
            logger.warning(
                "detection_llm_error",
                attempt=attempt + 1,
                error=str(exc),
            )

    raise DetectionError(
        f"Fallacy detection failed after {max_attempts} attempts: {last_error}"
    ) from last_error
