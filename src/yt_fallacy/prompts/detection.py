# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Fallacy detection prompt templates for yt-fallacy."""

from __future__ import annotations

from yt_fallacy.indexer import INDEX_CONTRACT
from yt_fallacy.prompts import ChatMessage, _system_msg, _user_msg

# Category name -> one-line definition.
FALLACY_CATALOGUE: dict[str, str] = {
    "Strawman": "Misrepresenting someone's argument to make it easier to attack.",
    "Ad Hominem": "Attacking the person instead of addressing their argument.",
    "False Dichotomy": "Presenting only two options when more exist (either/or).",
    "Appeal to Emotion": (
        "Using emotions such as fear, pity or patriotism instead of logical arguments."
    ),
    "Slippery Slope": (
        "Claiming one small action will lead to extreme consequences without evidence."
    ),
    "Hasty Generalization": (
        "Drawing broad conclusions from limited or unrepresentative evidence."
    ),
    "Red Herring": "Introducing irrelevant information to divert attention from the issue.",
    "Circular Reasoning": "The conclusion is assumed in the premise (begging the question).",
    "Appeal to Authority": (
        "Claiming something is true because an irrelevant authority says so."
    ),
    "Bandwagon Fallacy": "Arguing something is right because everyone else does it.",
    "Cherry Picking": (
        "Selecting only favorable evidence while ignoring contradictory evidence."
    ),
}

DETECTION_SYSTEM_PROMPT = """\
You are an expert at detecting logical fallacies in spoken rhetoric, in any \
language. Detect fallacies in whatever language the transcript is written in \
and return the quote and explanation in that same language. You always \
respond with valid JSON.\
"""

DETECTION_INSTRUCTIONS = """\
Analyze the transcript below for logical fallacies.

## Word Indices

{index_contract}

Example: for "the[5] economy[6] is[7] strong[8]" the quote "economy is strong" \
has start_word_index 6 and end_word_index 8.

## Fallacy Types

{catalogue}

## Guidelines

- Look for both obvious and subtle fallacies; one statement may contain several.
- The `type` field MUST be one of the names listed above, spelled exactly.
- The `quote` field must be the exact words from the transcript, WITHOUT the \
bracketed indices.
- Double check that the words at start_word_index..end_word_index match the quote.
- `explanation` is 2-3 sentences at most.
- `severity` is one of "minor", "moderate", "severe".

## Output Schema

Return ONLY a JSON object of this shape:
```json
{{
  "fallacies": [
    {{
      "type": "Strawman",
      "quote": "exact text from transcript",
      "start_word_index": 10,
      "end_word_index": 15,
      "explanation": "Brief explanation here",
      "severity": "moderate"
    }}
  ]
}}
```
If there are no fallacies, return {{"fallacies": []}}.\
"""


def _format_catalogue() -> str:
    return "\n".join(
        f"- **{name}**: {definition}" for name, definition in FALLACY_CATALOGUE.items()
    )


def build_detection_messages(
    indexed_text: str,
    transcript_text: str,
    title: str | None = None,
) -> list[ChatMessage]:
    """Build the chat messages for fallacy detection.

    Args:
        indexed_text: Index-annotated transcript (``word[i]`` tokens).
        transcript_text: Plain transcript text for reference.
        title: Optional video title for context.

    Returns:
        A list of message dicts (system, user) suitable for litellm.
    """
    instructions = DETECTION_INSTRUCTIONS.format(
        index_contract=INDEX_CONTRACT,
        catalogue=_format_catalogue(),
    )

    header = f"Video title: {title}\n\n" if title else ""
    user_content = (
        f"{instructions}\n\n"
        f"{header}"
        f"Indexed Transcript:\n{indexed_text}\n\n"
        f"Original text for reference:\n{transcript_text}"
    )

    return [_system_msg(DETECTION_SYSTEM_PROMPT), _user_msg(user_content)]
