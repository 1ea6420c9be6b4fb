# Copyright (c) 2026 Pointmatic
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0

"""Shared LLM call helper with rate-limit-aware retry and gentlify throttling."""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING, Any

import litellm
import structlog

from yt_fallacy.config import AppConfig

if TYPE_CHECKING:
    from gentlify import Throttle

logger = structlog.get_logger()

# Most provider limits are per-minute token budgets; shorter waits just
# burn an attempt before the window rolls over.
_RATE_LIMIT_BASE_DELAY = 15.0

_RATE_LIMIT_MAX_DELAY = 120.0

# Rate-limit retries are counted separately from ordinary retries.
_RATE_LIMIT_MAX_RETRIES = 6


def _is_rate_limit_error(exc: BaseException) -> bool:
    """Check whether an exception is a rate-limit error."""
    if "RateLimit" in type(exc).__name__:
        return True
    # litellm wraps provider errors; check the string as fallback
    msg = str(exc).lower()
    return "rate_limit" in msg or "rate limit" in msg


def _parse_retry_after(exc: BaseException) -> float | None:
    """Try to extract a retry-after hint (seconds) from the error message."""
    match = re.search(
        r"(?:try again in|retry.after)\s+(\d+(?:\.\d+)?)\s*s", str(exc), re.IGNORECASE
    )
    if match:
        return float(match.group(1))
    return None


def _completion_kwargs(messages: list[dict[str, str]], config: AppConfig) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "model": config.model,
        "messages": messages,
        "temperature": config.temperature,
        "api_base": config.api_base,
        "api_key": config.api_key,
    }
    if config.json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    return kwargs


async def llm_completion(
    *,
    messages: list[dict[str, str]],
    config: AppConfig,
    max_attempts: int = 2,
    context: str = "llm_call",
    throttle: Throttle | None = None,
) -> str:
    """Call litellm.acompletion with rate-limit-aware retry.

    Admission goes through :meth:`gentlify.Throttle.acquire` when a
    throttle is given. The retry loop lives here so provider
    ``retry-after`` hints can be honoured and rate-limit retries counted
    apart from ordinary failures.

    On rate-limit errors, backs off exponentially (15s, 30s, 60s, ...)
    up to ``_RATE_LIMIT_MAX_RETRIES`` extra attempts. Other errors are
    retried up to *max_attempts* without extra delay.

    Args:
        messages: Chat messages for the LLM.
        config: Application configuration.
        max_attempts: Max attempts for non-rate-limit errors.
        context: Label for log messages (e.g. ``"detection"``).
        throttle: Optional shared :class:`gentlify.Throttle`.

    Returns:
        The text content of the first choice.

    Raises:
        The original exception if all retries are exhausted.
    """
    attempt = 0
    rate_limit_retries = 0
    kwargs = _completion_kwargs(messages, config)

    while True:
        attempt += 1
        try:
            if throttle is not None:
                async with throttle.acquire():
                    response = await litellm.acompletion(**kwargs)
            else:
                response = await litellm.acompletion(**kwargs)

            content: str = response.choices[0].message.content or ""
            return content

        except Exception as exc:
            if _is_rate_limit_error(exc):
                rate_limit_retries += 1

                if rate_limit_retries > _RATE_LIMIT_MAX_RETRIES:
                    logger.error(
                        f"{context}_rate_limit_exhausted",
                        attempt=attempt,
                        rate_limit_retries=rate_limit_retries,
                        error=str(exc),
                    )
                    raise

                hint = _parse_retry_after(exc)
                delay = hint or min(
                    _RATE_LIMIT_BASE_DELAY * (2 ** (rate_limit_retries - 1)),
                    _RATE_LIMIT_MAX_DELAY,
                )
                logger.warning(
                    f"{context}_rate_limited",
                    attempt=attempt,
                    retry_in_seconds=delay,
                    rate_limit_retry=rate_limit_retries,
                    error=str(exc),
                )
                await asyncio.sleep(delay)
                continue

            if attempt >= max_attempts:
                raise

            logger.warning(
                f"{context}_error",
                attempt=attempt,
                error=str(exc),
            )
