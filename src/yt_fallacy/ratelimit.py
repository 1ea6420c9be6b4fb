# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Per-client request rate limiting.

The limiter is an ordinary object handed to whoever serves requests; there
is no module-level state. Each client key gets a fixed window that opens on
its first request.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass
class RateLimitDecision:
    """Outcome of a rate-limit check."""

    allowed: bool
    remaining: int
    retry_after: float


class RequestRateLimiter:
    """Fixed-window request counter keyed by client.

    Usage::

        limiter = RequestRateLimiter(max_requests=5, window_seconds=3600)
        if not limiter.check(client_ip).allowed:
            ...

    Args:
        max_requests: Requests allowed per window.
        window_seconds: Window length.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def check(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether it may proceed."""
        now = self._clock()
        self._evict(now)
        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            window = _Window(count=0, reset_at=now + self._window)
            self._windows[key] = window

        if window.count >= self._max:
            retry_after = window.reset_at - now
            logger.warning("rate_limited", client=key, retry_after=round(retry_after, 1))
            return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)

        window.count += 1
        return RateLimitDecision(
            allowed=True,
            remaining=self._max - window.count,
            retry_after=0.0,
        )

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)

    def _evict(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now >= w.reset_at]
        for k in expired:
            del self._windows[k]
