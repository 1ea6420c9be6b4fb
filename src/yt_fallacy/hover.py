# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Hover tooltip controller with a debounced hide.

Moving the pointer from a highlighted run onto its tooltip briefly leaves
both; the hide is therefore delayed and cancelled on re-entry. Each hover
target owns at most one pending hide timer. Scheduling again replaces it,
and an expired timer fires once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Hashable
from typing import TYPE_CHECKING

import structlog

from yt_fallacy.models import FallacySpan

if TYPE_CHECKING:
    from yt_fallacy.config import AppConfig

logger = structlog.get_logger()

DEFAULT_HIDE_DELAY_MS = 100


class TooltipController:
    """Tracks which fallacy tooltip is visible for one transcript view.

    Must be used from a running asyncio event loop.

    Args:
        hide_delay_ms: Delay between leaving a target and hiding its tooltip.
        on_change: Called with the visible span, or ``None`` when hidden.
    """

    def __init__(
        self,
        hide_delay_ms: int = DEFAULT_HIDE_DELAY_MS,
        on_change: Callable[[FallacySpan | None], object] | None = None,
    ) -> None:
        self._delay = hide_delay_ms / 1000
        self._on_change = on_change
        self._pending: dict[Hashable, asyncio.TimerHandle] = {}
        self._target: Hashable | None = None
        self._span: FallacySpan | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        on_change: Callable[[FallacySpan | None], object] | None = None,
    ) -> TooltipController:
        return cls(config.hover_hide_delay_ms, on_change)

    @property
    def visible(self) -> FallacySpan | None:
        return self._span

    @property
    def target(self) -> Hashable | None:
        return self._target

    def pending(self, target: Hashable) -> bool:
        return target in self._pending

    def show(self, target: Hashable, span: FallacySpan) -> None:
        """Show the tooltip for ``target``, cancelling its pending hide."""
        self.cancel_hide(target)
        changed = self._span is not span
        self._target = target
        self._span = span
        if changed:
            self._notify()

    def schedule_hide(self, target: Hashable) -> None:
        """Hide ``target``'s tooltip after the delay, replacing any pending hide."""
        self.cancel_hide(target)
        loop = asyncio.get_running_loop()
        self._pending[target] = loop.call_later(self._delay, self._expire, target)

    def cancel_hide(self, target: Hashable) -> None:
        handle = self._pending.pop(target, None)
        if handle is not None:
            handle.cancel()

    def close(self) -> None:
        """Cancel every pending timer without firing it."""
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

    def _expire(self, target: Hashable) -> None:
        self._pending.pop(target, None)
        if self._target != target:
            # Another target took over the tooltip in the meantime.
            return
        self._target = None
        self._span = None
        logger.debug("tooltip_hidden", target=str(target))
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._span)
