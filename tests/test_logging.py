# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for yt_fallacy.logging."""

from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
import structlog

from yt_fallacy.logging import get_logger, setup_logging
from yt_fallacy.models import RawFallacySpan, Word
from yt_fallacy.reconcile import reconcile_spans


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


class TestSetupLogging:
    def test_json_lines_on_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("INFO", "json")
        get_logger("test").info("hello", answer=42)
        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "hello"
        assert record["answer"] == 42
        assert record["module"] == "test"
        assert record["level"] == "info"

    def test_level_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("ERROR", "json")
        get_logger().warning("quiet")
        assert capsys.readouterr().err == ""

    def test_reconciliation_events_are_structured(
        self, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        setup_logging("DEBUG", "json")
        monkeypatch.setattr("yt_fallacy.reconcile.logger", structlog.get_logger())
        words = [Word(text="a", start_time=0.0, end_time=0.5)]
        reconcile_spans(
            [RawFallacySpan(category="Strawman", start_index="x", end_index=0)],
            words,
        )
        events = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
        discarded = [e for e in events if e["event"] == "span_discarded"]
        assert discarded
        assert discarded[0]["reason"] == "unparseable_index"
