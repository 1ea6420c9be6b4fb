# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Analysis persistence: one JSON document per analysis id."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import ValidationError

from yt_fallacy.models import Analysis, AnalysisSummary
from yt_fallacy.rendering import write_output

logger = structlog.get_logger()

_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class StoreError(Exception):
    """Raised when an analysis cannot be saved or read."""


class AnalysisNotFoundError(StoreError):
    """Raised when no analysis exists for an id."""


class AnalysisStore(Protocol):
    """Keyed storage for analyses."""

    def save(self, analysis: Analysis) -> None: ...

    def load(self, analysis_id: str) -> Analysis: ...

    def find_by_video_id(self, video_id: str) -> Analysis | None: ...

    def list(self, limit: int = 20, offset: int = 0) -> list[AnalysisSummary]: ...

    def delete(self, analysis_id: str) -> bool: ...


class JsonFileStore:
    """Stores each analysis as ``<root>/<id>.json``.

    Documents are written atomically and hold the word timeline and
    reconciled spans verbatim, so timestamps and indices reload exactly.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _path(self, analysis_id: str) -> Path:
        if not _ID_RE.match(analysis_id):
            raise StoreError(f"Invalid analysis id: {analysis_id!r}")
        return self.root / f"{analysis_id}.json"

    def _read(self, path: Path) -> Analysis:
        try:
            return Analysis.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise StoreError(f"Cannot read analysis {path.stem}: {exc}") from exc

    def _iter_all(self) -> list[Analysis]:
        if not self.root.is_dir():
            return []
        analyses: list[Analysis] = []
        for path in sorted(self.root.glob("*.json")):
            try:
                analyses.append(self._read(path))
            except StoreError as exc:
                logger.warning("store_skipping_unreadable", path=str(path), error=str(exc))
        return analyses

    def save(self, analysis: Analysis) -> None:
        path = self._path(analysis.id)
        try:
            write_output(analysis.model_dump_json(indent=2), path)
        except OSError as exc:
            raise StoreError(f"Cannot save analysis {analysis.id}: {exc}") from exc
        logger.info(
            "analysis_saved",
            analysis_id=analysis.id,
            video_id=analysis.video.video_id,
            fallacy_count=analysis.fallacy_count,
        )

    def load(self, analysis_id: str) -> Analysis:
        path = self._path(analysis_id)
        if not path.is_file():
            raise AnalysisNotFoundError(f"No analysis with id {analysis_id}")
        return self._read(path)

    def find_by_video_id(self, video_id: str) -> Analysis | None:
        """Return the most recent analysis of ``video_id``, if any."""
        matches = [a for a in self._iter_all() if a.video.video_id == video_id]
        if not matches:
            return None
        return max(matches, key=lambda a: a.created_at)

    def list(self, limit: int = 20, offset: int = 0) -> list[AnalysisSummary]:
        """List analyses newest first."""
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")
        analyses = sorted(self._iter_all(), key=lambda a: a.created_at, reverse=True)
        return [
            AnalysisSummary(
                id=a.id,
                video_id=a.video.video_id,
                title=a.video.title,
                fallacy_count=a.fallacy_count,
                created_at=a.created_at,
            )
            for a in analyses[offset : offset + limit]
        ]

    def delete(self, analysis_id: str) -> bool:
        path = self._path(analysis_id)
        if not path.is_file():
            return False
        path.unlink()
        logger.info("analysis_deleted", analysis_id=analysis_id)
        return True
