"""Session-scoped search history and breadcrumbs."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from calorie_tracker.domain.analysis import AnalysisResult
from calorie_tracker.domain.history import (
    Breadcrumb,
    HistoryPage,
    HistoryStats,
    Pagination,
    UsageTotals,
)
from calorie_tracker.errors import NotFoundError, ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50


class BreadcrumbRepository(Protocol):
    """Persistence interface for per-session breadcrumbs."""

    def append(self, breadcrumb: Breadcrumb) -> None:
        """Atomically append a breadcrumb to its session's log."""

    def list_breadcrumbs(self, session_id: str) -> list[Breadcrumb]:
        """Return a session's breadcrumbs, oldest first."""

    def get_breadcrumb(self, session_id: str, breadcrumb_id: str) -> Breadcrumb | None:
        """Return a single breadcrumb, if present in the session."""

    def trim(self, session_id: str, keep: int) -> None:
        """Drop all but the newest `keep` breadcrumbs for a session."""

    def clear(self, session_id: str) -> None:
        """Remove every breadcrumb of a session."""

    def count_sessions(self) -> int:
        """Return how many sessions currently hold breadcrumbs."""

    def count_breadcrumbs(self) -> int:
        """Return how many breadcrumbs are stored across all sessions."""


@dataclass
class HistoryService:
    """Tracks analysis events per session and builds history views."""

    repository: BreadcrumbRepository
    max_per_session: int = 50

    def append_breadcrumb(
        self, session_id: str, query: str, result: AnalysisResult
    ) -> Breadcrumb:
        """Record an analysis result at the end of the session's log."""
        breadcrumb = Breadcrumb(
            id=f"search_{uuid4().hex}",
            session_id=session_id,
            query=query,
            total_calories=result.total_calories,
            serving_size=result.serving_size,
            confidence=result.confidence,
            timestamp=datetime.now(tz=UTC),
            breakdown=list(result.breakdown),
            macros=result.macros,
            degraded=result.degraded,
        )
        self.repository.append(breadcrumb)
        self.repository.trim(session_id, self.max_per_session)
        return breadcrumb

    def get_breadcrumbs(
        self, session_id: str | None, limit: int | None = None
    ) -> list[Breadcrumb]:
        """Return breadcrumbs most-recent-last, optionally only the newest few."""
        if not session_id:
            return []
        breadcrumbs = self.repository.list_breadcrumbs(session_id)
        if limit is not None:
            return breadcrumbs[-limit:] if limit > 0 else []
        return breadcrumbs

    def get_history(
        self,
        session_id: str | None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> HistoryPage:
        """Return a newest-first page of history with whole-log stats."""
        if page < 1:
            raise ValidationError("Validation failed", "page must be at least 1")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(
                "Validation failed", f"pageSize must be between 1 and {MAX_PAGE_SIZE}"
            )
        snapshot = self.get_breadcrumbs(session_id)
        newest_first = list(reversed(snapshot))
        start = (page - 1) * page_size
        total_items = len(newest_first)
        return HistoryPage(
            searches=newest_first[start : start + page_size],
            pagination=Pagination(
                page=page,
                page_size=page_size,
                total_pages=math.ceil(total_items / page_size),
                total_items=total_items,
            ),
            stats=_calculate_stats(snapshot),
        )

    def get_search(self, session_id: str | None, search_id: str) -> Breadcrumb:
        """Return a single breadcrumb or raise NotFoundError."""
        breadcrumb = (
            self.repository.get_breadcrumb(session_id, search_id)
            if session_id
            else None
        )
        if breadcrumb is None:
            raise NotFoundError("Search not found")
        return breadcrumb

    def clear_history(self, session_id: str | None) -> None:
        """Drop all history for a session."""
        if session_id:
            self.repository.clear(session_id)

    def get_usage_totals(self) -> UsageTotals:
        """Return session and search counts for the whole application."""
        return UsageTotals(
            total_sessions=self.repository.count_sessions(),
            total_searches=self.repository.count_breadcrumbs(),
        )


def _calculate_stats(breadcrumbs: list[Breadcrumb]) -> HistoryStats:
    if not breadcrumbs:
        return HistoryStats(
            count=0,
            total_calories=0,
            avg_calories=0,
            first_search=None,
            last_search=None,
        )
    total = sum(entry.total_calories for entry in breadcrumbs)
    return HistoryStats(
        count=len(breadcrumbs),
        total_calories=total,
        avg_calories=round(total / len(breadcrumbs)),
        first_search=breadcrumbs[0].timestamp,
        last_search=breadcrumbs[-1].timestamp,
    )
