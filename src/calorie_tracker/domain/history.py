"""Domain models for session search history."""

from dataclasses import dataclass, field
from datetime import datetime

from calorie_tracker.domain.analysis import BreakdownItem, Macros


@dataclass(frozen=True)
class Breadcrumb:
    """A single recorded analysis tied to a session."""

    id: str
    session_id: str
    query: str
    total_calories: float
    serving_size: str
    confidence: str
    timestamp: datetime
    breakdown: list[BreakdownItem] = field(default_factory=list)
    macros: Macros = field(default_factory=Macros)
    degraded: bool = False


@dataclass(frozen=True)
class Pagination:
    """Pagination metadata for a history page."""

    page: int
    page_size: int
    total_pages: int
    total_items: int


@dataclass(frozen=True)
class HistoryStats:
    """Aggregate statistics over a session's full history."""

    count: int
    total_calories: float
    avg_calories: int
    first_search: datetime | None
    last_search: datetime | None


@dataclass(frozen=True)
class HistoryPage:
    """A page of history entries with metadata and stats."""

    searches: list[Breadcrumb]
    pagination: Pagination
    stats: HistoryStats


@dataclass(frozen=True)
class UsageTotals:
    """Application-wide counts across every live session."""

    total_sessions: int
    total_searches: int
