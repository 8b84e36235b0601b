"""Analysis, breadcrumbs and history endpoints."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from calorie_tracker.api.models import AnalyzeRequest  # noqa: TC001
from calorie_tracker.api.sessions import get_or_create_session_id
from calorie_tracker.errors import ValidationError
from calorie_tracker.services.history import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

if TYPE_CHECKING:
    from calorie_tracker.containers import AppContainer
    from calorie_tracker.domain.history import Breadcrumb, HistoryPage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["nutrition"])

BREADCRUMB_QUERY_LENGTH = 50
MAX_BREADCRUMB_LIMIT = 10


@router.get("/breadcrumbs")
async def breadcrumbs(
    request: Request,
    limit: int | None = Query(default=None, ge=1, le=MAX_BREADCRUMB_LIMIT),
    session_id: str = Depends(get_or_create_session_id),
) -> dict[str, object]:
    """Return the session's most recent searches, oldest first."""
    container: AppContainer = request.app.state.container
    entries = container.history_service.get_breadcrumbs(
        session_id, limit=limit or container.settings.breadcrumb_limit
    )
    return {"success": True, "data": [_breadcrumb_summary(entry) for entry in entries]}


@router.get("/history")
async def history(
    request: Request,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(
        default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"
    ),
    session_id: str = Depends(get_or_create_session_id),
) -> dict[str, object]:
    """Return a page of search history with aggregate stats."""
    container: AppContainer = request.app.state.container
    result = container.history_service.get_history(session_id, page, page_size)
    return {"success": True, "data": _history_page(result)}


@router.delete("/history")
async def clear_history(
    request: Request, session_id: str = Depends(get_or_create_session_id)
) -> dict[str, object]:
    """Forget every search recorded for the session."""
    container: AppContainer = request.app.state.container
    container.history_service.clear_history(session_id)
    return {"success": True, "message": "History cleared"}


@router.get("/searches/{search_id}")
async def search_detail(
    search_id: str,
    request: Request,
    session_id: str = Depends(get_or_create_session_id),
) -> dict[str, object]:
    """Return the full record of a single search."""
    container: AppContainer = request.app.state.container
    entry = container.history_service.get_search(session_id, search_id)
    return {"success": True, "data": _search_detail(entry)}


@router.get("/nutrition/stats")
async def usage_stats(request: Request) -> dict[str, object]:
    """Report application-wide session and search counts."""
    container: AppContainer = request.app.state.container
    totals = container.history_service.get_usage_totals()
    return {
        "success": True,
        "data": {
            "totalSessions": totals.total_sessions,
            "totalSearches": totals.total_searches,
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "version": container.settings.app_version,
        },
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


@router.post("/analyze")
@router.post("/calories")
async def analyze(
    body: AnalyzeRequest,
    request: Request,
    session_id: str = Depends(get_or_create_session_id),
) -> dict[str, object]:
    """Estimate calories for a description and record it in the session."""
    container: AppContainer = request.app.state.container
    max_length = container.settings.max_food_input_length
    if len(body.description) > max_length:
        raise ValidationError(
            "Validation failed",
            f"Food input must be less than {max_length} characters",
        )
    result = await container.analysis_service.analyze(body.description)
    query = container.analysis_service.sanitize(body.description)
    entry = container.history_service.append_breadcrumb(session_id, query, result)
    if result.degraded:
        logger.info("Recorded degraded analysis", extra={"search_id": entry.id})
    return {
        "success": True,
        "query": query,
        "data": result.model_dump(by_alias=True),
        "searchId": entry.id,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


@router.get("/calories/test", response_model=None)
async def test_connection(request: Request) -> JSONResponse | dict[str, object]:
    """Check whether the upstream AI service is reachable."""
    container: AppContainer = request.app.state.container
    status = await container.analysis_service.test_connection()
    body = {
        **status.model_dump(by_alias=True),
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }
    if not status.configured:
        return JSONResponse(status_code=503, content=body)
    if not status.success:
        return JSONResponse(status_code=502, content=body)
    return body


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}..."


def _breadcrumb_summary(entry: Breadcrumb) -> dict[str, object]:
    return {
        "id": entry.id,
        "query": _truncate(entry.query, BREADCRUMB_QUERY_LENGTH),
        "totalCalories": entry.total_calories,
        "timestamp": entry.timestamp.isoformat(),
    }


def _history_entry(entry: Breadcrumb) -> dict[str, object]:
    return {
        "id": entry.id,
        "query": entry.query,
        "totalCalories": entry.total_calories,
        "confidence": entry.confidence,
        "timestamp": entry.timestamp.isoformat(),
    }


def _search_detail(entry: Breadcrumb) -> dict[str, object]:
    return {
        "id": entry.id,
        "query": entry.query,
        "totalCalories": entry.total_calories,
        "servingSize": entry.serving_size,
        "breakdown": [item.model_dump(by_alias=True) for item in entry.breakdown],
        "macros": entry.macros.model_dump(by_alias=True),
        "confidence": entry.confidence,
        "degraded": entry.degraded,
        "timestamp": entry.timestamp.isoformat(),
    }


def _history_page(result: HistoryPage) -> dict[str, object]:
    stats = result.stats
    return {
        "searches": [_history_entry(entry) for entry in result.searches],
        "pagination": {
            "page": result.pagination.page,
            "pageSize": result.pagination.page_size,
            "totalPages": result.pagination.total_pages,
            "totalItems": result.pagination.total_items,
        },
        "stats": {
            "count": stats.count,
            "totalCalories": stats.total_calories,
            "avgCalories": stats.avg_calories,
            "firstSearch": stats.first_search.isoformat()
            if stats.first_search
            else None,
            "lastSearch": stats.last_search.isoformat() if stats.last_search else None,
        },
    }
