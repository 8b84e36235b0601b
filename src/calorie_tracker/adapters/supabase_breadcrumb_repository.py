"""Supabase-backed breadcrumb repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from calorie_tracker.domain.analysis import BreakdownItem, Macros
from calorie_tracker.domain.history import Breadcrumb
from calorie_tracker.services.history import BreadcrumbRepository

_COLUMNS = (
    "id, session_id, query, total_calories, serving_size, breakdown, macros, "
    "confidence, degraded, created_at"
)


@dataclass
class SupabaseBreadcrumbRepository(BreadcrumbRepository):
    """Stores one row per breadcrumb in the `breadcrumbs` table."""

    client: Client

    def append(self, breadcrumb: Breadcrumb) -> None:
        """Insert a single breadcrumb row."""
        self.client.table("breadcrumbs").insert(
            {
                "id": breadcrumb.id,
                "session_id": breadcrumb.session_id,
                "query": breadcrumb.query,
                "total_calories": breadcrumb.total_calories,
                "serving_size": breadcrumb.serving_size,
                "breakdown": [item.model_dump() for item in breadcrumb.breakdown],
                "macros": breadcrumb.macros.model_dump(),
                "confidence": breadcrumb.confidence,
                "degraded": breadcrumb.degraded,
                "created_at": breadcrumb.timestamp.isoformat(),
            }
        ).execute()

    def list_breadcrumbs(self, session_id: str) -> list[Breadcrumb]:
        """Return the session's breadcrumbs, oldest first."""
        response = (
            self.client.table("breadcrumbs")
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def get_breadcrumb(self, session_id: str, breadcrumb_id: str) -> Breadcrumb | None:
        """Return a breadcrumb by id within a session."""
        response = (
            self.client.table("breadcrumbs")
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .eq("id", breadcrumb_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def trim(self, session_id: str, keep: int) -> None:
        """Delete rows older than the newest `keep` for a session."""
        response = (
            self.client.table("breadcrumbs")
            .select("id")
            .eq("session_id", session_id)
            .order("created_at", desc=True)
            .execute()
        )
        stale = [row["id"] for row in (response.data or [])[keep:]]
        if stale:
            self.client.table("breadcrumbs").delete().in_("id", stale).execute()

    def clear(self, session_id: str) -> None:
        """Delete every row of a session."""
        self.client.table("breadcrumbs").delete().eq(
            "session_id", session_id
        ).execute()

    def count_sessions(self) -> int:
        """Return the number of distinct sessions with stored rows."""
        response = self.client.table("breadcrumbs").select("session_id").execute()
        return len({row["session_id"] for row in response.data or []})

    def count_breadcrumbs(self) -> int:
        """Return the total row count using a server-side exact count."""
        response = (
            self.client.table("breadcrumbs")
            .select("id", count="exact")
            .limit(1)
            .execute()
        )
        return response.count or 0


def _parse_row(row: dict[str, object]) -> Breadcrumb:
    created_raw = row.get("created_at")
    timestamp = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.min.replace(tzinfo=UTC)
    )
    breakdown_raw = row.get("breakdown")
    macros_raw = row.get("macros")
    return Breadcrumb(
        id=str(row["id"]),
        session_id=str(row["session_id"]),
        query=str(row.get("query", "")),
        total_calories=float(row.get("total_calories", 0.0)),
        serving_size=str(row.get("serving_size") or "unknown"),
        confidence=str(row.get("confidence") or "low"),
        timestamp=timestamp,
        breakdown=[
            BreakdownItem.model_validate(item)
            for item in (breakdown_raw if isinstance(breakdown_raw, list) else [])
        ],
        macros=Macros.model_validate(macros_raw)
        if isinstance(macros_raw, dict)
        else Macros(),
        degraded=bool(row.get("degraded", False)),
    )
