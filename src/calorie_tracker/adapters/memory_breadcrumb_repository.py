"""In-memory breadcrumb storage with idle expiry."""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from calorie_tracker.domain.history import Breadcrumb
from calorie_tracker.services.history import BreadcrumbRepository


@dataclass
class _SessionLog:
    entries: list[Breadcrumb]
    expires_at: datetime


@dataclass
class InMemoryBreadcrumbRepository(BreadcrumbRepository):
    """Per-session breadcrumb lists that expire after a period of inactivity."""

    ttl_seconds: int = 7 * 24 * 60 * 60
    _sessions: dict[str, _SessionLog] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def append(self, breadcrumb: Breadcrumb) -> None:
        """Append under the lock so concurrent requests never lose entries."""
        with self._lock:
            self._evict_expired()
            log = self._sessions.get(breadcrumb.session_id)
            if log is None:
                log = _SessionLog(entries=[], expires_at=self._next_expiry())
                self._sessions[breadcrumb.session_id] = log
            log.entries.append(breadcrumb)
            log.expires_at = self._next_expiry()

    def list_breadcrumbs(self, session_id: str) -> list[Breadcrumb]:
        """Return a copy of the session's breadcrumbs, oldest first."""
        with self._lock:
            log = self._live_log(session_id)
            return list(log.entries) if log else []

    def get_breadcrumb(self, session_id: str, breadcrumb_id: str) -> Breadcrumb | None:
        """Return a breadcrumb by id within a session."""
        with self._lock:
            log = self._live_log(session_id)
            if log is None:
                return None
            for entry in log.entries:
                if entry.id == breadcrumb_id:
                    return entry
            return None

    def trim(self, session_id: str, keep: int) -> None:
        """Keep only the newest `keep` entries."""
        with self._lock:
            log = self._sessions.get(session_id)
            if log is not None and len(log.entries) > keep:
                del log.entries[: len(log.entries) - keep]

    def clear(self, session_id: str) -> None:
        """Forget a session entirely."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def count_sessions(self) -> int:
        """Return the number of live sessions."""
        with self._lock:
            self._evict_expired()
            return len(self._sessions)

    def count_breadcrumbs(self) -> int:
        """Return the number of breadcrumbs across live sessions."""
        with self._lock:
            self._evict_expired()
            return sum(len(log.entries) for log in self._sessions.values())

    def _live_log(self, session_id: str) -> _SessionLog | None:
        log = self._sessions.get(session_id)
        if log is None:
            return None
        if datetime.now(tz=UTC) >= log.expires_at:
            self._sessions.pop(session_id, None)
            return None
        return log

    def _evict_expired(self) -> None:
        now = datetime.now(tz=UTC)
        expired = [key for key, log in self._sessions.items() if now >= log.expires_at]
        for key in expired:
            self._sessions.pop(key, None)

    def _next_expiry(self) -> datetime:
        return datetime.now(tz=UTC) + timedelta(seconds=self.ttl_seconds)
