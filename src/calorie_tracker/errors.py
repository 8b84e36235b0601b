"""Application error taxonomy with HTTP status mapping."""

from enum import StrEnum


class CalorieTrackerError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CalorieTrackerError):
    """Bad or duplicate input."""

    status_code = 400

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.details = details


class DuplicateUsernameError(ValidationError):
    """Raised when a username is already registered."""

    def __init__(self) -> None:
        super().__init__("Username already exists")


class AuthError(CalorieTrackerError):
    """Bad credentials or missing authentication."""

    status_code = 401


class NotFoundError(CalorieTrackerError):
    """Requested resource does not exist."""

    status_code = 404


class UpstreamErrorKind(StrEnum):
    """Failure categories for the LLM completion API."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    MALFORMED = "malformed"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_UPSTREAM_STATUS = {
    UpstreamErrorKind.UNAUTHORIZED: 500,
    UpstreamErrorKind.RATE_LIMITED: 429,
    UpstreamErrorKind.MALFORMED: 502,
    UpstreamErrorKind.TIMEOUT: 503,
    UpstreamErrorKind.UNKNOWN: 502,
}

_UPSTREAM_MESSAGES = {
    UpstreamErrorKind.UNAUTHORIZED: "AI service not properly configured",
    UpstreamErrorKind.RATE_LIMITED: "AI service quota exceeded, try again later",
    UpstreamErrorKind.MALFORMED: "Failed to parse nutrition analysis response",
    UpstreamErrorKind.TIMEOUT: "AI service temporarily unavailable",
    UpstreamErrorKind.UNKNOWN: "AI service request failed",
}


class UpstreamError(CalorieTrackerError):
    """The LLM completion call failed."""

    def __init__(self, kind: UpstreamErrorKind, message: str | None = None) -> None:
        super().__init__(message or _UPSTREAM_MESSAGES[kind])
        self.kind = kind

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return _UPSTREAM_STATUS[self.kind]

    @property
    def code(self) -> str:
        return f"UPSTREAM_{self.kind.value.upper()}"
