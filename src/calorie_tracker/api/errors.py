"""Exception handlers that map errors to JSON responses."""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from calorie_tracker.errors import CalorieTrackerError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND = {"error": "Route not found"}

# Starlette answers a known path with the wrong method with 405.
_UNMATCHED_ROUTE_STATUSES = {
    status.HTTP_404_NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED,
}


def error_body(message: str, **extra: object) -> dict[str, object]:
    """Build the standard error payload."""
    body: dict[str, object] = {
        "success": False,
        "error": message,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }
    body.update({key: value for key, value in extra.items() if value is not None})
    return body


def internal_error_response(exc: Exception, environment: str) -> JSONResponse:
    """Return a generic 500 body, with debug info only for local runs."""
    debug = None
    if environment == "local":
        debug = f"{type(exc).__name__}: {exc}".strip()
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", debug=debug),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach handlers for domain, validation and routing errors."""

    @app.exception_handler(CalorieTrackerError)
    async def handle_domain_error(
        request: Request, exc: CalorieTrackerError
    ) -> JSONResponse:
        if isinstance(exc, UpstreamError):
            logger.warning(
                "Upstream failure",
                extra={"kind": exc.kind.value, "path": request.url.path},
            )
            body = error_body(exc.message, code=exc.code)
        elif isinstance(exc, ValidationError):
            body = error_body(exc.message, details=exc.details)
        else:
            body = error_body(exc.message)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        details = _describe_validation_error(errors[0]) if errors else None
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Validation failed", details=details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code in _UNMATCHED_ROUTE_STATUSES:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND, content=ROUTE_NOT_FOUND
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=exc.headers,
        )


def _describe_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = str(error.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message
