"""Security headers, CORS and last-resort error middleware."""

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from calorie_tracker.api.errors import internal_error_response
from calorie_tracker.config import Settings, parse_cors_origins

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
}


def install_security_middleware(app: FastAPI, settings: Settings) -> None:
    """Add header and error middleware, then CORS as the outermost layer."""

    @app.middleware("http")
    async def security_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled application error",
                extra={"path": request.url.path, "method": request.method},
            )
            response = internal_error_response(exc, settings.environment)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    origins = parse_cors_origins(settings.cors_origins)
    if origins:
        # Cookies are only shared with explicitly listed origins.
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
