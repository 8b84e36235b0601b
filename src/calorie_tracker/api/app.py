"""FastAPI application factory."""

import html
import logging
import threading
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from starlette.middleware.sessions import SessionMiddleware

from calorie_tracker.api.auth import router as auth_router
from calorie_tracker.api.errors import register_exception_handlers
from calorie_tracker.api.nutrition import router as nutrition_router
from calorie_tracker.api.security import install_security_middleware
from calorie_tracker.app_logging import configure_logging
from calorie_tracker.containers import AppContainer


class _StrictClock:
    """UTC clock whose readings never repeat or go backwards."""

    def __init__(self) -> None:
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now(tz=UTC)
            if self._last is not None and current <= self._last:
                current = self._last + timedelta(microseconds=1)
            self._last = current
            return current


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    settings = container.settings
    clock = _StrictClock()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting %s",
            settings.app_name,
            extra={"environment": settings.environment},
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.container = container
    app.state.started_at = time.monotonic()

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age_seconds,
        same_site="strict" if settings.environment == "production" else "lax",
        https_only=settings.environment == "production",
    )
    install_security_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(nutrition_router)
    app.include_router(auth_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {
            "status": "OK",
            "timestamp": clock.now().isoformat(),
            "environment": settings.environment,
        }

    @app.get("/api/info")
    async def info() -> dict[str, object]:
        """Describe the API and where its main endpoints live."""
        return {
            "success": True,
            "name": f"{settings.app_name} API",
            "version": settings.app_version,
            "description": "API for analyzing food nutrition using AI",
            "endpoints": {
                "analyze": "/api/analyze",
                "breadcrumbs": "/api/breadcrumbs",
                "history": "/api/history",
                "stats": "/api/nutrition/stats",
                "auth": "/api/auth",
                "health": "/health",
                "documentation": "/docs",
            },
            "timestamp": clock.now().isoformat(),
        }

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Minimal page that consumes the JSON API."""
        page = _INDEX_HTML.replace("{app_name}", html.escape(settings.app_name))
        return HTMLResponse(page)

    return app


_INDEX_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{app_name}</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      h1 { margin-bottom: 0.5rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 420px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <h1>{app_name}</h1>
    <div class="row">
      <input id="food" placeholder="e.g. 2 eggs and a slice of toast" />
      <button onclick="analyze()">Analyze</button>
    </div>
    <div class="row">
      <button onclick="loadEndpoint('/api/breadcrumbs')">Recent</button>
      <button onclick="loadEndpoint('/api/history')">History</button>
    </div>
    <pre id="output">Ready.</pre>
    <script>
      const output = document.getElementById('output');
      async function show(res) {
        const data = await res.json();
        output.textContent = JSON.stringify(data, null, 2);
      }
      async function analyze() {
        output.textContent = 'Analyzing...';
        const description = document.getElementById('food').value;
        await show(await fetch('/api/analyze', {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ description })
        }));
      }
      async function loadEndpoint(path) {
        output.textContent = 'Loading...';
        await show(await fetch(path));
      }
    </script>
  </body>
</html>
"""
