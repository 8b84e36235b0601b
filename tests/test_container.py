"""Tests for container wiring."""

import asyncio

from calorie_tracker.adapters.memory_breadcrumb_repository import (
    InMemoryBreadcrumbRepository,
)
from calorie_tracker.adapters.memory_user_repository import InMemoryUserRepository
from calorie_tracker.containers import build_container


def test_build_container_uses_memory_storage_without_supabase(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.user_service.repository, InMemoryUserRepository)
    assert isinstance(
        container.history_service.repository, InMemoryBreadcrumbRepository
    )
    assert container.history_service.max_per_session == 50
    assert container.analysis_service.configured is True
    asyncio.run(container.close_resources())


def test_build_container_marks_missing_openai_key(settings) -> None:
    settings.openai_api_key = None

    container = build_container(settings)

    assert container.analysis_service.configured is False
    asyncio.run(container.close_resources())
