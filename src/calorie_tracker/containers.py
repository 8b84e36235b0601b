"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_tracker.adapters.memory_breadcrumb_repository import (
    InMemoryBreadcrumbRepository,
)
from calorie_tracker.adapters.memory_user_repository import InMemoryUserRepository
from calorie_tracker.adapters.openai_completion_client import OpenAICompletionClient
from calorie_tracker.adapters.supabase_breadcrumb_repository import (
    SupabaseBreadcrumbRepository,
)
from calorie_tracker.adapters.supabase_user_repository import SupabaseUserRepository
from calorie_tracker.config import Settings, validate_settings
from calorie_tracker.services.analysis import AnalysisService
from calorie_tracker.services.history import BreadcrumbRepository, HistoryService
from calorie_tracker.services.users import UserRepository, UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    history_service: HistoryService
    analysis_service: AnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    validate_settings(resolved_settings)

    user_repository: UserRepository
    breadcrumb_repository: BreadcrumbRepository
    if resolved_settings.uses_supabase:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        user_repository = SupabaseUserRepository(supabase_client)
        breadcrumb_repository = SupabaseBreadcrumbRepository(supabase_client)
    else:
        user_repository = InMemoryUserRepository()
        breadcrumb_repository = InMemoryBreadcrumbRepository(
            ttl_seconds=resolved_settings.session_max_age_seconds
        )

    completion_client = OpenAICompletionClient.create(
        api_key=resolved_settings.openai_api_key,
        timeout=resolved_settings.openai_timeout_seconds,
    )
    analysis_service = AnalysisService(
        client=completion_client,
        model=resolved_settings.openai_model,
        max_tokens=resolved_settings.openai_max_tokens,
        temperature=resolved_settings.openai_temperature,
        configured=bool(resolved_settings.openai_api_key),
        max_input_length=resolved_settings.max_food_input_length,
    )
    user_service = UserService(user_repository, rounds=resolved_settings.bcrypt_rounds)
    history_service = HistoryService(
        breadcrumb_repository,
        max_per_session=resolved_settings.max_history_per_session,
    )

    async def close_resources() -> None:
        await completion_client.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        history_service=history_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
