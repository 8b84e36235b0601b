"""Shared test fixtures."""

import json
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient

from calorie_tracker.adapters.memory_breadcrumb_repository import (
    InMemoryBreadcrumbRepository,
)
from calorie_tracker.adapters.memory_user_repository import InMemoryUserRepository
from calorie_tracker.api.app import create_app
from calorie_tracker.config import Settings
from calorie_tracker.containers import AppContainer
from calorie_tracker.services.analysis import AnalysisService, CompletionClient
from calorie_tracker.services.history import HistoryService
from calorie_tracker.services.users import UserService

APPLE_WITH_PEANUT_BUTTER = {
    "totalCalories": 350,
    "servingSize": "1 medium apple with 2 tbsp peanut butter",
    "breakdown": [
        {"item": "Medium apple", "calories": 95},
        {"item": "2 tbsp peanut butter", "calories": 255},
    ],
    "macros": {"protein": 8, "carbs": 25, "fat": 16},
    "confidence": "high",
}


@dataclass
class FakeCompletionClient(CompletionClient):
    """Fake completion client returning a fixed reply or raising an error."""

    reply: str = field(default_factory=lambda: json.dumps(APPLE_WITH_PEANUT_BUTTER))
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    async def ping(self, *, model: str) -> str:
        if self.error is not None:
            raise self.error
        return "test successful"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        openai_api_key="openai-key",
        session_secret="test-session-secret",
        bcrypt_rounds=4,
    )


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def breadcrumb_repository() -> InMemoryBreadcrumbRepository:
    return InMemoryBreadcrumbRepository()


@pytest.fixture
def container(
    settings: Settings,
    completion_client: FakeCompletionClient,
    user_repository: InMemoryUserRepository,
    breadcrumb_repository: InMemoryBreadcrumbRepository,
) -> AppContainer:
    analysis_service = AnalysisService(
        client=completion_client,
        model=settings.openai_model,
        max_tokens=settings.openai_max_tokens,
        temperature=settings.openai_temperature,
        configured=True,
        max_input_length=settings.max_food_input_length,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        user_service=UserService(user_repository, rounds=settings.bcrypt_rounds),
        history_service=HistoryService(
            breadcrumb_repository, max_per_session=settings.max_history_per_session
        ),
        analysis_service=analysis_service,
        close_resources=close_resources,
    )


@pytest.fixture
def client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))
