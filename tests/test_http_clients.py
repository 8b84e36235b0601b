"""Tests for the OpenAI completion adapter."""

import asyncio

import httpx
import openai
import pytest

from calorie_tracker.adapters.openai_completion_client import (
    OpenAICompletionClient,
    map_openai_error,
)
from calorie_tracker.errors import UpstreamError, UpstreamErrorKind

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _message(content: str | None):  # type: ignore[no-untyped-def]
    message = type("Message", (), {"content": content})()
    choice = type("Choice", (), {"message": message})()
    return type("Completion", (), {"choices": [choice]})()


class _FakeCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None):
        self.content = content
        self.error = error
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error is not None:
            raise self.error
        return _message(self.content)


class _FakeOpenAI:
    def __init__(self, completions: _FakeCompletions) -> None:
        self.chat = type("Chat", (), {"completions": completions})()


def _status_error(cls: type[openai.APIStatusError], status: int) -> Exception:
    response = httpx.Response(status, request=_REQUEST)
    return cls("upstream said no", response=response, body=None)


def test_complete_returns_content_and_requests_json() -> None:
    completions = _FakeCompletions(content='{"totalCalories": 1}')
    client = OpenAICompletionClient(client=_FakeOpenAI(completions))

    content = asyncio.run(
        client.complete(
            model="gpt-4o-mini",
            system_prompt="system",
            prompt="apple",
            max_tokens=500,
            temperature=0.3,
        )
    )

    assert content == '{"totalCalories": 1}'
    assert completions.last_payload is not None
    assert completions.last_payload["response_format"] == {"type": "json_object"}
    assert completions.last_payload["messages"][1]["content"] == "apple"


def test_complete_rejects_empty_content() -> None:
    client = OpenAICompletionClient(client=_FakeOpenAI(_FakeCompletions(content="")))

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(
            client.complete(
                model="m",
                system_prompt="s",
                prompt="p",
                max_tokens=1,
                temperature=0,
            )
        )

    assert excinfo.value.kind == UpstreamErrorKind.MALFORMED


def test_complete_maps_sdk_errors() -> None:
    error = _status_error(openai.RateLimitError, 429)
    client = OpenAICompletionClient(client=_FakeOpenAI(_FakeCompletions(error=error)))

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(
            client.complete(
                model="m",
                system_prompt="s",
                prompt="p",
                max_tokens=1,
                temperature=0,
            )
        )

    assert excinfo.value.kind == UpstreamErrorKind.RATE_LIMITED
    assert excinfo.value.status_code == 429


def test_ping_returns_reply() -> None:
    completions = _FakeCompletions(content="test successful")
    client = OpenAICompletionClient(client=_FakeOpenAI(completions))

    assert asyncio.run(client.ping(model="m")) == "test successful"


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (openai.APITimeoutError(request=_REQUEST), UpstreamErrorKind.TIMEOUT),
        (
            _status_error(openai.AuthenticationError, 401),
            UpstreamErrorKind.UNAUTHORIZED,
        ),
        (_status_error(openai.RateLimitError, 429), UpstreamErrorKind.RATE_LIMITED),
        (openai.APIConnectionError(request=_REQUEST), UpstreamErrorKind.UNKNOWN),
        (_status_error(openai.InternalServerError, 500), UpstreamErrorKind.UNKNOWN),
    ],
)
def test_map_openai_error(error: openai.OpenAIError, kind: UpstreamErrorKind) -> None:
    assert map_openai_error(error).kind == kind


def test_create_builds_async_client_without_key() -> None:
    client = OpenAICompletionClient.create(api_key=None, timeout=5)

    assert isinstance(client.client, openai.AsyncOpenAI)
    asyncio.run(client.close())
