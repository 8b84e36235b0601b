"""OpenAI Chat Completions client for food analysis."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from calorie_tracker.errors import UpstreamError, UpstreamErrorKind
from calorie_tracker.services.analysis import CompletionClient


@dataclass
class OpenAICompletionClient(CompletionClient):
    """Completion client backed by the OpenAI Chat Completions API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str | None, timeout: float) -> "OpenAICompletionClient":
        """Create an OpenAI client; a missing key fails at call time."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key or "missing-api-key",
                timeout=timeout,
                max_retries=0,
            )
        )

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Request a JSON completion and return its text content."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise map_openai_error(exc) from exc
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise UpstreamError(
                UpstreamErrorKind.MALFORMED, "No response content from OpenAI"
            )
        return content

    async def ping(self, *, model: str) -> str:
        """Send a minimal prompt to confirm the API key works."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": "Say 'test successful'"}],
                max_tokens=10,
                temperature=0,
            )
        except openai.OpenAIError as exc:
            raise map_openai_error(exc) from exc
        if not response.choices:
            return "No response"
        return response.choices[0].message.content or "No response"

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def map_openai_error(exc: openai.OpenAIError) -> UpstreamError:
    """Translate an OpenAI SDK exception into an UpstreamError."""
    if isinstance(exc, openai.APITimeoutError):
        return UpstreamError(UpstreamErrorKind.TIMEOUT)
    if isinstance(exc, openai.AuthenticationError | openai.PermissionDeniedError):
        return UpstreamError(UpstreamErrorKind.UNAUTHORIZED)
    if isinstance(exc, openai.RateLimitError):
        return UpstreamError(UpstreamErrorKind.RATE_LIMITED)
    return UpstreamError(UpstreamErrorKind.UNKNOWN)
