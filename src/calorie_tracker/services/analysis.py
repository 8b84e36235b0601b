"""Food analysis via an LLM completion API."""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from calorie_tracker.domain.analysis import (
    AnalysisResult,
    BreakdownItem,
    ConnectionStatus,
    Macros,
)
from calorie_tracker.errors import UpstreamError, UpstreamErrorKind, ValidationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a nutritionist AI that provides accurate calorie and nutritional "
    "information. Always respond with valid JSON only."
)

_PROMPT_TEMPLATE = """Analyze the following food/meal and provide detailed \
nutritional information in JSON format:

"{description}"

Respond with ONLY a valid JSON object containing:
- totalCalories (number): total estimated calories
- servingSize (string): estimated serving size
- breakdown (array): food items with their individual calories
- macros (object): protein, carbs, fat in grams
- confidence (string): how confident you are in this estimate (high/medium/low)

Example format:
{{
  "totalCalories": 350,
  "servingSize": "1 medium apple with 2 tbsp peanut butter",
  "breakdown": [
    {{"item": "Medium apple", "calories": 95}},
    {{"item": "2 tbsp peanut butter", "calories": 255}}
  ],
  "macros": {{"protein": 8, "carbs": 25, "fat": 16}},
  "confidence": "high"
}}"""

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_CONFIDENCE_LEVELS = {"low", "medium", "high"}
_HIGH_CONFIDENCE = 0.8
_MEDIUM_CONFIDENCE = 0.5


class CompletionClient(Protocol):
    """Interface for a chat-completion LLM API."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the raw text of a single completion."""

    async def ping(self, *, model: str) -> str:
        """Issue a tiny request and return the reply text."""


def sanitize_description(text: str, max_length: int = 500) -> str:
    """Strip markup and control characters and cap the length."""
    cleaned = text.strip().replace("<", "").replace(">", "")
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    return cleaned[:max_length]


def build_prompt(description: str) -> str:
    """Return the user prompt for a sanitized food description."""
    return _PROMPT_TEMPLATE.format(description=description)


@dataclass
class AnalysisService:
    """Prepares prompts, calls the LLM and validates its answer."""

    client: CompletionClient
    model: str
    max_tokens: int
    temperature: float
    configured: bool = True
    max_input_length: int = 500

    def sanitize(self, description: str) -> str:
        """Return the description as it is sent upstream and recorded."""
        return sanitize_description(description, self.max_input_length)

    async def analyze(self, description: str) -> AnalysisResult:
        """Estimate calories for a free-text food description."""
        sanitized = self.sanitize(description)
        if not sanitized:
            raise ValidationError("Food description cannot be empty")
        raw = await self.client.complete(
            model=self.model,
            system_prompt=SYSTEM_PROMPT,
            prompt=build_prompt(sanitized),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return parse_analysis(raw)

    async def test_connection(self) -> ConnectionStatus:
        """Check that the upstream API is configured and reachable."""
        if not self.configured:
            return ConnectionStatus(
                configured=False,
                success=False,
                message="OpenAI API key not configured",
            )
        try:
            reply = await self.client.ping(model=self.model)
        except UpstreamError as exc:
            logger.warning("OpenAI connection test failed: %s", exc.kind)
            return ConnectionStatus(configured=True, success=False, message=exc.message)
        return ConnectionStatus(configured=True, success=True, message=reply)


def parse_analysis(raw: str) -> AnalysisResult:
    """Parse an LLM reply into an AnalysisResult.

    A reply with a usable ``totalCalories`` is always accepted: invalid or
    missing optional fields are replaced with placeholders and the result is
    marked ``degraded`` with low confidence. Anything else is MALFORMED.
    """
    try:
        payload = json.loads(_strip_code_fence(raw))
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Upstream returned non-JSON content")
        raise UpstreamError(UpstreamErrorKind.MALFORMED) from exc
    if not isinstance(payload, dict):
        raise UpstreamError(UpstreamErrorKind.MALFORMED)

    total = _as_number(payload.get("totalCalories"))
    if total is None or not math.isfinite(total) or total < 0:
        raise UpstreamError(UpstreamErrorKind.MALFORMED)

    try:
        return AnalysisResult.model_validate(
            {
                "totalCalories": total,
                "servingSize": payload.get("servingSize"),
                "breakdown": payload.get("breakdown"),
                "macros": payload.get("macros"),
                "confidence": _normalize_confidence(payload.get("confidence")),
            }
        )
    except PydanticValidationError:
        logger.warning("Upstream response incomplete, returning degraded result")

    serving_size = payload.get("servingSize")
    return AnalysisResult(
        total_calories=total,
        serving_size=serving_size
        if isinstance(serving_size, str) and serving_size
        else "unknown",
        breakdown=_salvage_breakdown(payload.get("breakdown")),
        macros=_salvage_macros(payload.get("macros")),
        confidence="low",
        degraded=True,
    )


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    return text


def _as_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _normalize_confidence(value: object) -> object:
    if isinstance(value, str) and value.strip().lower() in _CONFIDENCE_LEVELS:
        return value.strip().lower()
    number = _as_number(value)
    if number is not None and 0 <= number <= 1:
        if number >= _HIGH_CONFIDENCE:
            return "high"
        if number >= _MEDIUM_CONFIDENCE:
            return "medium"
        return "low"
    return value


def _salvage_breakdown(value: object) -> list[BreakdownItem]:
    if not isinstance(value, list):
        return []
    items = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        name = entry.get("item") or entry.get("name")
        calories = _as_number(entry.get("calories"))
        if isinstance(name, str) and calories is not None and calories >= 0:
            items.append(BreakdownItem(item=name, calories=calories))
    return items


def _salvage_macros(value: object) -> Macros:
    if not isinstance(value, dict):
        return Macros()
    grams = {}
    for key in ("protein", "carbs", "fat"):
        number = _as_number(value.get(key))
        grams[key] = number if number is not None and number >= 0 else 0
    return Macros(**grams)
