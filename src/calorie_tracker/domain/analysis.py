"""Models for food analysis results."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Confidence = Literal["low", "medium", "high"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BreakdownItem(_CamelModel):
    """Calories attributed to a single food item."""

    item: str
    calories: float = Field(ge=0)


class Macros(_CamelModel):
    """Macronutrients in grams."""

    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)


class AnalysisResult(_CamelModel):
    """Structured calorie estimate for a food description."""

    total_calories: float = Field(ge=0)
    serving_size: str
    breakdown: list[BreakdownItem]
    macros: Macros
    confidence: Confidence
    degraded: bool = False


class ConnectionStatus(_CamelModel):
    """Outcome of an upstream connectivity check."""

    configured: bool
    success: bool
    message: str
