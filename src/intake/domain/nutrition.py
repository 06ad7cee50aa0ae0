"""Nutrition estimate models."""

import math
from dataclasses import dataclass, field

from pydantic import BaseModel, field_validator

from intake.domain.entries import Macros


@dataclass(frozen=True)
class NutritionEstimate:
    """Calories and macros extracted from an AI reply."""

    calories: int
    macros: Macros = field(default_factory=Macros)


def coerce_grams(value: object) -> int:
    """Coerce a loosely typed value to a non-negative integer, or 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0
    else:
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, int(number))


class StructuredNutrition(BaseModel):
    """Four-field nutrition record returned by the estimation model."""

    calories: int
    carbs: int
    protein: int
    fat: int

    @field_validator("calories", "carbs", "protein", "fat", mode="before")
    @classmethod
    def _coerce(cls, value: object) -> int:
        return coerce_grams(value)

    def to_estimate(self) -> NutritionEstimate:
        """Convert to the domain estimate."""
        return NutritionEstimate(
            calories=self.calories,
            macros=Macros(carbs=self.carbs, protein=self.protein, fat=self.fat),
        )
