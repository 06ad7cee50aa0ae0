"""Domain models for today's meal log."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

DAY_RESET_TEXT = "Daily Reset for new day"


def new_entry_id() -> str:
    """Return a fresh opaque entry identifier."""
    return str(uuid4())


@dataclass(frozen=True)
class Macros:
    """Macronutrient grams attributed to a meal."""

    carbs: int = 0
    protein: int = 0
    fat: int = 0

    def __add__(self, other: "Macros") -> "Macros":
        return Macros(
            carbs=self.carbs + other.carbs,
            protein=self.protein + other.protein,
            fat=self.fat + other.fat,
        )

    def __sub__(self, other: "Macros") -> "Macros":
        return Macros(
            carbs=self.carbs - other.carbs,
            protein=self.protein - other.protein,
            fat=self.fat - other.fat,
        )


@dataclass(frozen=True)
class LogEntry:
    """A logged meal."""

    id: str
    text: str
    calories: int
    timestamp: datetime
    macros: Macros = field(default_factory=Macros)


@dataclass(frozen=True)
class DayBoundaryMarker:
    """Placeholder left in the log when a day is rolled over."""

    id: str
    timestamp: datetime


LogItem = LogEntry | DayBoundaryMarker


def meal_entries(items: Iterable[LogItem]) -> list[LogEntry]:
    """Return only the real meals, dropping day boundary markers."""
    return [item for item in items if isinstance(item, LogEntry)]


def latest_meal(items: Iterable[LogItem]) -> LogEntry | None:
    """Return the most recent real meal by timestamp."""
    meals = meal_entries(items)
    if not meals:
        return None
    return max(meals, key=lambda entry: entry.timestamp)
