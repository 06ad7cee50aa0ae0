"""Request models and response serializers for the HTTP API."""

from pydantic import BaseModel, Field

from intake.domain.entries import LogEntry, Macros
from intake.domain.history import DailyHistoryEntry, HistoryPoint
from intake.domain.state import Progress


class MealPayload(BaseModel):
    """A meal submission: text, a photo, or both."""

    text: str = ""
    image_base64: str | None = None
    manual_calories: float | None = Field(default=None, allow_inf_nan=False)


class GoalPayload(BaseModel):
    """A new daily calorie goal."""

    daily_goal: int = Field(gt=0)


def serialize_macros(macros: Macros) -> dict[str, int]:
    return {"carbs": macros.carbs, "protein": macros.protein, "fat": macros.fat}


def serialize_entry(entry: LogEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "text": entry.text,
        "calories": entry.calories,
        "macros": serialize_macros(entry.macros),
        "timestamp": entry.timestamp.isoformat(),
    }


def serialize_progress(progress: Progress) -> dict[str, object]:
    return {
        "daily_goal": progress.daily_goal,
        "consumed": progress.consumed,
        "remaining": progress.remaining,
        "percentage": progress.percentage,
    }


def serialize_history_day(day: DailyHistoryEntry) -> dict[str, object]:
    return {
        "date": day.date.isoformat(),
        "total_calories": day.total_calories,
        "daily_goal_at_the_time": day.daily_goal_at_the_time,
        "meal_log": [serialize_entry(entry) for entry in day.meal_log],
    }


def serialize_history_point(point: HistoryPoint) -> dict[str, object]:
    return {
        "date": point.date.isoformat(),
        "total_calories": point.total_calories,
        "daily_goal": point.daily_goal,
    }
