"""Domain models for archived days."""

from dataclasses import dataclass
from datetime import date

from intake.domain.entries import LogEntry


@dataclass(frozen=True)
class DailyHistoryEntry:
    """Summary of one finished day."""

    date: date
    total_calories: int
    meal_log: list[LogEntry]
    daily_goal_at_the_time: int


@dataclass(frozen=True)
class HistoryPoint:
    """One point of the calories-versus-goal series."""

    date: date
    total_calories: int
    daily_goal: int


def merge_history(
    history: list[DailyHistoryEntry], entry: DailyHistoryEntry
) -> list[DailyHistoryEntry]:
    """Insert an entry, replacing any day with the same date, newest first."""
    kept = [existing for existing in history if existing.date != entry.date]
    return sorted([entry, *kept], key=lambda item: item.date, reverse=True)
