"""Persistence interface for tracker state."""

from typing import Protocol

from intake.domain.entries import LogItem, Macros
from intake.domain.history import DailyHistoryEntry


class StateRepository(Protocol):
    """Keyed durable storage for the tracker's state slices."""

    def load_daily_goal(self) -> int | None:
        """Return the stored daily goal, if any."""

    def load_consumed_calories(self) -> int | None:
        """Return the stored running calorie total, if any."""

    def load_consumed_macros(self) -> Macros | None:
        """Return the stored running macro totals, if any."""

    def load_log(self) -> list[LogItem]:
        """Return the stored log exactly as persisted."""

    def load_history(self) -> list[DailyHistoryEntry]:
        """Return the stored history."""

    def save_daily_goal(self, daily_goal: int) -> None:
        """Persist the daily goal."""

    def save_consumed_calories(self, calories: int) -> None:
        """Persist the running calorie total."""

    def save_consumed_macros(self, macros: Macros) -> None:
        """Persist the running macro totals."""

    def save_log(self, log: list[LogItem]) -> None:
        """Persist today's log."""

    def save_history(self, history: list[DailyHistoryEntry]) -> None:
        """Persist the history."""
