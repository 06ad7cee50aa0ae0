"""Meal log and history controller."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date

from intake.domain.entries import LogEntry, Macros, meal_entries, new_entry_id
from intake.domain.history import DailyHistoryEntry, HistoryPoint
from intake.domain.state import DEFAULT_DAILY_GOAL, AppState, Progress, compute_progress
from intake.services.estimation import EstimationService
from intake.services.rollover import DayRolloverEngine
from intake.services.state import StateRepository

DEFAULT_ENTRY_TEXT = "Logged Meal"
IMAGE_ENTRY_TEXT = "Meal from image"

_logger = logging.getLogger(__name__)


class EntryNotFoundError(LookupError):
    """Raised when a log or history entry id does not exist."""


@dataclass
class TrackerService:
    """Owns the tracker state and persists it after every mutation."""

    repository: StateRepository
    estimation_service: EstimationService
    rollover: DayRolloverEngine
    default_daily_goal: int = DEFAULT_DAILY_GOAL
    state: AppState = field(default_factory=AppState)

    def load(self) -> None:
        """Read all state slices from storage and run the new-day check."""
        stored_macros = self.repository.load_consumed_macros()
        stored_calories = self.repository.load_consumed_calories()
        self.state = AppState(
            daily_goal=self.repository.load_daily_goal() or self.default_daily_goal,
            consumed_calories=stored_calories if stored_calories is not None else 0,
            consumed_macros=stored_macros or Macros(),
            log=self.repository.load_log(),
            history=self.repository.load_history(),
        )
        self.check_for_new_day()

    def check_for_new_day(self) -> bool:
        """Roll the stored day into history if it has ended."""
        return self.rollover.check_on_load(self.state)

    def end_day(self, day: date) -> bool:
        """Archive today's log under ``day`` and reset the counters."""
        return self.rollover.roll_over(self.state, day)

    async def submit_meal(
        self,
        text: str | None,
        *,
        image_data_url: str | None = None,
        manual_calories: float | None = None,
    ) -> LogEntry:
        """Log a meal, estimating calories unless they were given."""
        meal_text = (text or "").strip()
        if not meal_text and not image_data_url:
            raise ValueError("Describe the meal or attach a photo.")

        if manual_calories is not None:
            calories = max(0, math.floor(manual_calories + 0.5))
            macros = Macros()
        else:
            estimate = await self.estimation_service.estimate_nutrition(
                meal_text or None, image_data_url
            )
            calories = estimate.calories
            macros = estimate.macros

        if not meal_text and image_data_url:
            description = await self.estimation_service.describe_image(image_data_url)
            meal_text = description or IMAGE_ENTRY_TEXT
        return self.add_entry(meal_text, calories, macros)

    def add_entry(
        self, text: str, calories: int, macros: Macros | None = None
    ) -> LogEntry:
        """Append a meal to today's log and update the totals."""
        if calories < 0:
            raise ValueError(f"Calories cannot be negative, got {calories}")
        entry = LogEntry(
            id=new_entry_id(),
            text=text.strip() or DEFAULT_ENTRY_TEXT,
            calories=calories,
            macros=macros or Macros(),
            timestamp=self.rollover.now(),
        )
        self._append(entry)
        _logger.info("Logged %r (%s kcal)", entry.text, entry.calories)
        return entry

    def delete_entry(self, entry_id: str) -> LogEntry:
        """Remove a meal from today's log and subtract it from the totals."""
        entry = self._find_today(entry_id)
        self.state.log = [item for item in self.state.log if item.id != entry_id]
        self.state.consumed_calories -= entry.calories
        self.state.consumed_macros = self.state.consumed_macros - entry.macros
        self._persist_today()
        _logger.info("Deleted %r (%s kcal)", entry.text, entry.calories)
        return entry

    def duplicate_entry(self, entry_id: str) -> LogEntry:
        """Log another serving of one of today's meals."""
        return self._clone(self._find_today(entry_id))

    def duplicate_from_history(self, day: date, entry_id: str) -> LogEntry:
        """Log a meal from a past day again, without re-estimating it."""
        history_day = self.history_day(day)
        for entry in history_day.meal_log:
            if entry.id == entry_id:
                return self._clone(entry)
        raise EntryNotFoundError(f"Entry {entry_id} not found on {day.isoformat()}")

    def set_daily_goal(self, daily_goal: int) -> int:
        """Replace the daily goal; archived days keep their own."""
        if daily_goal <= 0:
            raise ValueError(f"Daily goal must be positive, got {daily_goal}")
        self.state.daily_goal = daily_goal
        self.repository.save_daily_goal(daily_goal)
        return daily_goal

    def today_entries(self) -> list[LogEntry]:
        """Return today's meals without boundary markers."""
        return meal_entries(self.state.log)

    def progress(self) -> Progress:
        """Return today's consumption against the goal."""
        return compute_progress(self.state.consumed_calories, self.state.daily_goal)

    def history(self) -> list[DailyHistoryEntry]:
        """Return archived days, newest first."""
        return list(self.state.history)

    def history_day(self, day: date) -> DailyHistoryEntry:
        """Return the archived summary for ``day``."""
        for entry in self.state.history:
            if entry.date == day:
                return entry
        raise EntryNotFoundError(f"No history for {day.isoformat()}")

    def history_series(self) -> list[HistoryPoint]:
        """Return calories and goal per archived day, oldest first."""
        return [
            HistoryPoint(
                date=entry.date,
                total_calories=entry.total_calories,
                daily_goal=entry.daily_goal_at_the_time,
            )
            for entry in sorted(self.state.history, key=lambda item: item.date)
        ]

    def _clone(self, source: LogEntry) -> LogEntry:
        entry = LogEntry(
            id=new_entry_id(),
            text=source.text,
            calories=source.calories,
            macros=source.macros,
            timestamp=self.rollover.now(),
        )
        self._append(entry)
        _logger.info("Duplicated %r (%s kcal)", entry.text, entry.calories)
        return entry

    def _append(self, entry: LogEntry) -> None:
        self.state.log = [*self.state.log, entry]
        self.state.consumed_calories += entry.calories
        self.state.consumed_macros = self.state.consumed_macros + entry.macros
        self._persist_today()

    def _find_today(self, entry_id: str) -> LogEntry:
        for entry in meal_entries(self.state.log):
            if entry.id == entry_id:
                return entry
        raise EntryNotFoundError(f"Entry {entry_id} not found")

    def _persist_today(self) -> None:
        self.repository.save_log(self.state.log)
        self.repository.save_consumed_calories(self.state.consumed_calories)
        self.repository.save_consumed_macros(self.state.consumed_macros)
