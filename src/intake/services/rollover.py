"""Day boundary detection and archiving."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from intake.domain.entries import (
    DayBoundaryMarker,
    Macros,
    latest_meal,
    meal_entries,
    new_entry_id,
)
from intake.domain.history import DailyHistoryEntry, merge_history
from intake.domain.state import AppState
from intake.services.state import StateRepository

_logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return the current aware time in UTC."""
    return datetime.now(tz=UTC)


@dataclass
class DayRolloverEngine:
    """Moves finished days from the live log into history.

    ``timezone`` of None means the host's local zone.
    """

    repository: StateRepository
    clock: Callable[[], datetime] = utc_now
    timezone: tzinfo | None = None

    def now(self) -> datetime:
        """Return the current time from the configured clock."""
        return self.clock()

    def local_date(self, moment: datetime) -> date:
        """Return the calendar date of ``moment`` in the tracker's zone."""
        return moment.astimezone(self.timezone).date()

    def today(self) -> date:
        """Return today's local calendar date."""
        return self.local_date(self.now())

    def next_midnight(self, moment: datetime) -> datetime:
        """Return the first local midnight strictly after ``moment``."""
        next_day = self.local_date(moment) + timedelta(days=1)
        if self.timezone is not None:
            return datetime.combine(next_day, time.min, tzinfo=self.timezone)
        return datetime.combine(next_day, time.min).astimezone()

    def seconds_until_next_midnight(self, moment: datetime | None = None) -> float:
        """Return the delay until the next local midnight."""
        current = moment or self.now()
        return max(0.0, (self.next_midnight(current) - current).total_seconds())

    def check_on_load(self, state: AppState) -> bool:
        """Archive the stored day if its last meal is not from today.

        Returns True when a rollover happened.
        """
        stored_log = self.repository.load_log()
        last_meal = latest_meal(stored_log)
        if last_meal is None:
            return False
        last_day = self.local_date(last_meal.timestamp)
        if last_day == self.today():
            return False

        stored_calories = self.repository.load_consumed_calories()
        stored_goal = self.repository.load_daily_goal()
        entry = DailyHistoryEntry(
            date=last_day,
            total_calories=stored_calories if stored_calories is not None else 0,
            meal_log=meal_entries(stored_log),
            daily_goal_at_the_time=stored_goal or state.daily_goal,
        )
        state.history = merge_history(state.history, entry)
        self._reset(state)
        self._persist(state)
        _logger.info(
            "Archived %s with %s kcal on load", last_day, entry.total_calories
        )
        return True

    def roll_over(self, state: AppState, day: date) -> bool:
        """Archive the in-memory log under ``day`` and start a fresh one.

        Returns True when a history entry was written; the live state is
        reset either way.
        """
        meals = meal_entries(state.log)
        archived = False
        if meals or state.consumed_calories > 0:
            entry = DailyHistoryEntry(
                date=day,
                total_calories=state.consumed_calories,
                meal_log=meals,
                daily_goal_at_the_time=state.daily_goal,
            )
            state.history = merge_history(state.history, entry)
            archived = True
        self._reset(state)
        self._persist(state)
        _logger.info("Rolled over %s (archived=%s)", day, archived)
        return archived

    def _reset(self, state: AppState) -> None:
        state.log = [DayBoundaryMarker(id=new_entry_id(), timestamp=self.now())]
        state.consumed_calories = 0
        state.consumed_macros = Macros()

    def _persist(self, state: AppState) -> None:
        self.repository.save_history(state.history)
        self.repository.save_consumed_calories(state.consumed_calories)
        self.repository.save_consumed_macros(state.consumed_macros)
        self.repository.save_log(state.log)
