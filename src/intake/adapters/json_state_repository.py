"""JSON file storage for tracker state, one file per key."""

import json
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path

from intake.domain.entries import (
    DAY_RESET_TEXT,
    DayBoundaryMarker,
    LogEntry,
    LogItem,
    Macros,
)
from intake.domain.history import DailyHistoryEntry
from intake.domain.nutrition import coerce_grams
from intake.services.state import StateRepository

DAILY_GOAL_KEY = "dailyGoal"
CONSUMED_CALORIES_KEY = "consumedCalories"
CONSUMED_MACROS_KEY = "consumedMacros"
LOG_KEY = "calorieLog"
HISTORY_KEY = "calorieHistory"

_MEAL_KIND = "meal"
_DAY_RESET_KIND = "day_reset"

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileStateRepository(StateRepository):
    """Stores each state slice as a JSON document in ``data_dir``."""

    data_dir: Path

    @classmethod
    def create(cls, data_dir: Path) -> "JsonFileStateRepository":
        """Create a repository, making sure the directory exists."""
        resolved = data_dir.expanduser()
        resolved.mkdir(parents=True, exist_ok=True)
        return cls(data_dir=resolved)

    def load_daily_goal(self) -> int | None:
        """Return the stored daily goal, if any."""
        value = self._read(DAILY_GOAL_KEY)
        goal = coerce_grams(value) if value is not None else 0
        return goal or None

    def load_consumed_calories(self) -> int | None:
        """Return the stored running calorie total, if any."""
        value = self._read(CONSUMED_CALORIES_KEY)
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        return int(value)

    def load_consumed_macros(self) -> Macros | None:
        """Return the stored running macro totals, if any."""
        value = self._read(CONSUMED_MACROS_KEY)
        if not isinstance(value, dict):
            return None
        return _macros_from_record(value)

    def load_log(self) -> list[LogItem]:
        """Return the stored log exactly as persisted."""
        value = self._read(LOG_KEY)
        if not isinstance(value, list):
            return []
        return _log_from_records(value)

    def load_history(self) -> list[DailyHistoryEntry]:
        """Return the stored history, newest first."""
        value = self._read(HISTORY_KEY)
        if not isinstance(value, list):
            return []
        history: list[DailyHistoryEntry] = []
        for idx, record in enumerate(value):
            try:
                history.append(_history_from_record(record))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                _logger.warning("Skipping invalid history record %s: %s", idx, exc)
        return sorted(history, key=lambda entry: entry.date, reverse=True)

    def save_daily_goal(self, daily_goal: int) -> None:
        """Persist the daily goal."""
        self._write(DAILY_GOAL_KEY, daily_goal)

    def save_consumed_calories(self, calories: int) -> None:
        """Persist the running calorie total."""
        self._write(CONSUMED_CALORIES_KEY, calories)

    def save_consumed_macros(self, macros: Macros) -> None:
        """Persist the running macro totals."""
        self._write(CONSUMED_MACROS_KEY, _macros_to_record(macros))

    def save_log(self, log: list[LogItem]) -> None:
        """Persist today's log."""
        self._write(LOG_KEY, [_log_item_to_record(item) for item in log])

    def save_history(self, history: list[DailyHistoryEntry]) -> None:
        """Persist the history."""
        self._write(HISTORY_KEY, [_history_to_record(entry) for entry in history])

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read(self, key: str) -> object | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as exc:
            _logger.error("Invalid JSON in %s: %s", path, exc)
            return None
        except OSError as exc:
            _logger.error("Failed to read %s: %s", path, exc)
            return None

    def _write(self, key: str, value: object) -> None:
        path = self._path(key)
        temp_path = path.with_suffix(".json.tmp")
        try:
            with temp_path.open("w", encoding="utf8") as handle:
                json.dump(value, handle, indent=2)
            temp_path.replace(path)
        except OSError as exc:
            _logger.error("Failed to write %s: %s", path, exc)
            raise
        _logger.debug("Saved %s", path)


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _from_millis(value: object) -> datetime:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"invalid timestamp {value!r}")
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def _macros_to_record(macros: Macros) -> dict[str, int]:
    return {"carbs": macros.carbs, "protein": macros.protein, "fat": macros.fat}


def _macros_from_record(record: dict[str, object]) -> Macros:
    return Macros(
        carbs=coerce_grams(record.get("carbs", 0)),
        protein=coerce_grams(record.get("protein", 0)),
        fat=coerce_grams(record.get("fat", 0)),
    )


def _log_item_to_record(item: LogItem) -> dict[str, object]:
    if isinstance(item, DayBoundaryMarker):
        return {
            "kind": _DAY_RESET_KIND,
            "id": item.id,
            "text": DAY_RESET_TEXT,
            "calories": 0,
            "timestamp": _to_millis(item.timestamp),
        }
    return {
        "kind": _MEAL_KIND,
        "id": item.id,
        "text": item.text,
        "calories": item.calories,
        "macros": _macros_to_record(item.macros),
        "timestamp": _to_millis(item.timestamp),
    }


def _log_item_from_record(record: dict[str, object]) -> LogItem:
    entry_id = str(record["id"])
    timestamp = _from_millis(record["timestamp"])
    text = str(record.get("text") or "")
    if record.get("kind") == _DAY_RESET_KIND or text == DAY_RESET_TEXT:
        return DayBoundaryMarker(id=entry_id, timestamp=timestamp)
    macros = record.get("macros")
    return LogEntry(
        id=entry_id,
        text=text,
        calories=coerce_grams(record.get("calories", 0)),
        macros=_macros_from_record(macros) if isinstance(macros, dict) else Macros(),
        timestamp=timestamp,
    )


def _log_from_records(records: list[object]) -> list[LogItem]:
    items: list[LogItem] = []
    for idx, record in enumerate(records):
        if not isinstance(record, dict):
            _logger.warning("Skipping invalid log record %s", idx)
            continue
        try:
            items.append(_log_item_from_record(record))
        except (KeyError, ValueError, OverflowError, OSError) as exc:
            _logger.warning("Skipping invalid log record %s: %s", idx, exc)
    return items


def _history_to_record(entry: DailyHistoryEntry) -> dict[str, object]:
    return {
        "date": entry.date.isoformat(),
        "totalCalories": entry.total_calories,
        "mealLog": [_log_item_to_record(item) for item in entry.meal_log],
        "dailyGoalAtTheTime": entry.daily_goal_at_the_time,
    }


def _history_from_record(record: dict[str, object]) -> DailyHistoryEntry:
    raw_log = record.get("mealLog")
    items = _log_from_records(raw_log) if isinstance(raw_log, list) else []
    return DailyHistoryEntry(
        date=date.fromisoformat(str(record["date"])),
        total_calories=coerce_grams(record.get("totalCalories", 0)),
        meal_log=[item for item in items if isinstance(item, LogEntry)],
        daily_goal_at_the_time=coerce_grams(record.get("dailyGoalAtTheTime", 0)),
    )
