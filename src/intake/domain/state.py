"""Application state owned by the tracker."""

from dataclasses import dataclass, field

from intake.domain.entries import LogItem, Macros
from intake.domain.history import DailyHistoryEntry

DEFAULT_DAILY_GOAL = 2000


@dataclass
class AppState:
    """Everything the tracker keeps between requests."""

    daily_goal: int = DEFAULT_DAILY_GOAL
    consumed_calories: int = 0
    consumed_macros: Macros = field(default_factory=Macros)
    log: list[LogItem] = field(default_factory=list)
    history: list[DailyHistoryEntry] = field(default_factory=list)


@dataclass(frozen=True)
class Progress:
    """Today's consumption against the goal."""

    consumed: int
    remaining: int
    percentage: float
    daily_goal: int


def compute_progress(consumed: int, daily_goal: int) -> Progress:
    """Return consumption progress, capped at 100 percent."""
    percentage = min(consumed * 100 / daily_goal, 100.0) if daily_goal > 0 else 0.0
    return Progress(
        consumed=consumed,
        remaining=max(0, daily_goal - consumed),
        percentage=percentage,
        daily_goal=daily_goal,
    )
