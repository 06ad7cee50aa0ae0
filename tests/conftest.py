"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from intake.config import Settings
from intake.containers import AppContainer
from intake.domain.entries import LogItem, Macros
from intake.domain.history import DailyHistoryEntry
from intake.services.estimation import (
    DESCRIPTION_SYSTEM_PROMPT,
    EstimationClient,
    EstimationService,
)
from intake.services.rollover import DayRolloverEngine
from intake.services.scheduler import MidnightScheduler
from intake.services.state import StateRepository
from intake.services.tracker import TrackerService


@dataclass
class FakeClock:
    """Settable clock returning aware datetimes."""

    current: datetime

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    def set(self, moment: datetime) -> None:
        self.current = moment


@dataclass
class InMemoryStateRepository(StateRepository):
    """In-memory state repository that records write order."""

    daily_goal: int | None = None
    consumed_calories: int | None = None
    consumed_macros: Macros | None = None
    log: list[LogItem] = field(default_factory=list)
    history: list[DailyHistoryEntry] = field(default_factory=list)
    writes: list[str] = field(default_factory=list)

    def load_daily_goal(self) -> int | None:
        return self.daily_goal

    def load_consumed_calories(self) -> int | None:
        return self.consumed_calories

    def load_consumed_macros(self) -> Macros | None:
        return self.consumed_macros

    def load_log(self) -> list[LogItem]:
        return list(self.log)

    def load_history(self) -> list[DailyHistoryEntry]:
        return list(self.history)

    def save_daily_goal(self, daily_goal: int) -> None:
        self.daily_goal = daily_goal
        self.writes.append("dailyGoal")

    def save_consumed_calories(self, calories: int) -> None:
        self.consumed_calories = calories
        self.writes.append("consumedCalories")

    def save_consumed_macros(self, macros: Macros) -> None:
        self.consumed_macros = macros
        self.writes.append("consumedMacros")

    def save_log(self, log: list[LogItem]) -> None:
        self.log = list(log)
        self.writes.append("calorieLog")

    def save_history(self, history: list[DailyHistoryEntry]) -> None:
        self.history = list(history)
        self.writes.append("calorieHistory")


@dataclass
class FakeEstimationClient(EstimationClient):
    """Fake estimation client returning queued replies."""

    reply: str | None = '{"calories": 300, "carbs": 30, "protein": 10, "fat": 12}'
    description: str | None = "Avocado toast"
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        content: list[dict[str, object]],
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> str | None:
        self.calls.append(
            {
                "model": model,
                "system_prompt": system_prompt,
                "content": content,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "json_mode": json_mode,
            }
        )
        if self.error is not None:
            raise self.error
        if system_prompt == DESCRIPTION_SYSTEM_PROMPT:
            return self.description
        return self.reply


def build_tracker(
    repository: StateRepository,
    clock: FakeClock,
    client: EstimationClient | None = None,
) -> TrackerService:
    """Build a tracker in UTC with the given collaborators."""
    rollover = DayRolloverEngine(repository=repository, clock=clock, timezone=UTC)
    return TrackerService(
        repository=repository,
        estimation_service=EstimationService(client=client, model="gpt-4o"),
        rollover=rollover,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def repository() -> InMemoryStateRepository:
    return InMemoryStateRepository()


@pytest.fixture
def estimation_client() -> FakeEstimationClient:
    return FakeEstimationClient()


@pytest.fixture
def tracker(
    repository: InMemoryStateRepository,
    clock: FakeClock,
    estimation_client: FakeEstimationClient,
) -> TrackerService:
    service = build_tracker(repository, clock, estimation_client)
    service.load()
    return service


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        data_dir=tmp_path,
        environment="test",
    )


@pytest.fixture
def container(settings: Settings, tracker: TrackerService) -> AppContainer:
    scheduler = MidnightScheduler(tracker=tracker)

    async def close_resources() -> None:
        await scheduler.stop()

    return AppContainer(
        settings=settings,
        estimation_service=tracker.estimation_service,
        tracker=tracker,
        scheduler=scheduler,
        close_resources=close_resources,
    )
