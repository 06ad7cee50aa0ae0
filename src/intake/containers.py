"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from intake.adapters.json_state_repository import JsonFileStateRepository
from intake.adapters.openai_estimation_client import OpenAIEstimationClient
from intake.config import Settings, resolve_timezone
from intake.services.estimation import EstimationService
from intake.services.rollover import DayRolloverEngine
from intake.services.scheduler import MidnightScheduler
from intake.services.tracker import TrackerService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    estimation_service: EstimationService
    tracker: TrackerService
    scheduler: MidnightScheduler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    repository = JsonFileStateRepository.create(resolved_settings.data_dir)
    openai_client = (
        OpenAIEstimationClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )
    estimation_service = EstimationService(
        client=openai_client,
        model=resolved_settings.openai_model,
        with_macros=resolved_settings.estimate_macros,
    )
    rollover = DayRolloverEngine(
        repository=repository,
        timezone=resolve_timezone(resolved_settings.timezone),
    )
    tracker = TrackerService(
        repository=repository,
        estimation_service=estimation_service,
        rollover=rollover,
        default_daily_goal=resolved_settings.default_daily_goal,
    )
    tracker.load()
    scheduler = MidnightScheduler(tracker=tracker)

    async def close_resources() -> None:
        await scheduler.stop()
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        estimation_service=estimation_service,
        tracker=tracker,
        scheduler=scheduler,
        close_resources=close_resources,
    )
