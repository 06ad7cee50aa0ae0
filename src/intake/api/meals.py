"""Meal log, history and goal endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, status

from intake.api.schemas import (
    GoalPayload,
    MealPayload,
    serialize_entry,
    serialize_history_day,
    serialize_history_point,
    serialize_macros,
    serialize_progress,
)
from intake.services.images import decode_image_payload, normalize_image

if TYPE_CHECKING:
    from intake.containers import AppContainer
    from intake.domain.entries import LogEntry
    from intake.services.tracker import TrackerService


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def ensure_current_day(request: Request) -> None:
    """Re-run the new-day check before handling any tracker request."""
    _container(request).tracker.check_for_new_day()


router = APIRouter(
    prefix="/api", tags=["tracker"], dependencies=[Depends(ensure_current_day)]
)


def _entry_response(tracker: TrackerService, entry: LogEntry) -> dict[str, object]:
    return {
        "entry": serialize_entry(entry),
        "progress": serialize_progress(tracker.progress()),
    }


@router.get("/today")
async def today(request: Request) -> dict[str, object]:
    """Return today's meals and progress toward the goal."""
    tracker = _container(request).tracker
    return {
        "entries": [serialize_entry(entry) for entry in tracker.today_entries()],
        "progress": serialize_progress(tracker.progress()),
        "consumed_macros": serialize_macros(tracker.state.consumed_macros),
    }


@router.post("/meals", status_code=status.HTTP_201_CREATED)
async def submit_meal(payload: MealPayload, request: Request) -> dict[str, object]:
    """Log a meal from text and/or a photo."""
    container = _container(request)
    image_data_url = None
    if payload.image_base64:
        image_bytes = decode_image_payload(payload.image_base64)
        image_data_url = normalize_image(
            image_bytes, max_size=container.settings.image_max_size
        )
    entry = await container.tracker.submit_meal(
        payload.text,
        image_data_url=image_data_url,
        manual_calories=payload.manual_calories,
    )
    return _entry_response(container.tracker, entry)


@router.delete("/entries/{entry_id}")
async def delete_entry(entry_id: str, request: Request) -> dict[str, object]:
    """Remove a meal from today's log."""
    tracker = _container(request).tracker
    entry = tracker.delete_entry(entry_id)
    return _entry_response(tracker, entry)


@router.post("/entries/{entry_id}/duplicate", status_code=status.HTTP_201_CREATED)
async def duplicate_entry(entry_id: str, request: Request) -> dict[str, object]:
    """Log another serving of one of today's meals."""
    tracker = _container(request).tracker
    entry = tracker.duplicate_entry(entry_id)
    return _entry_response(tracker, entry)


@router.get("/history")
async def history(request: Request) -> dict[str, object]:
    """Return archived days, newest first."""
    tracker = _container(request).tracker
    return {"days": [serialize_history_day(day) for day in tracker.history()]}


@router.get("/history/series")
async def history_series(request: Request) -> dict[str, object]:
    """Return calories and goal per archived day for charting."""
    tracker = _container(request).tracker
    return {
        "points": [serialize_history_point(point) for point in tracker.history_series()]
    }


@router.post(
    "/history/{day}/entries/{entry_id}/duplicate",
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_from_history(
    day: date, entry_id: str, request: Request
) -> dict[str, object]:
    """Add a meal from a past day to today's log."""
    tracker = _container(request).tracker
    entry = tracker.duplicate_from_history(day, entry_id)
    return _entry_response(tracker, entry)


@router.put("/goal")
async def update_goal(payload: GoalPayload, request: Request) -> dict[str, object]:
    """Replace the daily calorie goal."""
    tracker = _container(request).tracker
    tracker.set_daily_goal(payload.daily_goal)
    return {"progress": serialize_progress(tracker.progress())}
