"""Tests for the midnight scheduler."""

import asyncio
from datetime import UTC, date, datetime

from intake.services.scheduler import MidnightScheduler
from tests.conftest import FakeClock


def _advancing_sleep(clock: FakeClock, delays: list[float]):
    async def sleep(delay: float) -> None:
        delays.append(delay)
        clock.advance(delay)
        await asyncio.sleep(0)

    return sleep


def test_run_once_ends_the_day_at_midnight(tracker, clock: FakeClock) -> None:
    clock.set(datetime(2024, 1, 1, 23, 0, tzinfo=UTC))
    tracker.add_entry("Late snack", 250)
    delays: list[float] = []
    scheduler = MidnightScheduler(tracker=tracker, sleep=_advancing_sleep(clock, delays))

    ended = asyncio.run(scheduler.run_once())

    assert ended == date(2024, 1, 1)
    assert delays == [3600.0]
    assert tracker.history_day(date(2024, 1, 1)).total_calories == 250
    assert tracker.state.consumed_calories == 0


def test_run_once_waits_out_early_wake(tracker, clock: FakeClock) -> None:
    clock.set(datetime(2024, 1, 1, 23, 0, tzinfo=UTC))
    delays: list[float] = []

    async def early_sleep(delay: float) -> None:
        delays.append(delay)
        clock.advance(delay - 1 if len(delays) == 1 else delay)

    scheduler = MidnightScheduler(tracker=tracker, sleep=early_sleep)

    ended = asyncio.run(scheduler.run_once())

    assert ended == date(2024, 1, 1)
    assert delays == [3600.0, 1.0]


def test_run_once_logs_rollover_failure(tracker, clock: FakeClock, monkeypatch) -> None:
    clock.set(datetime(2024, 1, 1, 23, 59, tzinfo=UTC))

    def broken_end_day(day: date) -> bool:
        raise OSError("disk full")

    monkeypatch.setattr(tracker, "end_day", broken_end_day)
    scheduler = MidnightScheduler(tracker=tracker, sleep=_advancing_sleep(clock, []))

    assert asyncio.run(scheduler.run_once()) == date(2024, 1, 1)


def test_scheduler_rearms_after_each_midnight(tracker, clock: FakeClock) -> None:
    clock.set(datetime(2024, 1, 1, 23, 0, tzinfo=UTC))
    tracker.add_entry("Dinner", 700)
    delays: list[float] = []
    scheduler = MidnightScheduler(tracker=tracker, sleep=_advancing_sleep(clock, delays))

    async def scenario() -> None:
        scheduler.start()
        while len(delays) < 3:
            await asyncio.sleep(0)
        await scheduler.stop()

    asyncio.run(scenario())

    assert delays[:2] == [3600.0, 86400.0]
    assert [day.date for day in tracker.history()] == [date(2024, 1, 1)]
    assert scheduler.running is False


def test_start_is_idempotent(tracker) -> None:
    async def never(delay: float) -> None:
        await asyncio.Event().wait()

    scheduler = MidnightScheduler(tracker=tracker, sleep=never)

    async def scenario() -> bool:
        scheduler.start()
        first = scheduler._task
        scheduler.start()
        same = scheduler._task is first
        await scheduler.stop()
        return same

    assert asyncio.run(scenario()) is True
    assert scheduler.running is False
