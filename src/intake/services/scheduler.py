"""Background task that rolls the log over at local midnight."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date

from intake.services.tracker import TrackerService

_logger = logging.getLogger(__name__)


@dataclass
class MidnightScheduler:
    """Re-arming timer that ends the day at each local midnight."""

    tracker: TrackerService
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        """Return True while the timer task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Arm the timer unless it is already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="intake-midnight-rollover")

    async def stop(self) -> None:
        """Cancel the timer and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def run_once(self) -> date:
        """Sleep until the next midnight, end the day, and return it."""
        engine = self.tracker.rollover
        ending_day = engine.today()
        delay = engine.seconds_until_next_midnight()
        _logger.info("Next rollover for %s in %.0f seconds", ending_day, delay)
        await self.sleep(delay)
        # Timers can wake slightly early; wait out the remainder.
        while engine.today() == ending_day:
            await self.sleep(max(engine.seconds_until_next_midnight(), 0.5))
        try:
            self.tracker.end_day(ending_day)
        except Exception:
            _logger.exception("Midnight rollover failed for %s", ending_day)
        return ending_day

    async def _run(self) -> None:
        while True:
            await self.run_once()
