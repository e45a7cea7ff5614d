"""Fixed-interval background task that survives failing ticks."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from .logger import get_logger
from .metrics import PERIODIC_TICK_FAILURES_TOTAL

logger = get_logger("livestats.periodic")


class PeriodicTask:
    """Run ``tick`` every ``interval_seconds`` on the running event loop.

    A tick that raises is logged and counted; the next tick still runs.
    The interval is measured start-to-start, so a slow tick shortens the
    following sleep instead of drifting the schedule.
    """

    def __init__(
        self,
        name: str,
        tick: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        run_immediately: bool = False,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.name = name
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self._tick = tick
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info(
            "periodic_task_started",
            extra={"task": self.name, "interval_s": self.interval_seconds},
        )

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:  # expected during shutdown
            logger.debug("periodic_task_cancelled", extra={"task": self.name})
        logger.info("periodic_task_stopped", extra={"task": self.name})

    async def run_once(self) -> bool:
        """Run a single tick; returns False if it failed."""
        try:
            await self._tick()
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            PERIODIC_TICK_FAILURES_TOTAL.labels(task=self.name).inc()
            logger.error(
                "periodic_tick_failed",
                extra={"task": self.name, "error": str(e)},
                exc_info=True,
            )
            return False

    async def _run(self):
        loop = asyncio.get_running_loop()
        if not self.run_immediately:
            await asyncio.sleep(self.interval_seconds)
        while True:
            started = loop.time()
            await self.run_once()
            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))
