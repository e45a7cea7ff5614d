from __future__ import annotations

from typing import Callable, Optional

from livestats.core.clock import now_ms
from livestats.core.logger import get_logger
from livestats.core.periodic import PeriodicTask
from livestats.domain.events import stats_update
from livestats.domain.models import Snapshot
from livestats.presence.aggregator import Aggregator

from .subscribers import SubscriberGroup

logger = get_logger("livestats.broadcast")


class BroadcastLoop:
    """Push a fresh snapshot to the subscriber group every interval."""

    def __init__(
        self,
        aggregator: Aggregator,
        group: SubscriberGroup,
        interval_ms: int,
        clock: Callable[[], int] = now_ms,
    ):
        self.aggregator = aggregator
        self.group = group
        self.interval_ms = interval_ms
        self._clock = clock
        self._task: Optional[PeriodicTask] = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.running

    def start(self):
        if self.running:
            return
        self._task = PeriodicTask("stats_broadcast", self.tick, self.interval_ms / 1000)
        self._task.start()

    async def stop(self):
        if self._task is not None:
            await self._task.stop()
            self._task = None

    async def tick(self) -> Optional[Snapshot]:
        # Nobody listening: skip the store round-trips
        if not len(self.group):
            return None
        snapshot = await self.aggregator.compute_snapshot(self._clock())
        delivered = await self.group.broadcast(stats_update(snapshot))
        logger.debug(
            "stats_broadcast",
            extra={"subscribers": delivered, "total_visitors": snapshot.total_visitors},
        )
        return snapshot
