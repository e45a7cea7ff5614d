"""Time-series history of live snapshots.

Every sampling tick writes one point per metric into both the ``1h`` and
the ``24h`` window (Redis sorted sets scored by epoch ms) and then drops
points older than each window's retention. The two ranges share the
sampling cadence and differ only in retention.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Optional

from redis.asyncio import Redis

from livestats.core.clock import now_ms
from livestats.core.logger import get_logger
from livestats.core.metrics import HISTORY_SAMPLES_TOTAL
from livestats.core.periodic import PeriodicTask
from livestats.domain.models import (
    RETENTION_MS,
    DeviceSeries,
    HistoricalPageStats,
    HistoricalStats,
    Snapshot,
    TimeSeriesPoint,
)
from livestats.errors import InvalidRangeError
from livestats.presence.aggregator import Aggregator
from shared.constants import RedisKeys

logger = get_logger("livestats.history")

CORE_METRICS = ("total", "mobile", "desktop", "tablet")


class SamplerState(str, Enum):
    IDLE = "idle"
    SAMPLING = "sampling"


def retention_for(time_range: str) -> int:
    try:
        return RETENTION_MS[time_range]
    except (KeyError, TypeError):
        raise InvalidRangeError(time_range) from None


def _metric_values(snapshot: Snapshot) -> dict[str, int]:
    devices = snapshot.device_breakdown
    return {
        "total": snapshot.total_visitors,
        "mobile": devices.mobile,
        "desktop": devices.desktop,
        "tablet": devices.tablet,
    }


class HistorySampler:
    """Sole writer and pruner of the history windows."""

    def __init__(
        self,
        redis: Redis,
        aggregator: Aggregator,
        interval_ms: int,
        top_pages: int = 5,
        clock: Callable[[], int] = now_ms,
    ):
        self.r = redis
        self.aggregator = aggregator
        self.interval_ms = interval_ms
        self.top_pages = top_pages
        self._clock = clock
        self._task: Optional[PeriodicTask] = None
        self.state = SamplerState.IDLE

    def start(self):
        if self.state is SamplerState.SAMPLING:
            return
        logger.info("history_sampling_start", extra={"interval_ms": self.interval_ms})
        self._task = PeriodicTask(
            "history_sampler",
            self._tick,
            self.interval_ms / 1000,
            run_immediately=True,
        )
        self._task.start()
        self.state = SamplerState.SAMPLING

    async def stop(self):
        if self._task is not None:
            await self._task.stop()
            self._task = None
        self.state = SamplerState.IDLE

    async def _tick(self):
        await self.capture(self._clock())

    async def capture(self, now: int) -> Snapshot:
        """Sample the current snapshot into every window and prune them."""
        snapshot = await self.aggregator.compute_snapshot(now)
        values = _metric_values(snapshot)
        pages = snapshot.top_pages[: self.top_pages]

        pipe = self.r.pipeline(transaction=False)
        written: list[tuple[str, int]] = []
        for time_range, retention in RETENTION_MS.items():
            for metric, value in values.items():
                key = RedisKeys.history_key(time_range, metric)
                point = TimeSeriesPoint(timestamp=now, value=value)
                pipe.zadd(key, {point.to_member(): now})
                written.append((key, retention))
            for page in pages:
                key = RedisKeys.history_page_key(time_range, page.page_hash)
                point = TimeSeriesPoint(timestamp=now, value=page.visitors)
                pipe.zadd(key, {point.to_member(): now})
                written.append((key, retention))
        for key, retention in written:
            # Exclusive bound: a point exactly at the cutoff is still in range
            pipe.zremrangebyscore(key, "-inf", f"({now - retention}")
            # Windows that stop being written age out on their own
            pipe.pexpire(key, retention)
        await pipe.execute()

        HISTORY_SAMPLES_TOTAL.inc()
        logger.info(
            "history_snapshot_captured",
            extra={"total_visitors": snapshot.total_visitors, "pages": len(pages)},
        )
        return snapshot

    async def get_history(self, time_range: str, now: int) -> HistoricalStats:
        retention = retention_for(time_range)
        start = now - retention

        pipe = self.r.pipeline(transaction=False)
        for metric in CORE_METRICS:
            pipe.zrangebyscore(RedisKeys.history_key(time_range, metric), start, now)
        total_raw, mobile_raw, desktop_raw, tablet_raw = await pipe.execute()

        # Page series follow the current live ranking
        snapshot = await self.aggregator.compute_snapshot(now)
        pages = snapshot.top_pages[: self.top_pages]
        page_series: list[HistoricalPageStats] = []
        if pages:
            pipe = self.r.pipeline(transaction=False)
            for page in pages:
                pipe.zrangebyscore(
                    RedisKeys.history_page_key(time_range, page.page_hash), start, now
                )
            for page, raw in zip(pages, await pipe.execute()):
                page_series.append(
                    HistoricalPageStats(
                        page_hash=page.page_hash,
                        original_path=page.original_path,
                        data_points=_points(raw, start, now),
                    )
                )

        return HistoricalStats(
            total_visitors=_points(total_raw, start, now),
            device_breakdown=DeviceSeries(
                mobile=_points(mobile_raw, start, now),
                desktop=_points(desktop_raw, start, now),
                tablet=_points(tablet_raw, start, now),
            ),
            top_pages=page_series,
            time_range=time_range,  # type: ignore[arg-type]
            start_time=start,
            end_time=now,
        )


def _points(raw: Iterable[str | bytes], start: int, end: int) -> list[TimeSeriesPoint]:
    out: list[TimeSeriesPoint] = []
    for member in raw:
        point = TimeSeriesPoint.from_member(member)
        if point is None:
            continue
        if start <= point.timestamp <= end:
            out.append(point)
    out.sort(key=lambda p: p.timestamp)
    return out
