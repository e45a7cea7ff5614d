import asyncio

import pytest
from livestats.realtime.broadcast import BroadcastLoop
from livestats.realtime.subscribers import SubscriberGroup


class CountingAggregator:
    def __init__(self, inner=None, fail_first: int = 0):
        self.inner = inner
        self.calls = 0
        self.fail_first = fail_first

    async def compute_snapshot(self, now):
        self.calls += 1
        if self.calls <= self.fail_first:
            raise ConnectionError("redis hiccup")
        return await self.inner.compute_snapshot(now)


@pytest.mark.asyncio
async def test_tick_pushes_snapshot_to_subscribers(
    tracker, aggregator, transport_factory
):
    await tracker.record_heartbeat("A", "P1", "desktop", "1920x1080", 1000)
    group = SubscriberGroup()
    dashboard = transport_factory()
    group.join("dash", dashboard)
    loop = BroadcastLoop(aggregator, group, interval_ms=2000, clock=lambda: 1000)

    snapshot = await loop.tick()

    assert snapshot is not None
    assert dashboard.events() == ["stats:update"]
    data = dashboard.last("stats:update")
    assert data["totalVisitors"] == 1
    assert data["topPages"] == [
        {"pageHash": "P1", "originalPath": None, "visitors": 1}
    ]
    assert data["lastUpdate"] == 1000


@pytest.mark.asyncio
async def test_tick_without_subscribers_skips_aggregation(aggregator):
    counting = CountingAggregator(aggregator)
    loop = BroadcastLoop(counting, SubscriberGroup(), interval_ms=2000)

    assert await loop.tick() is None
    assert counting.calls == 0


@pytest.mark.asyncio
async def test_loop_survives_failing_ticks(aggregator, transport_factory):
    counting = CountingAggregator(aggregator, fail_first=2)
    group = SubscriberGroup()
    dashboard = transport_factory()
    group.join("dash", dashboard)
    loop = BroadcastLoop(counting, group, interval_ms=5)

    loop.start()
    for _ in range(100):
        if dashboard.sent:
            break
        await asyncio.sleep(0.01)
    assert loop.running
    await loop.stop()

    assert counting.calls >= 3
    assert dashboard.events()[0] == "stats:update"
    assert not loop.running
