import fakeredis
import fakeredis.aioredis
import pytest
from livestats.history.sampler import HistorySampler
from livestats.presence.aggregator import Aggregator
from livestats.presence.tracker import PresenceTracker


class FakeTransport:
    """Records frames sent to one websocket connection."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self):
        return [m["event"] for m in self.sent]

    def last(self, event):
        for message in reversed(self.sent):
            if message["event"] == event:
                return message["data"]
        return None


@pytest.fixture
def redis():
    """Isolated in-memory Redis per test."""
    return fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )


@pytest.fixture
def tracker(redis):
    return PresenceTracker(redis, ttl_seconds=300)


@pytest.fixture
def aggregator(redis):
    return Aggregator(redis)


@pytest.fixture
def sampler(redis, aggregator):
    return HistorySampler(redis, aggregator, interval_ms=10_000)


@pytest.fixture
def transport_factory():
    return FakeTransport
