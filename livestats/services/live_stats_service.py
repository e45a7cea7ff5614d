from redis.asyncio import Redis
from livestats.core.config import Settings
from livestats.core.logger import get_logger
from livestats.history.sampler import HistorySampler
from livestats.presence.aggregator import Aggregator
from livestats.presence.tracker import PresenceTracker
from livestats.realtime.broadcast import BroadcastLoop
from livestats.realtime.gateway import SessionGateway
from livestats.realtime.subscribers import SubscriberGroup

logger = get_logger("livestats.service")


class LiveStatsService:
    """Owns the store handle, both timers and the subscriber group.

    Created when the app starts and torn down on shutdown; nothing here is
    module-global.
    """

    def __init__(self, redis: Redis, settings: Settings):
        self.redis = redis
        self.settings = settings
        self.group = SubscriberGroup()
        self.tracker = PresenceTracker(redis, settings.stats_ttl_seconds)
        self.aggregator = Aggregator(redis, settings.max_tracked_pages)
        self.sampler = HistorySampler(
            redis,
            self.aggregator,
            settings.snapshot_interval_ms,
            top_pages=settings.history_top_pages,
        )
        self.broadcaster = BroadcastLoop(
            self.aggregator, self.group, settings.broadcast_interval_ms
        )
        self.gateway = SessionGateway(
            self.tracker, self.aggregator, self.sampler, self.group
        )
        self.accepting = False

    async def start(self):
        self.sampler.start()
        self.broadcaster.start()
        self.accepting = True
        logger.info(
            "live_stats_started",
            extra={
                "stats_ttl_s": self.settings.stats_ttl_seconds,
                "broadcast_interval_ms": self.settings.broadcast_interval_ms,
                "snapshot_interval_ms": self.settings.snapshot_interval_ms,
            },
        )

    async def stop(self):
        self.accepting = False
        await self.broadcaster.stop()
        await self.sampler.stop()
        self.group.clear()
        await self.redis.aclose()
        logger.info("live_stats_stopped")
