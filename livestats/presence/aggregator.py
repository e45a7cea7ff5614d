from __future__ import annotations

from redis.asyncio import Redis

from livestats.core.metrics import SNAPSHOT_LATENCY_SECONDS
from livestats.domain.models import (
    DEVICE_CATEGORIES,
    DeviceBreakdown,
    PageStats,
    Snapshot,
)
from livestats.domain.paths import unhash_path
from shared.constants import RedisKeys


class Aggregator:
    """Builds live snapshots from the presence index. Read-only.

    Counts are best-effort: keys can expire between the individual reads,
    so a snapshot is a cardinality estimate rather than a transactional
    count. Pages whose set is empty are treated as vacated.
    """

    def __init__(self, redis: Redis, max_tracked_pages: int = 0, scan_count: int = 500):
        self.r = redis
        self.max_tracked_pages = max_tracked_pages
        self.scan_count = scan_count

    async def compute_snapshot(self, now: int) -> Snapshot:
        with SNAPSHOT_LATENCY_SECONDS.time():
            pipe = self.r.pipeline(transaction=False)
            pipe.scard(RedisKeys.ACTIVE_SET)
            for device in DEVICE_CATEGORIES:
                pipe.scard(RedisKeys.device_key(device))
            total, *device_counts = await pipe.execute()

            top_pages = await self._page_counts()

        return Snapshot(
            total_visitors=int(total),
            top_pages=tuple(top_pages),
            device_breakdown=DeviceBreakdown(
                **{d: int(c) for d, c in zip(DEVICE_CATEGORIES, device_counts)}
            ),
            last_update=now,
        )

    async def _page_counts(self) -> list[PageStats]:
        # SCAN may return a key more than once
        keys = list(
            dict.fromkeys(
                [
                    key
                    async for key in self.r.scan_iter(
                        match=RedisKeys.page_pattern(), count=self.scan_count
                    )
                ]
            )
        )
        if not keys:
            return []
        pipe = self.r.pipeline(transaction=False)
        for key in keys:
            pipe.scard(key)
        counts = await pipe.execute()

        pages: list[PageStats] = []
        for key, count in zip(keys, counts):
            if not count:
                continue
            page_hash = RedisKeys.page_hash_from_key(_as_str(key))
            pages.append(
                PageStats(
                    page_hash=page_hash,
                    original_path=unhash_path(page_hash),
                    visitors=int(count),
                )
            )
        pages.sort(key=lambda p: p.visitors, reverse=True)
        if self.max_tracked_pages > 0:
            pages = pages[: self.max_tracked_pages]
        return pages


def _as_str(key: str | bytes) -> str:
    return key.decode("utf-8") if isinstance(key, bytes) else key
