from __future__ import annotations

from typing import Optional

from pydantic import ValidationError
from redis.asyncio import Redis

from livestats.core.logger import get_logger
from livestats.core.metrics import DISCONNECTS_TOTAL, HEARTBEATS_TOTAL
from livestats.domain.models import SessionRecord
from shared.constants import RedisKeys

logger = get_logger("livestats.presence")


class PresenceTracker:
    """Redis-backed record of which sessions are live and where.

    Notes:
        - Each heartbeat is one MULTI/EXEC so readers never see a session in
          the active set without its page and device memberships.
        - Every key carries the stats TTL; sessions that stop sending
          heartbeats disappear through key expiry alone.
        - A heartbeat that changes page or device does not remove the old
          membership. The stale entry lives until its key's TTL lapses.
    """

    def __init__(self, redis: Redis, ttl_seconds: int):
        self.r = redis
        self.ttl_seconds = ttl_seconds

    async def record_heartbeat(
        self,
        session_id: str,
        page_hash: str,
        device_category: str,
        screen_bucket: str,
        now: int,
    ) -> SessionRecord:
        record = SessionRecord(
            page_hash=page_hash,
            device_category=device_category,  # type: ignore[arg-type]
            screen_bucket=screen_bucket,
            last_heartbeat=now,
        )
        ttl = self.ttl_seconds
        page_key = RedisKeys.page_key(page_hash)
        device_key = RedisKeys.device_key(device_category)

        pipe = self.r.pipeline(transaction=True)
        pipe.setex(
            RedisKeys.visitor_key(session_id),
            ttl,
            record.model_dump_json(by_alias=True),
        )
        pipe.sadd(RedisKeys.ACTIVE_SET, session_id)
        pipe.expire(RedisKeys.ACTIVE_SET, ttl)
        pipe.sadd(page_key, session_id)
        pipe.expire(page_key, ttl)
        pipe.sadd(device_key, session_id)
        pipe.expire(device_key, ttl)
        await pipe.execute()
        HEARTBEATS_TOTAL.inc()
        return record

    async def record_disconnect(self, session_id: str, now: int) -> bool:
        """Drop a session and its index memberships.

        Returns False when the record had already expired (nothing to do).
        """
        visitor_key = RedisKeys.visitor_key(session_id)
        raw = await self.r.get(visitor_key)
        if raw is None:
            return False
        record = self._parse_record(raw)

        pipe = self.r.pipeline(transaction=True)
        pipe.srem(RedisKeys.ACTIVE_SET, session_id)
        if record is not None:
            pipe.srem(RedisKeys.page_key(record.page_hash), session_id)
            pipe.srem(RedisKeys.device_key(record.device_category), session_id)
        pipe.delete(visitor_key)
        await pipe.execute()
        DISCONNECTS_TOTAL.inc()
        if record is not None:
            logger.debug(
                "visitor_removed",
                extra={"idle_ms": max(0, now - record.last_heartbeat)},
            )
        return True

    async def get_record(self, session_id: str) -> Optional[SessionRecord]:
        raw = await self.r.get(RedisKeys.visitor_key(session_id))
        if raw is None:
            return None
        return self._parse_record(raw)

    @staticmethod
    def _parse_record(raw: str | bytes) -> Optional[SessionRecord]:
        try:
            return SessionRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("visitor_record_unreadable")
            return None
