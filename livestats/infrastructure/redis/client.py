import redis.asyncio as redis
from livestats.core.config import Settings
from livestats.core.logger import get_logger
from livestats.errors import StartupError

from shared.utils.retry import retry_async

logger = get_logger("livestats.redis")


async def connect_redis(settings: Settings) -> redis.Redis:
    """Open the store connection, retrying while Redis comes up.

    Raises StartupError once the retries are exhausted.
    """

    async def _connect():
        r = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )
        try:
            await r.ping()
        except Exception:
            await r.aclose()
            raise
        return r

    async def _on_retry(attempt: int, exc: BaseException, sleep_for: float):
        logger.warning(
            "redis_connect_retry",
            extra={
                "attempt": attempt,
                "error": str(exc),
                "sleep_for": round(sleep_for, 2),
            },
        )

    try:
        r = await retry_async(
            _connect,
            retries=settings.redis_connect_retries,
            base_delay=0.5,
            max_delay=8.0,
            jitter=0.2,
            on_retry=_on_retry,
        )
    except Exception as e:
        raise StartupError(f"Redis unreachable at {settings.redis_url}: {e}") from e
    logger.info("redis_connected")
    return r
