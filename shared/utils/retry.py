import asyncio
import inspect
import random
from typing import Awaitable, Callable, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")

OnRetry = Callable[[int, BaseException, float], Optional[Awaitable[None]]]


def backoff_delays(
    base_delay: float, max_delay: float, jitter: float
) -> Iterator[float]:
    """Exponential delays capped at ``max_delay``, each with up to
    ``jitter`` of the uncapped step added on top."""
    delay = base_delay
    while True:
        yield min(delay, max_delay) + random.uniform(0, delay * jitter)
        delay = min(delay * 2, max_delay)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    retries: int = 5,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: float = 0.1,
    retry_on: Iterable[type[BaseException]] = (Exception,),
    on_retry: Optional[OnRetry] = None,
) -> T:
    """Await ``func`` until it succeeds.

    The last failure is re-raised once ``retries`` attempts are used up.
    ``on_retry`` receives (attempt, exception, sleep_for) and may be sync or
    async; errors raised by the callback are ignored.
    """
    if retries < 1:
        raise ValueError("retries must be >= 1")
    retry_on = tuple(retry_on)
    delays = backoff_delays(base_delay, max_delay, jitter)
    attempt = 0
    while True:
        attempt += 1
        try:
            return await func()
        except retry_on as exc:  # type: ignore[misc]
            if attempt >= retries:
                raise
            sleep_for = next(delays)
            if on_retry:
                try:
                    result = on_retry(attempt, exc, sleep_for)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    pass
            await asyncio.sleep(sleep_for)
