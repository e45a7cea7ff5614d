import pytest

from shared.utils.retry import retry_async

FAST = {"base_delay": 0, "jitter": 0}


@pytest.mark.asyncio
async def test_retry_async_eventually_succeeds():
    attempts = []
    seen = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("not yet")
        return "ok"

    async def on_retry(attempt, exc, sleep_for):
        seen.append((attempt, str(exc)))

    result = await retry_async(flaky, retries=5, on_retry=on_retry, **FAST)

    assert result == "ok"
    assert len(attempts) == 3
    assert seen == [(1, "not yet"), (2, "not yet")]


@pytest.mark.asyncio
async def test_retry_async_reraises_last_error():
    async def down():
        raise ConnectionError("refused")

    with pytest.raises(ConnectionError):
        await retry_async(down, retries=2, **FAST)


@pytest.mark.asyncio
async def test_retry_async_does_not_retry_other_errors():
    calls = []

    async def broken():
        calls.append(1)
        raise KeyError("x")

    with pytest.raises(KeyError):
        await retry_async(broken, retries=4, retry_on=(ConnectionError,), **FAST)
    assert calls == [1]


@pytest.mark.asyncio
async def test_callback_errors_are_ignored():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise ConnectionError("once")
        return 1

    def bad_callback(*_):
        raise RuntimeError("callback broke")

    assert await retry_async(flaky, on_retry=bad_callback, **FAST) == 1


@pytest.mark.asyncio
async def test_retries_must_be_positive():
    async def noop():
        return None

    with pytest.raises(ValueError):
        await retry_async(noop, retries=0)
