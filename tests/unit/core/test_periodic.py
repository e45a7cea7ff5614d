import asyncio

import pytest
from livestats.core.periodic import PeriodicTask


@pytest.mark.asyncio
async def test_run_once_reports_failure_without_raising():
    async def boom():
        raise RuntimeError("tick failed")

    task = PeriodicTask("boom", boom, 1.0)

    assert await task.run_once() is False


@pytest.mark.asyncio
async def test_task_keeps_ticking_after_errors():
    calls = []

    async def tick():
        calls.append(len(calls))
        if len(calls) <= 2:
            raise RuntimeError("transient")

    task = PeriodicTask("flaky", tick, 0.005, run_immediately=True)
    task.start()
    for _ in range(100):
        if len(calls) >= 4:
            break
        await asyncio.sleep(0.01)
    assert task.running
    await task.stop()

    assert len(calls) >= 4
    assert not task.running


@pytest.mark.asyncio
async def test_delayed_start_waits_one_interval():
    calls = []

    async def tick():
        calls.append(1)

    task = PeriodicTask("slow", tick, 10.0)
    task.start()
    await asyncio.sleep(0.02)
    await task.stop()

    assert calls == []


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    async def tick():
        return None

    await PeriodicTask("idle", tick, 1.0).stop()


def test_interval_must_be_positive():
    async def tick():
        return None

    with pytest.raises(ValueError):
        PeriodicTask("bad", tick, 0)
