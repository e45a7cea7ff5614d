import pytest
from livestats.realtime.subscribers import SubscriberGroup


@pytest.mark.asyncio
async def test_broadcast_reaches_every_member(transport_factory):
    group = SubscriberGroup()
    a, b = transport_factory(), transport_factory()
    group.join("a", a)
    group.join("b", b)

    delivered = await group.broadcast({"event": "stats:update", "data": 1})

    assert delivered == 2
    assert a.sent == b.sent == [{"event": "stats:update", "data": 1}]


@pytest.mark.asyncio
async def test_failed_member_is_dropped_others_still_served(transport_factory):
    group = SubscriberGroup()
    ok, broken = transport_factory(), transport_factory(fail=True)
    group.join("ok", ok)
    group.join("broken", broken)

    delivered = await group.broadcast({"event": "x"})

    assert delivered == 1
    assert ok.sent == [{"event": "x"}]
    assert "broken" not in group
    assert "ok" in group


@pytest.mark.asyncio
async def test_late_joiner_gets_no_replay(transport_factory):
    group = SubscriberGroup()
    early = transport_factory()
    group.join("early", early)
    await group.broadcast({"n": 1})

    late = transport_factory()
    group.join("late", late)
    await group.broadcast({"n": 2})

    assert early.sent == [{"n": 1}, {"n": 2}]
    assert late.sent == [{"n": 2}]


def test_leave_and_clear(transport_factory):
    group = SubscriberGroup()
    group.join("a", transport_factory())
    group.join("b", transport_factory())

    assert group.leave("a") is True
    assert group.leave("a") is False
    assert len(group) == 1
    group.clear()
    assert len(group) == 0
