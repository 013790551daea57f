import pytest

from lpwatch.monitoring.channel import EventChannel


@pytest.mark.asyncio
async def test_listeners_run_in_order_and_errors_are_isolated():
    channel = EventChannel("test")
    seen = []

    async def first(event):
        seen.append(("first", event))

    def broken(event):
        raise RuntimeError("boom")

    channel.subscribe(first)
    channel.subscribe(broken)
    channel.subscribe(lambda event: seen.append(("last", event)))

    await channel.publish(1)
    assert seen == [("first", 1), ("last", 1)]


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent():
    channel = EventChannel()
    seen = []
    subscription = channel.subscribe(seen.append)
    other = channel.subscribe(seen.append)

    subscription.unsubscribe()
    subscription.unsubscribe()
    assert not subscription.active
    assert len(channel) == 1

    await channel.publish("x")
    assert seen == ["x"]
    other.unsubscribe()
    await channel.publish("y")
    assert seen == ["x"]
