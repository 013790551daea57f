from decimal import Decimal

import pytest

from lpwatch.cache.pool_cache import MonitorState, PoolCache
from lpwatch.cache.position_cache import PositionCache
from lpwatch.cache.token_cache import TokenCache
from lpwatch.monitoring.engine import MonitorEngine
from lpwatch.monitoring.events import AlertNotice, PositionNotice, RangeNotice, SwapNotice
from lpwatch.storage.models.watch import WatchRecord
from lpwatch.tests.fakes import (
    ARB_USDC_POOL, LOW_SQRT_PRICE, LOW_TICK, SQRT_PRICE, TICK, WETH_USDC_POOL,
    FailingSink, make_swap_log, next_of, wait_for_state,
)


def _low_swap(**kwargs):
    return make_swap_log(sqrt_price_x96=LOW_SQRT_PRICE, tick=LOW_TICK, **kwargs)


@pytest.mark.asyncio
async def test_watch_pool_edits_the_watcher_message(monitor, pools, reader, sink, notices, store):
    pool = await pools.fetch_or_create(pools.key_for(WETH_USDC_POOL))
    message_id = await monitor.watch_pool(pool, "chat-1")
    assert sink.new_messages("chat-1")[0].endswith("Last Swap: N/A")
    assert await store.count(WatchRecord, kind="pool") == 1

    reader.push_log(WETH_USDC_POOL, make_swap_log())
    notice = await next_of(notices, SwapNotice)
    assert notice.price == Decimal("3578.96913182")
    assert notice.volume == Decimal("304.831867")

    edit = sink.edits(message_id)[-1]
    assert edit.startswith("3578.96913182 USDC/WETH ")
    assert "Tick: -194492" in edit
    assert edit.endswith("Last Swap: 304.831867 USDC")


@pytest.mark.asyncio
async def test_alert_sends_a_new_message_once(monitor, pools, reader, sink, notices):
    pool = await pools.fetch_or_create(pools.key_for(WETH_USDC_POOL))
    await monitor.add_alert(pool, "3500", "chat-2")

    reader.push_log(WETH_USDC_POOL, make_swap_log())
    reader.push_log(WETH_USDC_POOL, _low_swap(log_index=1))
    reader.push_log(WETH_USDC_POOL, _low_swap(log_index=2))

    alert = await next_of(notices, AlertNotice)
    assert alert.target_price == Decimal("3500")
    assert alert.price == Decimal("3370.98248395")
    assert not alert.rising
    assert alert.destination == "chat-2"

    # the third swap would have fired it again
    await next_of(notices, SwapNotice)
    assert notices.empty()
    assert len(sink.new_messages("chat-2")) == 1
    assert "fell below 3500.00000000" in sink.new_messages("chat-2")[0]
    assert len(monitor.alerts(pool)) == 0


@pytest.mark.asyncio
async def test_position_range_flips_are_notified(monitor, positions, reader, sink, notices):
    reader.add_position(41, -194600, -194400, 10**15)
    position = await positions.fetch(41)
    await monitor.watch_position(position, "chat-3", message_id="900")

    reader.push_log(WETH_USDC_POOL, _low_swap())
    update = await next_of(notices, PositionNotice)
    assert not update.in_range
    assert update.lower < update.upper
    flip = await next_of(notices, RangeNotice)
    assert not flip.in_range and flip.tick == LOW_TICK

    reader.push_log(WETH_USDC_POOL, make_swap_log(sqrt_price_x96=SQRT_PRICE, tick=TICK, log_index=1))
    back = await next_of(notices, RangeNotice)
    assert back.in_range

    assert len(sink.edits("900")) == 2
    texts = sink.new_messages("chat-3")
    assert "out of range" in texts[0] and "back in range" in texts[1]


@pytest.mark.asyncio
async def test_unwatch_position_leaves_the_pool_running(monitor, positions, pools, reader, notices):
    reader.add_position(42, -194600, -194400, 10**15)
    position = await positions.fetch(42)
    await monitor.watch_pool(position.pool, "chat-4")
    await monitor.watch_position(position, "chat-4", message_id="901")
    await monitor.unwatch_position(position)

    reader.push_log(WETH_USDC_POOL, _low_swap())
    reader.push_log(WETH_USDC_POOL, make_swap_log(log_index=1))
    await next_of(notices, SwapNotice)
    await next_of(notices, SwapNotice)

    assert notices.empty()
    assert monitor.is_monitoring(position.pool)
    assert pools.state(position.pool) is MonitorState.ACTIVE


@pytest.mark.asyncio
async def test_last_position_watch_releases_the_subscription(monitor, positions, pools, reader):
    reader.add_position(44, -194600, -194400, 10**15)
    position = await positions.fetch(44)
    await monitor.watch_position(position, "chat-4", message_id="903")
    assert not monitor.is_monitoring(position.pool)
    await wait_for_state(pools, position.pool, MonitorState.ACTIVE)

    await monitor.unwatch_position(position)
    assert pools.state(position.pool) is MonitorState.UNSUBSCRIBED


@pytest.mark.asyncio
async def test_stopping_a_pool_keeps_its_position_watches(monitor, positions, pools, reader, store, notices, sink):
    reader.add_position(45, -194600, -194400, 10**15)
    position = await positions.fetch(45)
    await monitor.watch_position(position, "chat-8", message_id="904")
    await monitor.watch_pool(position.pool, "chat-8")

    await monitor.stop_monitoring(position.pool)

    assert not monitor.is_monitoring(position.pool)
    assert pools.state(position.pool) is not MonitorState.UNSUBSCRIBED
    records = await store.find_all(WatchRecord)
    assert [(r.kind, r.ref_key) for r in records] == [("position", str(position.key))]

    reader.push_log(WETH_USDC_POOL, _low_swap())
    update = await next_of(notices, PositionNotice)
    assert update.position is position
    assert sink.edits("904")


@pytest.mark.asyncio
async def test_start_monitoring_resubscribes_after_a_failed_subscription(monitor, pools, reader, sink, notices):
    reader.watch_failures = 1
    pool = await pools.fetch_or_create(pools.key_for(WETH_USDC_POOL))
    message_id = await monitor.watch_pool(pool, "chat-9")
    await wait_for_state(pools, pool, MonitorState.UNSUBSCRIBED)
    assert monitor.is_monitoring(pool)

    await monitor.start_monitoring(pool)
    await wait_for_state(pools, pool, MonitorState.ACTIVE)
    assert reader.calls["watch_logs"] == 2

    reader.push_log(WETH_USDC_POOL, make_swap_log())
    await next_of(notices, SwapNotice)
    assert sink.edits(message_id)[-1].endswith("Last Swap: 304.831867 USDC")


@pytest.mark.asyncio
async def test_stop_monitoring_only_touches_that_pool(monitor, pools, store):
    weth = await pools.fetch_or_create(pools.key_for(WETH_USDC_POOL))
    arb = await pools.fetch_or_create(pools.key_for(ARB_USDC_POOL))
    await monitor.watch_pool(weth, "chat-5")
    await monitor.watch_pool(arb, "chat-5")

    await monitor.stop_monitoring(weth)
    await monitor.stop_monitoring(weth)

    assert not monitor.is_monitoring(weth)
    assert pools.state(weth) is MonitorState.UNSUBSCRIBED
    assert monitor.is_monitoring(arb)
    assert [r.ref_key for r in await store.find_all(WatchRecord)] == [str(arb.key)]


@pytest.mark.asyncio
async def test_restore_reattaches_stored_watches(monitor, positions, pools, reader, store, sink):
    pool = await pools.fetch_or_create(pools.key_for(WETH_USDC_POOL))
    message_id = await monitor.watch_pool(pool, "chat-6")
    reader.add_position(43, -194600, -194400, 10**15)
    await monitor.watch_position(await positions.fetch(43), "chat-6", message_id="902")
    await monitor.shutdown()
    sent_before = len(sink.sent)

    tokens = TokenCache(store, reader)
    fresh_pools = PoolCache(store, reader, tokens)
    fresh_positions = PositionCache(store, reader, fresh_pools)
    restarted = MonitorEngine(fresh_pools, fresh_positions, store, sink)
    try:
        assert await restarted.restore() == 2
        restored_pool = await fresh_pools.get(pool.key)
        assert restarted.is_monitoring(restored_pool)
        assert fresh_pools.state(restored_pool) is not MonitorState.UNMONITORED
        assert len(sink.sent) == sent_before
        assert await store.count(WatchRecord) == 2
        record = await store.get(WatchRecord, WatchRecord.make_id("pool", str(pool.key), "chat-6"))
        assert record.message_id == message_id
    finally:
        await restarted.shutdown()


@pytest.mark.asyncio
async def test_sink_failures_do_not_stop_monitoring(pools, positions, store, reader):
    monitor = MonitorEngine(pools, positions, store, FailingSink())
    received = []
    monitor.notices.subscribe(received.append)
    try:
        pool = await pools.fetch_or_create(pools.key_for(WETH_USDC_POOL))
        await monitor.watch_pool(pool, "chat-7", message_id="1")
        await pools.handle_log(pool, make_swap_log())
        await pools.handle_log(pool, _low_swap(log_index=1))
        assert [type(n) for n in received] == [SwapNotice, SwapNotice]
    finally:
        await monitor.shutdown()
