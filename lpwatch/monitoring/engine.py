"""Turns the swaps of monitored pools into chat notifications.

The engine listens on each pool's channel once, keeps the watchers' messages
edited with the latest price, fires one-shot price alerts, and layers
independent position listeners on top of the same channel.
"""
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, Optional

from lpwatch.cache.keys import PoolKey, PositionKey
from lpwatch.cache.pool_cache import Pool, PoolCache
from lpwatch.cache.position_cache import Position, PositionCache
from lpwatch.errors import EntityNotFoundUpstream
from lpwatch.monitoring.alerts import Alert, AlertRegistry
from lpwatch.monitoring.channel import EventChannel, Subscription
from lpwatch.monitoring.events import AlertNotice, PositionNotice, RangeNotice, SwapEvent, SwapNotice
from lpwatch.notify import formatters
from lpwatch.storage.models.watch import WatchRecord
from lpwatch.storage.store import RecordStore
from lpwatch.utils.price_math import tick_price

log = logging.getLogger(__name__)

POOL_WATCH = "pool"
POSITION_WATCH = "position"


@dataclass
class _PoolWatch:
    pool: Pool
    alerts: AlertRegistry = field(default_factory=AlertRegistry)
    watchers: Dict[str, Optional[str]] = field(default_factory=dict)   # destination -> message id
    subscription: Optional[Subscription] = None


@dataclass
class _PositionWatch:
    position: Position
    destination: str
    message_id: Optional[str]
    in_range: bool
    subscription: Optional[Subscription] = None


class MonitorEngine:
    def __init__(self, pools: PoolCache, positions: PositionCache, store: RecordStore, sink, timezone: str = "UTC"):
        self.pools = pools
        self.positions = positions
        self.store = store
        self.sink = sink
        self.timezone = timezone
        self.notices = EventChannel("notices")
        self._pool_watches: Dict[str, _PoolWatch] = {}
        self._position_watches: Dict[str, _PositionWatch] = {}

    def is_monitoring(self, pool: Pool) -> bool:
        return str(pool.key) in self._pool_watches

    def alerts(self, pool: Pool) -> Optional[AlertRegistry]:
        watch = self._pool_watches.get(str(pool.key))
        return watch.alerts if watch else None

    # ── pools ─────────────────────────────────────────────────────────────
    async def start_monitoring(self, pool: Pool) -> None:
        """Attach the pool watch; resubscribes when the pool's log subscription has died."""
        key = str(pool.key)
        channel = self.pools.start_monitoring(pool)
        if key in self._pool_watches:
            return
        watch = _PoolWatch(pool)
        watch.subscription = channel.subscribe(partial(self._on_swap, watch))
        self._pool_watches[key] = watch
        log.info("[monitor] started %s", pool)

    async def stop_monitoring(self, pool: Pool) -> None:
        """Drop the pool's watchers and alerts; position watches on it keep running."""
        key = str(pool.key)
        watch = self._pool_watches.pop(key, None)
        if watch is not None:
            watch.subscription.unsubscribe()
            await self.store.delete_all(WatchRecord, kind=POOL_WATCH, ref_key=key)
        await self._release(pool)
        log.info("[monitor] stopped %s", pool)

    async def watch_pool(self, pool: Pool, destination: str, message_id: Optional[str] = None) -> Optional[str]:
        """Keep a message at `destination` edited with the pool's latest swap."""
        await self.start_monitoring(pool)
        destination = str(destination)
        if message_id is None:
            message_id = await self.sink.send(destination, formatters.pool_status(pool, self.timezone))
        self._pool_watches[str(pool.key)].watchers[destination] = message_id
        await self._persist(POOL_WATCH, str(pool.key), destination, message_id)
        return message_id

    async def add_alert(self, pool: Pool, target_price, destination: str) -> Alert:
        await self.start_monitoring(pool)
        alert = self._pool_watches[str(pool.key)].alerts.add(target_price, destination)
        log.info("[monitor] alert at %s for %s on %s", alert.target_price, destination, pool.pair)
        return alert

    # ── positions ─────────────────────────────────────────────────────────
    async def watch_position(self, position: Position, destination: str,
                             message_id: Optional[str] = None) -> Subscription:
        channel = self.pools.start_monitoring(position.pool)
        key = str(position.key)
        if key in self._position_watches:
            self._position_watches.pop(key).subscription.unsubscribe()

        watch = _PositionWatch(
            position=position,
            destination=str(destination),
            message_id=message_id,
            in_range=position.in_range(),
        )
        watch.subscription = channel.subscribe(partial(self._on_position_swap, watch))
        self._position_watches[key] = watch
        await self._persist(POSITION_WATCH, key, watch.destination, message_id)
        log.info("[monitor] watching %s for %s", position, destination)
        return watch.subscription

    async def unwatch_position(self, position: Position) -> None:
        await self._detach_position(str(position.key))
        await self._release(position.pool)

    # ── lifecycle ─────────────────────────────────────────────────────────
    async def restore(self) -> int:
        """Re-attach the watches stored by a previous run."""
        restored = 0
        for record in await self.store.find_all(WatchRecord):
            try:
                if record.kind == POOL_WATCH:
                    pool = await self.pools.fetch_or_create(PoolKey.parse(record.ref_key))
                    await self.watch_pool(pool, record.destination, record.message_id)
                elif record.kind == POSITION_WATCH:
                    position = await self.positions.fetch_or_create(PositionKey.parse(record.ref_key))
                    await self.watch_position(position, record.destination, record.message_id)
                else:
                    log.warning("[monitor] unknown watch kind %r in %s", record.kind, record.id)
                    continue
            except EntityNotFoundUpstream as e:
                log.warning("[monitor] cannot restore %s: %s", record.id, e)
                continue
            restored += 1
        log.info("[monitor] restored %d watch(es)", restored)
        return restored

    async def shutdown(self) -> None:
        """Release every subscription; stored watches are kept for the next run."""
        for watch in self._pool_watches.values():
            watch.subscription.unsubscribe()
        for watch in self._position_watches.values():
            watch.subscription.unsubscribe()
        await self.pools.stop_all()
        self._pool_watches.clear()
        self._position_watches.clear()

    # ── listeners ─────────────────────────────────────────────────────────
    async def _on_swap(self, watch: _PoolWatch, event: SwapEvent) -> None:
        fired = watch.alerts.observe(event.price)

        notice = SwapNotice(
            pool=event.pool,
            price=event.price,
            tick=event.tick,
            volume=event.volume,
            volume_symbol=event.volume_symbol,
            observed_at=event.observed_at,
        )
        await self.notices.publish(notice)
        text = formatters.swap_text(notice, self.timezone)
        for destination, message_id in list(watch.watchers.items()):
            await self._deliver(destination, text, message_id)

        for alert in fired:
            alert_notice = AlertNotice(
                pool=event.pool,
                target_price=alert.target_price,
                price=event.price,
                destination=alert.destination,
                rising=alert.reference_price < alert.target_price,
            )
            await self.notices.publish(alert_notice)
            await self._deliver(alert.destination, formatters.alert_text(alert_notice))

    async def _on_position_swap(self, watch: _PositionWatch, event: SwapEvent) -> None:
        position = watch.position
        pool = event.pool
        now_in_range = position.in_range(event.tick)
        notice = PositionNotice(
            position=position,
            price=event.price,
            tick=event.tick,
            volume=event.volume,
            volume_symbol=event.volume_symbol,
            lower=tick_price(position.tick_lower, pool.token0.decimals, pool.token1.decimals),
            upper=tick_price(position.tick_upper, pool.token0.decimals, pool.token1.decimals),
            in_range=now_in_range,
            observed_at=event.observed_at,
        )
        await self.notices.publish(notice)
        message_id = await self._deliver(watch.destination, formatters.position_update(notice, self.timezone),
                                         watch.message_id)
        if watch.message_id is None and message_id is not None:
            watch.message_id = message_id
            await self._persist(POSITION_WATCH, str(position.key), watch.destination, message_id)

        if now_in_range != watch.in_range:
            watch.in_range = now_in_range
            range_notice = RangeNotice(position=position, in_range=now_in_range, price=event.price, tick=event.tick)
            await self.notices.publish(range_notice)
            await self._deliver(watch.destination, formatters.range_text(range_notice))

    # ── helpers ───────────────────────────────────────────────────────────
    async def _deliver(self, destination: str, text: str, edit_message_id: Optional[str] = None) -> Optional[str]:
        try:
            return await self.sink.send(destination, text, edit_message_id)
        except Exception:
            log.exception("[monitor] delivery to %s failed", destination)
            return None

    async def _release(self, pool: Pool) -> None:
        """Stop the pool's log subscription once no watch of any kind uses it."""
        if str(pool.key) in self._pool_watches:
            return
        if any(w.position.pool.key == pool.key for w in self._position_watches.values()):
            return
        await self.pools.stop_monitoring(pool)

    async def _detach_position(self, key: str) -> None:
        watch = self._position_watches.pop(key, None)
        if watch is None:
            return
        watch.subscription.unsubscribe()
        await self.store.delete_all(WatchRecord, kind=POSITION_WATCH, ref_key=key)
        log.info("[monitor] unwatched %s", watch.position)

    async def _persist(self, kind: str, ref_key: str, destination: str, message_id: Optional[str]) -> None:
        await self.store.upsert(WatchRecord(
            id=WatchRecord.make_id(kind, ref_key, destination),
            kind=kind,
            ref_key=ref_key,
            destination=destination,
            message_id=str(message_id) if message_id is not None else None,
        ))
