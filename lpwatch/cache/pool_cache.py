import asyncio
import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from lpwatch.cache.base import LazyCache
from lpwatch.cache.keys import PoolKey, TokenKey
from lpwatch.cache.token_cache import Token, TokenCache
from lpwatch.chain.decoder import decode_swap
from lpwatch.config.abis import SWAP_EVENTS
from lpwatch.errors import EntityNotFoundUpstream
from lpwatch.monitoring.channel import EventChannel
from lpwatch.monitoring.events import SwapEvent
from lpwatch.storage.models.pool import PoolRecord
from lpwatch.utils.constants import ZERO_ADDRESS
from lpwatch.utils.price_math import price, quantize_amount, tick_price, token1_value
from lpwatch.utils.types import PoolPrices, SwapLog

log = logging.getLogger(__name__)


class MonitorState(enum.Enum):
    UNMONITORED = "unmonitored"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    UNSUBSCRIBED = "unsubscribed"


@dataclass(eq=False)
class Pool:
    key: PoolKey
    token0: Token
    token1: Token
    fee: int
    tick_spacing: int
    sqrt_price_x96: int = 0
    tick: int = 0
    liquidity: int = 0
    last_price: Optional[Decimal] = None

    def __post_init__(self):
        if self.token0.key == self.token1.key:
            raise ValueError(f"pool {self.key} has the same token on both sides")

    @property
    def address(self) -> str:
        return self.key.address

    @property
    def pair(self) -> str:
        return f"{self.token1.symbol}/{self.token0.symbol}"

    def price(self) -> Decimal:
        """token1 per token0 at the current sqrt price."""
        return price(self.sqrt_price_x96, self.token0.decimals, self.token1.decimals)

    def __repr__(self) -> str:
        return f"<Pool {self.pair} {self.fee} {self.key}>"


class PoolCache(LazyCache[Pool]):
    kind = "pool"
    model = PoolRecord

    def __init__(self, store, reader, tokens: TokenCache):
        super().__init__(store, reader)
        self.tokens = tokens
        # monitored pools stay alive so every holder sees the same live state
        self._live: Dict[str, Pool] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._states: Dict[str, MonitorState] = {}
        self._channels: Dict[str, EventChannel] = {}

    def key_for(self, address: str) -> PoolKey:
        return PoolKey(self.chain_id, address)

    # ── lookups ───────────────────────────────────────────────────────────
    async def fetch_by_tokens(self, token0: str, token1: str, fee: int) -> Pool:
        """Pool of a pair in factory order (token0, token1), as `positions()` reports it."""
        token0, token1 = token0.lower(), token1.lower()
        record = await self.store.find_one(
            PoolRecord,
            chain_id=self.chain_id,
            token0_id=str(TokenKey(self.chain_id, token0)),
            token1_id=str(TokenKey(self.chain_id, token1)),
            fee=int(fee),
        )
        if record is not None:
            return await self._materialize(record)

        address = await self.reader.get_pool_address(token0, token1, fee)
        if address == ZERO_ADDRESS:
            raise EntityNotFoundUpstream(self.kind, f"{token0}/{token1}/{fee}", "factory has no such pool")
        return await self.fetch_or_create(self.key_for(address))

    async def resolve(self, record: PoolRecord) -> Pool:
        token0, token1 = await asyncio.gather(
            self._dependency(TokenKey.parse(record.token0_id), record.id),
            self._dependency(TokenKey.parse(record.token1_id), record.id),
        )
        return Pool(
            key=PoolKey.parse(record.id),
            token0=token0,
            token1=token1,
            fee=record.fee,
            tick_spacing=record.tick_spacing,
            sqrt_price_x96=int(record.sqrt_price_x96),
            tick=record.tick,
            liquidity=int(record.liquidity),
            last_price=Decimal(record.last_price) if record.last_price is not None else None,
        )

    # ── state ─────────────────────────────────────────────────────────────
    async def refresh(self, pool: Pool) -> Pool:
        state = await self.reader.pool_state(pool.address)
        pool.sqrt_price_x96 = state.sqrt_price_x96
        pool.tick = state.tick
        pool.liquidity = state.liquidity
        await self.save(pool)
        return pool

    def prices(self, pool: Pool, position=None) -> PoolPrices:
        d0, d1 = pool.token0.decimals, pool.token1.decimals
        lower = upper = None
        if position is not None:
            lower = tick_price(position.tick_lower, d0, d1)
            upper = tick_price(position.tick_upper, d0, d1)
        return PoolPrices(
            current=pool.price(),
            tick=pool.tick,
            sqrt_price_x96=pool.sqrt_price_x96,
            lower=lower,
            upper=upper,
        )

    async def tvl(self, pool: Pool) -> Decimal:
        """Pool balances valued in token1."""
        balance0, balance1 = await asyncio.gather(
            self.reader.balance_of(pool.token0.address, pool.address),
            self.reader.balance_of(pool.token1.address, pool.address),
        )
        value = token1_value(pool.token0.format(balance0), pool.token1.format(balance1), pool.price())
        return quantize_amount(value, pool.token1.decimals)

    async def apply_swap(self, pool: Pool, swap: SwapLog) -> Pool:
        pool.sqrt_price_x96 = swap.sqrt_price_x96
        pool.tick = swap.tick
        if swap.liquidity is not None:
            pool.liquidity = swap.liquidity
        pool.last_price = pool.price()
        await self.save(pool)
        return pool

    # ── live subscription ────────────────────────────────────────────────
    def channel(self, pool: Pool) -> EventChannel:
        key = str(pool.key)
        if key not in self._channels:
            self._channels[key] = EventChannel(f"pool {pool.pair} {pool.address}")
        return self._channels[key]

    def state(self, pool: Pool) -> MonitorState:
        return self._states.get(str(pool.key), MonitorState.UNMONITORED)

    def start_monitoring(self, pool: Pool) -> EventChannel:
        """Follow the pool's Swap logs; a no-op while followed, a fresh subscription after one ended."""
        key = str(pool.key)
        channel = self.channel(pool)
        if key in self._tasks:
            return channel

        self._live[key] = pool
        self._states[key] = MonitorState.SUBSCRIBING
        self._tasks[key] = asyncio.create_task(self._follow(pool), name=f"swaps-{pool.address}")
        log.info("[pool-cache] monitoring %s", pool)
        return channel

    async def stop_monitoring(self, pool: Pool) -> None:
        key = str(pool.key)
        task = self._tasks.pop(key, None)
        self._live.pop(key, None)
        if key in self._states:
            self._states[key] = MonitorState.UNSUBSCRIBED
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("[pool-cache] stopped monitoring %s", pool)

    async def stop_all(self) -> None:
        for pool in list(self._live.values()):
            await self.stop_monitoring(pool)

    async def handle_log(self, pool: Pool, entry) -> SwapEvent:
        """Apply one raw Swap log to the pool and publish it on the pool channel."""
        swap = decode_swap(entry)
        await self.apply_swap(pool, swap)
        event = SwapEvent.from_swap(pool, swap)
        await self.channel(pool).publish(event)
        return event

    async def _follow(self, pool: Pool) -> None:
        key = str(pool.key)
        topics = [list(SWAP_EVENTS)]

        def ready():
            self._states[key] = MonitorState.ACTIVE

        try:
            async for entry in self.reader.watch_logs(pool.address, topics, on_ready=ready):
                try:
                    await self.handle_log(pool, entry)
                except Exception:
                    log.exception("[pool-cache] skipping Swap log on %s", pool.address)
        except Exception:
            log.exception("[pool-cache] subscription for %s failed", pool.address)
        else:
            log.warning("[pool-cache] log stream for %s ended", pool.address)

        # a later start_monitoring call subscribes again
        if self._tasks.get(key) is asyncio.current_task():
            del self._tasks[key]
            self._states[key] = MonitorState.UNSUBSCRIBED

    # ── hydration ─────────────────────────────────────────────────────────
    async def _dependency(self, key: TokenKey, owner_id: str) -> Token:
        token = await self.tokens.get(key)
        if token is None:
            log.warning("[pool-cache] pool %s references missing token %s, re-hydrating", owner_id, key)
            token = await self.tokens.fetch_or_create(key)
        return token

    async def _hydrate(self, key: PoolKey) -> Pool:
        meta, state = await asyncio.gather(
            self.reader.pool_meta(key.address),
            self.reader.pool_state(key.address),
        )
        token0, token1 = await asyncio.gather(
            self.tokens.fetch_or_create(self.tokens.key_for(meta.token0)),
            self.tokens.fetch_or_create(self.tokens.key_for(meta.token1)),
        )
        return Pool(
            key=key,
            token0=token0,
            token1=token1,
            fee=meta.fee,
            tick_spacing=meta.tick_spacing,
            sqrt_price_x96=state.sqrt_price_x96,
            tick=state.tick,
            liquidity=state.liquidity,
        )

    def _to_record(self, pool: Pool) -> PoolRecord:
        return PoolRecord(
            id=str(pool.key),
            chain_id=pool.key.chain_id,
            address=pool.address,
            token0_id=str(pool.token0.key),
            token1_id=str(pool.token1.key),
            fee=pool.fee,
            tick_spacing=pool.tick_spacing,
            sqrt_price_x96=str(pool.sqrt_price_x96),
            tick=pool.tick,
            liquidity=str(pool.liquidity),
            last_price=str(pool.last_price) if pool.last_price is not None else None,
        )
