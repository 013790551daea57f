import asyncio
import logging
import time
from dataclasses import dataclass
from decimal import Context, Decimal
from typing import Callable, Dict, List, Optional, Tuple

from lpwatch.cache.base import LazyCache
from lpwatch.cache.keys import PoolKey, PositionKey
from lpwatch.cache.pool_cache import Pool, PoolCache
from lpwatch.config.settings import REWARD_TOKEN_DECIMALS, REWARD_TOKEN_SYMBOL, REWARD_TTL_SECONDS
from lpwatch.storage.models.position import PositionRecord
from lpwatch.utils.constants import DUST_THRESHOLD, STABLECOINS
from lpwatch.utils.liquidity_math import amounts_for_liquidity
from lpwatch.utils.price_math import in_range, quantize_amount, token1_value
from lpwatch.utils.types import FeeSnapshot, RewardSnapshot, TokenAmounts

log = logging.getLogger(__name__)

_WIDE = Context(prec=100)


@dataclass(eq=False)
class Position:
    key: PositionKey
    owner: str
    pool: Pool
    tick_lower: int
    tick_upper: int
    liquidity: int
    is_staked: bool = False

    def __post_init__(self):
        if self.tick_lower >= self.tick_upper:
            raise ValueError(f"position {self.key} has tick_lower {self.tick_lower} >= tick_upper {self.tick_upper}")

    @property
    def token_id(self) -> int:
        return self.key.token_id

    @property
    def is_closed(self) -> bool:
        return self.liquidity == 0

    def in_range(self, tick: Optional[int] = None) -> bool:
        """Whether `tick` (the pool's current tick by default) earns fees for this range."""
        return in_range(self.pool.tick if tick is None else tick, self.tick_lower, self.tick_upper)

    def __repr__(self) -> str:
        return f"<Position #{self.token_id} {self.pool.pair} [{self.tick_lower}, {self.tick_upper})>"


class PositionCache(LazyCache[Position]):
    kind = "position"
    model = PositionRecord

    def __init__(
        self,
        store,
        reader,
        pools: PoolCache,
        reward_ttl: float = REWARD_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        reward_decimals: int = REWARD_TOKEN_DECIMALS,
        reward_symbol: str = REWARD_TOKEN_SYMBOL,
    ):
        super().__init__(store, reader)
        self.pools = pools
        self.reward_ttl = reward_ttl
        self.reward_decimals = reward_decimals
        self.reward_symbol = reward_symbol
        self._clock = clock
        self._rewards: Dict[str, Tuple[float, RewardSnapshot]] = {}

    def key_for(self, token_id: int) -> PositionKey:
        return PositionKey(self.chain_id, self.reader.position_manager, token_id)

    async def fetch(self, token_id: int) -> Position:
        return await self.fetch_or_create(self.key_for(token_id))

    async def resolve(self, record: PositionRecord) -> Position:
        pool_key = PoolKey.parse(record.pool_id)
        pool = await self.pools.get(pool_key)
        if pool is None:
            log.warning("[position-cache] position %s references missing pool %s, re-hydrating", record.id, pool_key)
            pool = await self.pools.fetch_or_create(pool_key)
        return Position(
            key=PositionKey.parse(record.id),
            owner=record.owner,
            pool=pool,
            tick_lower=record.tick_lower,
            tick_upper=record.tick_upper,
            liquidity=int(record.liquidity),
            is_staked=record.is_staked,
        )

    async def refresh(self, position: Position) -> Position:
        """Re-read the NFT and persist whatever moved since it was stored."""
        data, holder, staker = await asyncio.gather(
            self.reader.position(position.token_id),
            self.reader.owner_of(position.token_id),
            self.reader.staked_owner(position.token_id),
        )
        current = {
            "owner": staker or holder,
            "tick_lower": data.tick_lower,
            "tick_upper": data.tick_upper,
            "liquidity": data.liquidity,
            "is_staked": staker is not None,
        }
        changed = {name: value for name, value in current.items() if getattr(position, name) != value}
        if changed:
            for name, value in changed.items():
                setattr(position, name, value)
            await self.save(position)
            log.info("[position-cache] #%s updated: %s", position.token_id, ", ".join(sorted(changed)))
        return position

    async def scan_wallet(self, owner: str, include_empty: bool = False) -> List[Position]:
        """Positions held by `owner`, wallet-held first, then staked ones."""
        held, staked = await asyncio.gather(
            self.reader.wallet_token_ids(owner),
            self.reader.wallet_token_ids(owner, staked=True),
        )
        positions = []
        for token_id in held + staked:
            key = self.key_for(token_id)
            position = await self.get(key)
            if position is None:
                position = await self.fetch_or_create(key)
            else:
                position = await self.refresh(position)
            if include_empty or not await self.is_empty(position):
                positions.append(position)
        log.info("[position-cache] wallet %s: %d of %d position(s) shown", owner, len(positions), len(held) + len(staked))
        return positions

    # ── valuation ─────────────────────────────────────────────────────────
    def token_amounts(self, position: Position) -> TokenAmounts:
        pool = position.pool
        raw0, raw1 = amounts_for_liquidity(
            pool.sqrt_price_x96,
            pool.tick,
            position.tick_lower,
            position.tick_upper,
            position.liquidity,
        )
        return TokenAmounts(pool.token0.format(raw0), pool.token1.format(raw1))

    def combined_value(self, position: Position) -> Decimal:
        """Position worth in token1 units."""
        pool = position.pool
        if pool.token1.symbol.lower() not in STABLECOINS:
            log.debug("[position-cache] #%s valued in %s, not a stablecoin", position.token_id, pool.token1.symbol)
        amounts = self.token_amounts(position)
        return token1_value(amounts.amount0, amounts.amount1, pool.price())

    async def is_empty(self, position: Position) -> bool:
        if position.liquidity == 0:
            return True
        return self.combined_value(position) < DUST_THRESHOLD

    async def unclaimed_fees(self, position: Position) -> FeeSnapshot:
        pool = position.pool
        if position.liquidity == 0:
            zero = Decimal(0)
            return FeeSnapshot(zero, zero, zero, None, RewardSnapshot(zero, self.reward_symbol))

        # staked NFTs are held by the farm, only the holder may collect
        sender = self.reader.staker if position.is_staked else position.owner
        raw0, raw1 = await self.reader.simulate_collect(position.token_id, sender)
        fees0 = pool.token0.format(raw0)
        fees1 = pool.token1.format(raw1)
        current = pool.price()
        total = quantize_amount(token1_value(fees0, fees1, current), pool.token1.decimals)
        reward = await self.staking_reward(position)
        return FeeSnapshot(fees0, fees1, total, current, reward)

    async def staking_reward(self, position: Position) -> RewardSnapshot:
        if not position.is_staked:
            return RewardSnapshot(Decimal(0), self.reward_symbol)

        key = str(position.key)
        now = self._clock()
        cached = self._rewards.get(key)
        if cached is not None and now < cached[0]:
            return cached[1]

        raw = await self.reader.pending_reward(position.token_id)
        amount = Decimal(int(raw)).scaleb(-self.reward_decimals, context=_WIDE)
        snapshot = RewardSnapshot(amount, self.reward_symbol)
        self._rewards = {k: v for k, v in self._rewards.items() if now < v[0]}
        self._rewards[key] = (now + self.reward_ttl, snapshot)
        return snapshot

    # ── hydration ─────────────────────────────────────────────────────────
    async def _hydrate(self, key: PositionKey) -> Position:
        data, holder, staker = await asyncio.gather(
            self.reader.position(key.token_id),
            self.reader.owner_of(key.token_id),
            self.reader.staked_owner(key.token_id),
        )
        pool = await self.pools.fetch_by_tokens(data.token0, data.token1, data.fee)
        return Position(
            key=key,
            owner=staker or holder,
            pool=pool,
            tick_lower=data.tick_lower,
            tick_upper=data.tick_upper,
            liquidity=data.liquidity,
            is_staked=staker is not None,
        )

    def _to_record(self, position: Position) -> PositionRecord:
        return PositionRecord(
            id=str(position.key),
            chain_id=position.key.chain_id,
            position_manager=position.key.manager,
            token_id=position.token_id,
            owner=position.owner,
            pool_id=str(position.pool.key),
            tick_lower=position.tick_lower,
            tick_upper=position.tick_upper,
            liquidity=str(position.liquidity),
            is_staked=position.is_staked,
        )
