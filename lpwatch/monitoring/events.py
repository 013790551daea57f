"""Payloads carried on the event channels."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from lpwatch.utils.types import SwapLog

if TYPE_CHECKING:
    from lpwatch.cache.pool_cache import Pool
    from lpwatch.cache.position_cache import Position


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SwapEvent:
    """A Swap already applied to `pool`; price and volume are display values."""
    pool: "Pool"
    swap: SwapLog
    price: Decimal
    volume: Decimal
    volume_symbol: str
    observed_at: datetime = field(default_factory=_now)

    @property
    def tick(self) -> int:
        return self.swap.tick

    @classmethod
    def from_swap(cls, pool: "Pool", swap: SwapLog, observed_at: Optional[datetime] = None) -> "SwapEvent":
        # volume is quoted in token1 unless the swap left token1 untouched
        if swap.amount1 != 0:
            volume, token = pool.token1.format(abs(swap.amount1)), pool.token1
        else:
            volume, token = pool.token0.format(abs(swap.amount0)), pool.token0
        return cls(
            pool=pool,
            swap=swap,
            price=pool.price(),
            volume=volume,
            volume_symbol=token.symbol,
            observed_at=observed_at or _now(),
        )


@dataclass(frozen=True)
class SwapNotice:
    pool: "Pool"
    price: Decimal
    tick: int
    volume: Decimal
    volume_symbol: str
    observed_at: datetime


@dataclass(frozen=True)
class AlertNotice:
    pool: "Pool"
    target_price: Decimal
    price: Decimal
    destination: str
    rising: bool


@dataclass(frozen=True)
class PositionNotice:
    position: "Position"
    price: Decimal
    tick: int
    volume: Decimal
    volume_symbol: str
    lower: Decimal
    upper: Decimal
    in_range: bool
    observed_at: datetime


@dataclass(frozen=True)
class RangeNotice:
    position: "Position"
    in_range: bool
    price: Decimal
    tick: int
