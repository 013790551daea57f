from decimal import Decimal
from typing import NamedTuple, Optional


class TokenMeta(NamedTuple):
    symbol: str
    name: str
    decimals: int


class PoolMeta(NamedTuple):
    token0: str
    token1: str
    fee: int
    tick_spacing: int


class PoolState(NamedTuple):
    sqrt_price_x96: int
    tick: int
    liquidity: int


class PositionData(NamedTuple):
    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    liquidity: int


class SwapLog(NamedTuple):
    """Decoded Swap event, raw integer amounts from the pool's perspective."""
    sender: str
    recipient: str
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: Optional[int]
    tick: int
    block_number: Optional[int] = None
    tx_hash: Optional[str] = None
    log_index: Optional[int] = None
    protocol_fees0: Optional[int] = None
    protocol_fees1: Optional[int] = None


class PoolPrices(NamedTuple):
    current: Decimal
    tick: int
    sqrt_price_x96: int
    lower: Optional[Decimal] = None
    upper: Optional[Decimal] = None


class TokenAmounts(NamedTuple):
    amount0: Decimal
    amount1: Decimal


class RewardSnapshot(NamedTuple):
    amount: Decimal
    symbol: str


class FeeSnapshot(NamedTuple):
    token0_fees: Decimal
    token1_fees: Decimal
    total_value: Decimal
    current_price: Optional[Decimal]
    reward: RewardSnapshot
