"""Price helpers for V3 pools.

All prices are token1 per token0, adjusted for token decimals. `price` works
on Python integers end to end: squaring a 160-bit sqrt price and dividing by
2^192 is exact, so stablecoin pairs near parity keep their last digits.
"""
from decimal import ROUND_FLOOR, Context, Decimal, localcontext

from lpwatch.utils.constants import DISPLAY_DECIMALS, INFINITE_PRICE, MAX_TICK, MIN_TICK, Q192
from lpwatch.utils.liquidity_math import sqrt_ratio_at_tick

_WIDE = Context(prec=100)
_TICK_BASE = Decimal("1.0001")
_TICK_PRECISION = 50


def price(sqrt_price_x96: int, decimals0: int, decimals1: int, display_decimals: int = DISPLAY_DECIMALS) -> Decimal:
    """(sqrtPriceX96^2 / 2^192) * 10^(decimals0 - decimals1), truncated to `display_decimals` places."""
    sqrt_price_x96 = int(sqrt_price_x96)
    if sqrt_price_x96 == 0:
        return INFINITE_PRICE

    shift = decimals0 - decimals1
    numerator = sqrt_price_x96 * sqrt_price_x96 * 10 ** (max(shift, 0) + display_decimals)
    denominator = Q192 * 10 ** max(-shift, 0)
    return Decimal(numerator // denominator).scaleb(-display_decimals, context=_WIDE)


def tick_price(tick: int, decimals0: int, decimals1: int) -> Decimal:
    """Display price at a tick boundary, through the exact on-chain sqrt ratio."""
    return price(sqrt_ratio_at_tick(tick), decimals0, decimals1)


def price_at_tick(tick: int, decimals0: int = 0, decimals1: int = 0) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _TICK_PRECISION
        return _TICK_BASE ** tick * Decimal(10) ** (decimals0 - decimals1)


def tick_at_price(value, decimals0: int = 0, decimals1: int = 0) -> int:
    """Largest tick whose price does not exceed `value`."""
    value = Decimal(value)
    if not value.is_finite() or value <= 0:
        raise ValueError(f"cannot take the tick of price {value}")

    with localcontext() as ctx:
        ctx.prec = _TICK_PRECISION
        raw = value / Decimal(10) ** (decimals0 - decimals1)
        estimate = (raw.ln() / _TICK_BASE.ln()).to_integral_value(rounding=ROUND_FLOOR)
        tick = int(estimate)
        # ln/ln can land a hair either side of an exact tick
        if _TICK_BASE ** (tick + 1) <= raw:
            tick += 1
        elif _TICK_BASE ** tick > raw:
            tick -= 1

    if not MIN_TICK <= tick <= MAX_TICK:
        raise ValueError(f"price {value} maps outside the tick range")
    return tick


def in_range(current_tick: int, tick_lower: int, tick_upper: int) -> bool:
    """Pool convention: liquidity is active on [tick_lower, tick_upper)."""
    return tick_lower <= current_tick < tick_upper


def format_price(value: Decimal, display_decimals: int = DISPLAY_DECIMALS) -> str:
    if value is None:
        return "n/a"
    if not value.is_finite():
        return "∞"
    return f"{value:.{display_decimals}f}"


def token1_value(amount0: Decimal, amount1: Decimal, current: Decimal) -> Decimal:
    """amount0 * price + amount1, in token1 units; infinite when the price is."""
    if amount0 == 0:
        return amount1
    with localcontext(_WIDE):
        return amount0 * current + amount1


def quantize_amount(value: Decimal, decimals: int) -> Decimal:
    """Round down to a token's own precision; sentinels pass through."""
    if not value.is_finite():
        return value
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_FLOOR, context=_WIDE)
