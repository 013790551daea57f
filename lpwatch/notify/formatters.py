"""Plain-text renderings of monitor notices, as shown to chat subscribers."""
from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from lpwatch.utils.price_math import format_price


def local_time(moment: Optional[datetime] = None, tz: str = "UTC") -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(ZoneInfo(tz)).strftime("%H:%M:%S")


def format_amount(value: Decimal, places: int = 6) -> str:
    if not value.is_finite():
        return "∞"
    text = f"{value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_FLOOR):f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def money(value: Decimal) -> str:
    if value is None:
        return "n/a"
    if not value.is_finite():
        return "∞"
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_FLOOR):,}"


def price_update(pool, price: Decimal, tick: int, volume: Optional[Decimal] = None,
                 volume_symbol: str = "", moment: Optional[datetime] = None, tz: str = "UTC") -> str:
    last_swap = f"{format_amount(volume)} {volume_symbol}" if volume is not None else "N/A"
    return (
        f"{format_price(price)} {pool.pair} {local_time(moment, tz)}\n"
        f"Tick: {tick}\n"
        f"Last Swap: {last_swap}"
    )


def pool_status(pool, tz: str = "UTC") -> str:
    """First text of a pool watch, before any swap was seen."""
    return price_update(pool, pool.price(), pool.tick, tz=tz)


def swap_text(notice, tz: str = "UTC") -> str:
    return price_update(notice.pool, notice.price, notice.tick, notice.volume, notice.volume_symbol,
                        notice.observed_at, tz)


def alert_text(notice) -> str:
    direction = "rose above" if notice.rising else "fell below"
    return (
        "🔔 Price Alert! 🔔\n"
        f"Pool: {notice.pool.pair}\n"
        f"Price {direction} {format_price(notice.target_price)}.\n"
        f"Current Price: {format_price(notice.price)}"
    )


def range_text(notice) -> str:
    position = notice.position
    if notice.in_range:
        return f"✅ Position #{position.token_id} back in range at {format_price(notice.price)} (tick {notice.tick})"
    return f"⚠️ Position #{position.token_id} out of range at {format_price(notice.price)} (tick {notice.tick})"


def position_update(notice, tz: str = "UTC") -> str:
    position = notice.position
    marker = "🟢" if notice.in_range else "🔴"
    return (
        f"{marker} {format_price(notice.price)} {position.pool.pair} {local_time(notice.observed_at, tz)}\n"
        f"Tick: {notice.tick} | {format_price(notice.lower)} - {format_price(notice.upper)}\n"
        f"Last Swap: {format_amount(notice.volume)} {notice.volume_symbol}\n"
        f"#{position.token_id}"
    )


def position_summary(position, prices, amounts, value: Decimal, fees=None) -> str:
    """Multi-line card for one position, used by the CLI."""
    pool = position.pool
    marker = "🟢" if position.in_range() else "🔴"
    lines = [f"{marker} {format_price(prices.current)} {pool.pair}"]
    if fees is not None:
        lines.append(
            f"💸 {money(fees.total_value)} {pool.token1.symbol}"
            f" 🍪 {format_amount(fees.reward.amount)} {fees.reward.symbol}"
        )
    lines.append(
        f"💰 {format_amount(amounts.amount0)} {pool.token0.symbol}"
        f" + {format_amount(amounts.amount1)} {pool.token1.symbol} ≈ {money(value)} {pool.token1.symbol}"
    )
    staking = "🥩 STAKED" if position.is_staked else "💼 UNSTAKED"
    lines.append(f"{staking} | {format_price(prices.lower)} - {format_price(prices.upper)}")
    lines.append(f"{pool.token0.symbol}/{pool.token1.symbol} ({pool.fee / 10000:.2f}%) - #{position.token_id}")
    return "\n".join(lines)
