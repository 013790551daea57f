import pytest

from lpwatch.utils.constants import MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, MIN_TICK, Q96
from lpwatch.utils.liquidity_math import amount0_delta, amount1_delta, amounts_for_liquidity, sqrt_ratio_at_tick


def test_sqrt_ratio_at_tick_matches_tickmath_bounds():
    assert sqrt_ratio_at_tick(0) == Q96
    assert sqrt_ratio_at_tick(MIN_TICK) == MIN_SQRT_RATIO
    assert sqrt_ratio_at_tick(MAX_TICK) == MAX_SQRT_RATIO


def test_sqrt_ratio_at_tick_is_strictly_increasing():
    ticks = [-887272, -500000, -194492, -1, 0, 1, 194492, 500000]
    ratios = [sqrt_ratio_at_tick(t) for t in ticks]
    assert ratios == sorted(ratios)
    assert len(set(ratios)) == len(ratios)


@pytest.mark.parametrize("tick", [MIN_TICK - 1, MAX_TICK + 1])
def test_sqrt_ratio_at_tick_rejects_out_of_range(tick):
    with pytest.raises(ValueError):
        sqrt_ratio_at_tick(tick)


def test_deltas_ignore_argument_order():
    a, b = sqrt_ratio_at_tick(-100), sqrt_ratio_at_tick(100)
    assert amount0_delta(a, b, 10**18) == amount0_delta(b, a, 10**18)
    assert amount1_delta(a, b, 10**18) == amount1_delta(b, a, 10**18)
    assert amount0_delta(0, b, 10**18) == 0


def test_amounts_below_range_are_all_token0():
    liquidity = 10**18
    amount0, amount1 = amounts_for_liquidity(sqrt_ratio_at_tick(-20), -20, -10, 10, liquidity)
    assert amount1 == 0
    assert amount0 == amount0_delta(sqrt_ratio_at_tick(-10), sqrt_ratio_at_tick(10), liquidity)


def test_amounts_at_upper_tick_are_all_token1():
    liquidity = 10**18
    amount0, amount1 = amounts_for_liquidity(sqrt_ratio_at_tick(10), 10, -10, 10, liquidity)
    assert amount0 == 0
    assert amount1 == amount1_delta(sqrt_ratio_at_tick(-10), sqrt_ratio_at_tick(10), liquidity)


def test_amounts_at_lower_tick_count_as_in_range():
    liquidity = 10**18
    sqrt_lower = sqrt_ratio_at_tick(-10)
    amount0, amount1 = amounts_for_liquidity(sqrt_lower, -10, -10, 10, liquidity)
    assert amount1 == 0
    assert amount0 == amount0_delta(sqrt_lower, sqrt_ratio_at_tick(10), liquidity)


def test_amounts_in_range_hold_both_tokens():
    amount0, amount1 = amounts_for_liquidity(Q96, 0, -10, 10, 10**18)
    assert amount0 > 0 and amount1 > 0
    # symmetric range around parity holds about the same of each
    assert abs(amount0 - amount1) <= amount0 // 1000


def test_zero_liquidity_holds_nothing():
    assert amounts_for_liquidity(Q96, 0, -10, 10, 0) == (0, 0)
