from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from lpwatch.notify import formatters

POOL = SimpleNamespace(pair="USDC/WETH")
NOON = datetime(2024, 3, 1, 12, 0, 5, tzinfo=timezone.utc)


def test_price_update_text():
    text = formatters.price_update(POOL, Decimal("3578.96913182"), -194492, Decimal("304.831867"), "USDC", NOON)
    assert text == (
        "3578.96913182 USDC/WETH 12:00:05\n"
        "Tick: -194492\n"
        "Last Swap: 304.831867 USDC"
    )


def test_price_update_before_any_swap():
    text = formatters.price_update(POOL, Decimal("1"), 0, moment=NOON)
    assert text.endswith("Last Swap: N/A")


def test_local_time_uses_the_configured_zone():
    assert formatters.local_time(NOON, "Asia/Tokyo") == "21:00:05"


def test_alert_text_direction():
    notice = SimpleNamespace(pool=POOL, target_price=Decimal("3500"), price=Decimal("3370.98248395"), rising=False)
    text = formatters.alert_text(notice)
    assert "Price fell below 3500.00000000." in text
    assert text.endswith("Current Price: 3370.98248395")


def test_amount_and_money_rendering():
    assert formatters.format_amount(Decimal("0.085177457593895947")) == "0.085177"
    assert formatters.format_amount(Decimal("25.000000")) == "25"
    assert formatters.format_amount(Decimal("Infinity")) == "∞"
    assert formatters.money(Decimal("55789.6913182")) == "55,789.69"
    assert formatters.money(None) == "n/a"
