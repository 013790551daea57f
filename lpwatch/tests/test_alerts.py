from decimal import Decimal

from lpwatch.monitoring.alerts import AlertRegistry

D = Decimal


def _feed(registry, prices):
    fired = []
    for price in prices:
        fired.extend(registry.observe(D(price)))
    return fired


def test_alert_fires_once_on_upward_cross():
    registry = AlertRegistry()
    alert = registry.add("1.1", "chat-1")
    fired = _feed(registry, ["1.0", "1.2", "0.9"])
    assert fired == [alert]
    assert alert.triggered
    assert len(registry) == 0


def test_first_observation_only_seeds():
    registry = AlertRegistry()
    registry.add("1.1", "chat-1")
    # starting above the target is not a cross
    assert registry.observe(D("1.2")) == []
    assert len(registry) == 1


def test_alert_added_later_compares_with_last_seen_price():
    registry = AlertRegistry()
    registry.add("1.1", "chat-1")
    _feed(registry, ["1.0", "1.2"])

    second = registry.add("1.1", "chat-2")
    assert second.reference_price == D("1.2")
    assert registry.observe(D("0.9")) == [second]


def test_reaching_the_target_exactly_counts():
    registry = AlertRegistry()
    alert = registry.add("2", "chat-1")
    assert _feed(registry, ["1.5", "2"]) == [alert]


def test_touching_from_the_target_does_not_refire():
    registry = AlertRegistry()
    registry.add("2", "chat-1")
    # 2 -> 2.5 starts on the target, it never crosses it
    assert _feed(registry, ["2", "2.5"]) == []


def test_alerts_at_the_same_target_are_independent():
    registry = AlertRegistry()
    a = registry.add("1.1", "chat-1")
    b = registry.add("1.1", "chat-2")
    registry.remove(b)
    c = registry.add("1.1", "chat-3")
    assert _feed(registry, ["1.0", "1.3"]) == [a, c]
    assert not b.triggered


def test_clear_and_len():
    registry = AlertRegistry()
    registry.add(1, "a")
    registry.add(2, "b")
    assert len(registry) == 2
    registry.clear()
    assert len(registry) == 0
    assert registry.observe(D("5")) == []
