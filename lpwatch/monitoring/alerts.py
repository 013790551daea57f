import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

log = logging.getLogger(__name__)


@dataclass(eq=False)
class Alert:
    """One-shot threshold on a pool price; fires when the price crosses `target_price`."""
    target_price: Decimal
    destination: str
    reference_price: Optional[Decimal] = None
    triggered: bool = False

    def crossed(self, new_price: Decimal) -> bool:
        old = self.reference_price
        if old is None:
            return False
        return old < self.target_price <= new_price or old > self.target_price >= new_price


class AlertRegistry:
    """Alerts of a single pool, evaluated against each observed price in order."""

    def __init__(self):
        self._alerts: List[Alert] = []
        self.last_price: Optional[Decimal] = None

    def add(self, target_price, destination: str) -> Alert:
        # a new alert compares against the last price this pool showed, if any
        alert = Alert(
            target_price=Decimal(str(target_price)),
            destination=str(destination),
            reference_price=self.last_price,
        )
        self._alerts.append(alert)
        return alert

    def observe(self, new_price: Decimal) -> List[Alert]:
        fired = []
        for alert in list(self._alerts):
            if alert.reference_price is not None and alert.crossed(new_price):
                alert.triggered = True
                fired.append(alert)
                self._alerts.remove(alert)
            else:
                alert.reference_price = new_price
        self.last_price = new_price
        if fired:
            log.info("[alerts] %d alert(s) fired at %s", len(fired), new_price)
        return fired

    def remove(self, alert: Alert) -> bool:
        if alert in self._alerts:
            self._alerts.remove(alert)
            return True
        return False

    def clear(self) -> None:
        self._alerts.clear()

    def __len__(self) -> int:
        return len(self._alerts)

    def __iter__(self):
        return iter(list(self._alerts))
