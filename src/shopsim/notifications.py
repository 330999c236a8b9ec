from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class Notification(str, Enum):
    CASH_CHANGED = "cash-changed"
    STOCK_CHANGED = "stock-changed"
    PRICE_CHANGED = "price-changed"
    DEBT_CHANGED = "debt-changed"
    DAY_CHANGED = "day-changed"
    PAUSE_CHANGED = "pause-changed"
    METRICS_CHANGED = "metrics-changed"
    REPUTATION_CHANGED = "reputation-changed"
    INCOMING_STOCK_CHANGED = "incoming-stock-changed"
    CAPACITY_CHANGED = "capacity-changed"
    CAMPAIGN_STARTED = "campaign-started"
    CAMPAIGN_ENDED = "campaign-ended"
    VIRAL_OCCURRED = "viral-occurred"
    VIRAL_ENDED = "viral-ended"
    RANDOM_EVENT = "random-event"
    STOCKBOT_INSTALLED = "stockbot-installed"
    STOCKBOT_ACTION = "stockbot-action"
    DAILY_SUMMARY = "daily-summary"
    VICTORY = "victory"
    GAME_OVER = "game-over"


Listener = Callable[[Notification, Any], None]


class Subscription:
    """Handle returned by NotificationHub.subscribe(); call unsubscribe() once done."""

    def __init__(self, hub: NotificationHub, notification: Notification, listener: Listener) -> None:
        self._hub = hub
        self.notification = notification
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self._hub._remove(self)
        self.active = False


class NotificationHub:
    """Synchronous fire-and-forget fan-out to the current subscribers.

    Delivery order is subscription order. A subscriber added or removed while a
    notification is being delivered takes effect from the next publish.
    """

    def __init__(self) -> None:
        self._subs: Dict[Notification, List[Subscription]] = {}

    def subscribe(self, notification: Notification, listener: Listener) -> Subscription:
        sub = Subscription(self, notification, listener)
        self._subs.setdefault(notification, []).append(sub)
        return sub

    def subscribe_all(self, listener: Listener) -> List[Subscription]:
        return [self.subscribe(n, listener) for n in Notification]

    def _remove(self, sub: Subscription) -> None:
        subs = self._subs.get(sub.notification, [])
        if sub in subs:
            subs.remove(sub)

    def subscriber_count(self, notification: Optional[Notification] = None) -> int:
        if notification is not None:
            return len(self._subs.get(notification, []))
        return sum(len(v) for v in self._subs.values())

    def publish(self, notification: Notification, payload: Any = None) -> None:
        for sub in list(self._subs.get(notification, [])):
            sub.listener(notification, payload)
