from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from shopsim.notifications import Notification, NotificationHub


class ReputationTier(str, Enum):
    GOOD = "Good"
    AVERAGE = "Average"
    POOR = "Poor"


class Supplier(str, Enum):
    FAST = "fast"
    CHEAP = "cheap"

    @classmethod
    def parse(cls, value: object) -> Supplier:
        if isinstance(value, Supplier):
            return value
        s = str(value or "").strip().lower()
        for sup in cls:
            if sup.value == s:
                return sup
        raise ValueError(f"unknown supplier: {value!r}")


@dataclass
class ActionResult:
    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> ActionResult:
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, message: str) -> ActionResult:
        return cls(success=False, message=message)

    def to_dict(self) -> dict:
        return {"success": bool(self.success), "message": str(self.message)}


@dataclass
class IncomingStockEntry:
    amount: int
    arrival_day: int


@dataclass
class CapacityState:
    base_capacity: int = 20
    expansion_count: int = 0
    employee_hired: bool = False
    employee_worked_today: bool = False
    overflow_yesterday: int = 0
    overflow_today: int = 0


@dataclass
class CapacityResult:
    processed: int = 0
    processed_from_yesterday: int = 0
    processed_from_today: int = 0
    overflow: int = 0
    lost_to_capacity: int = 0


@dataclass
class StaffingResult:
    worked: bool = False
    salary: float = 0.0


@dataclass
class MarketingState:
    campaign_active: bool = False
    campaign_days_remaining: int = 0
    campaign_multiplier: float = 1.0
    viral_active: bool = False
    viral_days_remaining: int = 0
    viral_multiplier: float = 1.0
    # Far in the past so the first viral is only gated by probability.
    last_viral_day: int = -999


@dataclass
class EventEffect:
    stock_loss_fraction: float = 0.0
    reputation_delta: float = 0.0
    cash_penalty: float = 0.0
    visit_boost: float = 1.0


@dataclass
class EventDefinition:
    event_id: str
    title: str
    message: str
    effect: EventEffect = field(default_factory=EventEffect)


@dataclass
class EventOccurrence:
    event_id: str
    title: str
    message: str
    day: int
    stock_lost: int = 0
    reputation_delta: float = 0.0
    cash_penalty: float = 0.0
    visits_after: Optional[int] = None


@dataclass
class StockBotOutcome:
    attempted: bool = False
    purchased: bool = False
    message: str = ""


@dataclass
class DailySummary:
    day: int
    revenue: float = 0.0
    costs: float = 0.0
    interest: float = 0.0
    net: float = 0.0

    visits: int = 0
    conversion_rate: float = 0.0
    potential_orders: int = 0
    stock_limited_orders: int = 0
    stock_received: int = 0

    # lost_orders counts orders refused for lack of stock
    lost_orders: int = 0
    lost_to_capacity: int = 0
    processed_orders: int = 0
    processed_from_today: int = 0
    overflow_created: int = 0
    capacity: int = 0

    reputation_impact: float = 0.0
    reputation_score: float = 1.0
    employee_salary: float = 0.0
    employee_worked: bool = False

    viral_started: bool = False
    campaign_ended: bool = False
    viral_ended: bool = False
    stockbot_message: str = ""
    event_id: str = ""


@dataclass
class StoreState:
    """Ledger of every economic quantity of one store.

    All writes go through the methods below; each one publishes its change
    notification on ``hub``.
    """

    store_name: str = "My Store"
    niche: str = "Electronics"

    cash: float = 500.0
    debt: float = 0.0
    stock: int = 50
    price: int = 15

    daily_visits: int = 0
    daily_orders: int = 0
    conversion_rate: float = 0.0  # percent
    reputation: ReputationTier = ReputationTier.GOOD

    current_day: int = 1
    paused: bool = False
    consecutive_negative_days: int = 0
    total_revenue: float = 0.0
    installed_software: List[str] = field(default_factory=list)

    hub: NotificationHub = field(default_factory=NotificationHub, repr=False, compare=False)

    def update_cash(self, amount: float) -> None:
        self.cash += float(amount)
        self.hub.publish(Notification.CASH_CHANGED, self.cash)

    def update_stock(self, delta: int) -> None:
        self.stock = max(0, int(self.stock) + int(delta))
        assert self.stock >= 0
        self.hub.publish(Notification.STOCK_CHANGED, self.stock)

    def set_price(self, price: int) -> None:
        self.price = max(1, int(price))
        self.hub.publish(Notification.PRICE_CHANGED, self.price)

    def update_debt(self, delta: float) -> None:
        self.debt = max(0.0, float(self.debt) + float(delta))
        self.hub.publish(Notification.DEBT_CHANGED, self.debt)

    def record_revenue(self, amount: float) -> None:
        assert amount >= 0, "revenue cannot be negative"
        self.total_revenue += float(amount)
        self.update_cash(amount)

    def accrue_interest(self, daily_rate: float) -> float:
        """Grow debt by ``daily_rate`` and pay the same amount out of cash."""

        if self.debt <= 0:
            return 0.0
        interest = float(self.debt) * float(daily_rate)
        self.update_debt(interest)
        self.update_cash(-interest)
        return interest

    def set_daily_metrics(self, visits: int, orders: int, conversion_pct: float) -> None:
        self.daily_visits = max(0, int(visits))
        self.daily_orders = max(0, int(orders))
        self.conversion_rate = float(conversion_pct)
        self.hub.publish(Notification.METRICS_CHANGED, None)

    def sync_reputation_tier(self, tier: ReputationTier) -> None:
        self.reputation = tier
        self.hub.publish(Notification.REPUTATION_CHANGED, tier)

    def set_paused(self, paused: bool) -> None:
        self.paused = bool(paused)
        self.hub.publish(Notification.PAUSE_CHANGED, self.paused)

    def advance_day(self) -> None:
        before = self.current_day
        self.current_day += 1
        assert self.current_day > before
        self.hub.publish(Notification.DAY_CHANGED, self.current_day)

    def track_negative_day(self) -> None:
        if self.cash < 0:
            self.consecutive_negative_days += 1
        else:
            self.consecutive_negative_days = 0

    def is_bankrupt(self, threshold: int = 3) -> bool:
        return self.consecutive_negative_days >= int(threshold)

    def install_software(self, software_id: str) -> None:
        if software_id not in self.installed_software:
            self.installed_software.append(software_id)
