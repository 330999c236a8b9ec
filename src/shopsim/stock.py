from __future__ import annotations

from typing import List

import structlog

from shopsim.config import EconomyConfig
from shopsim.models import IncomingStockEntry, StoreState, Supplier
from shopsim.notifications import Notification

logger = structlog.get_logger(system="shopsim.stock")


class IncomingStockQueue:
    """Stock orders in transit, each released into the store on its arrival day."""

    def __init__(self, state: StoreState, cfg: EconomyConfig) -> None:
        self._state = state
        self._cfg = cfg
        self._entries: List[IncomingStockEntry] = []

    @property
    def entries(self) -> List[IncomingStockEntry]:
        return list(self._entries)

    def lead_time(self, supplier: Supplier) -> int:
        if supplier == Supplier.FAST:
            return max(0, int(self._cfg.fast_lead_time_days))
        return max(0, int(self._cfg.cheap_lead_time_days))

    def arrival_message(self, supplier: Supplier) -> str:
        days = self.lead_time(supplier)
        return "arrives tomorrow" if days == 1 else f"arrives in {days} days"

    def enqueue(self, amount: int, supplier: Supplier) -> IncomingStockEntry:
        assert int(amount) > 0, "stock order amount must be positive"
        entry = IncomingStockEntry(
            amount=int(amount),
            arrival_day=int(self._state.current_day) + self.lead_time(supplier),
        )
        self._entries.append(entry)
        logger.info(
            "stock_order_placed",
            amount=entry.amount,
            supplier=supplier.value,
            arrival_day=entry.arrival_day,
        )
        self._state.hub.publish(Notification.INCOMING_STOCK_CHANGED, self.pending_total())
        return entry

    def release_due(self) -> int:
        """Move every entry due today (or overdue) into stock; return the units received."""

        day = int(self._state.current_day)
        due = [e for e in self._entries if int(e.arrival_day) <= day]
        if not due:
            return 0

        self._entries = [e for e in self._entries if int(e.arrival_day) > day]
        received = sum(int(e.amount) for e in due)
        self._state.update_stock(received)
        logger.info("stock_released", day=day, amount=received, orders=len(due))
        self._state.hub.publish(Notification.INCOMING_STOCK_CHANGED, self.pending_total())
        return received

    def pending_total(self) -> int:
        return sum(int(e.amount) for e in self._entries)
