from __future__ import annotations

from typing import Optional

import structlog

from shopsim.config import EconomyConfig
from shopsim.models import CapacityResult, CapacityState, StaffingResult, StoreState
from shopsim.notifications import Notification

logger = structlog.get_logger(system="shopsim.capacity")


class CapacityQueue:
    """Daily order-processing capacity plus a one-day overflow carry.

    Orders that do not fit today become ``overflow_today``; on the next day they
    are served first, and whatever still does not fit is lost for good.
    """

    def __init__(self, state: StoreState, cfg: EconomyConfig) -> None:
        self._state = state
        self._cfg = cfg
        self.data = CapacityState(base_capacity=int(cfg.base_capacity))

    def capacity(self) -> int:
        d = self.data
        cap = int(d.base_capacity) + int(d.expansion_count) * int(self._cfg.capacity_per_expansion)
        if d.employee_hired and d.employee_worked_today:
            cap += int(self._cfg.employee_capacity_bonus)
        return cap

    # Expansions

    def can_expand(self) -> bool:
        return int(self.data.expansion_count) < self._cfg.max_expansions

    def next_expansion_cost(self) -> Optional[float]:
        if not self.can_expand():
            return None
        return float(self._cfg.expansion_costs[int(self.data.expansion_count)])

    def add_expansion(self) -> int:
        assert self.can_expand(), "no expansions left"
        self.data.expansion_count += 1
        self._state.hub.publish(Notification.CAPACITY_CHANGED, self.capacity())
        return self.capacity()

    # Staffing

    def hire(self) -> None:
        self.data.employee_hired = True
        self._state.hub.publish(Notification.CAPACITY_CHANGED, self.capacity())

    def fire(self) -> None:
        self.data.employee_hired = False
        self.data.employee_worked_today = False
        self._state.hub.publish(Notification.CAPACITY_CHANGED, self.capacity())

    def staff_day(self) -> StaffingResult:
        """Pay the employee out of cash if possible; an unpaid employee stays home."""

        d = self.data
        if not d.employee_hired:
            d.employee_worked_today = False
            return StaffingResult(worked=False, salary=0.0)

        salary = float(self._cfg.employee_salary)
        if self._state.cash >= salary:
            self._state.update_cash(-salary)
            d.employee_worked_today = True
            return StaffingResult(worked=True, salary=salary)

        d.employee_worked_today = False
        logger.warning("employee_skipped_unpaid", cash=round(self._state.cash, 2), salary=salary)
        return StaffingResult(worked=False, salary=0.0)

    # Orders

    def advance_day(self) -> None:
        self.data.overflow_yesterday = int(self.data.overflow_today)
        self.data.overflow_today = 0

    def process_orders(self, orders: int) -> CapacityResult:
        assert int(orders) >= 0
        d = self.data
        remaining = self.capacity()
        res = CapacityResult()

        if d.overflow_yesterday > 0:
            res.processed_from_yesterday = min(int(d.overflow_yesterday), remaining)
            remaining -= res.processed_from_yesterday
            res.lost_to_capacity = int(d.overflow_yesterday) - res.processed_from_yesterday
            d.overflow_yesterday = 0

        res.processed_from_today = min(int(orders), remaining)
        d.overflow_today = int(orders) - res.processed_from_today

        res.processed = res.processed_from_yesterday + res.processed_from_today
        res.overflow = d.overflow_today
        if res.lost_to_capacity:
            logger.info("orders_lost_to_capacity", lost=res.lost_to_capacity, capacity=self.capacity())
        return res

    def total_overflow(self) -> int:
        return int(self.data.overflow_yesterday) + int(self.data.overflow_today)
