from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from shopsim.models import ActionResult, Supplier

if TYPE_CHECKING:
    from shopsim.engine import Session

logger = structlog.get_logger(system="shopsim.actions")


def _rejected(action: str, message: str) -> ActionResult:
    logger.info("action_rejected", action=action, reason=message)
    return ActionResult.fail(message)


class PlayerActions:
    """Validated player decisions.

    Business-rule failures come back as ``ActionResult(success=False)``; every
    handler holds the session lock so it never interleaves with a resolution.
    """

    def __init__(self, session: Session) -> None:
        self._s = session

    def order_stock(self, amount: Optional[int] = None, supplier: Optional[Supplier] = None) -> ActionResult:
        s = self._s
        cfg = s.cfg
        qty = int(amount if amount is not None else cfg.stock_order_amount)
        if qty <= 0:
            return _rejected("order_stock", "Order amount must be positive")
        sup = Supplier.parse(supplier) if supplier is not None else s.supplier
        cost = float(cfg.stock_order_cost)
        with s.lock:
            if s.state.cash < cost:
                return _rejected("order_stock", f"Insufficient cash (${cost:.0f})")
            s.state.update_cash(-cost)
            entry = s.stock.enqueue(qty, sup)
        return ActionResult.ok(
            f"Ordered {entry.amount} units from the {sup.value} supplier, {s.stock.arrival_message(sup)} (day {entry.arrival_day})"
        )

    def adjust_price(self, delta: int) -> ActionResult:
        s = self._s
        with s.lock:
            new_price = int(s.state.price) + int(delta)
            if new_price < 1:
                return _rejected("adjust_price", "Price cannot go below $1")
            s.state.set_price(new_price)
        return ActionResult.ok(f"Price set to ${new_price:.2f}")

    def take_loan(self, amount: float) -> ActionResult:
        s = self._s
        if float(amount) <= 0:
            return _rejected("take_loan", "Loan amount must be positive")
        with s.lock:
            s.state.update_cash(float(amount))
            s.state.update_debt(float(amount))
        rate = float(s.cfg.daily_interest_rate) * 100.0
        return ActionResult.ok(f"Loan of ${float(amount):.2f} received. Interest: {rate:g}% per day")

    def set_supplier(self, supplier: Supplier) -> ActionResult:
        s = self._s
        sup = Supplier.parse(supplier)
        with s.lock:
            s.resolver.supplier = sup
        label = "Fast" if sup == Supplier.FAST else "Cheap"
        return ActionResult.ok(f"Supplier changed: {label}")

    def hire_employee(self) -> ActionResult:
        s = self._s
        with s.lock:
            if s.capacity.data.employee_hired:
                return _rejected("hire_employee", "Operator already hired")
            s.capacity.hire()
        return ActionResult.ok(
            f"Operator hired! +{s.cfg.employee_capacity_bonus} capacity/day. Salary: ${s.cfg.employee_salary:.0f}/day"
        )

    def fire_employee(self) -> ActionResult:
        s = self._s
        with s.lock:
            if not s.capacity.data.employee_hired:
                return _rejected("fire_employee", "No operator hired")
            s.capacity.fire()
        return ActionResult.ok("Operator let go. Capacity reduced.")

    def purchase_expansion(self) -> ActionResult:
        s = self._s
        with s.lock:
            cost = s.capacity.next_expansion_cost()
            if cost is None:
                return _rejected("purchase_expansion", "Maximum capacity reached")
            if s.state.cash < cost:
                return _rejected("purchase_expansion", f"Insufficient cash (${cost:.0f})")
            s.state.update_cash(-cost)
            new_capacity = s.capacity.add_expansion()
            n = s.capacity.data.expansion_count
        return ActionResult.ok(
            f"Warehouse expansion {n}/{s.cfg.max_expansions} bought! Capacity: {new_capacity} orders/day"
        )

    def start_campaign(self) -> ActionResult:
        s = self._s
        cfg = s.cfg
        with s.lock:
            if s.marketing.data.campaign_active:
                return _rejected("start_campaign", "Campaign already active")
            if s.state.cash < cfg.campaign_cost:
                return _rejected("start_campaign", f"Insufficient cash (${cfg.campaign_cost:.0f})")

            warnings = []
            if s.state.stock < cfg.campaign_low_stock_warning:
                warnings.append("Low stock")
            if s.state.cash < cfg.campaign_low_cash_warning:
                warnings.append("Tight cash")

            s.state.update_cash(-float(cfg.campaign_cost))
            s.marketing.activate_campaign()

        boost = round((cfg.campaign_multiplier - 1.0) * 100)
        msg = f"Campaign started! +{boost}% visits for {cfg.campaign_duration_days} days"
        if warnings:
            msg += " (warning: " + ", ".join(warnings) + ")"
        return ActionResult.ok(msg)

    def install_stockbot(self) -> ActionResult:
        s = self._s
        price = float(s.cfg.stockbot_price)
        with s.lock:
            if s.stockbot.is_installed():
                return _rejected("install_stockbot", "StockBot already installed")
            if s.state.cash < price:
                return _rejected("install_stockbot", f"Insufficient cash (${price:.0f})")
            s.state.update_cash(-price)
            s.stockbot.install()
        return ActionResult.ok("StockBot v1.0 installed! Auto-buy enabled.")

    def set_paused(self, paused: bool) -> ActionResult:
        s = self._s
        with s.lock:
            s.state.set_paused(paused)
        return ActionResult.ok("Paused" if paused else "Resumed")
