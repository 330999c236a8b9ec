from __future__ import annotations

import structlog

from shopsim.config import EconomyConfig
from shopsim.models import StockBotOutcome, StoreState
from shopsim.notifications import Notification

logger = structlog.get_logger(system="shopsim.stockbot")

STOCKBOT_ID = "stockbot"


class StockBot:
    """Naive auto-buyer: below the threshold it buys one fixed batch if cash covers that batch."""

    def __init__(self, state: StoreState, cfg: EconomyConfig) -> None:
        self._state = state
        self._cfg = cfg

    def is_installed(self) -> bool:
        return STOCKBOT_ID in self._state.installed_software

    def install(self) -> None:
        self._state.install_software(STOCKBOT_ID)
        self._state.hub.publish(Notification.STOCKBOT_INSTALLED, None)

    def run(self) -> StockBotOutcome:
        st = self._state
        if not self.is_installed() or st.stock >= int(self._cfg.stockbot_threshold):
            return StockBotOutcome()

        cost = float(self._cfg.stockbot_purchase_cost)
        amount = int(self._cfg.stockbot_purchase_amount)
        stock_before = st.stock
        if st.cash >= cost:
            st.update_cash(-cost)
            st.update_stock(amount)
            out = StockBotOutcome(
                attempted=True,
                purchased=True,
                message=f"StockBot: low stock ({stock_before}), bought {amount} units",
            )
        else:
            out = StockBotOutcome(
                attempted=True,
                purchased=False,
                message=f"StockBot: tried to buy but cash is insufficient (${st.cash:.2f})",
            )
            logger.warning("stockbot_purchase_failed", cash=round(st.cash, 2), cost=cost)

        st.hub.publish(Notification.STOCKBOT_ACTION, out)
        return out
