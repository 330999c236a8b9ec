from __future__ import annotations

import random
import threading
from typing import List, Optional

import structlog

from shopsim.actions import PlayerActions
from shopsim.capacity import CapacityQueue
from shopsim.challenges import ChallengeTracker, ChallengeType
from shopsim.config import EconomyConfig
from shopsim.events import RandomEventGenerator
from shopsim.marketing import MarketingTracker
from shopsim.models import DailySummary, StoreState, Supplier
from shopsim.notifications import Notification
from shopsim.reputation import ReputationTracker
from shopsim.stock import IncomingStockQueue
from shopsim.stockbot import StockBot

logger = structlog.get_logger(system="shopsim.engine")

HISTORY_LIMIT = 5000


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(x)))


class DailyEconomyResolver:
    """Turns one day of player decisions and random draws into a DailySummary.

    The steps in ``resolve`` run in a fixed order; each one consumes what the
    previous ones left in the store, so reordering them changes the outcome.
    """

    def __init__(
        self,
        state: StoreState,
        cfg: EconomyConfig,
        stock: IncomingStockQueue,
        capacity: CapacityQueue,
        marketing: MarketingTracker,
        reputation: ReputationTracker,
        events: RandomEventGenerator,
        stockbot: StockBot,
    ) -> None:
        self.state = state
        self.cfg = cfg
        self.stock = stock
        self.capacity = capacity
        self.marketing = marketing
        self.reputation = reputation
        self.events = events
        self.stockbot = stockbot
        self.supplier = Supplier.FAST
        self._resolving = False

    def draw_visits(self, rng: random.Random) -> int:
        cfg = self.cfg
        span = float(cfg.base_visits_max - cfg.base_visits_min)
        lo = float(cfg.visit_band_low)
        hi = float(cfg.visit_band_high)
        base = int(cfg.base_visits_min + (rng.random() * (hi - lo) + lo) * span)
        return int(base * self.marketing.visit_multiplier())

    def conversion_rate(self, price: int) -> float:
        cfg = self.cfg
        rate = float(cfg.base_conversion_rate) - (int(price) - int(cfg.reference_price)) * float(cfg.price_elasticity)
        rate *= self.reputation.score
        return _clamp(rate, cfg.min_conversion_rate, cfg.max_conversion_rate)

    def resolve(self, rng: random.Random) -> DailySummary:
        assert not self._resolving, "daily resolution is not reentrant"
        assert int(self.state.current_day) >= 1, "day counter must start at 1"
        self._resolving = True
        try:
            return self._resolve(rng)
        finally:
            self._resolving = False

    def _resolve(self, rng: random.Random) -> DailySummary:
        st = self.state
        cfg = self.cfg
        summary = DailySummary(day=int(st.current_day))

        # Player-set values are read once so the whole day sees the same snapshot.
        price = int(st.price)
        supplier = self.supplier

        self.capacity.advance_day()
        summary.stock_received = self.stock.release_due()

        visits = self.draw_visits(rng)
        conversion = self.conversion_rate(price)
        potential = int(visits * conversion)

        stock_limited = min(potential, int(st.stock))
        lost_to_stock = potential - stock_limited
        if stock_limited:
            st.update_stock(-stock_limited)

        staffing = self.capacity.staff_day()

        cap = self.capacity.process_orders(stock_limited)
        if cap.lost_to_capacity:
            # Dropped orders never shipped; their units go back on the shelf.
            st.update_stock(cap.lost_to_capacity)

        marketing_active = self.marketing.is_active()
        impact = self.reputation.adjust(self.reputation.lost_order_penalty(lost_to_stock, marketing_active))
        impact += self.reputation.adjust(self.reputation.lost_order_penalty(cap.lost_to_capacity, marketing_active))

        revenue = float(cap.processed * price)
        st.record_revenue(revenue)
        st.update_cash(-float(cfg.daily_fixed_cost))
        interest = st.accrue_interest(cfg.daily_interest_rate)

        st.set_daily_metrics(visits, cap.processed, conversion * 100.0)

        self.reputation.recover_naturally()
        self.reputation.apply_supplier_bias(supplier)
        self.reputation.publish_tier()

        ended = self.marketing.advance_day()
        summary.viral_started = self.marketing.roll_viral(rng)

        bot = self.stockbot.run()

        event = self.events.roll(rng)
        if event is not None:
            self.events.apply(event)
            summary.event_id = event.event_id

        summary.revenue = revenue
        summary.costs = float(cfg.daily_fixed_cost)
        summary.interest = interest
        summary.employee_salary = staffing.salary
        summary.employee_worked = staffing.worked
        summary.net = revenue - summary.costs - staffing.salary - interest
        summary.visits = int(st.daily_visits)
        summary.conversion_rate = conversion
        summary.potential_orders = potential
        summary.stock_limited_orders = stock_limited
        summary.lost_orders = lost_to_stock
        summary.lost_to_capacity = cap.lost_to_capacity
        summary.processed_orders = cap.processed
        summary.processed_from_today = cap.processed_from_today
        summary.overflow_created = cap.overflow
        summary.capacity = self.capacity.capacity()
        summary.reputation_impact = impact
        summary.reputation_score = self.reputation.score
        summary.campaign_ended = Notification.CAMPAIGN_ENDED in ended
        summary.viral_ended = Notification.VIRAL_ENDED in ended
        summary.stockbot_message = bot.message

        logger.info(
            "day_resolved",
            day=summary.day,
            visits=summary.visits,
            processed=summary.processed_orders,
            lost_stock=summary.lost_orders,
            lost_capacity=summary.lost_to_capacity,
            revenue=round(summary.revenue, 2),
            net=round(summary.net, 2),
            cash=round(st.cash, 2),
        )
        st.hub.publish(Notification.DAILY_SUMMARY, summary)
        return summary


class Session:
    """One store's play session: owns the state and wires every subsystem to it."""

    def __init__(
        self,
        cfg: Optional[EconomyConfig] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        challenge: ChallengeType = ChallengeType.NONE,
    ) -> None:
        self.cfg = cfg or EconomyConfig()
        self.rng = rng if rng is not None else random.Random(seed)
        self.state = StoreState(
            cash=float(self.cfg.initial_cash),
            stock=max(0, int(self.cfg.initial_stock)),
            price=max(1, int(self.cfg.initial_price)),
        )
        self.hub = self.state.hub

        self.stock = IncomingStockQueue(self.state, self.cfg)
        self.capacity = CapacityQueue(self.state, self.cfg)
        self.marketing = MarketingTracker(self.state, self.cfg)
        self.reputation = ReputationTracker(self.state, self.cfg)
        self.events = RandomEventGenerator(self.state, self.reputation, self.cfg)
        self.stockbot = StockBot(self.state, self.cfg)
        self.resolver = DailyEconomyResolver(
            self.state,
            self.cfg,
            stock=self.stock,
            capacity=self.capacity,
            marketing=self.marketing,
            reputation=self.reputation,
            events=self.events,
            stockbot=self.stockbot,
        )
        self.reputation.publish_tier()
        self.challenges = ChallengeTracker(self.state, challenge)

        self.lock = threading.RLock()
        self.actions = PlayerActions(self)
        self.history: List[DailySummary] = []
        self.game_over = False

    @property
    def supplier(self) -> Supplier:
        return self.resolver.supplier

    @property
    def last_summary(self) -> Optional[DailySummary]:
        return self.history[-1] if self.history else None

    def on_day_elapsed(self) -> Optional[DailySummary]:
        with self.lock:
            st = self.state
            if self.game_over:
                logger.warning("day_after_game_over", day=st.current_day)
                return None

            summary = self.resolver.resolve(self.rng)
            self.history.append(summary)
            if len(self.history) > HISTORY_LIMIT:
                self.history = self.history[-HISTORY_LIMIT:]

            st.track_negative_day()
            bankrupt = st.is_bankrupt(self.cfg.bankruptcy_days)
            if not bankrupt:
                self.challenges.record_day()
            st.advance_day()

            if bankrupt:
                self.game_over = True
                logger.warning("bankruptcy", day=summary.day, cash=round(st.cash, 2))
                self.hub.publish(Notification.GAME_OVER, summary)
            return summary

    def run_days(self, days: int) -> List[DailySummary]:
        """Resolve up to ``days`` days, stopping early on bankruptcy."""

        out: List[DailySummary] = []
        for _ in range(max(0, int(days))):
            s = self.on_day_elapsed()
            if s is None:
                break
            out.append(s)
            if self.game_over:
                break
        return out
