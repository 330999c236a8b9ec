from __future__ import annotations

import math
import random
from typing import List, Optional

import structlog

from shopsim.config import EconomyConfig
from shopsim.models import EventDefinition, EventEffect, EventOccurrence, StoreState
from shopsim.notifications import Notification
from shopsim.reputation import ReputationTracker

logger = structlog.get_logger(system="shopsim.events")


EVENT_CATALOG: List[EventDefinition] = [
    EventDefinition(
        event_id="supplier_delay",
        title="Supplier Delay",
        message="Your supplier delivered late. Reputation took a hit.",
        effect=EventEffect(reputation_delta=-0.10),
    ),
    EventDefinition(
        event_id="defective_product",
        title="Defective Batch",
        message="A defective batch was found. 20% of stock lost.",
        effect=EventEffect(stock_loss_fraction=0.20, reputation_delta=-0.15),
    ),
    EventDefinition(
        event_id="visit_spike",
        title="Visit Spike",
        message="A post went around! +50% visits today.",
        effect=EventEffect(visit_boost=1.5),
    ),
    EventDefinition(
        event_id="public_complaint",
        title="Public Complaint",
        message="An unhappy customer complained in public. Reputation badly hurt.",
        effect=EventEffect(reputation_delta=-0.20),
    ),
    EventDefinition(
        event_id="cost_increase",
        title="Cost Increase",
        message="Operating costs went up. -$50 extra.",
        effect=EventEffect(cash_penalty=50.0),
    ),
]


class RandomEventGenerator:
    """Low-probability daily disruptions, at most one every ``event_min_gap_days``."""

    def __init__(
        self,
        state: StoreState,
        reputation: ReputationTracker,
        cfg: EconomyConfig,
        catalog: Optional[List[EventDefinition]] = None,
    ) -> None:
        self._state = state
        self._reputation = reputation
        self._cfg = cfg
        self.catalog = list(catalog if catalog is not None else EVENT_CATALOG)
        self.last_event_day = 0

    def roll(self, rng: random.Random) -> Optional[EventDefinition]:
        day = int(self._state.current_day)
        if day - int(self.last_event_day) < int(self._cfg.event_min_gap_days):
            return None
        if not self.catalog:
            return None
        if rng.random() > float(self._cfg.event_probability):
            return None

        idx = min(len(self.catalog) - 1, int(rng.random() * len(self.catalog)))
        self.last_event_day = day
        return self.catalog[idx]

    def apply(self, event: EventDefinition) -> EventOccurrence:
        st = self._state
        eff = event.effect
        occ = EventOccurrence(event_id=event.event_id, title=event.title, message=event.message, day=int(st.current_day))

        if eff.stock_loss_fraction > 0:
            occ.stock_lost = int(math.floor(st.stock * float(eff.stock_loss_fraction)))
            if occ.stock_lost:
                st.update_stock(-occ.stock_lost)
        if eff.reputation_delta:
            occ.reputation_delta = self._reputation.adjust(eff.reputation_delta)
            self._reputation.publish_tier()
        if eff.cash_penalty:
            occ.cash_penalty = float(eff.cash_penalty)
            st.update_cash(-occ.cash_penalty)
        if eff.visit_boost != 1.0:
            occ.visits_after = int(math.floor(st.daily_visits * float(eff.visit_boost)))
            st.set_daily_metrics(occ.visits_after, st.daily_orders, st.conversion_rate)

        logger.info("random_event_applied", day=occ.day, event_id=event.event_id)
        st.hub.publish(Notification.RANDOM_EVENT, occ)
        return occ
