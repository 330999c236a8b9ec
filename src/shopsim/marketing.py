from __future__ import annotations

import random
from typing import List

import structlog

from shopsim.config import EconomyConfig
from shopsim.models import MarketingState, StoreState
from shopsim.notifications import Notification

logger = structlog.get_logger(system="shopsim.marketing")


class MarketingTracker:
    """Paid campaign plus random viral boosts, and the visit multiplier they produce."""

    def __init__(self, state: StoreState, cfg: EconomyConfig) -> None:
        self._state = state
        self._cfg = cfg
        self.data = MarketingState()

    def is_active(self) -> bool:
        return bool(self.data.campaign_active or self.data.viral_active)

    def visit_multiplier(self) -> float:
        m = 1.0
        if self.data.campaign_active:
            m *= float(self.data.campaign_multiplier)
        if self.data.viral_active:
            m *= float(self.data.viral_multiplier)
        return min(float(self._cfg.max_visit_multiplier), m)

    def activate_campaign(self) -> None:
        d = self.data
        assert not d.campaign_active, "campaign already running"
        d.campaign_active = True
        d.campaign_days_remaining = max(1, int(self._cfg.campaign_duration_days))
        d.campaign_multiplier = float(self._cfg.campaign_multiplier)
        self._state.hub.publish(Notification.CAMPAIGN_STARTED, d.campaign_days_remaining)

    def advance_day(self) -> List[Notification]:
        """Count down active boosts; return the end notifications that fired."""

        d = self.data
        ended: List[Notification] = []
        if d.campaign_active:
            d.campaign_days_remaining = max(0, d.campaign_days_remaining - 1)
            if d.campaign_days_remaining <= 0:
                d.campaign_active = False
                d.campaign_multiplier = 1.0
                ended.append(Notification.CAMPAIGN_ENDED)

        if d.viral_active:
            d.viral_days_remaining = max(0, d.viral_days_remaining - 1)
            if d.viral_days_remaining <= 0:
                d.viral_active = False
                d.viral_multiplier = 1.0
                ended.append(Notification.VIRAL_ENDED)

        for n in ended:
            self._state.hub.publish(n, None)
        return ended

    def viral_eligible(self, day: int) -> bool:
        if self.data.viral_active:
            return False
        return int(day) - int(self.data.last_viral_day) >= int(self._cfg.viral_cooldown_days)

    def roll_viral(self, rng: random.Random) -> bool:
        day = int(self._state.current_day)
        if not self.viral_eligible(day):
            return False
        if rng.random() > float(self._cfg.viral_probability):
            return False

        d = self.data
        lo = float(self._cfg.viral_multiplier_min)
        hi = float(self._cfg.viral_multiplier_max)
        d.viral_active = True
        d.viral_days_remaining = max(1, int(self._cfg.viral_duration_days))
        d.viral_multiplier = lo + rng.random() * (hi - lo)
        d.last_viral_day = day
        logger.info("viral_started", day=day, multiplier=round(d.viral_multiplier, 3))
        self._state.hub.publish(Notification.VIRAL_OCCURRED, d.viral_multiplier)
        return True
