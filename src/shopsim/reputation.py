from __future__ import annotations

from shopsim.config import EconomyConfig
from shopsim.models import ReputationTier, StoreState, Supplier


def _clamp01(x: float) -> float:
    if x <= 0.0:
        return 0.0
    if x >= 1.0:
        return 1.0
    return float(x)


def tier_for_score(score: float, good: float = 0.7, average: float = 0.4) -> ReputationTier:
    if score >= good:
        return ReputationTier.GOOD
    if score >= average:
        return ReputationTier.AVERAGE
    return ReputationTier.POOR


class ReputationTracker:
    def __init__(self, state: StoreState, cfg: EconomyConfig) -> None:
        self._state = state
        self._cfg = cfg
        self._score = _clamp01(cfg.initial_reputation_score)

    @property
    def score(self) -> float:
        return self._score

    def tier(self) -> ReputationTier:
        return tier_for_score(self._score, self._cfg.good_tier_threshold, self._cfg.average_tier_threshold)

    def adjust(self, delta: float) -> float:
        """Apply ``delta`` within [0, 1] and return the change actually applied."""

        before = self._score
        self._score = _clamp01(self._score + float(delta))
        return self._score - before

    def lost_order_penalty(self, lost: int, marketing_active: bool) -> float:
        if lost <= 0:
            return 0.0
        scale = min(float(lost) / float(self._cfg.lost_order_scale_divisor), float(self._cfg.lost_order_scale_cap))
        penalty = float(self._cfg.lost_order_penalty) * scale
        if marketing_active:
            penalty *= float(self._cfg.marketing_penalty_multiplier)
        return -penalty

    def recover_naturally(self) -> float:
        if self._cfg.reputation_recovery_floor < self._score < 1.0:
            return self.adjust(self._cfg.reputation_recovery_per_day)
        return 0.0

    def apply_supplier_bias(self, supplier: Supplier) -> float:
        if supplier == Supplier.FAST:
            return self.adjust(self._cfg.fast_supplier_reputation_bonus)
        return self.adjust(self._cfg.cheap_supplier_reputation_penalty)

    def publish_tier(self) -> ReputationTier:
        tier = self.tier()
        self._state.sync_reputation_tier(tier)
        return tier
