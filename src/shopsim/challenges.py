from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from shopsim.models import ReputationTier, StoreState
from shopsim.notifications import Notification


class ChallengeType(str, Enum):
    NONE = "none"
    FIRST_PROFIT = "first_profit"
    SURVIVOR = "survivor"
    REPUTATION_MASTER = "reputation_master"
    GROWTH_HACKER = "growth_hacker"

    @classmethod
    def parse(cls, value: object) -> ChallengeType:
        s = str(value or "none").strip().lower()
        for c in cls:
            if c.value == s:
                return c
        raise ValueError(f"unknown challenge: {value!r}")


@dataclass
class Challenge:
    challenge_id: ChallengeType
    name: str
    description: str


CHALLENGES: Dict[ChallengeType, Challenge] = {
    ChallengeType.NONE: Challenge(ChallengeType.NONE, "Free Play", "Sandbox mode with no goal"),
    ChallengeType.FIRST_PROFIT: Challenge(
        ChallengeType.FIRST_PROFIT, "First Profit", "Reach $1000 total revenue with positive cash"
    ),
    ChallengeType.SURVIVOR: Challenge(ChallengeType.SURVIVOR, "Survivor", "Survive 30 days without going bankrupt"),
    ChallengeType.REPUTATION_MASTER: Challenge(
        ChallengeType.REPUTATION_MASTER, "Reputation Master", "Keep a Good reputation for 20 days in a row"
    ),
    ChallengeType.GROWTH_HACKER: Challenge(ChallengeType.GROWTH_HACKER, "Growth Hacker", "Reach $5000 total revenue"),
}

FIRST_PROFIT_REVENUE = 1000.0
SURVIVOR_DAYS = 30
REPUTATION_STREAK_DAYS = 20
GROWTH_HACKER_REVENUE = 5000.0


class ChallengeTracker:
    def __init__(self, state: StoreState, challenge: ChallengeType = ChallengeType.NONE) -> None:
        self._state = state
        self.challenge = challenge
        self.reputation_streak = 0
        self.won = False

    @property
    def info(self) -> Challenge:
        return CHALLENGES[self.challenge]

    def record_day(self) -> bool:
        """Update streaks after a resolved day; publish VICTORY the first time the goal is met."""

        if self._state.reputation == ReputationTier.GOOD:
            self.reputation_streak += 1
        else:
            self.reputation_streak = 0

        if self.won or not self.is_met():
            return False
        self.won = True
        self._state.hub.publish(Notification.VICTORY, self.info)
        return True

    def is_met(self) -> bool:
        st = self._state
        c = self.challenge
        if c == ChallengeType.FIRST_PROFIT:
            return st.total_revenue >= FIRST_PROFIT_REVENUE and st.cash > 0
        if c == ChallengeType.SURVIVOR:
            return st.current_day >= SURVIVOR_DAYS
        if c == ChallengeType.REPUTATION_MASTER:
            return self.reputation_streak >= REPUTATION_STREAK_DAYS
        if c == ChallengeType.GROWTH_HACKER:
            return st.total_revenue >= GROWTH_HACKER_REVENUE
        return False

    def progress(self) -> float:
        st = self._state
        c = self.challenge
        if c == ChallengeType.FIRST_PROFIT:
            pct = min(st.total_revenue / FIRST_PROFIT_REVENUE * 100.0, 100.0)
            return pct if st.cash > 0 else min(pct, 99.0)
        if c == ChallengeType.SURVIVOR:
            return min(st.current_day / float(SURVIVOR_DAYS) * 100.0, 100.0)
        if c == ChallengeType.REPUTATION_MASTER:
            return min(self.reputation_streak / float(REPUTATION_STREAK_DAYS) * 100.0, 100.0)
        if c == ChallengeType.GROWTH_HACKER:
            return min(st.total_revenue / GROWTH_HACKER_REVENUE * 100.0, 100.0)
        return 0.0

    def progress_text(self) -> str:
        st = self._state
        c = self.challenge
        if c == ChallengeType.FIRST_PROFIT:
            return f"${st.total_revenue:.0f}/${FIRST_PROFIT_REVENUE:.0f} (cash: ${st.cash:.0f})"
        if c == ChallengeType.SURVIVOR:
            return f"{st.current_day}/{SURVIVOR_DAYS} days"
        if c == ChallengeType.REPUTATION_MASTER:
            return f"{self.reputation_streak}/{REPUTATION_STREAK_DAYS} days Good"
        if c == ChallengeType.GROWTH_HACKER:
            return f"${st.total_revenue:.0f}/${GROWTH_HACKER_REVENUE:.0f}"
        return ""
