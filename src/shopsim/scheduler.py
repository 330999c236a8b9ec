from __future__ import annotations

import threading
from typing import Optional

import structlog

from shopsim.engine import Session
from shopsim.notifications import Notification, Subscription

logger = structlog.get_logger(system="shopsim.scheduler")


class DayScheduler:
    """Real-time driver: one ``on_day_elapsed()`` per ``day_seconds`` of unpaused time."""

    def __init__(self, session: Session, day_seconds: Optional[float] = None, tick_seconds: float = 0.1) -> None:
        self._session = session
        self.day_seconds = float(day_seconds if day_seconds is not None else session.cfg.day_duration_seconds)
        self.tick_seconds = float(tick_seconds)
        self.elapsed = 0.0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._game_over_sub: Optional[Subscription] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def progress(self) -> float:
        if self.day_seconds <= 0:
            return 0.0
        return min(100.0, self.elapsed / self.day_seconds * 100.0)

    def tick(self, seconds: float) -> int:
        """Advance the clock; return how many days elapsed."""

        s = self._session
        if s.state.paused or s.game_over:
            return 0
        self.elapsed += max(0.0, float(seconds))
        days = 0
        while self.elapsed >= self.day_seconds > 0 and not s.game_over:
            self.elapsed -= self.day_seconds
            s.on_day_elapsed()
            days += 1
        if s.game_over:
            self.elapsed = 0.0
        return days

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._game_over_sub = self._session.hub.subscribe(Notification.GAME_OVER, self._on_game_over)
        self._thread = threading.Thread(target=self._loop, name="shopsim-day-scheduler", daemon=True)
        self._thread.start()
        logger.info("scheduler_started", day_seconds=self.day_seconds)

    def stop(self) -> None:
        self._stop.set()
        if self._game_over_sub is not None:
            self._game_over_sub.unsubscribe()
            self._game_over_sub = None
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout=max(1.0, self.tick_seconds * 10))
        self._thread = None

    def pause(self) -> None:
        self._session.actions.set_paused(True)

    def resume(self) -> None:
        self._session.actions.set_paused(False)

    def _on_game_over(self, _notification: Notification, _payload: object) -> None:
        logger.info("scheduler_halted", reason="game_over")
        self._stop.set()

    def _loop(self) -> None:
        while not self._stop.wait(self.tick_seconds):
            self.tick(self.tick_seconds)
