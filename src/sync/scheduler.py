"""Delayed, fire-and-forget actions (the automatic reset after a finished game is settled)."""

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class ResetScheduler(Protocol):
    def schedule(self, delay_s: float, action: Callable[[], None]) -> None:
        """Run action once after delay_s seconds. Must not block the caller."""
        ...


class TimerScheduler:
    """
    One daemon threading.Timer per scheduled action.
    NOTE: timers do not survive a restart; a session left Finished then needs an administrative reset.
    """

    def __init__(self) -> None:
        self._timers: list[threading.Timer] = []
        self._lock = threading.Lock()

    def schedule(self, delay_s: float, action: Callable[[], None]) -> None:
        timer = threading.Timer(delay_s, self._run, args=(action,))
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()

    def cancel_all(self) -> None:
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()

    def _run(self, action: Callable[[], None]) -> None:
        try:
            action()
        except Exception:
            logger.exception("Scheduled action %r failed", action)
