"""Pacing primitives: a fixed-interval gate and an hourly request quota.

Both take ``clock`` and ``sleep`` callables so tests can drive them with a
fake clock instead of real delays.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], None]


class IntervalLimiter:
    """Admit at most one caller per ``interval`` seconds.

    A single instance is shared by every probe of a run, so pacing is global
    rather than per domain.
    """

    def __init__(self, interval: float, *, clock: Clock = time.monotonic, sleep: Sleep = time.sleep) -> None:
        if interval < 0:
            raise ValueError("interval cannot be negative")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._next_allowed: Optional[float] = None

    def acquire(self) -> float:
        """Block until the next slot; return the seconds spent waiting."""

        now = self._clock()
        waited = 0.0
        if self._next_allowed is not None and now < self._next_allowed:
            waited = self._next_allowed - now
            self._sleep(waited)
            now = self._next_allowed
        self._next_allowed = now + self.interval
        return waited


class HourlyQuota:
    """Self-imposed request ceiling per time window.

    ``acquire`` is called before each request. Once ``limit`` requests were
    made inside the current window, it sleeps out the rest of the window and
    starts a new one.
    """

    def __init__(
        self,
        limit: int,
        *,
        window: float = 3600.0,
        clock: Clock = time.monotonic,
        sleep: Sleep = time.sleep,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window <= 0:
            raise ValueError("window must be positive")
        self.limit = limit
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._window_start = clock()
        self.count = 0

    def _reset(self, now: float) -> None:
        self._window_start = now
        self.count = 0

    def acquire(self) -> float:
        """Reserve one request; return the seconds spent waiting."""

        now = self._clock()
        elapsed = now - self._window_start
        waited = 0.0
        if elapsed >= self.window:
            self._reset(now)
        elif self.count >= self.limit:
            waited = self.window - elapsed
            logger.warning(
                "Reached hourly limit (%d requests). Waiting %.0fs before continuing...",
                self.limit,
                waited,
            )
            self._sleep(waited)
            self._reset(self._clock())
        self.count += 1
        return waited


__all__ = [
    "IntervalLimiter",
    "HourlyQuota",
]
