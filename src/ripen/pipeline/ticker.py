"""Periodic ticker and wall-clock alignment.

The Ticker is the clock of a bake: one tick per column. Deadlines are
computed from the start time (``start + k * interval``) so a slow tick
handler does not push later ticks back. A late receiver gets one tick
immediately; the deadlines it slept through are dropped and the next tick
falls on the next interval boundary.

``align_to_second`` is an optional pre-start step, run only when it is
explicitly asked for (``bake.align_second`` in the config).
"""

import math
import time
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from ripen.errors import TimerError

__all__ = ['Ticker', 'align_to_second']

logger = logging.getLogger(__name__)


class Ticker:
    """Drift-corrected periodic timer.

    Parameters
    ----------
    interval_sec : float
        Tick period in seconds. Must be positive and finite.
    clock : callable, optional
        Monotonic time source (for testing). Defaults to ``time.monotonic``.

    Raises
    ------
    TimerError
        If the interval is not a positive finite number.

    Examples
    --------
    >>> stop = threading.Event()
    >>> ticker = Ticker(0.5)
    >>> ticker.start()
    >>> while ticker.wait(stop):
    ...     bake_next_column()
    """

    def __init__(self, interval_sec: float, clock: Optional[Callable[[], float]] = None):
        try:
            interval = float(interval_sec)
        except (TypeError, ValueError) as e:
            raise TimerError(f"Invalid tick interval: {interval_sec!r}") from e
        if not math.isfinite(interval) or interval <= 0:
            raise TimerError(f"Tick interval must be positive and finite, got {interval_sec!r}")

        self.interval_sec = interval
        self._clock = clock or time.monotonic
        self._start: Optional[float] = None
        self._stopped = False
        self._slot = 0
        self.ticks = 0
        self.skipped = 0

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self):
        """Anchor the tick schedule at the current clock reading."""
        if self._stopped:
            raise TimerError("Ticker cannot be restarted after stop()")
        if self._start is None:
            self._start = self._clock()

    def next_deadline(self) -> float:
        if self._start is None:
            raise TimerError("Ticker not started")
        return self._start + (self._slot + 1) * self.interval_sec

    def wait(self, stop_event: threading.Event) -> bool:
        """Block until the next tick.

        Returns
        -------
        bool
            True when the tick fired, False if the ticker was stopped or the
            stop event was set first.
        """
        if self._start is None:
            self.start()
        if self._stopped or stop_event.is_set():
            return False

        delay = self.next_deadline() - self._clock()
        if delay > 0 and stop_event.wait(delay):
            return False
        if self._stopped or stop_event.is_set():
            return False

        if delay > 0:
            self._slot += 1
        else:
            # Late: fire now, re-anchor on the last boundary already passed
            slot = max(self._slot + 1, int((self._clock() - self._start) // self.interval_sec))
            self.skipped += slot - self._slot - 1
            self._slot = slot
        self.ticks += 1
        return True

    def stop(self):
        self._stopped = True


def align_to_second(target_second: int, clock=None, sleeper=None,
                    stop_event: Optional[threading.Event] = None) -> Optional[datetime]:
    """Wait until the wall-clock second equals ``target_second``.

    Polls on second boundaries. Used to phase the first tick of a bake to a
    wall-clock second; never invoked implicitly.

    Parameters
    ----------
    target_second : int
        Second of the minute, 0..59.
    clock : callable, optional
        Returns the current datetime (for testing). Defaults to UTC now.
    sleeper : callable, optional
        Sleep function (for testing). Defaults to ``time.sleep``.
    stop_event : threading.Event, optional
        Aborts the wait when set.

    Returns
    -------
    datetime or None
        Clock reading at alignment, None if stopped first.

    Raises
    ------
    ValueError
        If target_second is outside 0..59.
    """
    if not 0 <= target_second <= 59:
        raise ValueError(f"target_second must be in 0..59, got {target_second}")

    clock = clock or (lambda: datetime.now(timezone.utc))
    sleeper = sleeper or time.sleep

    logger.info("Aligning start to second :%02d", target_second)
    while True:
        if stop_event is not None and stop_event.is_set():
            return None
        now = clock()
        if now.second == target_second:
            logger.info("Aligned at %s", now.isoformat())
            return now
        # Sleep to just past the next second boundary
        sleeper(1.0 - now.microsecond / 1e6 + 0.001)
