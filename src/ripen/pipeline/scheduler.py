"""Time-driven column scheduler.

Fires once per interval and hands the next image column to a ColumnBaker
running in its own thread, so a slow column never stalls the ticker. The
run ends when every column has been dispatched and every dispatched column
unit has joined.
"""

import time
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ripen.contracts import require
from ripen.errors import BakeError, ExecutionError
from ripen.pipeline.column_baker import ColumnBaker
from ripen.pipeline.row_executor import open_row_executors, close_row_executors
from ripen.pipeline.thresholds import MAX_COLOR, ripeness_factor
from ripen.pipeline.ticker import Ticker

__all__ = ['ColumnScheduler', 'SchedulerState', 'BakeSummary']

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


@dataclass
class BakeSummary:
    """Outcome of a bake that did not fail."""
    columns_dispatched: int
    columns_completed: int
    elapsed_sec: float
    max_concurrent_columns: int
    stopped_early: bool = False


class ColumnScheduler:
    """Advances through image columns left to right, one per tick.

    **States:** ``IDLE`` until ``bake()`` is called, ``RUNNING`` while
    ticking, ``DONE`` once every dispatched column unit has completed.

    **Dispatch:** each tick with cursor ``x < nx`` starts a column unit
    (``ColumnBaker.bake_column(x, executors)``) in a new thread and advances
    the cursor. Ticks do not wait for earlier columns, so two columns can
    be baking at once when a column outlives the interval. Set
    ``wait_for_previous`` to join the previous column before dispatching
    the next one instead.

    **Failure:** the first failed row stops dispatching; columns already
    running are joined, then ``bake()`` raises BakeError listing every row
    failure. Nothing is rolled back.

    **Cancellation:** ``stop()`` from another thread stops the ticker,
    dispatches nothing more and lets running columns finish.

    Example usage::

        scheduler = ColumnScheduler(grid, store, ripeness=256, interval_sec=60)
        summary = scheduler.bake()   # blocks for about nx * 60 seconds
    """

    def __init__(self, grid, store, ripeness: int, interval_sec: float,
                 wait_for_previous: bool = False, max_color: int = MAX_COLOR,
                 tracker=None, ticker_factory: Optional[Callable[[float], Ticker]] = None):
        require(grid.height() >= 1, f"Scheduler contract: grid has no rows (height={grid.height()})")

        self.grid = grid
        self.store = store
        self.ripeness = ripeness
        self.interval_sec = interval_sec
        self.wait_for_previous = wait_for_previous
        self.ripeness_factor = ripeness_factor(ripeness, max_color)
        self.tracker = tracker
        self._ticker_factory = ticker_factory or Ticker

        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._ticker: Optional[Ticker] = None

        self._cursor = 0
        self._units: List[threading.Thread] = []
        self._failures: List[ExecutionError] = []
        self._crashes: List[BaseException] = []
        self._failed = threading.Event()

        self._counts_lock = threading.Lock()
        self._completed = 0
        self._active = 0
        self._max_active = 0

    # ========================================================================
    # Status
    # ========================================================================

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def columns_dispatched(self) -> int:
        return len(self._units)

    @property
    def columns_completed(self) -> int:
        with self._counts_lock:
            return self._completed

    @property
    def failures(self) -> List[ExecutionError]:
        with self._counts_lock:
            return list(self._failures)

    def stop(self):
        """Stop ticking. Safe to call from any thread, any number of times."""
        self._stop_event.set()
        if self._ticker is not None:
            self._ticker.stop()

    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ========================================================================
    # Bake
    # ========================================================================

    def bake(self) -> BakeSummary:
        """Run the whole image, one column per tick.

        Returns
        -------
        BakeSummary

        Raises
        ------
        BakeError
            If any row apply failed. ``failures`` lists every failed row.
        ExecutionError
            If the row executors could not be prepared.
        TimerError
            If the ticker could not be established.
        RuntimeError
            If called more than once.
        """
        with self._state_lock:
            if self._state is not SchedulerState.IDLE:
                raise RuntimeError(f"bake() already called (state={self._state.value})")
            self._state = SchedulerState.RUNNING

        nx = self.grid.width()
        ny = self.grid.height()
        started = time.monotonic()
        executors = []

        try:
            executors = open_row_executors(self.store, ny)
            self._ticker = self._ticker_factory(self.interval_sec)
            self._ticker.start()

            logger.info(
                "Baking %d columns x %d rows every %.3fs (ripeness=%d, overlap=%s)",
                nx, ny, self.interval_sec, self.ripeness,
                "off" if self.wait_for_previous else "on",
            )
            self._dispatch_loop(ColumnBaker(self.grid, self.ripeness_factor), executors, nx)
        finally:
            if self._ticker is not None:
                self._ticker.stop()
            self._join_units()
            close_row_executors(executors)
            self._state = SchedulerState.DONE

        elapsed = time.monotonic() - started

        if self._crashes:
            raise self._crashes[0]
        if self._failures:
            error = BakeError(self._failures, self._completed)
            logger.error("%s", error)
            raise error from error.first

        summary = BakeSummary(
            columns_dispatched=len(self._units),
            columns_completed=self._completed,
            elapsed_sec=elapsed,
            max_concurrent_columns=self._max_active,
            stopped_early=self._cursor < nx,
        )
        logger.info(
            "Bake finished: %d/%d columns in %.1fs (max %d concurrent)",
            summary.columns_completed, nx, elapsed, summary.max_concurrent_columns,
        )
        return summary

    def _dispatch_loop(self, baker: ColumnBaker, executors, nx: int):
        previous: Optional[threading.Thread] = None

        while self._cursor < nx:
            if not self._ticker.wait(self._stop_event):
                break
            if self._failed.is_set():
                break

            if self.wait_for_previous and previous is not None:
                previous.join()
                if self._failed.is_set():
                    break

            x = self._cursor
            previous = self._dispatch(x, baker, executors)
            self._cursor = x + 1

        if self._failed.is_set():
            logger.error("Row failure: stopped dispatching at column %d/%d", self._cursor, nx)
        elif self._cursor < nx:
            logger.info("Stop requested: dispatched %d/%d columns", self._cursor, nx)

    def _dispatch(self, x: int, baker: ColumnBaker, executors) -> threading.Thread:
        if self.tracker:
            self.tracker.mark_dispatched(x)

        unit = threading.Thread(
            target=self._run_column,
            args=(x, baker, executors),
            name=f"Column-{x}",
            daemon=True,
        )
        with self._counts_lock:
            self._active += 1
            self._max_active = max(self._max_active, self._active)
        logger.info("Tick %d: dispatching column %d", self._ticker.ticks, x)
        unit.start()
        self._units.append(unit)
        return unit

    def _run_column(self, x: int, baker: ColumnBaker, executors):
        try:
            baker.bake_column(x, executors)
        except ExecutionError as e:
            with self._counts_lock:
                self._failures.extend(e.failures)
            self._failed.set()
            self._stop_event.set()
            if self.tracker:
                self.tracker.mark_failed(x, [f.row for f in e.failures], str(e))
        except Exception as e:
            logger.exception("Column %d crashed", x)
            with self._counts_lock:
                self._crashes.append(e)
            self._failed.set()
            self._stop_event.set()
        else:
            with self._counts_lock:
                self._completed += 1
            if self.tracker:
                self.tracker.mark_completed(x)
            logger.debug("Column %d complete", x)
        finally:
            with self._counts_lock:
                self._active -= 1

    def _join_units(self):
        for unit in self._units:
            unit.join()
