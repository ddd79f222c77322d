"""Row executors: one prepared bucket delete per image row."""

import logging
import sqlite3
import threading
from typing import List, Optional

from ripen.errors import ExecutionError

__all__ = ['RowExecutor', 'open_row_executors', 'close_row_executors']

logger = logging.getLogger(__name__)


class RowExecutor:
    """Owns the prepared delete for one row bucket.

    ``apply(threshold)`` removes every token strictly below ``threshold``.
    Applying a threshold no larger than one already applied removes
    nothing, so repeats are harmless. Thresholds are expected to grow over
    time but that is never checked; a decrease is only logged at DEBUG.

    Calls on the same executor are serialised by a lock: with overlapping
    column bakes two columns may drive the same row at once.

    Parameters
    ----------
    store : BucketStore
        Store to prepare the delete against.
    row : int
        Bucket index.

    Raises
    ------
    ExecutionError
        If the delete cannot be prepared.
    """

    def __init__(self, store, row: int):
        self.row = row
        self._handle = store.prepare_row_delete(row)
        self._lock = threading.Lock()
        self._last_threshold: Optional[int] = None
        self._closed = False

    @property
    def last_threshold(self) -> Optional[int]:
        return self._last_threshold

    def apply(self, threshold: int, column: Optional[int] = None) -> int:
        """Delete every token below ``threshold`` from this row's bucket.

        Parameters
        ----------
        threshold : int
        column : int, optional
            Column being baked, used for error reporting only.

        Returns
        -------
        int
            Number of tokens removed.

        Raises
        ------
        ExecutionError
            Wraps any store failure. No retry is attempted.
        """
        threshold = int(threshold)
        with self._lock:
            if self._last_threshold is not None and threshold < self._last_threshold:
                logger.debug(
                    "Row %d: threshold %d below previous %d (no-op)",
                    self.row, threshold, self._last_threshold,
                )
            try:
                removed = self._handle.execute(threshold)
            except sqlite3.Error as e:
                raise ExecutionError(self.row, column, threshold, str(e)) from e

            if self._last_threshold is None or threshold > self._last_threshold:
                self._last_threshold = threshold

        logger.debug("Row %d: threshold %d removed %d tokens", self.row, threshold, removed)
        return removed

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._handle.close()

    def __repr__(self):
        return f"RowExecutor(row={self.row}, last_threshold={self._last_threshold})"


def open_row_executors(store, ny: int) -> List[RowExecutor]:
    """Create one executor per row, closing the opened ones on failure."""
    executors = []
    try:
        for y in range(ny):
            executors.append(RowExecutor(store, y))
    except Exception:
        close_row_executors(executors)
        raise
    logger.debug("Opened %d row executors", ny)
    return executors


def close_row_executors(executors: List[RowExecutor]):
    for executor in executors:
        executor.close()
