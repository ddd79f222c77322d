"""Per-column fan-out of row deletes.

For one image column the baker computes every bucket's threshold and runs
all row deletes concurrently, then joins on all of them. Rows touch
disjoint buckets so their order does not matter for the final state.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

import numpy as np

from ripen.errors import ExecutionError
from ripen.pipeline.thresholds import column_thresholds

__all__ = ['ColumnBaker']

logger = logging.getLogger(__name__)


class ColumnBaker:
    """Drives all row executors for one column as a single unit.

    Parameters
    ----------
    grid : IntensityGrid
        Source image.
    ripeness_factor : float
        ``ripeness / max_color``, see ``ripen.pipeline.thresholds``.

    Example usage::

        baker = ColumnBaker(grid, ripeness_factor(256))
        thresholds = baker.bake_column(0, executors)
    """

    def __init__(self, grid, ripeness_factor: float):
        self.grid = grid
        self.ripeness_factor = ripeness_factor

    def bake_column(self, x: int, executors: Sequence) -> np.ndarray:
        """Apply column ``x`` to every row bucket and wait for all rows.

        Parameters
        ----------
        x : int
            Image column.
        executors : sequence of RowExecutor
            One per row, indexed by bucket.

        Returns
        -------
        np.ndarray
            Thresholds applied, indexed by bucket.

        Raises
        ------
        ValueError
            If the executor count does not match the image height.
        ExecutionError
            The lowest failing row's error, raised only after every row has
            finished. All failures of the column are in ``.failures``.
        """
        ny = self.grid.height()
        if len(executors) != ny:
            raise ValueError(f"Expected {ny} row executors, got {len(executors)}")

        thresholds = column_thresholds(self.grid, x, self.ripeness_factor)
        logger.debug("Column %d: dispatching %d rows", x, ny)

        failures: List[ExecutionError] = []
        with ThreadPoolExecutor(max_workers=ny, thread_name_prefix=f"col{x}") as pool:
            futures = {
                pool.submit(executors[y].apply, int(thresholds[y]), x): y
                for y in range(ny)
            }
            for future in futures:
                y = futures[future]
                try:
                    future.result()
                except ExecutionError as e:
                    failures.append(e)
                except Exception as e:
                    wrapped = ExecutionError(y, x, int(thresholds[y]), str(e))
                    wrapped.__cause__ = e
                    failures.append(wrapped)

        if failures:
            failures.sort(key=lambda e: e.row)
            for e in failures:
                logger.error("Column %d: %s", x, e)
            first = failures[0]
            first.failures = failures
            raise first

        logger.debug("Column %d: all %d rows applied", x, ny)
        return thresholds
