"""Pixel intensity to bucket threshold mapping.

For row ``y`` at column ``x``::

    threshold(x, y) = floor(ripeness / max_color * intensity(x, ny - 1 - y))

Bucket index ``y`` reads pixel row ``ny - 1 - y``: pixel row 0 (top of the
image) drives the last bucket. The flip is part of the mapping, every
caller goes through ``column_thresholds`` to get it.
"""

import math

import numpy as np

__all__ = [
    'MAX_COLOR',
    'ripeness_factor',
    'threshold',
    'column_thresholds',
    'is_monotonic',
]

MAX_COLOR = 256


def ripeness_factor(ripeness: int, max_color: int = MAX_COLOR) -> float:
    """Scale from an 8-bit intensity to a token threshold."""
    if ripeness < 0:
        raise ValueError(f"Ripeness must be non-negative, got {ripeness}")
    if max_color < 1:
        raise ValueError(f"max_color must be positive, got {max_color}")
    return ripeness / max_color


def threshold(factor: float, intensity: int) -> int:
    """Minimum token value that survives ``intensity`` at ``factor``."""
    return int(math.floor(factor * intensity))


def column_thresholds(grid, x: int, factor: float) -> np.ndarray:
    """Thresholds for every bucket of column ``x``.

    Parameters
    ----------
    grid : IntensityGrid
    x : int
        Image column.
    factor : float
        Output of ``ripeness_factor``.

    Returns
    -------
    np.ndarray
        int64 array of length ``ny``; entry ``y`` is the threshold of bucket
        ``y``, computed from pixel row ``ny - 1 - y``.
    """
    intensities = grid.column(x)[::-1].astype(np.float64)
    return np.floor(factor * intensities).astype(np.int64)


def is_monotonic(grid, factor: float) -> bool:
    """True if every bucket's thresholds never decrease from column to column.

    Deletes cannot be undone, so a darker pixel after a brighter one in the
    same row has no visible effect. Nothing enforces this; it is a property
    of the input image.
    """
    if grid.width() < 2:
        return True
    values = np.floor(factor * grid.data.values.astype(np.float64))
    return bool(np.all(np.diff(values, axis=1) >= 0))
