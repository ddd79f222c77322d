"""Decode raster images into 8-bit grayscale intensity grids.

The grid is an xarray.DataArray with dims ``("y", "x")`` in pixel space
(row 0 is the top of the image). Columns map to time steps of a bake and
rows map to buckets; the vertical flip between pixel rows and bucket
indices lives in ``ripen.pipeline.thresholds``, not here.
"""

from pathlib import Path
import logging

import numpy as np
import xarray as xr
from PIL import Image, UnidentifiedImageError

__all__ = ['IntensityGrid', 'load_intensity_grid']

logger = logging.getLogger(__name__)


class IntensityGrid:
    """Immutable 2-D grid of grayscale intensities in ``[0, 255]``.

    Parameters
    ----------
    data : xr.DataArray
        2-D uint8 array with dims ("y", "x").

    Examples
    --------
    >>> grid = IntensityGrid.from_array([[0, 128, 255]])
    >>> grid.width(), grid.height()
    (3, 1)
    >>> grid.intensity(1, 0)
    128
    """

    def __init__(self, data: xr.DataArray):
        self._data = data
        self._values = data.values
        self._values.setflags(write=False)

    @classmethod
    def from_array(cls, array, name: str = "intensity") -> "IntensityGrid":
        """Build a grid from any 2-D array-like of values in ``[0, 255]``."""
        values = np.asarray(array)
        if values.ndim != 2:
            raise ValueError(f"Expected a 2-D array, got {values.ndim} dims")
        if values.size and (values.min() < 0 or values.max() > 255):
            raise ValueError("Intensities must lie in [0, 255]")

        values = values.astype(np.uint8).copy()
        ny, nx = values.shape
        da = xr.DataArray(
            values,
            dims=("y", "x"),
            coords={"y": np.arange(ny), "x": np.arange(nx)},
            name=name,
        )
        return cls(da)

    @property
    def data(self) -> xr.DataArray:
        return self._data

    def width(self) -> int:
        """Number of columns (time steps)."""
        return int(self._values.shape[1])

    def height(self) -> int:
        """Number of rows (buckets)."""
        return int(self._values.shape[0])

    def intensity(self, x: int, y: int) -> int:
        """Intensity at column ``x``, pixel row ``y``."""
        if not (0 <= x < self.width() and 0 <= y < self.height()):
            raise IndexError(
                f"Pixel ({x}, {y}) outside {self.width()}x{self.height()} grid"
            )
        return int(self._values[y, x])

    def column(self, x: int) -> np.ndarray:
        """Pixel-space intensities of column ``x`` (top row first)."""
        if not 0 <= x < self.width():
            raise IndexError(f"Column {x} outside grid of width {self.width()}")
        return self._values[:, x]

    def __repr__(self):
        return f"IntensityGrid(width={self.width()}, height={self.height()})"


def load_intensity_grid(path) -> IntensityGrid:
    """Decode an image file into an 8-bit grayscale grid.

    Colour images are converted with Pillow's ``"L"`` mode
    (ITU-R 601-2 luma). Alpha is dropped.

    Parameters
    ----------
    path : str or Path
        Image file (PNG, JPEG, anything Pillow can open).

    Returns
    -------
    IntensityGrid

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file cannot be decoded as an image.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    try:
        with Image.open(path) as img:
            gray = img.convert("L")
            values = np.array(gray, dtype=np.uint8)
    except UnidentifiedImageError as e:
        raise ValueError(f"Cannot decode image {path}: {e}") from e

    grid = IntensityGrid.from_array(values, name=path.stem or "intensity")
    logger.info("Loaded image %s: %d columns x %d rows", path.name, grid.width(), grid.height())
    return grid
