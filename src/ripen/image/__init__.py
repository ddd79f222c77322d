"""Image decoding.

- loader: IntensityGrid and load_intensity_grid
"""

from ripen.image.loader import IntensityGrid, load_intensity_grid

__all__ = ['IntensityGrid', 'load_intensity_grid']
