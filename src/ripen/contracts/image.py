"""Image stage contract.

Enforces the guarantee that after decoding, the intensity grid is valid
for threshold computation.
"""

import numpy as np
import xarray as xr
from ripen.contracts.base import require


def assert_intensity_grid(da: xr.DataArray) -> None:
    """Enforce image stage contract.

    Parameters
    ----------
    da : xr.DataArray
        Grid produced by the image loader.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    require(
        da.ndim == 2,
        f"Image contract violated: grid has {da.ndim} dims, expected 2"
    )
    require(
        tuple(da.dims) == ("y", "x"),
        f"Image contract violated: dims are {tuple(da.dims)}, expected ('y', 'x')"
    )
    require(
        da.size > 0,
        "Image contract violated: grid is empty"
    )
    require(
        np.issubdtype(da.dtype, np.integer),
        f"Image contract violated: dtype {da.dtype} is not integer"
    )

    values = da.values
    require(
        int(values.min()) >= 0 and int(values.max()) <= 255,
        "Image contract violated: intensities outside [0, 255]"
    )
