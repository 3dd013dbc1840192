"""Frame stage contract.

Enforces the guarantee that a loaded frame is a non-empty 2D 8-bit grid.
"""

import numpy as np
from accretion.contracts.base import require


def assert_pixel_grid(grid) -> None:
    """Enforce frame contract.

    Called right after ImageStore.load().

    Parameters
    ----------
    grid : PixelGrid
        Frame returned by the store.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    pixels = grid.pixels
    require(
        isinstance(pixels, np.ndarray),
        f"Frame contract violated: pixels is {type(pixels)}, expected ndarray"
    )
    require(
        pixels.ndim == 2,
        f"Frame contract violated: pixels has {pixels.ndim} dims, expected 2"
    )
    require(
        pixels.dtype == np.uint8,
        f"Frame contract violated: dtype is {pixels.dtype}, expected uint8"
    )
    require(
        pixels.size > 0,
        "Frame contract violated: frame has no pixels"
    )
