"""Image correlation used to score candidate thresholds."""

import math

import numpy as np

from accretion.contracts import DimensionMismatch

__all__ = ['correlate']


def _rounded_mean(values: np.ndarray) -> float:
    """Mean rounded half away from zero (values are non-negative)."""
    return float(math.floor(values.mean() + 0.5))


def correlate(a: np.ndarray, b: np.ndarray) -> float:
    """Absolute Pearson correlation between two equally sized grids.

    Each grid's mean is rounded to the nearest integer before the
    deviations are taken.

    Parameters
    ----------
    a, b : np.ndarray
        2D intensity grids of identical shape.

    Returns
    -------
    float
        Value in [0, 1]. 0.0 when either grid has no deviation from its
        rounded mean (e.g. a uniform grid).

    Raises
    ------
    DimensionMismatch
        If the shapes differ.
    """
    if a.shape != b.shape:
        raise DimensionMismatch(f"Cannot correlate grids of shape {a.shape} and {b.shape}")

    a = a.astype(np.float64)
    b = b.astype(np.float64)
    da = a - _rounded_mean(a)
    db = b - _rounded_mean(b)

    denominator = math.sqrt(float(np.sum(da * da)) * float(np.sum(db * db)))
    if denominator == 0.0:
        return 0.0

    r = abs(float(np.sum(da * db))) / denominator
    return min(r, 1.0)
