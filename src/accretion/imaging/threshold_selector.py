"""Optimal binarisation threshold search.

Every threshold 0..255 is tried; the binary image whose correlation with
the original is highest wins. A sequence-wide threshold is then the
truncated mean of the per-frame optima.
"""

from typing import TYPE_CHECKING, Sequence
import logging

import numpy as np

from accretion.contracts import EmptyInput
from accretion.imaging.correlation import correlate

if TYPE_CHECKING:
    from accretion.imaging.image_store import PixelGrid
    from accretion.schemas import InternalConfig

__all__ = ['ThresholdSelector', 'FOREGROUND', 'BACKGROUND', 'binarize']

logger = logging.getLogger(__name__)

FOREGROUND = 1
BACKGROUND = 0
NUM_LEVELS = 256


def binarize(pixels: np.ndarray, threshold: int) -> np.ndarray:
    """Pixels above ``threshold`` become background, the rest foreground."""
    return np.where(pixels > threshold, BACKGROUND, FOREGROUND).astype(np.uint8)


class ThresholdSelector:
    """Config-driven threshold search."""

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.workers = config.threshold.workers

    def score_curve(self, grid: "PixelGrid") -> np.ndarray:
        """Correlation of the original with its binarisation at every level."""
        pixels = grid.pixels
        return np.array([correlate(pixels, binarize(pixels, t)) for t in range(NUM_LEVELS)])

    def select(self, grid: "PixelGrid") -> int:
        """Threshold with maximal correlation; the earliest one on ties.

        Returns 0 when no threshold correlates at all.
        """
        best_threshold = 0
        best_r = 0.0
        for t, r in enumerate(self.score_curve(grid)):
            if r > best_r:
                best_r = r
                best_threshold = t
        logger.debug("Optimal threshold %d (r=%.4f)", best_threshold, best_r)
        return best_threshold

    @staticmethod
    def dataset_threshold(thresholds: Sequence[int]) -> int:
        """Truncated mean of per-frame thresholds.

        Raises
        ------
        EmptyInput
            If no per-frame thresholds are available.
        """
        if len(thresholds) == 0:
            raise EmptyInput("No per-frame thresholds to average")
        return int(sum(thresholds) / len(thresholds))
