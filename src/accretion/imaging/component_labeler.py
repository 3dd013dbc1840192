"""Connected component extraction by boundary contour tracing.

The frame is binarised at the sequence threshold and raster scanned.
Each new component is found at its top-left pixel, its outer boundary is
traced with the Moore neighbourhood, and that first pixel becomes the
component's representative centroid. Holes are traced as internal
contours the first time the scan leaves a labelled run into an
unexamined background pixel.

Label grid values:
- 0: not yet labelled
- -1: background pixel examined (and rejected) during tracing
- >0: component id
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Tuple
import logging
import math

import numpy as np

from accretion.contracts import ContractViolation, TooManyComponents
from accretion.imaging.threshold_selector import FOREGROUND, BACKGROUND

if TYPE_CHECKING:
    from accretion.imaging.image_store import PixelGrid
    from accretion.schemas import InternalConfig

__all__ = [
    'Centroid',
    'ContourTrace',
    'LabelingResult',
    'ParticleLabeler',
    'SEARCH_DIRECTIONS',
    'interior_mask',
    'trace_contour',
]

logger = logging.getLogger(__name__)

# (dy, dx), clockwise starting east
SEARCH_DIRECTIONS = ((0, 1), (1, 1), (1, 0), (1, -1), (0, -1), (-1, -1), (-1, 0), (-1, 1))

UNLABELED = 0
REJECTED = -1
EXTERNAL_START_DIRECTION = 0
INTERNAL_START_DIRECTION = 1


@dataclass
class Centroid:
    """Representative point of one component.

    ``cluster_index`` and ``distances`` are filled in by the clusterer.
    """
    x: int
    y: int
    cluster_index: int = 0
    distances: List[float] = field(default_factory=list)


@dataclass(frozen=True)
class ContourTrace:
    """Result of tracing one contour.

    Attributes
    ----------
    boundary : tuple of (y, x)
        Foreground pixels visited, in tracing order. Empty for an
        isolated pixel.
    rejected : frozenset of (y, x)
        Background neighbours probed along the way.
    """
    boundary: Tuple[Tuple[int, int], ...]
    rejected: frozenset


@dataclass
class LabelingResult:
    centroids: List[Centroid]
    count: int
    k: int


def interior_mask(pixels: np.ndarray, threshold: int) -> np.ndarray:
    """Binary mask of ``pixels`` with the outer one-pixel frame forced to background."""
    mask = np.zeros(pixels.shape, dtype=np.uint8)
    inner = pixels[1:-1, 1:-1]
    mask[1:-1, 1:-1] = np.where(inner > threshold, BACKGROUND, FOREGROUND)
    return mask


def _probe(mask: np.ndarray, position: Tuple[int, int], direction: int, rejected: set):
    """Move to the first foreground neighbour, probing at most 7 directions.

    Returns the new position (unchanged if none found) and the direction
    the foreground neighbour was found in.
    """
    y, x = position
    for _ in range(7):
        dy, dx = SEARCH_DIRECTIONS[direction]
        ny, nx = y + dy, x + dx
        if mask[ny, nx] == BACKGROUND:
            rejected.add((ny, nx))
            direction = (direction + 1) % 8
        else:
            return (ny, nx), direction
    return (y, x), direction


def trace_contour(mask: np.ndarray, start: Tuple[int, int], direction: int) -> ContourTrace:
    """Trace the contour passing through ``start``.

    Parameters
    ----------
    mask : np.ndarray
        Binary mask whose outer frame is background, so every probe stays
        in bounds.
    start : tuple of int
        (y, x) of a foreground pixel on the contour.
    direction : int
        Index into SEARCH_DIRECTIONS to begin probing from.

    Returns
    -------
    ContourTrace

    Notes
    -----
    Tracing stops when it comes back to ``start`` and the next step lands
    on the first pixel visited after ``start``.
    """
    rejected = set()
    boundary = []

    current, direction = _probe(mask, start, direction, rejected)
    if current == start:
        return ContourTrace(tuple(boundary), frozenset(rejected))

    first = current
    passed_start = False
    max_steps = 4 * mask.size + 8
    for _ in range(max_steps):
        direction = (direction + 6) % 8
        boundary.append(current)
        current, direction = _probe(mask, current, direction, rejected)
        if current == start:
            passed_start = True
        elif passed_start:
            if current == first:
                return ContourTrace(tuple(boundary), frozenset(rejected))
            passed_start = False

    raise ContractViolation(
        f"Contour tracing from {start} did not close within {max_steps} steps"
    )


class ParticleLabeler:
    """Config-driven component labeling."""

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.max_components = config.labeler.max_components

    @staticmethod
    def cluster_count(count: int) -> int:
        """k = max(1, floor(sqrt(count / 2)))."""
        return max(1, math.isqrt(count // 2))

    def label(self, grid: "PixelGrid", threshold: int) -> LabelingResult:
        """Binarise ``grid`` at ``threshold`` and extract its components.

        Raises
        ------
        TooManyComponents
            If the frame holds more components than ``labeler.max_components``.
        """
        mask = interior_mask(grid.pixels, threshold)
        return self.label_mask(mask)

    def label_mask(self, mask: np.ndarray) -> LabelingResult:
        """Extract components from a binary mask with a background frame."""
        height, width = mask.shape
        labels = np.zeros(mask.shape, dtype=np.int32)
        centroids: List[Centroid] = []

        def apply(trace: ContourTrace, label: int):
            for pos in trace.rejected:
                labels[pos] = REJECTED
            for pos in trace.boundary:
                labels[pos] = label

        for cy in range(1, height - 1):
            current = 0
            for cx in range(1, width - 1):
                if mask[cy, cx] == FOREGROUND:
                    if current != 0:
                        labels[cy, cx] = current
                        continue
                    current = int(labels[cy, cx])
                    if current == UNLABELED:
                        if len(centroids) >= self.max_components:
                            raise TooManyComponents(
                                f"More than {self.max_components} components in frame"
                            )
                        current = len(centroids) + 1
                        apply(trace_contour(mask, (cy, cx), EXTERNAL_START_DIRECTION), current)
                        labels[cy, cx] = current
                        centroids.append(Centroid(x=cx, y=cy))
                elif current != 0:
                    if labels[cy, cx] == UNLABELED:
                        apply(trace_contour(mask, (cy, cx - 1), INTERNAL_START_DIRECTION), current)
                    current = 0

        count = len(centroids)
        k = self.cluster_count(count)
        for c in centroids:
            c.distances = [0.0] * k

        logger.debug("Labeled %d components, k=%d", count, k)
        return LabelingResult(centroids=centroids, count=count, k=k)
