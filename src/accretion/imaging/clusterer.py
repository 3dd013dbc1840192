"""K-means clustering of component centroids.

Lloyd's algorithm on integer pixel coordinates: seeded random distinct
initial centers, nearest-center assignment, integer mean re-centering,
stop when centers no longer move or the iteration cap is hit.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional
import logging

import numpy as np
from scipy.spatial.distance import cdist

from accretion.contracts import EmptyInput

if TYPE_CHECKING:
    from accretion.imaging.component_labeler import Centroid
    from accretion.schemas import InternalConfig

__all__ = ['ClusterCenter', 'ClusteringResult', 'KMeansClusterer']

logger = logging.getLogger(__name__)


@dataclass
class ClusterCenter:
    x: int
    y: int


@dataclass
class ClusteringResult:
    """Outcome of one clustering run.

    ``converged`` is False when ``iterations`` reached the cap; the
    centroid assignment is then the last one computed.
    """
    centers: List[ClusterCenter]
    iterations: int
    converged: bool


class KMeansClusterer:
    """Config-driven k-means over centroid positions.

    Notes
    -----
    ``cluster()`` writes ``cluster_index`` and ``distances`` onto the
    centroids it is given. Both reflect the final assignment step, which
    runs before the last re-centering.
    """

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.max_iterations = config.clusterer.max_iterations
        self.seed = config.clusterer.seed

    def rng_for(self, frame_index: Optional[int] = None) -> np.random.Generator:
        """Random generator for one frame.

        With a configured seed the stream depends only on (seed, frame_index),
        so a frame clusters the same way regardless of run order.
        """
        if self.seed is None:
            return np.random.default_rng()
        if frame_index is None:
            return np.random.default_rng(self.seed)
        return np.random.default_rng([self.seed, frame_index])

    @staticmethod
    def initial_indices(n: int, k: int, rng: np.random.Generator) -> List[int]:
        """Draw k distinct indices from [0, n) by rejection sampling."""
        chosen: List[int] = []
        while len(chosen) < k:
            i = int(rng.integers(0, n))
            if i not in chosen:
                chosen.append(i)
        return chosen

    @staticmethod
    def _recenter(points: np.ndarray, assignment: np.ndarray, centers: np.ndarray) -> np.ndarray:
        """Integer mean of each cluster's members; empty clusters keep their center."""
        k = len(centers)
        counts = np.bincount(assignment, minlength=k)
        sums = np.zeros((k, 2), dtype=np.int64)
        np.add.at(sums, assignment, points)

        new_centers = centers.copy()
        occupied = counts > 0
        new_centers[occupied] = sums[occupied] // counts[occupied, None]
        return new_centers

    def cluster(self, centroids: List["Centroid"], k: int,
                rng: Optional[np.random.Generator] = None) -> ClusteringResult:
        """Partition ``centroids`` into ``k`` clusters.

        Parameters
        ----------
        centroids : list of Centroid
            Mutated in place.
        k : int
            Number of clusters, 1 <= k <= len(centroids).
        rng : np.random.Generator, optional
            Source of the initial center choice. Defaults to ``rng_for()``.

        Returns
        -------
        ClusteringResult

        Raises
        ------
        EmptyInput
            If there are no centroids or fewer centroids than clusters.
        """
        n = len(centroids)
        if n == 0:
            raise EmptyInput("No centroids to cluster")
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        if k > n:
            raise EmptyInput(f"Cannot seed {k} centers from {n} centroids")

        if rng is None:
            rng = self.rng_for()

        points = np.array([(c.x, c.y) for c in centroids], dtype=np.int64)
        centers = points[self.initial_indices(n, k, rng)].copy()

        iterations = 0
        converged = False
        while True:
            distances = cdist(points, centers)
            assignment = np.argmin(distances, axis=1)

            previous = centers
            centers = self._recenter(points, assignment, previous)
            iterations += 1

            if np.array_equal(centers, previous):
                converged = True
                break
            if iterations >= self.max_iterations:
                break

        for c, row, j in zip(centroids, distances, assignment):
            c.distances = row.tolist()
            c.cluster_index = int(j)

        if not converged:
            logger.warning("K-means stopped at the %d iteration cap without converging", iterations)
        else:
            logger.debug("K-means converged after %d iterations (n=%d, k=%d)", iterations, n, k)

        return ClusteringResult(
            centers=[ClusterCenter(int(x), int(y)) for x, y in centers],
            iterations=iterations,
            converged=converged,
        )
