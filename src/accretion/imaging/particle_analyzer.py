"""Per-frame particle statistics.

cluster_density() condenses a clustered frame into one number: the mean
distance from each particle to the center of its cluster. ParticleAnalyzer
lays the same information out as one DataFrame row per particle, ready
for SQLite.
"""

from typing import TYPE_CHECKING, List
import logging

import numpy as np
import pandas as pd

from accretion.contracts import EmptyInput

if TYPE_CHECKING:
    from accretion.imaging.clusterer import ClusterCenter
    from accretion.imaging.component_labeler import Centroid

__all__ = ['cluster_density', 'ParticleAnalyzer', 'PARTICLE_COLUMNS']

logger = logging.getLogger(__name__)

PARTICLE_COLUMNS = [
    "frame_index",
    "particle_label",
    "x",
    "y",
    "cluster_index",
    "center_x",
    "center_y",
    "center_distance",
]


def cluster_density(centroids: List["Centroid"]) -> float:
    """Mean distance of each centroid to its assigned center.

    Raises
    ------
    EmptyInput
        If ``centroids`` is empty.
    """
    if not centroids:
        raise EmptyInput("Cluster density of an empty centroid list")
    return float(np.mean([c.distances[c.cluster_index] for c in centroids]))


class ParticleAnalyzer:
    """Tabulates clustered particles.

    Examples
    --------
    >>> analyzer = ParticleAnalyzer()
    >>> df = analyzer.extract(12, labeling.centroids, clustering.centers)
    >>> df.to_sql("particles", conn, if_exists="append", index=False)
    """

    def extract(self, frame_index: int, centroids: List["Centroid"],
                centers: List["ClusterCenter"]) -> pd.DataFrame:
        """One row per particle, labels numbered from 1 in raster order.

        Returns an empty DataFrame with the standard columns when the frame
        has no particles.
        """
        rows = []
        for label, c in enumerate(centroids, start=1):
            center = centers[c.cluster_index]
            rows.append({
                "frame_index": frame_index,
                "particle_label": label,
                "x": c.x,
                "y": c.y,
                "cluster_index": c.cluster_index,
                "center_x": center.x,
                "center_y": center.y,
                "center_distance": c.distances[c.cluster_index],
            })

        return pd.DataFrame(rows, columns=PARTICLE_COLUMNS)
