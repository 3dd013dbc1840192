"""Clustering stage contract.

Enforces the guarantee that every centroid has exactly one cluster index
in [0, k) and a distance entry for each center.
"""

from accretion.contracts.base import require


def assert_clustered(centroids, k: int) -> None:
    """Enforce clustering stage contract.

    Parameters
    ----------
    centroids : list of Centroid
        Centroids after KMeansClusterer.cluster().
    k : int
        Number of centers.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    for i, c in enumerate(centroids):
        require(
            0 <= c.cluster_index < k,
            f"Clustering contract violated: centroid {i} has cluster_index {c.cluster_index}, k={k}"
        )
        require(
            len(c.distances) == k,
            f"Clustering contract violated: centroid {i} has {len(c.distances)} distances, k={k}"
        )
