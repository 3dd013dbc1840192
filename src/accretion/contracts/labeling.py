"""Labeling stage contract.

Enforces the guarantee that after component labeling the count matches
the centroid list, k follows the sqrt(count/2) rule, and every centroid
lies in the scanned interior.
"""

import math
from accretion.contracts.base import require


def assert_labeled(result, shape: tuple) -> None:
    """Enforce labeling stage contract.

    Parameters
    ----------
    result : LabelingResult
        Output of ParticleLabeler.label().
    shape : tuple
        (height, width) of the labeled frame.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    height, width = shape
    require(
        result.count == len(result.centroids),
        f"Labeling contract violated: count={result.count} but {len(result.centroids)} centroids"
    )
    expected_k = max(1, math.isqrt(result.count // 2))
    require(
        result.k == expected_k,
        f"Labeling contract violated: k={result.k}, expected {expected_k}"
    )
    for c in result.centroids:
        require(
            1 <= c.x <= width - 2 and 1 <= c.y <= height - 2,
            f"Labeling contract violated: centroid ({c.x}, {c.y}) outside interior of {width}x{height}"
        )
