import pytest
import numpy as np

from accretion.imaging.component_labeler import Centroid
from accretion.imaging.image_store import PixelGrid


@pytest.fixture
def two_block_mask():
    """10x10 mask with two disjoint 2x2 foreground blocks."""
    mask = np.zeros((10, 10), dtype=np.uint8)
    mask[2:4, 2:4] = 1
    mask[6:8, 6:8] = 1
    return mask


@pytest.fixture
def two_level_grid():
    """Checkerboard of 8x8 tiles at intensities 10 and 200."""
    tiles = (np.indices((32, 32)) // 8).sum(axis=0) % 2
    return PixelGrid(np.where(tiles == 1, 200, 10).astype(np.uint8))


@pytest.fixture
def make_centroids():
    def _make(points, k=1):
        return [Centroid(x=x, y=y, distances=[0.0] * k) for x, y in points]
    return _make


@pytest.fixture
def two_clouds():
    """Two tight point clouds far apart, (x, y)."""
    left = [(5, 5), (6, 5), (5, 6), (6, 6), (7, 7), (4, 6)]
    right = [(90, 80), (91, 80), (90, 81), (92, 82), (89, 79), (91, 83)]
    return left + right
