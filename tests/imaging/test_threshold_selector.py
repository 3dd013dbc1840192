"""Test ThresholdSelector optimal threshold search."""

import pytest
import numpy as np

from accretion.contracts import EmptyInput
from accretion.imaging.image_store import PixelGrid
from accretion.imaging.threshold_selector import (
    ThresholdSelector,
    binarize,
    FOREGROUND,
    BACKGROUND,
)

pytestmark = pytest.mark.unit


def test_selector_init(make_config):
    selector = ThresholdSelector(make_config(threshold_workers=3))
    assert selector.workers == 3


def test_binarize_marks_dark_pixels_foreground():
    pixels = np.array([[0, 100, 101, 255]], dtype=np.uint8)
    out = binarize(pixels, 100)

    assert out.dtype == np.uint8
    assert out.tolist() == [[FOREGROUND, FOREGROUND, BACKGROUND, BACKGROUND]]


def test_two_level_image_threshold(internal_config, two_level_grid):
    """Lowest level wins and reproduces the pattern."""
    selector = ThresholdSelector(internal_config)

    t = selector.select(two_level_grid)
    assert t == 10

    binary = binarize(two_level_grid.pixels, t)
    expected = np.where(two_level_grid.pixels == 10, FOREGROUND, BACKGROUND)
    np.testing.assert_array_equal(binary, expected)


def test_two_level_curve_shape(internal_config, two_level_grid):
    curve = ThresholdSelector(internal_config).score_curve(two_level_grid)

    assert curve.shape == (256,)
    # Below the dark level and at/above the bright level the binarisation is uniform
    assert np.all(curve[:10] == 0.0)
    assert np.all(curve[200:] == 0.0)
    assert curve[10] == pytest.approx(curve.max())
    assert curve[10] > 0.5


def test_uniform_frame_selects_zero(internal_config):
    grid = PixelGrid(np.full((8, 8), 77, dtype=np.uint8))
    assert ThresholdSelector(internal_config).select(grid) == 0


def test_dataset_threshold_truncates_mean():
    assert ThresholdSelector.dataset_threshold([10, 11]) == 10
    assert ThresholdSelector.dataset_threshold([20, 20, 21]) == 20
    assert ThresholdSelector.dataset_threshold([7]) == 7


def test_dataset_threshold_empty_raises():
    with pytest.raises(EmptyInput):
        ThresholdSelector.dataset_threshold([])
