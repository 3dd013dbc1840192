"""Root-level pytest fixtures for the accretion test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture, plus synthetic frame builders. Tests use these fixtures
instead of creating raw dict configs.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import cv2
import numpy as np

from accretion.schemas import ParamConfig, UserConfig, resolve_config


BACKGROUND_LEVEL = 200
PARTICLE_LEVEL = 20


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides).

    Examples
    --------
    >>> def test_labeler_init(internal_config):
    ...     labeler = ParticleLabeler(internal_config)
    ...     assert labeler.max_components == 100_000
    """
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_custom_seed(make_config):
    ...     config = make_config(seed=7)
    ...     assert KMeansClusterer(config).seed == 7
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def output_dirs(temp_dir):
    """Standard accretion output directory structure.

    Returns dict with keys: base, frames, downlink, analysis, logs
    """
    dirs = {
        "base": temp_dir,
        "frames": temp_dir / "frames",
        "downlink": temp_dir / "downlink",
        "analysis": temp_dir / "analysis",
        "logs": temp_dir / "logs",
    }

    for d in dirs.values():
        d.mkdir(parents=True, exist_ok=True)

    return dirs


# =============================================================================
# Synthetic Frames
# =============================================================================

def make_particle_frame(positions, shape=(48, 48), size=2):
    """Bright background with dark square particles.

    Parameters
    ----------
    positions : iterable of (y, x)
        Top-left corner of each particle.
    shape : tuple
        Frame (height, width).
    size : int
        Particle edge length in pixels.
    """
    pixels = np.full(shape, BACKGROUND_LEVEL, dtype=np.uint8)
    for y, x in positions:
        pixels[y:y + size, x:x + size] = PARTICLE_LEVEL
    return pixels


def sequence_positions(num_frames, base=((6, 6), (6, 30), (20, 14), (30, 34), (36, 8))):
    """Particle layouts for a drifting cloud.

    The cloud moves right by a step that changes from frame to frame, so
    interior frames have non-zero acceleration.
    """
    steps = [0, 1, 3, 4, 4, 6, 7, 7, 8, 10, 10, 11]
    frames = []
    for i in range(num_frames):
        dx = steps[i % len(steps)]
        frames.append([(y, x + dx) for y, x in base])
    return frames


@pytest.fixture
def write_frame():
    """Write a uint8 array as a PGM frame; returns the path."""
    def _write(path, pixels):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        assert cv2.imwrite(str(path), pixels)
        return path

    return _write


@pytest.fixture
def frame_sequence(output_dirs, write_frame):
    """Factory writing a drifting particle sequence into output_dirs['frames'].

    Frames are named ``{index:03d}.pgm`` starting at ``start``; returns the
    list of frame indices written.
    """
    def _make(num_frames=6, start=1):
        indices = []
        for offset, positions in enumerate(sequence_positions(num_frames)):
            index = start + offset
            write_frame(output_dirs["frames"] / f"{index:03d}.pgm", make_particle_frame(positions))
            indices.append(index)
        return indices

    return _make


@pytest.fixture
def particle_frame():
    """Factory for a single synthetic frame; see make_particle_frame()."""
    return make_particle_frame
