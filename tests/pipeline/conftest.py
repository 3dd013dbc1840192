import pytest

from accretion.imaging.image_store import ImageStore
from accretion.pipeline.frame_tracker import FrameProcessingTracker


@pytest.fixture
def tracker(temp_dir):
    db_path = temp_dir / "tracker.db"
    t = FrameProcessingTracker(db_path)
    yield t
    t.close()


@pytest.fixture
def pipeline_config(make_config, output_dirs):
    """InternalConfig pointing at output_dirs, frames 1..6, 50% downlink."""
    return make_config(
        base_dir=str(output_dirs["base"]),
        start_index=1,
        end_index=6,
        downlink_percentage=50,
        seed=3,
    )


@pytest.fixture
def source_store(output_dirs):
    return ImageStore(output_dirs["frames"])


@pytest.fixture
def downlink_store(output_dirs):
    return ImageStore(output_dirs["downlink"])
