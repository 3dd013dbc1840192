"""Per-frame analysis.

Takes one frame from the source store through the science stages:
threshold search (first pass), then labeling, clustering and cluster
density (second pass). Recoverable errors are confined to the frame that
raised them: they are logged, recorded as a FrameFailure and tracked,
and the caller gets None back.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional
import logging
import threading

import pandas as pd

from accretion.imaging.threshold_selector import ThresholdSelector
from accretion.imaging.component_labeler import ParticleLabeler, Centroid
from accretion.imaging.clusterer import KMeansClusterer, ClusterCenter
from accretion.imaging.particle_analyzer import ParticleAnalyzer, cluster_density
from accretion.contracts import (
    ContractViolation,
    FailurePolicy,
    FrameError,
    assert_pixel_grid,
    assert_labeled,
    assert_clustered,
)

if TYPE_CHECKING:
    from accretion.imaging.image_store import ImageStore
    from accretion.pipeline.frame_tracker import FrameProcessingTracker
    from accretion.schemas import InternalConfig

__all__ = ['FrameProcessor', 'FrameAnalysis', 'FrameFailure']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameFailure:
    """A frame excluded from the run, and why."""
    frame_index: int
    stage: str
    kind: str
    message: str


@dataclass
class FrameAnalysis:
    """Second-pass result for one frame."""
    frame_index: int
    centroids: List[Centroid]
    k: int
    centers: List[ClusterCenter]
    iterations: int
    converged: bool
    density: float
    particles: pd.DataFrame

    @property
    def count(self) -> int:
        return len(self.centroids)


class FrameProcessor:
    """Runs the science stages on single frames.

    Example usage (typically called by the orchestrator)::

        processor = FrameProcessor(config, source_store, tracker)
        t = processor.threshold_frame(12)
        analysis = processor.process_frame(12, dataset_threshold)
        if analysis is None:
            print(processor.failures[-1])
    """

    def __init__(self, config: "InternalConfig", source: "ImageStore",
                 frame_tracker: Optional["FrameProcessingTracker"] = None):
        """Initialize processor with validated configuration.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        source : ImageStore
            Store the frames are read from.
        frame_tracker : FrameProcessingTracker, optional
            Receives per-stage progress and failures.
        """
        self.config = config
        self.source = source
        self.frame_tracker = frame_tracker
        self.sequence_id = config.sequence_id
        self.failure_policy = FailurePolicy(config.processor.failure_policy)

        self.selector = ThresholdSelector(config)
        self.labeler = ParticleLabeler(config)
        self.clusterer = KMeansClusterer(config)
        self.analyzer = ParticleAnalyzer()

        self.failures: List[FrameFailure] = []
        self._failures_lock = threading.Lock()

    def _track(self, frame_index: int, stage: str, **kwargs):
        if self.frame_tracker:
            self.frame_tracker.mark_stage_complete(self.sequence_id, frame_index, stage, **kwargs)

    def _record_failure(self, frame_index: int, stage: str, error: Exception) -> None:
        kind = error.kind if isinstance(error, FrameError) else "contract_violation"
        failure = FrameFailure(frame_index, stage, kind, str(error))
        with self._failures_lock:
            self.failures.append(failure)
        self._track(frame_index, stage, error=f"{kind}: {error}")

    def threshold_frame(self, frame_index: int) -> Optional[int]:
        """Optimal threshold of one frame, or None if the frame failed."""
        try:
            grid = self.source.load_frame(frame_index)
            assert_pixel_grid(grid)
            threshold = self.selector.select(grid)

        except ContractViolation as e:
            logger.critical("Pipeline contract violated on frame %d: %s", frame_index, e)
            self._record_failure(frame_index, "thresholded", e)
            raise

        except FrameError as e:
            logger.warning("Frame %d excluded at threshold search: %s", frame_index, e)
            self._record_failure(frame_index, "thresholded", e)
            if self.failure_policy == FailurePolicy.FAIL_FAST:
                raise
            return None

        self._track(frame_index, "thresholded", threshold=threshold)
        logger.debug("Frame %d optimal threshold: %d", frame_index, threshold)
        return threshold

    def process_frame(self, frame_index: int, threshold: int) -> Optional[FrameAnalysis]:
        """Label, cluster and score one frame at the sequence threshold.

        Returns None if the frame failed; the failure is appended to
        ``self.failures``. A frame with no particles fails at the
        clustering stage with an EmptyInput error.
        """
        stage = "labeled"
        try:
            grid = self.source.load_frame(frame_index)
            assert_pixel_grid(grid)

            labeling = self.labeler.label(grid, threshold)
            assert_labeled(labeling, grid.pixels.shape)
            self._track(frame_index, stage, num_particles=labeling.count)

            stage = "clustered"
            rng = self.clusterer.rng_for(frame_index)
            clustering = self.clusterer.cluster(labeling.centroids, labeling.k, rng)
            assert_clustered(labeling.centroids, labeling.k)
            density = cluster_density(labeling.centroids)

        except ContractViolation as e:
            logger.critical("Pipeline contract violated on frame %d: %s", frame_index, e)
            self._record_failure(frame_index, stage, e)
            raise

        except FrameError as e:
            logger.warning("Frame %d excluded at %s stage: %s", frame_index, stage, e)
            self._record_failure(frame_index, stage, e)
            if self.failure_policy == FailurePolicy.FAIL_FAST:
                raise
            return None

        particles = self.analyzer.extract(frame_index, labeling.centroids, clustering.centers)
        self._track(frame_index, "clustered")
        logger.info("Frame %d: %d particles, k=%d, density=%.3f",
                    frame_index, labeling.count, labeling.k, density)

        return FrameAnalysis(
            frame_index=frame_index,
            centroids=labeling.centroids,
            k=labeling.k,
            centers=clustering.centers,
            iterations=clustering.iterations,
            converged=clustering.converged,
            density=density,
            particles=particles,
        )
