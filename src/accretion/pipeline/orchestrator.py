"""Sequence-level pipeline orchestration.

Runs the two passes over a frame range (per-frame thresholds, then the
sequential label/cluster/motion pass), schedules the downlink and
transmits the chosen frames. Manages logging, frame tracking and result
persistence.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Optional
import logging
import sqlite3

import pandas as pd

from accretion.contracts import EmptyInput, assert_downlink_plan
from accretion.imaging.image_store import ImageStore
from accretion.imaging.motion import MotionVector, shift, frame_accelerations
from accretion.imaging.threshold_selector import ThresholdSelector
from accretion.pipeline.downlink_scheduler import DownlinkPlan, DownlinkScheduler
from accretion.pipeline.frame_tracker import FrameProcessingTracker
from accretion.pipeline.processor import FrameAnalysis, FrameFailure, FrameProcessor
from accretion.setup_directories import get_analysis_path, get_log_path

if TYPE_CHECKING:
    from accretion.schemas import InternalConfig

__all__ = ['PipelineOrchestrator', 'SequenceReport', 'FRAME_STATS_COLUMNS']

logger = logging.getLogger(__name__)

FRAME_STATS_COLUMNS = [
    "frame_index",
    "threshold",
    "component_count",
    "k",
    "iterations",
    "converged",
    "density",
    "shift_dx",
    "shift_dy",
    "accel_dx",
    "accel_dy",
    "score",
    "selected",
    "status",
    "error",
]


@dataclass
class SequenceReport:
    """Outcome of one analyze_sequence() run.

    Attributes
    ----------
    downlinked : frozenset of int
        Frame indices selected for downlink and, when copying is enabled,
        successfully transmitted.
    threshold : int or None
        Sequence threshold (mean of the per-frame optima), None when no
        frame produced one.
    plan : DownlinkPlan or None
        Scheduler output, positions relative to ``start_index``.
    failures : list of FrameFailure
        Every frame-level error of the run, in the order they occurred.
    frame_stats : pandas.DataFrame
        One row per frame, columns FRAME_STATS_COLUMNS.
    particles : pandas.DataFrame
        One row per particle of every analyzed frame.
    """
    sequence_id: str
    start_index: int
    end_index: int
    threshold: Optional[int]
    plan: Optional[DownlinkPlan]
    downlinked: FrozenSet[int]
    failures: List[FrameFailure] = field(default_factory=list)
    frame_stats: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=FRAME_STATS_COLUMNS))
    particles: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def num_frames(self) -> int:
        return self.end_index - self.start_index + 1


class PipelineOrchestrator:
    """Runs the frame triage pipeline over a sequence.

    **Passes:**

    1. **Threshold pass**: every frame's optimal threshold is searched
       (optionally on a thread pool); the sequence threshold is their
       truncated mean.

    2. **Analysis pass**: in frame order, each frame is labeled at the
       sequence threshold, its particles clustered and its cluster density
       computed. Shifts between consecutive frames give each interior
       frame an acceleration.

    3. **Downlink**: the scheduler scores interior frames and picks the
       set to transmit; the endpoints always go. Selected frames are
       copied to the downlink store.

    **Failures:**

    A frame that fails (unreadable, too many components, no particles) is
    left out: its density and the shifts touching it are missing, so it
    scores 0. With ``processor.failure_policy == "fail_fast"`` the first
    such error propagates instead.

    Example usage::

        orch = PipelineOrchestrator(config, output_dirs)
        orch.setup_logging()
        report = orch.analyze_sequence(1, 120)
        orch.save_results(report)
        orch.close()
    """

    def __init__(self, config: "InternalConfig", output_dirs: Optional[Dict[str, Path]] = None,
                 tracker: Optional[FrameProcessingTracker] = None):
        """Initialize orchestrator.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        output_dirs : dict, optional
            Directories from ``setup_output_directories()``. Enables the
            frame tracker, log file and saved results.
        tracker : FrameProcessingTracker, optional
            Used instead of creating one under ``output_dirs['analysis']``.
        """
        self.config = config
        self.output_dirs = output_dirs or {}
        self.sequence_id = config.sequence_id

        self.tracker = tracker
        self._owns_tracker = False
        if self.tracker is None and self.output_dirs:
            tracker_path = get_analysis_path(self.output_dirs, self.sequence_id,
                                             filename=f"{self.sequence_id}_frame_tracker.db")
            self.tracker = FrameProcessingTracker(tracker_path)
            self._owns_tracker = True
            logger.info("Frame tracker: %s", tracker_path)

        self.scheduler = DownlinkScheduler(config)

    def setup_logging(self):
        """Configure the root logger with file and console handlers.

        Log file is ``logs/pipeline_{sequence_id}.log`` when output
        directories are known, otherwise only the console is used.
        """
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Clear existing handlers and add new ones
        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        log_path = None
        if self.output_dirs:
            log_path = get_log_path(self.output_dirs, self.sequence_id)

            fh = logging.FileHandler(log_path)
            fh.setLevel(log_level)
            fh.setFormatter(formatter)
            root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", logging.getLevelName(log_level), log_path)

    def _stores(self):
        store = self.config.store
        if store.source_dir is None:
            raise ValueError("store.source_dir is not configured (set SOURCE_DIR or BASE_DIR)")
        source = ImageStore(store.source_dir, store.filename_pattern)
        downlink = ImageStore(store.downlink_dir, store.filename_pattern) if store.downlink_dir else None
        return source, downlink

    def _threshold_pass(self, processor: FrameProcessor, frame_indices: List[int]) -> List[Optional[int]]:
        workers = self.config.threshold.workers
        if workers > 1 and len(frame_indices) > 1:
            logger.info("Threshold search on %d frames with %d workers", len(frame_indices), workers)
            with ThreadPoolExecutor(max_workers=workers) as pool:
                return list(pool.map(processor.threshold_frame, frame_indices))
        return [processor.threshold_frame(i) for i in frame_indices]

    @staticmethod
    def _shifts(analyses: List[Optional[FrameAnalysis]]) -> List[Optional[MotionVector]]:
        shifts: List[Optional[MotionVector]] = []
        for current, following in zip(analyses, analyses[1:]):
            if current is None or following is None:
                shifts.append(None)
                continue
            try:
                shifts.append(shift(current.centroids, following.centroids))
            except EmptyInput:
                shifts.append(None)
        return shifts

    def analyze_sequence(self, start_index: Optional[int] = None,
                         end_index: Optional[int] = None) -> SequenceReport:
        """Analyze frames ``start_index..end_index`` (inclusive) and downlink.

        Parameters
        ----------
        start_index, end_index : int, optional
            Frame range. Default to ``config.sequence``.

        Returns
        -------
        SequenceReport

        Raises
        ------
        ValueError
            If the range is unset or inverted, or no source store is configured.
        FrameError
            First frame failure, when the failure policy is fail_fast.
        ContractViolation
            On an internal consistency failure.
        """
        if start_index is None:
            start_index = self.config.sequence.start_index
        if end_index is None:
            end_index = self.config.sequence.end_index
        if end_index is None:
            raise ValueError("end_index is not configured")
        if end_index < start_index:
            raise ValueError(f"end_index ({end_index}) must be >= start_index ({start_index})")

        source, downlink_store = self._stores()
        frame_indices = list(range(start_index, end_index + 1))
        num_frames = len(frame_indices)

        logger.info("=" * 60)
        logger.info("Sequence %s: frames %d-%d (%d frames)",
                    self.sequence_id, start_index, end_index, num_frames)
        logger.info("=" * 60)

        if self.tracker:
            self.tracker.reset_sequence(self.sequence_id)
            for index in frame_indices:
                self.tracker.register_frame(self.sequence_id, index, source.path_for(index))

        processor = FrameProcessor(self.config, source, self.tracker)

        # Pass 1: thresholds
        frame_thresholds = self._threshold_pass(processor, frame_indices)
        valid = [t for t in frame_thresholds if t is not None]
        if not valid:
            logger.error("No frame produced a threshold; nothing to analyze")
            return SequenceReport(
                sequence_id=self.sequence_id,
                start_index=start_index,
                end_index=end_index,
                threshold=None,
                plan=None,
                downlinked=frozenset(),
                failures=list(processor.failures),
                frame_stats=self._frame_stats(frame_indices, frame_thresholds,
                                              [None] * num_frames, [None] * (num_frames - 1),
                                              [None] * num_frames, None, processor.failures),
            )
        threshold = ThresholdSelector.dataset_threshold(valid)
        logger.info("Sequence threshold: %d (from %d/%d frames)", threshold, len(valid), num_frames)

        # Pass 2: label, cluster, density in frame order
        analyses: List[Optional[FrameAnalysis]] = []
        for index, frame_threshold in zip(frame_indices, frame_thresholds):
            if frame_threshold is None:
                analyses.append(None)
                continue
            analyses.append(processor.process_frame(index, threshold))

        shifts = self._shifts(analyses)
        accelerations = frame_accelerations(shifts)
        densities = [a.density if a is not None else None for a in analyses]

        plan = self.scheduler.select(self.config.downlink.percentage, accelerations,
                                     densities, num_frames)
        assert_downlink_plan(plan, num_frames)

        selected_frames = [frame_indices[p] for p in plan.selected]
        downlinked = set(selected_frames)
        if self.config.downlink.copy_frames and downlink_store is not None:
            sent, failed = self.scheduler.transmit(selected_frames, source, downlink_store)
            for index, error in failed:
                downlinked.discard(index)
                processor.failures.append(FrameFailure(index, "downlinked", error.kind, str(error)))
            if self.tracker:
                for index in sent:
                    self.tracker.mark_stage_complete(self.sequence_id, index, "downlinked")
                for index, error in failed:
                    self.tracker.mark_stage_complete(self.sequence_id, index, "downlinked",
                                                     error=f"{error.kind}: {error}")

        frame_stats = self._frame_stats(frame_indices, frame_thresholds, analyses, shifts,
                                        accelerations, plan, processor.failures)
        particle_frames = [a.particles for a in analyses if a is not None and not a.particles.empty]
        particles = pd.concat(particle_frames, ignore_index=True) if particle_frames else pd.DataFrame()

        logger.info("Downlinked %d/%d frames, %d failure(s)",
                    len(downlinked), num_frames, len(processor.failures))

        return SequenceReport(
            sequence_id=self.sequence_id,
            start_index=start_index,
            end_index=end_index,
            threshold=threshold,
            plan=plan,
            downlinked=frozenset(downlinked),
            failures=list(processor.failures),
            frame_stats=frame_stats,
            particles=particles,
        )

    def _frame_stats(self, frame_indices, frame_thresholds, analyses, shifts, accelerations,
                     plan: Optional[DownlinkPlan], failures: List[FrameFailure]) -> pd.DataFrame:
        errors = {}
        for failure in failures:
            errors.setdefault(failure.frame_index, f"{failure.kind}: {failure.message}")
        selected = set(plan.selected) if plan else set()

        rows = []
        for position, index in enumerate(frame_indices):
            analysis = analyses[position]
            outgoing = shifts[position] if position < len(shifts) else None
            accel = accelerations[position]
            rows.append({
                "frame_index": index,
                "threshold": frame_thresholds[position],
                "component_count": analysis.count if analysis else None,
                "k": analysis.k if analysis else None,
                "iterations": analysis.iterations if analysis else None,
                "converged": analysis.converged if analysis else None,
                "density": analysis.density if analysis else None,
                "shift_dx": outgoing.dx if outgoing else None,
                "shift_dy": outgoing.dy if outgoing else None,
                "accel_dx": accel.dx if accel else None,
                "accel_dy": accel.dy if accel else None,
                "score": plan.scores[position] if plan else None,
                "selected": position in selected,
                "status": "failed" if index in errors else "completed",
                "error": errors.get(index),
            })
        return pd.DataFrame(rows, columns=FRAME_STATS_COLUMNS)

    def save_results(self, report: SequenceReport) -> Dict[str, Path]:
        """Write frame and particle statistics to SQLite, and to Parquet if enabled.

        Rows of earlier runs of the same sequence are replaced.

        Returns
        -------
        dict
            Paths written, keys 'db' and optionally 'parquet'.
        """
        if not self.output_dirs:
            raise ValueError("save_results needs output_dirs")

        db_name = self.config.processor.db_filename_pattern.format(sequence_id=self.sequence_id)
        db_path = get_analysis_path(self.output_dirs, self.sequence_id, filename=db_name)

        frames = report.frame_stats.copy()
        frames.insert(0, "sequence_id", self.sequence_id)
        frames["downlinked"] = frames["frame_index"].isin(report.downlinked)

        conn = sqlite3.connect(str(db_path))
        try:
            for table, df in (("frames", frames), ("particles", report.particles)):
                if df.empty:
                    continue
                if table == "particles":
                    df = df.copy()
                    df.insert(0, "sequence_id", self.sequence_id)
                exists = conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
                ).fetchone()
                if exists:
                    conn.execute(f"DELETE FROM {table} WHERE sequence_id = ?", (self.sequence_id,))
                    conn.commit()
                df.to_sql(table, conn, if_exists='append', index=False)
            conn.commit()
        finally:
            conn.close()
        logger.info("Saved %d frame rows to: %s", len(frames), db_path)

        written = {"db": db_path}
        if self.config.output.export_parquet and not frames.empty:
            parquet_path = get_analysis_path(self.output_dirs, self.sequence_id, "parquet")
            compression = self.config.output.compression
            frames.to_parquet(parquet_path, engine='pyarrow',
                              compression=None if compression == "none" else compression,
                              index=False)
            logger.info("Exported %d rows to: %s", len(frames), parquet_path)
            written["parquet"] = parquet_path
        return written

    def close(self):
        """Close the frame tracker if this orchestrator created it. Safe to call multiple times."""
        if self.tracker and self._owns_tracker:
            self.tracker.close()
            self.tracker = None
