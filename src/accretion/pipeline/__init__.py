"""Pipeline orchestration and per-frame processing."""

from accretion.pipeline.orchestrator import PipelineOrchestrator, SequenceReport
from accretion.pipeline.processor import FrameProcessor, FrameAnalysis, FrameFailure
from accretion.pipeline.downlink_scheduler import DownlinkScheduler, DownlinkPlan
from accretion.pipeline.frame_tracker import FrameProcessingTracker

__all__ = [
    'PipelineOrchestrator',
    'SequenceReport',
    'FrameProcessor',
    'FrameAnalysis',
    'FrameFailure',
    'DownlinkScheduler',
    'DownlinkPlan',
    'FrameProcessingTracker',
]
