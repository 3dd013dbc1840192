"""Bandwidth-limited frame selection.

Each interior frame gets a score from its cluster density and particle
acceleration. The first and last frames always go down. Then, until the
quota is met or the attempt budget runs out, the best unsent interior
frame is sent together with its immediate neighbours.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple
import logging
import math

from accretion.contracts import FrameIOError

if TYPE_CHECKING:
    from accretion.imaging.image_store import ImageStore
    from accretion.imaging.motion import MotionVector
    from accretion.schemas import InternalConfig

__all__ = ['DownlinkPlan', 'DownlinkScheduler']

logger = logging.getLogger(__name__)


@dataclass
class DownlinkPlan:
    """Selected sequence positions and how the selection went.

    Attributes
    ----------
    selected : list of int
        Positions (0-based, within the sequence) chosen for transmission,
        ascending.
    scores : list of float
        Score of every position before selection started (endpoints 0).
    quota : int
        floor(num_images * percentage / 100).
    attempts : int
        Neighbourhoods selected.
    max_attempts : int
        Attempt budget the plan ran under.
    """
    selected: List[int]
    scores: List[float]
    quota: int
    attempts: int
    max_attempts: int

    @property
    def quota_met(self) -> bool:
        return len(self.selected) >= self.quota


class DownlinkScheduler:
    """Config-driven greedy downlink selection."""

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.density_weight = config.downlink.density_weight
        self.acceleration_weight = config.downlink.acceleration_weight
        self.max_attempts = config.downlink.max_attempts

    @staticmethod
    def quota(num_images: int, percentage: float) -> int:
        return math.floor(num_images * percentage / 100)

    def score(self, density: Optional[float], accel: Optional["MotionVector"]) -> float:
        """Weighted density plus weighted acceleration; missing terms count 0."""
        value = 0.0
        if density is not None:
            value += density * self.density_weight
        if accel is not None:
            value += (accel.dx + accel.dy) * self.acceleration_weight
        return value

    def select(self, percentage: float,
               accelerations: Sequence[Optional["MotionVector"]],
               densities: Sequence[Optional[float]],
               num_images: int) -> DownlinkPlan:
        """Choose which sequence positions to transmit.

        Parameters
        ----------
        percentage : float
            Share of the sequence to transmit, 0-100.
        accelerations : sequence of MotionVector or None
            Acceleration at each position; only interior entries are read.
        densities : sequence of float or None
            Cluster density at each position; only interior entries are read.
        num_images : int
            Sequence length.

        Returns
        -------
        DownlinkPlan
            A plan whose selection falls short of the quota when the attempt
            budget or the interior frames run out first.
        """
        quota = self.quota(num_images, percentage)
        if num_images == 0:
            return DownlinkPlan([], [], quota, 0, self.max_attempts)

        scores = [0.0] * num_images
        for i in range(1, num_images - 1):
            scores[i] = self.score(densities[i], accelerations[i])
        initial_scores = list(scores)

        transmitted = [False] * num_images

        def send(position: int):
            if not transmitted[position]:
                transmitted[position] = True
                scores[position] = 0.0

        send(0)
        send(num_images - 1)

        attempts = 0
        while sum(transmitted) < quota and attempts < self.max_attempts:
            candidates = [i for i in range(1, num_images - 1) if not transmitted[i]]
            if not candidates:
                break
            center = max(candidates, key=lambda i: scores[i])
            attempts += 1
            for position in (center - 1, center, center + 1):
                send(position)

        selected = [i for i, sent in enumerate(transmitted) if sent]
        plan = DownlinkPlan(selected, initial_scores, quota, attempts, self.max_attempts)

        if not plan.quota_met:
            logger.warning("Downlink quota not met: %d of %d frames after %d attempts",
                           len(selected), quota, attempts)
        logger.info("Downlink plan: %d/%d frames (quota %d, %d attempts)",
                    len(selected), num_images, quota, attempts)
        return plan

    def transmit(self, frame_indices: Sequence[int], source: "ImageStore",
                 destination: "ImageStore") -> Tuple[List[int], List[Tuple[int, FrameIOError]]]:
        """Copy frames from ``source`` to ``destination``.

        A frame that cannot be copied is logged and reported; the rest are
        still sent.

        Returns
        -------
        sent : list of int
            Frame indices copied.
        failed : list of (int, FrameIOError)
            Frame indices that could not be copied, with the error.
        """
        sent = []
        failed = []
        for index in frame_indices:
            try:
                source.copy_frame(index, destination)
            except FrameIOError as e:
                logger.error("Downlink of frame %d failed: %s", index, e)
                failed.append((index, e))
                continue
            sent.append(index)
        logger.info("Transmitted %d frame(s) to %s", len(sent), destination.root_dir)
        return sent, failed
