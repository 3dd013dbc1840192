"""Frame-to-frame particle motion.

Centroid lists of consecutive frames are compared index by index: the
n-th particle found in raster order in one frame is paired with the n-th
in the next. Shift is the mean displacement of those pairs; acceleration
at a frame is the change between its incoming and outgoing shift.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

from accretion.contracts import EmptyInput

if TYPE_CHECKING:
    from accretion.imaging.component_labeler import Centroid

__all__ = ['MotionVector', 'shift', 'acceleration', 'frame_accelerations']


@dataclass(frozen=True)
class MotionVector:
    dx: float
    dy: float

    def __sub__(self, other: "MotionVector") -> "MotionVector":
        return MotionVector(self.dx - other.dx, self.dy - other.dy)


def shift(list_a: Sequence["Centroid"], list_b: Sequence["Centroid"]) -> MotionVector:
    """Mean displacement from ``list_a`` to ``list_b``.

    Only the first ``min(len(list_a), len(list_b))`` index-aligned pairs
    contribute.

    Raises
    ------
    EmptyInput
        If either list is empty.
    """
    n = min(len(list_a), len(list_b))
    if n == 0:
        raise EmptyInput("Shift needs at least one centroid in each frame")

    sum_x = 0
    sum_y = 0
    for a, b in zip(list_a[:n], list_b[:n]):
        sum_x += b.x - a.x
        sum_y += b.y - a.y
    return MotionVector(sum_x / n, sum_y / n)


def acceleration(previous: MotionVector, current: MotionVector) -> MotionVector:
    """Previous shift minus current shift."""
    return previous - current


def frame_accelerations(shifts: Sequence[Optional[MotionVector]]) -> List[Optional[MotionVector]]:
    """Acceleration at every frame of a sequence.

    Parameters
    ----------
    shifts : sequence of MotionVector or None
        ``shifts[i]`` is the shift from frame i to frame i+1; None where
        it could not be measured.

    Returns
    -------
    list of MotionVector or None
        One entry per frame (``len(shifts) + 1``). Frame i (interior) gets
        ``acceleration(shifts[i-1], shifts[i])``; endpoints and frames next
        to an unmeasured shift get None.
    """
    num_frames = len(shifts) + 1
    result: List[Optional[MotionVector]] = [None] * num_frames
    for i in range(1, num_frames - 1):
        incoming, outgoing = shifts[i - 1], shifts[i]
        if incoming is not None and outgoing is not None:
            result[i] = acceleration(incoming, outgoing)
    return result
