"""Failure types for the accretion pipeline.

Two families:
- ContractViolation: a stage did not produce the invariants it promised.
  This is a pipeline bug and always stops the run.
- FrameError and subclasses: recoverable conditions scoped to one frame
  (unreadable file, degenerate input). The orchestrator records them and
  moves on to the next frame unless the failure policy says otherwise.
"""

from enum import Enum


class FailurePolicy(str, Enum):
    """What the orchestrator does with a FrameError.

    SKIP_FRAME (default): record the failure, exclude the frame's metrics,
    continue with the next frame.
    FAIL_FAST: re-raise the first FrameError.

    ContractViolation is fatal under both policies.
    """
    SKIP_FRAME = "skip_frame"
    FAIL_FAST = "fail_fast"


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    Key distinction:
    - ValueError: User/config error (handled by Pydantic)
    - ContractViolation: Pipeline bug (programmer error)
    - FrameError: Recoverable per-frame condition
    """
    pass


class FrameError(Exception):
    """Base class for recoverable per-frame failures."""
    kind = "frame_error"


class DimensionMismatch(FrameError, ValueError):
    """Two grids that must share a shape do not."""
    kind = "dimension_mismatch"


class TooManyComponents(FrameError):
    """A frame holds more components than the configured ceiling."""
    kind = "too_many_components"


class EmptyInput(FrameError, ValueError):
    """An operation received an empty sequence it cannot reduce."""
    kind = "empty_input"


class FrameIOError(FrameError, OSError):
    """A frame could not be read from or written to a store."""
    kind = "io_error"
