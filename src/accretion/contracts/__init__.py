"""Pipeline contracts and typed frame failures.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- FrameError subclasses carry recoverable per-frame conditions
"""

from accretion.contracts.failure import (
    ContractViolation,
    FailurePolicy,
    FrameError,
    DimensionMismatch,
    TooManyComponents,
    EmptyInput,
    FrameIOError,
)
from accretion.contracts.base import require
from accretion.contracts.frame import assert_pixel_grid
from accretion.contracts.labeling import assert_labeled
from accretion.contracts.clustering import assert_clustered
from accretion.contracts.downlink import assert_downlink_plan

__all__ = [
    "ContractViolation",
    "FailurePolicy",
    "FrameError",
    "DimensionMismatch",
    "TooManyComponents",
    "EmptyInput",
    "FrameIOError",
    "require",
    "assert_pixel_grid",
    "assert_labeled",
    "assert_clustered",
    "assert_downlink_plan",
]
