"""Base contract enforcement utilities.

require() is the single enforcement mechanism for all stage contracts.
"""

from accretion.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants. No recovery, no fallback.

    Parameters
    ----------
    condition : bool
        The invariant that must be true.
    message : str
        Error message explaining the violation.

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require(grid.pixels.ndim == 2, "Frame contract: expected 2D pixels")
    """
    if not condition:
        raise ContractViolation(message)
