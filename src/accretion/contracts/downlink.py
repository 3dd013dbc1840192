"""Downlink stage contract.

Enforces the guarantee that a plan always contains both sequence
endpoints and only positions inside the sequence.
"""

from accretion.contracts.base import require


def assert_downlink_plan(plan, num_images: int) -> None:
    """Enforce downlink stage contract.

    Parameters
    ----------
    plan : DownlinkPlan
        Output of DownlinkScheduler.select().
    num_images : int
        Number of frames in the sequence.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    if num_images == 0:
        require(not plan.selected, "Downlink contract violated: empty sequence with selections")
        return
    require(
        0 in plan.selected and (num_images - 1) in plan.selected,
        "Downlink contract violated: sequence endpoints must always be transmitted"
    )
    require(
        all(0 <= p < num_images for p in plan.selected),
        f"Downlink contract violated: position outside [0, {num_images})"
    )
    require(
        plan.attempts <= plan.max_attempts,
        f"Downlink contract violated: {plan.attempts} attempts exceeds budget {plan.max_attempts}"
    )
