"""
Collision oracle.

Decides whether one more activity may be added to the set a person already
holds, based on module exclusivity, exact block overlap and the coarse
time-group rules around Duty activities.
"""

from typing import Sequence

from .data_models import Activity, Block, Module


# Snapped groups that exclude each other when neither side is a Duty
OPPOSING_GROUPS = {
    Block.B1: Block.B3,
    Block.B3: Block.B1,
}


def collides(held: Sequence[Activity], candidate: Activity) -> bool:
    """
    Check whether candidate conflicts with the activities already held.

    Assumes held is itself collision-free; it is not re-validated.

    Args:
        held: Activities already assigned to one person
        candidate: Activity considered for that person

    Returns:
        True if adding candidate is forbidden
    """
    if any(a.module == candidate.module or a.block == candidate.block for a in held):
        return True

    # A held Duty lifts the time-group rules
    if any(a.module == Module.DUTY for a in held):
        return False

    candidate_group = candidate.block.snap()

    if candidate.module == Module.DUTY:
        # Duty takes its whole coarse group
        return any(a.block.snap() == candidate_group for a in held)

    opposing = OPPOSING_GROUPS.get(candidate_group)
    if opposing is None:
        return False
    return any(a.block.snap() == opposing for a in held)


def find_collisions(activities: Sequence[Activity]) -> list:
    """
    Replay an ordered assignment list against the oracle.

    Returns:
        List of (index, activity) for every entry that collides with the
        entries before it
    """
    violations = []
    for i, activity in enumerate(activities):
        if collides(activities[:i], activity):
            violations.append((i, activity))
    return violations
