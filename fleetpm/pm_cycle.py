"""
Preventive-maintenance cycle arithmetic.

A machine runs through a fixed eight-step pattern of PM types, one service every
250 hour-meter hours, so the whole pattern spans 2000 hours.
"""

from collections import namedtuple

from fleetpm.errors import ValidationError

PM_SEQUENCE = ("PM1", "PM2", "PM1", "PM3", "PM1", "PM2", "PM3", "PM4")
PM_TYPES = ("PM1", "PM2", "PM3", "PM4")

PM_INTERVAL = 250
CYCLE_LENGTH = PM_INTERVAL * len(PM_SEQUENCE)
MILESTONES = tuple(PM_INTERVAL * (step + 1) for step in range(len(PM_SEQUENCE)))

RECOMMEND_TOLERANCE = 25
BLOCK_TOLERANCE = 15
WARNING_LEAD = 50
LOW_STOCK_THRESHOLD = 10
HIGH_FUEL_CONSUMPTION = 50

NextStep = namedtuple("NextStep", ["next_type", "next_due_hm", "next_index"])


def recommend_index(current_hm):
    """Suggest the sequence position for a machine whose PM history is unknown.

    Walks the milestones of the current 2000h cycle and counts those already
    reached, allowing a 25h early margin on each; the walk stops at the first
    milestone not yet reached. A machine that reached every milestone wraps
    back to the start of the pattern.
    """
    if current_hm is None or current_hm < 0:
        raise ValidationError("Hour-meter must be a non-negative number.")

    relative_hm = current_hm % CYCLE_LENGTH
    index = 0
    for step, milestone in enumerate(MILESTONES):
        if relative_hm < milestone - RECOMMEND_TOLERANCE:
            break
        index = step + 1
    return index % len(PM_SEQUENCE)


def advance(hm_done, current_index):
    """Step the cycle after a scheduled service completed at ``hm_done``."""
    next_index = (int(current_index) + 1) % len(PM_SEQUENCE)
    return NextStep(
        next_type=PM_SEQUENCE[next_index],
        next_due_hm=hm_done + PM_INTERVAL,
        next_index=next_index,
    )


def is_blocked(current_hm, next_pm_due_hm):
    return current_hm > next_pm_due_hm + BLOCK_TOLERANCE
