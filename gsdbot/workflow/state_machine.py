"""Milestone status transitions with monotonic ordering.

Thin wrapper around the FSM in fsm.py. Provides:
- MilestoneStatus enum for type safety
- advance() that maps a target status to FSM triggers
- Convenience functions for status queries

Usage:
    from gsdbot.workflow.state_machine import advance, MilestoneStatus

    advance(state, MilestoneStatus.PLANNING, reason="requirements answered")
"""

import logging
from enum import Enum

from gsdbot.milestone.models import MilestoneState

logger = logging.getLogger(__name__)


class MilestoneStatus(Enum):
    """All valid milestone statuses, in lifecycle order.

    Values match FSM state strings for compatibility.
    """

    REQUIREMENTS_GATHERING = "requirements-gathering"
    PLANNING = "planning"
    COMPLETE = "complete"


STATUS_ORDER = list(MilestoneStatus)


class InvalidTransition(Exception):
    """Raised when attempting an invalid status transition."""

    def __init__(self, from_state: str, to_state: MilestoneStatus, milestone: int | None = None):
        self.from_state = from_state
        self.to_state = to_state
        self.milestone = milestone
        super().__init__(
            f"Invalid transition: {from_state} -> {to_state.value}"
            + (f" (milestone: {milestone})" if milestone is not None else "")
        )


def parse_status(status_str: str | None) -> MilestoneStatus | None:
    """Parse a status string into MilestoneStatus enum.

    Returns None if status is unknown.
    """
    if status_str is None:
        return None
    for status in MilestoneStatus:
        if status.value == status_str:
            return status
    return None


def advance(
    state: MilestoneState,
    to_status: MilestoneStatus,
    reason: str = "",
) -> bool:
    """Move a milestone forward to to_status.

    Moving to the current status, or to one the milestone has already
    passed, is a no-op: status never regresses.

    Args:
        state: Milestone state (status is updated in place)
        to_status: Target status
        reason: Optional reason for the transition (for logging)

    Returns:
        True if the status changed

    Raises:
        InvalidTransition: If the target skips a lifecycle step
    """
    from transitions import MachineError
    from gsdbot.workflow.fsm import MilestoneFSM, TRIGGER_FOR

    number = state.milestone_number
    reason_str = f" ({reason})" if reason else ""
    current = parse_status(state.status)

    # Unknown statuses come from hand-edited STATE.md files
    if current is None:
        logger.warning(
            f"[STATE] milestone {number}: {state.status!r} -> {to_status.value}{reason_str} "
            "(unknown source status, allowing)"
        )
        state.status = to_status.value
        return True

    if current == to_status:
        logger.debug(f"[STATE] milestone {number}: already {to_status.value}, no-op")
        return False

    if STATUS_ORDER.index(current) > STATUS_ORDER.index(to_status):
        logger.info(
            f"[STATE] milestone {number}: already past {to_status.value} ({current.value}), not regressing"
        )
        return False

    trigger = TRIGGER_FOR.get((current.value, to_status.value))
    if trigger is None:
        raise InvalidTransition(current.value, to_status, number)

    fsm = MilestoneFSM(state)
    try:
        logger.info(f"[STATE] milestone {number}: {current.value} -> {to_status.value}{reason_str}")
        getattr(fsm, trigger)()
    except MachineError as e:
        raise InvalidTransition(current.value, to_status, number) from e
    return True
