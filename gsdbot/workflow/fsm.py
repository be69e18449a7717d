"""Milestone status state machine using transitions library.

A milestone only ever moves forward:

    requirements-gathering -> planning -> complete

Usage:
    from gsdbot.workflow.fsm import MilestoneFSM

    fsm = MilestoneFSM(state)
    fsm.requirements_complete()  # requirements-gathering -> planning
    fsm.finish()  # planning -> complete (external complete-milestone flow)
"""

import logging
from transitions import Machine

from gsdbot.milestone.models import MilestoneState, STATUS_REQUIREMENTS_GATHERING

logger = logging.getLogger(__name__)


# State values must match MilestoneStatus enum for compatibility
STATES = [
    "requirements-gathering",
    "planning",
    "complete",
]

# Transitions defined as (trigger, source, dest)
# Each trigger becomes a method on the FSM
TRANSITIONS = [
    {"trigger": "requirements_complete", "source": "requirements-gathering", "dest": "planning"},
    {"trigger": "finish", "source": "planning", "dest": "complete"},
]


# Pre-computed lookup: (source, dest) -> trigger name
def _build_trigger_lookup() -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in TRANSITIONS:
        key = (t["source"], t["dest"])
        if key not in lookup:
            lookup[key] = t["trigger"]
    return lookup


TRIGGER_FOR = _build_trigger_lookup()


class MilestoneFSM:
    """State machine for one milestone's status.

    Wraps the transitions library with milestone-specific logic:
    - Takes its initial state from MilestoneState.status
    - Writes every change back to MilestoneState.status
    - Logs all transitions
    """

    def __init__(self, milestone: MilestoneState):
        """Initialize FSM for a milestone.

        Args:
            milestone: In-memory state; its status is read and updated
        """
        self.milestone = milestone

        initial = milestone.status
        if initial not in STATES:
            logger.warning(
                f"[FSM] milestone {milestone.milestone_number}: Unknown status '{initial}', "
                f"defaulting to '{STATUS_REQUIREMENTS_GATHERING}'"
            )
            initial = STATUS_REQUIREMENTS_GATHERING

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=initial,
            auto_transitions=False,  # Only explicit transitions
            send_event=True,  # Pass EventData to callbacks
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        """Callback after any state transition.

        Mirrors the new state onto the milestone and logs the transition.
        """
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        logger.info(f"[FSM] milestone {self.milestone.milestone_number}: {from_state} -> {to_state} ({trigger})")

        self.milestone.status = self.state
