"""Tests for gsdbot.workflow.state_machine module.

Tests the wrapper functions around the FSM.
The FSM itself is tested in test_fsm.py.
"""

import logging
from unittest.mock import patch

import pytest

from gsdbot.milestone.models import MilestoneState
from gsdbot.workflow.fsm import STATES
from gsdbot.workflow.state_machine import (
    MilestoneStatus,
    InvalidTransition,
    advance,
    parse_status,
)


def milestone(status: str) -> MilestoneState:
    return MilestoneState(milestone_number=3, status=status)


class TestParseStatus:
    """Tests for parse_status() function."""

    def test_parse_valid_status(self):
        assert parse_status("requirements-gathering") == MilestoneStatus.REQUIREMENTS_GATHERING
        assert parse_status("planning") == MilestoneStatus.PLANNING
        assert parse_status("complete") == MilestoneStatus.COMPLETE

    def test_parse_none(self):
        assert parse_status(None) is None

    def test_parse_unknown(self):
        assert parse_status("bogus") is None
        assert parse_status("") is None


class TestMilestoneStatusEnum:
    """Tests for MilestoneStatus enum."""

    def test_values_match_fsm(self):
        assert [s.value for s in MilestoneStatus] == STATES


class TestAdvance:
    """Tests for advance() function."""

    def test_forward_one_step(self):
        state = milestone("requirements-gathering")
        assert advance(state, MilestoneStatus.PLANNING) is True
        assert state.status == "planning"

    def test_same_status_is_noop(self):
        state = milestone("planning")
        assert advance(state, MilestoneStatus.PLANNING) is False
        assert state.status == "planning"

    def test_never_regresses(self):
        state = milestone("complete")
        assert advance(state, MilestoneStatus.PLANNING) is False
        assert state.status == "complete"

    def test_skipping_a_step_raises(self):
        state = milestone("requirements-gathering")
        with pytest.raises(InvalidTransition) as exc:
            advance(state, MilestoneStatus.COMPLETE)
        assert exc.value.from_state == "requirements-gathering"
        assert exc.value.to_state == MilestoneStatus.COMPLETE
        assert exc.value.milestone == 3
        assert state.status == "requirements-gathering"

    def test_unknown_source_status_allowed(self, caplog):
        state = milestone("hand-edited")
        with caplog.at_level(logging.WARNING):
            assert advance(state, MilestoneStatus.PLANNING) is True
        assert state.status == "planning"
        assert "unknown source status" in caplog.text

    def test_logs_reason(self, caplog):
        state = milestone("requirements-gathering")
        with caplog.at_level(logging.INFO):
            advance(state, MilestoneStatus.PLANNING, reason="requirements complete")
        assert "[STATE] milestone 3: requirements-gathering -> planning (requirements complete)" in caplog.text

    def test_machine_error_wrapped(self):
        from transitions import MachineError

        state = milestone("requirements-gathering")
        with patch("gsdbot.workflow.fsm.MilestoneFSM.requirements_complete",
                   side_effect=MachineError("nope"), create=True):
            with pytest.raises(InvalidTransition):
                advance(state, MilestoneStatus.PLANNING)
