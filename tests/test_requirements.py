"""Tests for gsdbot.milestone.requirements module."""

from unittest.mock import patch

import pytest

from gsdbot.lib.types import Comment
from gsdbot.milestone.models import DEFAULT_QUESTIONS, Question, create_initial_state
from gsdbot.milestone.requirements import (
    format_questions,
    get_new_comments,
    initialize_pending_questions,
    is_bot_comment,
    is_complete,
    mark_requirements_complete,
    parse_answers,
    parse_user_answers,
    update_requirements_answer,
    update_workflow_run,
)


def comment(id, body="hi", author="alice", author_type="User"):
    return Comment(id=id, author=author, author_type=author_type, body=body, created_at=f"t{id}")


class TestBotDetection:
    """Tests for is_bot_comment()."""

    def test_own_login_is_bot(self):
        assert is_bot_comment(comment(1, author="github-actions[bot]", author_type="Bot"))

    def test_bot_user_type_is_bot(self):
        assert is_bot_comment(comment(1, author="renovate[bot]", author_type="Bot"))

    def test_human_is_not_bot(self):
        assert not is_bot_comment(comment(1))


class TestGetNewComments:
    """Tests for get_new_comments()."""

    @patch("gsdbot.milestone.requirements.github.list_comments")
    def test_filters_processed_and_bot_comments(self, mock_list):
        mock_list.return_value = [
            comment(10),
            comment(30, author="github-actions[bot]", author_type="Bot"),
            comment(25),
            comment(20),
        ]
        result = get_new_comments("acme", "widgets", 4, last_processed_id=10)
        assert [c.id for c in result] == [20, 25]
        mock_list.assert_called_once_with("acme", "widgets", 4)

    @patch("gsdbot.milestone.requirements.github.list_comments")
    def test_default_high_water_mark_returns_all_human(self, mock_list):
        mock_list.return_value = [comment(2), comment(1)]
        assert [c.id for c in get_new_comments("acme", "widgets", 4)] == [1, 2]


class TestParseUserAnswers:
    """Tests for parse_user_answers()."""

    def test_maps_fields_and_skips_bots(self):
        answers = parse_user_answers([
            comment(5, body="scope: auth"),
            comment(6, author="github-actions[bot]", author_type="Bot"),
        ])
        assert len(answers) == 1
        assert answers[0].comment_id == 5
        assert answers[0].user == "alice"
        assert answers[0].body == "scope: auth"
        assert answers[0].timestamp == "t5"


class TestParseAnswers:
    """Tests for parse_answers()."""

    def test_prefix_answers(self):
        body = "scope: Build auth\nfeatures: Login and logout"
        assert parse_answers(body, DEFAULT_QUESTIONS) == {
            "scope": "Build auth",
            "features": "Login and logout",
        }

    def test_prefix_is_case_insensitive_and_allows_lead_in(self):
        body = "- Q Scope: Build auth\n2. Question features: SSO"
        assert parse_answers(body, DEFAULT_QUESTIONS) == {
            "scope": "Build auth",
            "features": "SSO",
        }

    def test_positional_answers_in_source_order(self):
        body = "Build auth\nLogin and logout\nMust use OAuth"
        assert parse_answers(body, DEFAULT_QUESTIONS) == {
            "scope": "Build auth",
            "features": "Login and logout",
            "constraints": "Must use OAuth",
        }

    def test_prefix_takes_precedence_over_position(self):
        body = "Two weeks\nscope: Build auth"
        answers = parse_answers(body, DEFAULT_QUESTIONS)
        assert answers["scope"] == "Build auth"
        # First open question after scope is taken
        assert answers["features"] == "Two weeks"

    def test_positional_skips_already_answered(self):
        answers = parse_answers("Login", DEFAULT_QUESTIONS, {"scope": "Build auth"})
        assert answers == {"features": "Login"}

    def test_excess_segments_dropped(self):
        body = "a\nb\nc\nd\ne\nf"
        answers = parse_answers(body, DEFAULT_QUESTIONS)
        assert list(answers) == ["scope", "features", "constraints", "timeline"]
        assert "e" not in answers.values()

    def test_headings_and_checkboxes_ignored(self):
        body = "## My answers\n- [x] done\nBuild auth"
        assert parse_answers(body, DEFAULT_QUESTIONS) == {"scope": "Build auth"}

    def test_list_items_not_assigned_positionally(self):
        body = "Build auth\n- bullet detail"
        assert parse_answers(body, DEFAULT_QUESTIONS) == {"scope": "Build auth"}

    def test_prefix_must_be_at_line_start(self):
        body = "The scope: is unclear"
        assert parse_answers(body, DEFAULT_QUESTIONS) == {"scope": "The scope: is unclear"}

    def test_empty_prefix_answer_ignored(self):
        assert parse_answers("scope:", DEFAULT_QUESTIONS) == {}

    def test_empty_body(self):
        assert parse_answers("", DEFAULT_QUESTIONS) == {}


class TestFormatQuestions:
    """Tests for format_questions()."""

    def test_pending_and_answered_glyphs(self):
        text = format_questions(DEFAULT_QUESTIONS, {"scope": "Build auth"})
        assert ":white_check_mark: What is the primary goal of this milestone? *(answered)*" in text
        assert "> Build auth" in text
        assert ":hourglass: What are the key features or deliverables?" in text
        assert "Answer with `features: ...` or reply in order." in text

    def test_optional_marker(self):
        text = format_questions(DEFAULT_QUESTIONS)
        assert "What is the expected timeline? (optional)" in text
        assert "What is the primary goal of this milestone? (optional)" not in text

    def test_ends_with_call_to_action(self):
        text = format_questions(DEFAULT_QUESTIONS)
        assert text.rstrip().endswith("(answer the questions marked with :hourglass:).")


class TestIsComplete:
    """Tests for is_complete()."""

    def test_complete_when_all_required_answered(self):
        state = create_initial_state(1, now="t")
        state.requirements.answered = {"scope": "a", "features": "b"}
        assert is_complete(state, DEFAULT_QUESTIONS)

    def test_incomplete_when_required_missing(self):
        state = create_initial_state(1, now="t")
        state.requirements.answered = {"scope": "a", "timeline": "soon"}
        assert not is_complete(state, DEFAULT_QUESTIONS)

    def test_blank_answer_does_not_count(self):
        state = create_initial_state(1, now="t")
        state.requirements.answered = {"scope": "a", "features": "   "}
        assert not is_complete(state, DEFAULT_QUESTIONS)

    def test_explicit_flag_wins(self):
        state = create_initial_state(1, now="t")
        state.requirements.complete = True
        assert is_complete(state, DEFAULT_QUESTIONS)

    def test_no_required_questions(self):
        state = create_initial_state(1, now="t")
        assert is_complete(state, [Question("notes", "Anything else?")])


class TestStateUpdates:
    """Tests for the state mutation helpers."""

    def test_initialize_pending_skips_answered(self):
        state = create_initial_state(1, now="t")
        state.requirements.answered = {"features": "b"}
        initialize_pending_questions(state, DEFAULT_QUESTIONS)
        assert state.requirements.pending == ["scope", "constraints", "timeline"]

    def test_update_answer_removes_pending_and_raises_mark(self):
        state = create_initial_state(1, now="t")
        initialize_pending_questions(state, DEFAULT_QUESTIONS)
        update_requirements_answer(state, "scope", "Build auth", 50)
        assert state.requirements.answered["scope"] == "Build auth"
        assert "scope" not in state.requirements.pending
        assert state.workflow.last_comment_id == 50

    def test_update_answer_never_lowers_mark(self):
        state = create_initial_state(1, now="t")
        state.workflow.last_comment_id = 90
        update_requirements_answer(state, "scope", "x", 50)
        assert state.workflow.last_comment_id == 90

    def test_update_workflow_run(self):
        state = create_initial_state(1, now="t")
        update_workflow_run(state, now="t1")
        update_workflow_run(state, now="t2")
        assert state.workflow.run_count == 2
        assert state.workflow.last_run_at == "t2"

    def test_mark_complete_moves_to_planning(self):
        state = create_initial_state(1, now="t")
        initialize_pending_questions(state, DEFAULT_QUESTIONS)
        state.requirements.answered = {"scope": "a", "features": "b"}
        mark_requirements_complete(state)
        assert state.requirements.complete is True
        assert state.requirements.pending == ["constraints", "timeline"]
        assert state.status == "planning"

    @pytest.mark.parametrize("status", ["planning", "complete"])
    def test_mark_complete_never_regresses(self, status):
        state = create_initial_state(1, now="t")
        state.status = status
        mark_requirements_complete(state)
        assert state.status == status
