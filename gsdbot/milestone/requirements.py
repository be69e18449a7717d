"""
Requirements gathering for milestone creation.

Questions and answers travel over issue comments: the bot posts the
question block from format_questions(), a human replies, and the next run
reads the reply with parse_answers().

Answers are matched two ways:
1. Prefix: "scope: Build auth" answers the `scope` question.
2. Order: any other line answers the next still-unanswered question.
   This depends on comments being read oldest first.
"""

import logging
import re
from dataclasses import dataclass

from gsdbot.lib import constants
from gsdbot.lib import github
from gsdbot.lib.types import Comment
from gsdbot.milestone.models import MilestoneState, Question, utc_now
from gsdbot.workflow.state_machine import MilestoneStatus, advance

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r'^\s*#{1,6}\s')
CHECKBOX_RE = re.compile(r'^\s*[-*+]\s*\[[ xX]?\]')
LIST_ITEM_RE = re.compile(r'^\s*(?:[-*+]|\d+[.)])\s+')

ANSWERED_GLYPH = ":white_check_mark:"
PENDING_GLYPH = ":hourglass:"


@dataclass
class UserAnswer:
    """A human reply on the milestone issue."""
    comment_id: int
    user: str
    body: str
    timestamp: str


def is_bot_comment(comment: Comment) -> bool:
    """Check if a comment was written by a bot (including this one)."""
    return comment.author in constants.BOT_LOGINS or comment.author_type == constants.BOT_USER_TYPE


def get_new_comments(owner: str, repo: str, issue_number: int, last_processed_id: int = 0) -> list[Comment]:
    """
    Get human comments posted after the last processed comment.

    Comment ids increase monotonically, so `id > last_processed_id` selects
    new comments regardless of edits.

    Returns:
        New human comments, sorted by id ascending (oldest first)
    """
    comments = github.list_comments(owner, repo, issue_number)
    new = [c for c in comments if c.id > last_processed_id and not is_bot_comment(c)]
    new.sort(key=lambda c: c.id)
    logger.info(f"Found {len(new)} new comment(s) on #{issue_number} after id {last_processed_id}")
    return new


def parse_user_answers(comments: list[Comment]) -> list[UserAnswer]:
    """Extract human replies from comments, skipping bot comments."""
    return [
        UserAnswer(comment_id=c.id, user=c.author, body=c.body, timestamp=c.created_at)
        for c in comments
        if not is_bot_comment(c)
    ]


def _prefix_pattern(question_id: str) -> re.Pattern:
    # Optional list marker and "Q"/"Question" lead-in, then the id and ":" or whitespace
    return re.compile(
        rf'^\s*(?:[-*+]\s+|\d+[.)]\s+)?(?:Q(?:uestion)?\s*)?{re.escape(question_id)}(?:\s*:|\s)\s*(.*)$',
        re.IGNORECASE,
    )


def parse_answers(
    body: str,
    questions: list[Question],
    existing_answers: dict[str, str] | None = None,
) -> dict[str, str]:
    """
    Parse a reply into answers keyed by question id.

    Args:
        body: Comment body
        questions: Question definitions, in ask order
        existing_answers: Answers already collected; their questions are
            skipped by order-based matching

    Returns:
        Newly parsed answers. Lines beyond the number of open questions
        are dropped.
    """
    existing_answers = existing_answers or {}
    patterns = [(q.id, _prefix_pattern(q.id)) for q in questions]
    segments = [line.strip() for line in body.splitlines() if line.strip()]

    answers: dict[str, str] = {}
    unmatched: list[str] = []

    # Pass 1: explicit "<id>: answer" lines
    for segment in segments:
        if HEADING_RE.match(segment) or CHECKBOX_RE.match(segment):
            continue

        for question_id, pattern in patterns:
            match = pattern.match(segment)
            if match:
                answer = match.group(1).strip()
                if answer:
                    answers[question_id] = answer
                break
        else:
            unmatched.append(segment)

    # Pass 2: remaining prose, in order, to questions still open
    open_ids = [
        q.id for q in questions
        if q.id not in existing_answers and q.id not in answers
    ]
    for segment in unmatched:
        if not open_ids:
            break
        if LIST_ITEM_RE.match(segment):
            continue
        answers[open_ids.pop(0)] = segment

    return answers


def format_questions(questions: list[Question], existing_answers: dict[str, str] | None = None) -> str:
    """
    Format the question block posted to the issue.

    Answered questions get a check mark and echo their answer; open ones
    get an hourglass.
    """
    existing_answers = existing_answers or {}
    lines = [
        "## Requirements Gathering",
        "",
        "Please answer the following questions to help plan this milestone. "
        "Reply with your answers and I'll continue gathering until we have everything needed.",
        "",
        "---",
        "",
        "### Questions",
        "",
    ]

    for q in questions:
        existing = existing_answers.get(q.id)
        glyph = ANSWERED_GLYPH if existing else PENDING_GLYPH
        suffix = " *(answered)*" if existing else ""
        optional = "" if q.required else " (optional)"
        lines += [f"#### {glyph} {q.question}{optional}{suffix}", ""]
        if existing:
            lines += [f"> {line}" for line in existing.splitlines()] + [""]
        else:
            lines += [f"Answer with `{q.id}: ...` or reply in order.", ""]

    lines += ["---", "", f"**Reply with your answers** (answer the questions marked with {PENDING_GLYPH})."]
    return "\n".join(lines) + "\n"


def is_complete(state: MilestoneState, questions: list[Question]) -> bool:
    """Check if requirements are done.

    True if explicitly marked complete (lets an operator force it), or if
    every required question has a non-empty answer.
    """
    if state.requirements.complete:
        return True
    answered = state.requirements.answered
    return all((answered.get(q.id) or "").strip() for q in questions if q.required)


def initialize_pending_questions(state: MilestoneState, questions: list[Question]) -> MilestoneState:
    """Mark every not-yet-answered question as pending, in ask order."""
    answered = state.requirements.answered
    state.requirements.pending = [q.id for q in questions if q.id not in answered]
    return state


def update_requirements_answer(
    state: MilestoneState,
    question_id: str,
    answer: str,
    comment_id: int,
) -> MilestoneState:
    """Record an answer and advance the processed-comment high-water mark."""
    state.requirements.answered[question_id] = answer
    state.requirements.pending = [q for q in state.requirements.pending if q != question_id]
    state.workflow.last_comment_id = max(state.workflow.last_comment_id, comment_id)
    return state


def update_workflow_run(state: MilestoneState, now: str | None = None) -> MilestoneState:
    """Count this run and stamp its time."""
    state.workflow.run_count += 1
    state.workflow.last_run_at = now or utc_now()
    return state


def mark_requirements_complete(state: MilestoneState) -> MilestoneState:
    """Close requirements gathering and move the milestone to planning."""
    state.requirements.complete = True
    answered = state.requirements.answered
    state.requirements.pending = [q for q in state.requirements.pending if q not in answered]
    advance(state, MilestoneStatus.PLANNING, reason="requirements complete")
    return state
