"""
STATE.md codec.

STATE.md is both a status page for humans and the persisted form of
MilestoneState. The prose part is a small markdown subset:

    **Key:** value lines, `## Section` headers, and a pipe table of phases.

Below the prose sits a machine block, an HTML comment that is invisible
when rendered:

    <!-- gsd-state
    { ...json... }
    -->

When the block is present and matches the milestone_state schema it is
authoritative. Otherwise the state is recovered from the prose, which
carries phase names and statuses but not phase goals, dependencies or
individual answers.

decode() never raises; anything it can't read falls back to defaults.
"""

import json
import logging
import re
from dataclasses import asdict

from gsdbot.lib.validate import ValidationError, validate
from gsdbot.milestone.models import (
    MilestoneState,
    Phase,
    Requirements,
    WorkflowMeta,
    STATUS_PLANNING,
    utc_now,
)

logger = logging.getLogger(__name__)

KEY_VALUE_RE = re.compile(r'^\*\*([^*]+):\*\*\s*(.*?)\s*$')
SECTION_RE = re.compile(r'^##\s+(.+?)\s*$')
# Table cells escape pipes and backslashes with a backslash
TABLE_CELL = r'((?:[^|\\]|\\.)*)'
PHASE_ROW_RE = re.compile(rf'^\|\s*(\d*)\s*\|{TABLE_CELL}\|{TABLE_CELL}\|\s*$')
CELL_ESCAPE_RE = re.compile(r'\\([\\|])')
MACHINE_BLOCK_RE = re.compile(r'<!--\s*gsd-state\s*\n(.*?)\n\s*-->', re.DOTALL)
# Longer digit runs decode as 0
LEADING_INT_RE = re.compile(r'^\s*(\d{1,18})(?!\d)')

SECTION_PHASES = "Phase Status"
SECTION_REQUIREMENTS = "Requirements Gathering"
SECTION_WORKFLOW = "Workflow"

REQUIREMENTS_COMPLETE = "Complete"
REQUIREMENTS_IN_PROGRESS = "In Progress"
NOT_AVAILABLE = "N/A"
PLACEHOLDER_PHASE_ROW = "|   | (none defined) | pending |"


def _to_int(value: str) -> int:
    match = LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else 0


def _optional(value: str) -> str | None:
    return None if not value or value == NOT_AVAILABLE else value


def escape_cell(text: str) -> str:
    """Make text safe inside one markdown table cell."""
    return " ".join(text.split()).replace("\\", "\\\\").replace("|", "\\|")


def _unescape_cell(text: str) -> str:
    return CELL_ESCAPE_RE.sub(r"\1", text.strip())


def state_payload(state: MilestoneState, phases: list[Phase] | None = None) -> dict:
    """The machine-readable form of a state, as embedded in STATE.md."""
    phases = state.phases if phases is None else phases
    return {
        "milestone": state.milestone_number,
        "status": state.status,
        "created_at": state.created_at,
        "requirements": {
            "complete": state.requirements.complete,
            "answered": dict(state.requirements.answered),
            "pending": list(state.requirements.pending),
        },
        "workflow": {
            "started_at": state.workflow.started_at,
            "last_run_at": state.workflow.last_run_at,
            "run_count": state.workflow.run_count,
            "last_comment_id": state.workflow.last_comment_id,
        },
        "phases": [asdict(p) for p in phases],
    }


def _state_from_payload(payload: dict) -> MilestoneState:
    requirements = payload["requirements"]
    workflow = payload["workflow"]
    return MilestoneState(
        milestone_number=payload["milestone"],
        status=payload["status"],
        created_at=payload.get("created_at"),
        requirements=Requirements(
            complete=requirements["complete"],
            answered=dict(requirements["answered"]),
            pending=list(requirements["pending"]),
        ),
        workflow=WorkflowMeta(
            started_at=workflow.get("started_at"),
            last_run_at=workflow.get("last_run_at"),
            run_count=workflow["run_count"],
            last_comment_id=workflow["last_comment_id"],
        ),
        phases=[
            Phase(
                name=p["name"],
                goal=p.get("goal", ""),
                status=p.get("status", "pending"),
                dependencies=p.get("dependencies", ""),
            )
            for p in payload.get("phases", [])
        ],
    )


def _decode_machine_block(text: str) -> MilestoneState | None:
    match = MACHINE_BLOCK_RE.search(text)
    if not match:
        return None

    try:
        payload = json.loads(match.group(1))
        if not isinstance(payload, dict):
            raise ValueError("machine block is not an object")
        validate(payload, "milestone_state")
    except (ValueError, RecursionError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError; deep nesting raises RecursionError
        logger.warning(f"Ignoring unreadable gsd-state block, falling back to prose: {e}")
        return None

    return _state_from_payload(payload)


def _decode_prose(text: str) -> MilestoneState:
    state = MilestoneState(milestone_number=0, status=STATUS_PLANNING)
    section = ""

    for line in text.splitlines():
        section_match = SECTION_RE.match(line)
        if section_match:
            section = section_match.group(1)
            continue

        if section == SECTION_PHASES:
            row = PHASE_ROW_RE.match(line)
            # Header, separator and placeholder rows have no phase number
            if row and row.group(1):
                state.phases.append(Phase(
                    name=_unescape_cell(row.group(2)),
                    status=_unescape_cell(row.group(3)) or "pending",
                ))
            continue

        kv = KEY_VALUE_RE.match(line)
        if not kv:
            continue
        key, value = kv.group(1).strip(), kv.group(2)

        if key == "Status":
            if section == SECTION_REQUIREMENTS:
                state.requirements.complete = value == REQUIREMENTS_COMPLETE
            elif not section and value:
                state.status = value
        elif key == "Milestone":
            state.milestone_number = _to_int(value)
        elif key == "Started":
            state.workflow.started_at = _optional(value)
            state.created_at = state.created_at or state.workflow.started_at
        elif key == "Last Run":
            state.workflow.last_run_at = _optional(value)
        elif key == "Run Count":
            state.workflow.run_count = _to_int(value)
        elif key == "Last Comment ID":
            state.workflow.last_comment_id = _to_int(value)

    return state


def decode(text: str | None) -> MilestoneState:
    """Parse STATE.md content into a MilestoneState.

    Forgiving: unknown or malformed lines are skipped, missing
    numbers become 0 and a missing status becomes "planning".
    """
    text = text or ""
    state = _decode_machine_block(text)
    if state is not None:
        return state
    return _decode_prose(text)


def _render_machine_block(payload: dict) -> str:
    body = json.dumps(payload, indent=2, ensure_ascii=False)
    # ">" only occurs inside JSON strings; escaping it keeps "-->" out of the comment
    body = body.replace(">", "\\u003e")
    return f"<!-- gsd-state\n{body}\n-->"


def encode(
    state: MilestoneState,
    phases: list[Phase] | None = None,
    updated_at: str | None = None,
) -> str:
    """Render a MilestoneState as STATE.md.

    Deterministic: the same state and phases give the same text, apart
    from the Last Updated timestamp (pass updated_at to pin it).

    Args:
        state: State to render
        phases: Phase list to render (defaults to state.phases)
        updated_at: Timestamp for the Last Updated line (defaults to now)
    """
    phases = state.phases if phases is None else phases
    number = state.milestone_number
    requirements = state.requirements
    workflow = state.workflow

    if phases:
        phase_rows = "\n".join(
            f"| {i:02d} | {escape_cell(p.name or 'Unnamed Phase')} | {escape_cell(p.status or 'pending')} |"
            for i, p in enumerate(phases, 1)
        )
    else:
        phase_rows = PLACEHOLDER_PHASE_ROW

    req_status = REQUIREMENTS_COMPLETE if requirements.complete else REQUIREMENTS_IN_PROGRESS

    return f"""# Milestone {number} State

**Milestone:** {number}
**Status:** {state.status or STATUS_PLANNING}
**Last Updated:** {updated_at or utc_now()}

## {SECTION_PHASES}

| Phase | Name | Status |
|-------|------|--------|
{phase_rows}

## {SECTION_REQUIREMENTS}

**Status:** {req_status}
**Questions Answered:** {len(requirements.answered)}
**Questions Pending:** {len(requirements.pending)}

## {SECTION_WORKFLOW}

**Started:** {workflow.started_at or state.created_at or NOT_AVAILABLE}
**Last Run:** {workflow.last_run_at or NOT_AVAILABLE}
**Run Count:** {workflow.run_count}
**Last Comment ID:** {workflow.last_comment_id}

{_render_machine_block(state_payload(state, phases))}

---
*State file for GSD milestone tracking.*
"""
