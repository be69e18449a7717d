"""
Planning documents generator.

Renders PROJECT.md, STATE.md and ROADMAP.md for a milestone. The generate_*
functions are total: any missing field renders a fixed placeholder, so every
section is always present.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from gsdbot.lib import constants
from gsdbot.milestone import codec
from gsdbot.milestone.models import DEFAULT_PHASES, MilestoneData, utc_now

logger = logging.getLogger(__name__)

TO_BE_DEFINED = "To be defined during requirements gathering."


@dataclass
class PlanningFile:
    """A generated planning document."""
    path: str  # Relative to the repository root
    purpose: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


def generate_project_markdown(data: MilestoneData) -> str:
    """Generate PROJECT.md: goal, scope, features and the answers collected."""
    title = data.title or f"Milestone {data.milestone_number}"

    if data.features:
        features_list = "\n".join(f"- {f}" for f in data.features)
    else:
        features_list = "- To be defined"

    answered = data.requirements.answered if data.requirements else {}
    if answered:
        answer_rows = "\n".join(
            f"| `{key}` | {codec.escape_cell(value or '(empty)')} |"
            for key, value in answered.items()
        )
    else:
        answer_rows = "| (none) | |"

    return f"""# {title}

**Created:** {data.created_at or utc_now()}
**Status:** Planning

## Goal

{data.goal or TO_BE_DEFINED}

## Scope

{data.scope or TO_BE_DEFINED}

## Key Features

{features_list}

## Requirements Summary

| Question | Answer |
|----------|--------|
{answer_rows}

---
*This file is part of the GSD milestone planning process.*
"""


def generate_state_markdown(data: MilestoneData, updated_at: str | None = None) -> str:
    """Generate STATE.md; identical to what the state store persists."""
    return codec.encode(data.to_state(), data.phases, updated_at=updated_at)


def generate_roadmap_markdown(data: MilestoneData) -> str:
    """Generate ROADMAP.md: phase structure and execution order."""
    phases = data.phases or []
    total = len(phases)

    if phases:
        sections = []
        for i, p in enumerate(phases, 1):
            sections.append(
                f"### Phase {i}: {p.name or f'Phase {i}'}\n"
                "\n"
                f"- **Status:** {p.status or 'pending'}\n"
                f"- **Goal:** {p.goal or 'To be defined'}\n"
                f"- **Dependencies:** {p.dependencies or 'None'}\n"
            )
        phase_structure = "\n".join(sections)
        order = phases
    else:
        phase_structure = "Phases will be defined during planning."
        order = DEFAULT_PHASES

    execution_order = "\n".join(
        f"{i}. Phase {i}: {p.name or f'Phase {i}'}" for i, p in enumerate(order, 1)
    )

    return f"""# Milestone {data.milestone_number} Roadmap

**Total Phases:** {total}

## Phase Structure

{phase_structure}

## Execution Order

{execution_order}

## Notes

- Each phase is implemented in its own branch
- Planning documents are created before implementation
- Requirements are gathered before detailed planning

---
*This roadmap guides milestone execution.*
"""


def create_planning_docs(
    data: MilestoneData,
    repo_path: Path,
    milestones_dir: str = constants.MILESTONES_DIR,
) -> dict[str, PlanningFile]:
    """
    Write the planning documents for a milestone into the work tree.

    Args:
        data: Milestone data to render
        repo_path: Repository root
        milestones_dir: Milestones directory relative to repo_path

    Returns:
        Files keyed "project", "state", "roadmap", with repo-relative paths
    """
    planning_dir = f"{milestones_dir.rstrip('/')}/{data.milestone_number}"
    target = repo_path / planning_dir
    (target / "phases").mkdir(parents=True, exist_ok=True)
    logger.info(f"Created directory structure: {planning_dir}/")

    documents = [
        ("project", constants.PROJECT_FILE, generate_project_markdown(data), "Milestone context and goals"),
        ("state", constants.STATE_FILE, generate_state_markdown(data), "Milestone number and status"),
        ("roadmap", constants.ROADMAP_FILE, generate_roadmap_markdown(data), "Phase structure"),
    ]

    files = {}
    for key, filename, content, purpose in documents:
        (target / filename).write_text(content)
        files[key] = PlanningFile(path=f"{planning_dir}/{filename}", purpose=purpose)
        logger.info(f"Created {planning_dir}/{filename}")

    return files
