"""
Milestone summary comments.

Markdown posted to the milestone issue when a run finishes, either with
planning documents created or with requirements still being gathered.
"""

from gsdbot.git.branch import milestone_branch_name
from gsdbot.milestone.models import Requirements
from gsdbot.milestone.planning_docs import PlanningFile

DEFAULT_NEXT_STEPS = [
    "Answer remaining requirements questions in comments",
    "I'll continue planning once all questions are answered",
]


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, 1))


def generate_milestone_summary(
    milestone_number: int,
    status: str = "Requirements Gathering",
    files: list[PlanningFile] | None = None,
    requirements: Requirements | None = None,
    next_steps: list[str] | None = None,
    branch: str | None = None,
) -> str:
    """
    Generate the summary comment for milestone creation.

    Includes the files created, requirements status, numbered next steps
    and the milestone branch.
    """
    files = files or []
    requirements = requirements or Requirements()
    branch = branch or milestone_branch_name(milestone_number)

    if files:
        files_table = "\n".join(f"| `{f.path}` | {f.purpose} |" for f in files)
    else:
        files_table = "| (none) | |"

    if requirements.complete:
        req_status = ":white_check_mark: All requirements gathered"
    else:
        pending = len(requirements.pending) or "Some"
        req_status = f":hourglass: {pending} question(s) pending"

    if requirements.answered:
        answered = "Answered: " + ", ".join(f"`{q}`" for q in requirements.answered)
    else:
        answered = "None yet"

    return f"""## Milestone {milestone_number} Created

**Status:** {status}

### Files Created

| File | Purpose |
|------|---------|
{files_table}

### Requirements Status

{req_status}
- {answered}

### Next Steps

{_numbered(next_steps or DEFAULT_NEXT_STEPS)}

---

**Branch:** `{branch}`

---
*This milestone was created by GSD Bot. Reply to continue requirements gathering or planning.*"""


def generate_partial_summary(
    milestone_number: int,
    requirements: Requirements,
    pending_questions: list[str],
) -> str:
    """Generate the summary for a run that is still gathering requirements."""
    if pending_questions:
        questions = "\n".join(f"- {q}" for q in pending_questions)
    else:
        questions = "- (all answered, awaiting confirmation)"

    return f"""## Milestone {milestone_number}: Requirements Gathering

**Status:** In Progress
**Progress:** {len(requirements.answered)} answered, {len(pending_questions)} pending

### Pending Questions

Please answer the following questions to complete requirements gathering:

{questions}

### Next Steps

1. Reply with your answers to the pending questions
2. I'll process your answers and continue the workflow
3. Once all required questions are answered, planning documents will be created

---
*Reply with your answers to continue.*"""
