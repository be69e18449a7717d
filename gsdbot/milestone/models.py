"""
Data models for milestone planning.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

STATUS_REQUIREMENTS_GATHERING = "requirements-gathering"
STATUS_PLANNING = "planning"
STATUS_COMPLETE = "complete"


def utc_now() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Question:
    """A requirements question asked on the milestone issue."""
    id: str                                    # Stable key, e.g. "scope"
    question: str
    required: bool = False


DEFAULT_QUESTIONS = [
    Question("scope", "What is the primary goal of this milestone?", required=True),
    Question("features", "What are the key features or deliverables?", required=True),
    Question("constraints", "Are there any technical constraints or requirements?"),
    Question("timeline", "What is the expected timeline?"),
]


@dataclass
class Phase:
    """An ordered sub-unit of a milestone."""
    name: str
    goal: str = ""
    status: str = "pending"
    dependencies: str = ""


DEFAULT_PHASES = [
    Phase("Foundation Setup", "Initial project structure and dependencies", dependencies="None"),
    Phase("Core Implementation", "Main feature implementation", dependencies="Phase 1"),
    Phase("Integration", "Connect components and verify functionality", dependencies="Phase 2"),
    Phase("Testing & Verification", "Testing, bug fixes, and final verification", dependencies="Phase 3"),
]


@dataclass
class Requirements:
    """Requirements gathering progress."""
    complete: bool = False
    answered: dict[str, str] = field(default_factory=dict)   # question id -> answer
    pending: list[str] = field(default_factory=list)         # question ids, in ask order


@dataclass
class WorkflowMeta:
    """Bookkeeping across bot runs."""
    started_at: str | None = None
    last_run_at: str | None = None
    run_count: int = 0
    last_comment_id: int = 0                   # High-water mark of processed comments


@dataclass
class MilestoneState:
    """Persisted progress of one milestone; the backing STATE.md decodes to this."""
    milestone_number: int
    status: str = STATUS_PLANNING
    created_at: str | None = None
    requirements: Requirements = field(default_factory=Requirements)
    workflow: WorkflowMeta = field(default_factory=WorkflowMeta)
    phases: list[Phase] = field(default_factory=list)


def create_initial_state(milestone_number: int, now: str | None = None) -> MilestoneState:
    """Fresh state for a milestone that has never been run."""
    now = now or utc_now()
    return MilestoneState(
        milestone_number=milestone_number,
        status=STATUS_REQUIREMENTS_GATHERING,
        created_at=now,
        workflow=WorkflowMeta(started_at=now),
    )


@dataclass
class MilestoneData:
    """Everything the planning documents are rendered from.

    Derived from MilestoneState plus repository identity for one run;
    never persisted as-is.
    """
    owner: str
    repo: str
    milestone_number: int
    title: str = ""
    goal: str = ""
    scope: str = ""
    features: list[str] = field(default_factory=list)
    requirements: Requirements = field(default_factory=Requirements)
    phases: list[Phase] = field(default_factory=list)
    status: str = STATUS_PLANNING
    created_at: str | None = None
    started_at: str | None = None
    last_run_at: str | None = None
    run_count: int = 0
    last_comment_id: int = 0

    def to_state(self) -> MilestoneState:
        """The state this data describes, for rendering STATE.md."""
        return MilestoneState(
            milestone_number=self.milestone_number,
            status=self.status,
            created_at=self.created_at,
            requirements=self.requirements or Requirements(),
            workflow=WorkflowMeta(
                started_at=self.started_at or self.created_at,
                last_run_at=self.last_run_at,
                run_count=self.run_count,
                last_comment_id=self.last_comment_id,
            ),
            phases=self.phases or [],
        )


def build_milestone_data(owner: str, repo: str, state: MilestoneState) -> MilestoneData:
    """Assemble the document view of a milestone from its state."""
    answered = state.requirements.answered
    scope_answer = answered.get("scope", "")
    features_answer = answered.get("features", "")

    title = f"Milestone {state.milestone_number}"
    if scope_answer:
        title = f"{title}: {scope_answer[:50]}"

    return MilestoneData(
        owner=owner,
        repo=repo,
        milestone_number=state.milestone_number,
        title=title,
        goal=scope_answer,
        scope=answered.get("constraints", ""),
        features=[f.strip() for f in features_answer.splitlines() if f.strip()],
        requirements=state.requirements,
        phases=state.phases,
        status=state.status,
        created_at=state.created_at,
        started_at=state.workflow.started_at,
        last_run_at=state.workflow.last_run_at,
        run_count=state.workflow.run_count,
        last_comment_id=state.workflow.last_comment_id,
    )
