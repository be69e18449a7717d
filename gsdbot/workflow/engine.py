"""Milestone workflow engine.

Drives one `new-milestone` command from argument string to summary
comment. Every run is a fresh process: progress is rebuilt from STATE.md
and every step is safe to replay.

Flow:
1. Parse arguments into a DelegatedEntry or TraditionalEntry
2. Delegated: hand the description to the agent, touch nothing else
3. Traditional: load state, count the run, take requirements from the
   description, switch to the milestone branch, write and commit the
   planning documents, save state, check the project iteration, post
   a summary

Any failure is logged, reported on the issue, and re-raised.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from gsdbot.git import (
    branch_exists,
    commit,
    configure_identity,
    create_and_switch,
    has_staged_changes,
    milestone_branch_name,
    require,
    stage_files,
    switch_branch,
)
from gsdbot.lib import constants
from gsdbot.lib import github
from gsdbot.lib import projects
from gsdbot.lib.config import BotConfig, load_config
from gsdbot.lib.errors import format_error_comment
from gsdbot.lib.types import CommandContext, Iteration
from gsdbot.milestone.entry import DelegatedEntry, TraditionalEntry, parse_entry
from gsdbot.milestone.models import DEFAULT_QUESTIONS, MilestoneState, Question, build_milestone_data
from gsdbot.milestone.planning_docs import PlanningFile, create_planning_docs
from gsdbot.milestone.requirements import (
    format_questions,
    get_new_comments,
    initialize_pending_questions,
    is_complete,
    mark_requirements_complete,
    parse_answers,
    parse_user_answers,
    update_requirements_answer,
    update_workflow_run,
)
from gsdbot.milestone.store import load_state, save_state
from gsdbot.milestone.summarizer import generate_milestone_summary, generate_partial_summary

logger = logging.getLogger(__name__)

PHASE_GSD_MANAGED = "gsd-managed"
PHASE_MILESTONE_CREATED = "milestone-created"

# Iteration check outcomes
ITERATION_NO_PROJECT = "no-project-configured"
ITERATION_NOT_FOUND = "iteration-not-found"
ITERATION_LOOKUP_FAILED = "lookup-failed"


@dataclass
class IterationCheck:
    """Outcome of the advisory project-iteration check."""
    validated: bool
    reason: str | None = None
    expected: str | None = None  # Iteration title we looked for
    iteration: Iteration | None = None


@dataclass
class WorkflowResult:
    """What a new-milestone run did."""
    complete: bool
    phase: str  # PHASE_GSD_MANAGED or PHASE_MILESTONE_CREATED
    description: str | None = None
    milestone: int | None = None
    branch: str | None = None
    files: list[str] = field(default_factory=list)
    project_iteration: IterationCheck | None = None
    message: str = ""


@dataclass
class RequirementsRound:
    """Outcome of one question/answer round."""
    complete: bool
    new_answers: dict[str, str]
    pending: list[str]


def validate_project_iteration(owner: str, milestone_number: int, config: BotConfig) -> IterationCheck:
    """Check the configured project has an iteration named v<n>.

    Advisory: never raises, a missing iteration only produces a warning.
    """
    project_number = config.project.number
    if not project_number:
        logger.info("No project configured, skipping iteration validation")
        return IterationCheck(validated=False, reason=ITERATION_NO_PROJECT)

    title = f"v{milestone_number}"
    try:
        iteration = projects.find_iteration(owner, project_number, title, config.project.is_org)
    except github.GitHubError as e:
        logger.warning(f"Project iteration lookup failed: {e}")
        return IterationCheck(validated=False, reason=ITERATION_LOOKUP_FAILED, expected=title)

    if iteration is None:
        logger.warning(f'Project iteration "{title}" not found. Create it manually in GitHub Projects.')
        return IterationCheck(validated=False, reason=ITERATION_NOT_FOUND, expected=title)

    logger.info(f"Found project iteration: {iteration.title}")
    return IterationCheck(validated=True, expected=title, iteration=iteration)


def prepare_milestone_branch(repo_path: Path, milestone_number: int) -> str:
    """Switch to the milestone branch, creating it if needed.

    Done before the documents are written: switching with untracked copies
    of files the branch already tracks would fail on re-runs.

    Returns:
        Branch name
    """
    for result in configure_identity(repo_path, constants.BOT_NAME, constants.BOT_EMAIL):
        require(result, "config")

    branch = milestone_branch_name(milestone_number, constants.BRANCH_PREFIX)
    if branch_exists(repo_path, branch):
        require(switch_branch(repo_path, branch), f"switch to {branch}")
        logger.info(f"Switched to existing branch: {branch}")
    else:
        require(create_and_switch(repo_path, branch), f"branch creation ({branch})")
        logger.info(f"Created milestone branch: {branch}")
    return branch


def commit_planning_docs(repo_path: Path, milestone_number: int, files: list[PlanningFile]) -> bool:
    """Stage and commit the planning documents on the current branch.

    Returns:
        True if a commit was made, False if nothing changed
    """
    require(stage_files(repo_path, [f.path for f in files]), "add")
    for f in files:
        logger.info(f"Staged {f.path}")

    if not has_staged_changes(repo_path):
        logger.info("Planning documents unchanged, nothing to commit")
        return False

    names = ", ".join(f.name for f in files)
    message = (
        f"docs(m{milestone_number}): Create initial planning documents\n"
        f"\n"
        f"- {names}\n"
        f"\n"
        f"Generated by GSD Bot"
    )
    require(commit(repo_path, message), "commit")
    logger.info(f"Committed {len(files)} planning files")
    return True


def _post_error(ctx: CommandContext, error: Exception) -> None:
    """Report a failure on the issue; a failure to report is only logged."""
    try:
        github.post_comment(
            ctx.owner,
            ctx.repo,
            ctx.issue_number,
            format_error_comment(error, ctx.run_url, "milestone creation"),
        )
    except github.GitHubError as e:
        logger.error(f"Could not post error comment: {e}")


def _run_delegated(entry: DelegatedEntry) -> WorkflowResult:
    logger.info("No milestone number provided, GSD will determine next milestone")
    return WorkflowResult(
        complete=True,
        phase=PHASE_GSD_MANAGED,
        description=entry.description,
        message="GSD will determine milestone number and create planning artifacts",
    )


def _run_traditional(ctx: CommandContext, entry: TraditionalEntry) -> WorkflowResult:
    number = entry.milestone_number
    owner, repo = ctx.owner, ctx.repo
    logger.info(f"Traditional flow: milestone number {number} provided")

    config = load_config(owner, repo)
    milestones_dir = config.paths.milestones

    state = load_state(owner, repo, number, milestones_dir)
    update_workflow_run(state)

    # The description stands in for the Q&A round
    logger.info("Using provided description, skipping requirements gathering Q&A")
    state.requirements.answered["scope"] = entry.description
    state.requirements.answered["features"] = entry.description
    mark_requirements_complete(state)

    data = build_milestone_data(owner, repo, state)

    branch = prepare_milestone_branch(ctx.repo_path, number)
    files = list(create_planning_docs(data, ctx.repo_path, milestones_dir).values())
    commit_planning_docs(ctx.repo_path, number, files)

    save_state(owner, repo, number, state, data.phases, milestones_dir)

    next_steps = [
        f"Review the planning documents in `{milestones_dir}`",
        f"Use `{constants.BOT_MENTION} plan-phase` to plan each phase of the milestone",
        f"Use `{constants.BOT_MENTION} execute-phase` to execute planned work",
    ]
    iteration_check = validate_project_iteration(owner, number, config)
    if iteration_check.reason in (ITERATION_NOT_FOUND, ITERATION_LOOKUP_FAILED):
        next_steps.append(
            f'Warning: create project iteration "{iteration_check.expected}" in GitHub Projects for tracking'
        )

    summary = generate_milestone_summary(
        milestone_number=number,
        status="Planning Documents Created",
        files=files,
        requirements=state.requirements,
        next_steps=next_steps,
        branch=branch,
    )
    github.post_comment(owner, repo, ctx.issue_number, summary)

    logger.info(f"Milestone {number} workflow complete")
    return WorkflowResult(
        complete=True,
        phase=PHASE_MILESTONE_CREATED,
        description=entry.description,
        milestone=number,
        branch=branch,
        files=[f.path for f in files],
        project_iteration=iteration_check,
        message="Milestone created successfully with planning documents",
    )


def execute_milestone_workflow(ctx: CommandContext, command_args: str) -> WorkflowResult:
    """Run the new-milestone command.

    Args:
        ctx: Repository and issue the command came from
        command_args: Raw argument string, e.g. "--milestone 5 Build auth"

    Returns:
        WorkflowResult with phase "gsd-managed" or "milestone-created"

    Raises:
        MilestoneInputError: malformed arguments
        GitHubError, GitError, ConfigError, ValidationError: collaborator failures
    """
    logger.info(f"Starting milestone workflow for {ctx.full_name}#{ctx.issue_number}")

    try:
        entry = parse_entry(command_args)
        logger.info(f"Parsed milestone description: {entry.description[:100]}")

        if isinstance(entry, DelegatedEntry):
            return _run_delegated(entry)
        return _run_traditional(ctx, entry)

    except Exception as error:
        logger.error(f"Milestone workflow error: {error}")
        _post_error(ctx, error)
        raise


def gather_requirements(
    ctx: CommandContext,
    state: MilestoneState,
    questions: list[Question] | None = None,
) -> RequirementsRound:
    """Run one multi-turn requirements round against the issue comments.

    Reads human comments newer than the state's high-water mark, records
    their answers, then either completes requirements or posts the open
    questions. The caller persists the state.

    Not used by execute_milestone_workflow, which takes requirements
    straight from the command description.
    """
    questions = questions or DEFAULT_QUESTIONS

    if not state.requirements.pending:
        initialize_pending_questions(state, questions)

    comments = get_new_comments(ctx.owner, ctx.repo, ctx.issue_number, state.workflow.last_comment_id)

    new_answers: dict[str, str] = {}
    for reply in parse_user_answers(comments):
        parsed = parse_answers(reply.body, questions, state.requirements.answered)
        for question_id, answer in parsed.items():
            update_requirements_answer(state, question_id, answer, reply.comment_id)
            new_answers[question_id] = answer
        # Replies with no answers still count as seen
        state.workflow.last_comment_id = max(state.workflow.last_comment_id, reply.comment_id)

    if new_answers:
        logger.info(f"Recorded answers for: {', '.join(new_answers)}")

    if is_complete(state, questions):
        mark_requirements_complete(state)
        return RequirementsRound(complete=True, new_answers=new_answers, pending=[])

    pending = list(state.requirements.pending)
    pending_text = [q.question for q in questions if q.id in pending]
    body = (
        generate_partial_summary(state.milestone_number, state.requirements, pending_text)
        + "\n\n"
        + format_questions(questions, state.requirements.answered)
    )
    github.post_comment(ctx.owner, ctx.repo, ctx.issue_number, body)
    return RequirementsRound(complete=False, new_answers=new_answers, pending=pending)
