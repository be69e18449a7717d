"""
Milestone state persistence.

State lives in `<milestones_dir>/<n>/STATE.md` on the default branch and is
read and written through the contents API. The path is the only key.

Concurrency is optimistic: save() re-reads the blob sha right before
writing and GitHub rejects the write if another run changed the file in
between. Two runs can still interleave load/save and lose an update;
nothing here serialises runs.
"""

import logging

from gsdbot.lib import constants
from gsdbot.lib import github
from gsdbot.lib.validate import validate_before_write
from gsdbot.milestone import codec
from gsdbot.milestone.models import MilestoneState, Phase, create_initial_state

logger = logging.getLogger(__name__)


def state_path(milestone_number: int, milestones_dir: str = constants.MILESTONES_DIR) -> str:
    """Repository path of a milestone's STATE.md."""
    return f"{milestones_dir.rstrip('/')}/{milestone_number}/{constants.STATE_FILE}"


def load_state(
    owner: str,
    repo: str,
    milestone_number: int,
    milestones_dir: str = constants.MILESTONES_DIR,
) -> MilestoneState:
    """
    Load a milestone's state, creating a fresh one on first run.

    Raises:
        GitHubError: if the file exists but can't be read
    """
    path = state_path(milestone_number, milestones_dir)
    found = github.get_file_content(owner, repo, path)

    if found is None:
        logger.info(f"State file not found for milestone {milestone_number}, creating initial state")
        return create_initial_state(milestone_number)

    state = codec.decode(found.content)
    if state.milestone_number != milestone_number:
        # Hand edits can drop or change the number; the path is authoritative
        logger.warning(
            f"{path} declares milestone {state.milestone_number}, using {milestone_number}"
        )
        state.milestone_number = milestone_number

    logger.info(f"Loaded state for milestone {milestone_number} from {path}")
    return state


def save_state(
    owner: str,
    repo: str,
    milestone_number: int,
    state: MilestoneState,
    phases: list[Phase] | None = None,
    milestones_dir: str = constants.MILESTONES_DIR,
) -> str:
    """
    Persist a milestone's state.

    Returns:
        The sha of the written STATE.md

    Raises:
        ValidationError: if the state would not decode back
        GitHubError: on read or write failure, including a stale sha
    """
    path = state_path(milestone_number, milestones_dir)
    validate_before_write(codec.state_payload(state, phases), "milestone_state", path)
    content = codec.encode(state, phases)

    # Current sha for update, None to create
    existing = github.get_file_content(owner, repo, path)
    sha = existing.sha if existing else None

    new_sha = github.put_file_content(
        owner,
        repo,
        path,
        content,
        message=f"chore: Update milestone {milestone_number} state",
        sha=sha,
    )
    logger.info(f"State saved to {path}")
    return new_sha
