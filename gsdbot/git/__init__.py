"""Git operations for GSD Bot.

Return type conventions:
- Functions returning GitResult: Caller must check .success (or pass it
  through require()) before relying on the effect.
  Examples: stage_files(), commit(), create_and_switch()
- Functions returning bool: True on success/condition met, False otherwise.
  Examples: branch_exists(), has_staged_changes()
"""

from gsdbot.git.runner import (
    GitResult,
    GitError,
    run_git,
    require,
)
from gsdbot.git.branch import (
    branch_exists,
    create_and_switch,
    switch_branch,
    milestone_branch_name,
)
from gsdbot.git.commit import (
    configure_identity,
    stage_files,
    has_staged_changes,
    commit,
)

__all__ = [
    # runner
    "GitResult",
    "GitError",
    "run_git",
    "require",
    # branch
    "branch_exists",
    "create_and_switch",
    "switch_branch",
    "milestone_branch_name",
    # commit
    "configure_identity",
    "stage_files",
    "has_staged_changes",
    "commit",
]
