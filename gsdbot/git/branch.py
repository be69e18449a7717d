"""Git branch operations."""

from pathlib import Path

from gsdbot.git.runner import run_git, GitResult


def branch_exists(repo: Path, branch: str, remote: str = "origin") -> bool:
    """Check if a branch exists locally or on the remote.

    CI checkouts usually only have remote-tracking refs for branches other
    than the one that triggered the run, so both are checked. `git switch`
    creates the local tracking branch from a unique remote ref.
    """
    result = run_git(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"], repo)
    if result.success:
        return True
    result = run_git(["show-ref", "--verify", "--quiet", f"refs/remotes/{remote}/{branch}"], repo)
    return result.success


def create_and_switch(repo: Path, branch: str, start_point: str | None = None) -> GitResult:
    """Create a branch and switch to it."""
    args = ["switch", "-c", branch]
    if start_point:
        args.append(start_point)
    return run_git(args, repo)


def switch_branch(repo: Path, branch: str) -> GitResult:
    """Switch to an existing branch."""
    return run_git(["switch", branch], repo)


def milestone_branch_name(milestone_number: int, prefix: str = "gsd") -> str:
    """Branch that carries a milestone's planning documents."""
    return f"{prefix}/{milestone_number}"
