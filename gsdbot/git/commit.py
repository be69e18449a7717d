"""Git commit operations."""

from pathlib import Path

from gsdbot.git.runner import run_git, GitResult


def configure_identity(repo: Path, name: str, email: str) -> list[GitResult]:
    """Set the committer identity for this repository."""
    return [
        run_git(["config", "user.name", name], repo),
        run_git(["config", "user.email", email], repo),
    ]


def stage_files(worktree: Path, files: list[str]) -> GitResult:
    """Stage specific files."""
    return run_git(["add", "--"] + files, worktree)


def has_staged_changes(worktree: Path) -> bool:
    """Check if anything is staged for commit."""
    result = run_git(["diff", "--cached", "--quiet"], worktree)
    # --quiet exits 1 when there are differences
    return result.returncode == 1


def commit(worktree: Path, message: str) -> GitResult:
    """Create a commit with the given message."""
    return run_git(["commit", "-m", message], worktree)
