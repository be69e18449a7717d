"""
Shared data types for GSD Bot.

This module contains dataclasses used across multiple modules to avoid
circular imports.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CommandContext:
    """Where a command came from and where it operates.

    Built once by the entry point and passed explicitly to every component.
    """
    owner: str
    repo: str
    issue_number: int
    sender: str | None = None
    repo_path: Path = Path(".")
    run_url: str | None = None  # Link to the CI run logs, if known

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class Comment:
    """A single issue comment."""
    id: int
    author: str
    author_type: str  # "User", "Bot", "Organization"
    body: str
    created_at: str


@dataclass
class FileContent:
    """A text blob read from the repository contents API."""
    path: str
    content: str
    sha: str  # Revision handle required to update the blob


@dataclass
class Iteration:
    """A GitHub Projects v2 iteration."""
    id: str
    title: str
    start_date: str | None = None
