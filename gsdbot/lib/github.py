"""
GitHub integration helpers.

Provides the contents API (read/write text blobs), the issue comment stream
and comment posting, all through the gh CLI.

A missing file is not an error: get_file_content() returns None for HTTP 404.
Every other failure raises GitHubError so the caller can report it.
"""

import base64
import json
import logging
import subprocess
from collections.abc import Mapping
from urllib.parse import quote

from gsdbot.lib.types import Comment, FileContent

logger = logging.getLogger(__name__)


# Timeout for GitHub CLI operations (seconds)
GH_TIMEOUT_SECONDS = 30

# Paginated listings can take several round trips
GH_PAGINATE_TIMEOUT_SECONDS = 120


class GitHubError(Exception):
    """A GitHub API call through the gh CLI failed."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        super().__init__(message)


def run_gh(
    args: list[str],
    input_text: str | None = None,
    timeout: int = GH_TIMEOUT_SECONDS,
) -> subprocess.CompletedProcess:
    """Run a gh command, translating launch failures into GitHubError.

    A non-zero exit is returned to the caller, which decides whether it
    means "not found" or a real failure.
    """
    try:
        return subprocess.run(
            ["gh"] + args,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise GitHubError(f"GitHub CLI timed out after {timeout}s: gh {args[0]}") from None
    except FileNotFoundError:
        raise GitHubError("GitHub CLI (gh) not found\n  Install: https://cli.github.com/") from None
    except subprocess.SubprocessError as e:
        raise GitHubError(f"GitHub CLI failed: {e}") from e


def is_not_found(stderr: str) -> bool:
    """Check whether gh reported an HTTP 404."""
    return "HTTP 404" in stderr or "Not Found" in stderr


def _parse_json(stdout: str, what: str):
    try:
        return json.loads(stdout)
    except json.JSONDecodeError:
        raise GitHubError(f"Invalid JSON from gh while reading {what}") from None


def _contents_endpoint(owner: str, repo: str, path: str) -> str:
    return f"repos/{owner}/{repo}/contents/{quote(path)}"


def get_file_content(owner: str, repo: str, path: str) -> FileContent | None:
    """
    Read a text file through the contents API.

    Returns:
        FileContent with decoded text and the blob sha, or None if the file
        does not exist.

    Raises:
        GitHubError: on any failure other than "not found"
    """
    result = run_gh(["api", _contents_endpoint(owner, repo, path)])
    if result.returncode != 0:
        if is_not_found(result.stderr):
            logger.debug(f"{owner}/{repo}:{path} not found")
            return None
        raise GitHubError(f"Failed to read {path}: {result.stderr.strip()}", result.stderr)

    data = _parse_json(result.stdout, path)
    if not isinstance(data, dict) or "sha" not in data:
        raise GitHubError(f"{path} is not a file")

    try:
        content = base64.b64decode(data.get("content", "")).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        raise GitHubError(f"Could not decode {path}: {e}") from e

    return FileContent(path=path, content=content, sha=data["sha"])


def put_file_content(
    owner: str,
    repo: str,
    path: str,
    content: str,
    message: str,
    sha: str | None = None,
) -> str:
    """
    Create or update a file through the contents API.

    Args:
        sha: Current blob sha when updating; None to create. GitHub rejects
            the write if the sha no longer matches.

    Returns:
        The sha of the written blob.
    """
    payload = {
        "message": message,
        "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
    }
    if sha:
        payload["sha"] = sha

    result = run_gh(
        ["api", "-X", "PUT", _contents_endpoint(owner, repo, path), "--input", "-"],
        input_text=json.dumps(payload),
    )
    if result.returncode != 0:
        raise GitHubError(f"Failed to write {path}: {result.stderr.strip()}", result.stderr)

    data = _parse_json(result.stdout, path)
    return (data.get("content") or {}).get("sha", "")


def list_comments(owner: str, repo: str, issue_number: int) -> list[Comment]:
    """Return every comment on an issue, across all pages, in API order."""
    result = run_gh(
        ["api", "--paginate",
         f"repos/{owner}/{repo}/issues/{issue_number}/comments?per_page=100",
         "--jq", ".[]"],
        timeout=GH_PAGINATE_TIMEOUT_SECONDS,
    )
    if result.returncode != 0:
        raise GitHubError(
            f"Failed to list comments on #{issue_number}: {result.stderr.strip()}",
            result.stderr,
        )

    comments = []
    # --jq '.[]' emits one compact JSON object per line
    for line in result.stdout.splitlines():
        if not line.strip():
            continue
        data = _parse_json(line, f"comments on #{issue_number}")
        user = data.get("user") or {}
        comments.append(Comment(
            id=int(data["id"]),
            author=user.get("login", ""),
            author_type=user.get("type", ""),
            body=data.get("body") or "",
            created_at=data.get("created_at", ""),
        ))

    return comments


def post_comment(owner: str, repo: str, issue_number: int, body: str) -> None:
    """Post a markdown comment to an issue or PR."""
    result = run_gh(
        ["issue", "comment", str(issue_number),
         "--repo", f"{owner}/{repo}",
         "--body-file", "-"],
        input_text=body,
    )
    if result.returncode != 0:
        raise GitHubError(
            f"Failed to comment on #{issue_number}: {result.stderr.strip()}",
            result.stderr,
        )
    logger.info(f"Comment posted to issue #{issue_number}")


def get_workflow_run_url(env: Mapping[str, str]) -> str | None:
    """Build the Actions run URL from a GitHub Actions environment.

    Returns None outside of Actions (no run id).
    """
    repository = env.get("GITHUB_REPOSITORY")
    run_id = env.get("GITHUB_RUN_ID")
    if not repository or not run_id:
        return None
    server = env.get("GITHUB_SERVER_URL", "https://github.com")
    url = f"{server}/{repository}/actions/runs/{run_id}"
    attempt = env.get("GITHUB_RUN_ATTEMPT")
    if attempt:
        url += f"/attempts/{attempt}"
    return url
