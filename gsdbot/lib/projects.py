"""
GitHub Projects v2 lookups.

Read-only GraphQL queries through `gh api graphql`. Used only for the
advisory check that a milestone has a matching project iteration, so
lookup failures are logged and reported as "not found".
"""

import json
import logging

from gsdbot.lib.github import GitHubError, run_gh
from gsdbot.lib.types import Iteration

logger = logging.getLogger(__name__)


_PROJECT_QUERY = """
query($owner: String!, $number: Int!) {
  %s(login: $owner) {
    projectV2(number: $number) {
      id
      title
      url
    }
  }
}
"""

_ITERATIONS_QUERY = """
query($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      fields(first: 20) {
        nodes {
          ... on ProjectV2IterationField {
            id
            name
            configuration {
              iterations {
                id
                title
                startDate
              }
            }
          }
        }
      }
    }
  }
}
"""


def _graphql(query: str, fields: dict[str, str | int]) -> dict | None:
    """Run a GraphQL query; return the `data` object or None on failure."""
    args = ["api", "graphql", "-f", f"query={query}"]
    for key, value in fields.items():
        # -F converts integers, -f keeps strings as-is
        flag = "-F" if isinstance(value, int) else "-f"
        args += [flag, f"{key}={value}"]

    try:
        result = run_gh(args)
    except GitHubError as e:
        logger.warning(f"GraphQL request failed: {e}")
        return None

    if result.returncode != 0:
        logger.warning(f"GraphQL error: {result.stderr.strip()}")
        return None

    try:
        payload = json.loads(result.stdout)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON from gh api graphql")
        return None
    return payload.get("data") or None


def get_project(owner: str, project_number: int, is_org: bool = True) -> dict | None:
    """Get project id/title/url by number, or None if not found or inaccessible."""
    owner_field = "organization" if is_org else "user"
    data = _graphql(_PROJECT_QUERY % owner_field, {"owner": owner, "number": project_number})
    project = ((data or {}).get(owner_field) or {}).get("projectV2")

    if not project:
        logger.warning(f"Project #{project_number} not found for {owner}")
        return None

    logger.info(f"Found project: {project.get('title')} ({project.get('url')})")
    return project


def get_iterations(project_id: str) -> list[Iteration]:
    """Get iterations of the first iteration field in a project."""
    data = _graphql(_ITERATIONS_QUERY, {"projectId": project_id})
    nodes = (((data or {}).get("node") or {}).get("fields") or {}).get("nodes") or []

    for field in nodes:
        configuration = (field or {}).get("configuration") or {}
        if "iterations" in configuration:
            iterations = [
                Iteration(id=i["id"], title=i["title"], start_date=i.get("startDate"))
                for i in configuration.get("iterations") or []
            ]
            logger.info(f"Found {len(iterations)} iterations in project")
            return iterations

    logger.warning("No iteration field found in project")
    return []


def find_iteration(
    owner: str,
    project_number: int,
    title: str,
    is_org: bool = True,
) -> Iteration | None:
    """Find an iteration by title (case-insensitive)."""
    project = get_project(owner, project_number, is_org)
    if not project:
        return None

    for iteration in get_iterations(project["id"]):
        if iteration.title.lower() == title.lower():
            logger.info(f"Found iteration: {iteration.title}")
            return iteration

    logger.warning(f'Iteration "{title}" not found in project #{project_number}')
    return None
