#!/usr/bin/env python3
"""GSD Bot CLI entrypoint."""

import sys
import os
import argparse
import logging
from pathlib import Path

from gsdbot.lib.config import ConfigError
from gsdbot.lib.github import get_workflow_run_url
from gsdbot.lib.types import CommandContext
from gsdbot.milestone.entry import MilestoneInputError
from gsdbot.workflow.engine import PHASE_GSD_MANAGED, execute_milestone_workflow

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_WORKFLOW_ERROR = 1
EXIT_USAGE_ERROR = 2


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def split_repository(full_name: str | None) -> tuple[str, str] | None:
    """Split "owner/name", or None if malformed."""
    if not full_name or full_name.count("/") != 1:
        return None
    owner, repo = full_name.split("/")
    if not owner or not repo:
        return None
    return owner, repo


def build_context(args, env) -> CommandContext | None:
    """Build the command context from arguments, falling back to the Actions environment."""
    parts = split_repository(args.repo or env.get("GITHUB_REPOSITORY"))
    if parts is None:
        return None
    owner, repo = parts
    return CommandContext(
        owner=owner,
        repo=repo,
        issue_number=args.issue,
        sender=args.sender or env.get("GITHUB_ACTOR"),
        repo_path=Path(args.repo_path),
        run_url=get_workflow_run_url(env),
    )


def cmd_new_milestone(args, env=None):
    env = os.environ if env is None else env

    ctx = build_context(args, env)
    if ctx is None:
        print("Error: repository must be given as owner/name (--repo or GITHUB_REPOSITORY)", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        result = execute_milestone_workflow(ctx, " ".join(args.args))
    except (MilestoneInputError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR
    except Exception as e:
        logger.debug("Workflow failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_WORKFLOW_ERROR

    if result.phase == PHASE_GSD_MANAGED:
        print(f"Delegated: {result.message}")
        print(f"  Description: {result.description}")
    else:
        print(f"Milestone {result.milestone} created on branch {result.branch}")
        for path in result.files:
            print(f"  {path}")
    return EXIT_OK


def main(argv=None):
    parser = argparse.ArgumentParser(prog='gsd-bot', description='GSD Bot milestone workflow')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # gsd-bot new-milestone
    p_new = subparsers.add_parser('new-milestone', help='Create a milestone and its planning documents')
    p_new.add_argument('args', nargs='*', help='Milestone arguments, e.g. --milestone 5 "Build auth"')
    p_new.add_argument('--issue', '-i', type=int, required=True, help='Issue number the command came from')
    p_new.add_argument('--repo', '-r', help='owner/name (default: $GITHUB_REPOSITORY)')
    p_new.add_argument('--repo-path', default='.', help='Local checkout (default: .)')
    p_new.add_argument('--sender', help='Login of the user who ran the command (default: $GITHUB_ACTOR)')
    p_new.set_defaults(func=cmd_new_milestone)

    # Milestone flags go after "--" or inside one quoted string: -- --milestone 5 Build auth
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
