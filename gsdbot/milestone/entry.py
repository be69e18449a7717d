"""
Command argument parsing for new-milestone.

The argument string decides which flow runs, once, up front:

- TraditionalEntry: a milestone number was given ("5 ...", "-m 5 ...",
  "--milestone 5 ..."); the bot plans that milestone itself.
- DelegatedEntry: no number; the whole string is a description for the
  agent, which picks the number.
"""

import re
from dataclasses import dataclass

DESCRIPTION_REQUIRED = (
    "Milestone description is required. "
    "Provide a description of your milestone goals and features."
)

# Priority order: --milestone, -m, leading number
MILESTONE_FLAG_RE = re.compile(r'(?:^|\s)--milestone(?:=|\s+)(\d+)(?=\s|$)')
SHORT_FLAG_RE = re.compile(r'(?:^|\s)-m(?:=|\s+)(\d+)(?=\s|$)')
LEADING_NUMBER_RE = re.compile(r'^\s*(\d+)(?=\s|$)')
MAX_MILESTONE_DIGITS = 9


class MilestoneInputError(ValueError):
    """The command arguments are malformed; the human must fix the command."""


@dataclass(frozen=True)
class DelegatedEntry:
    """No milestone number: planning is delegated to the agent."""
    description: str


@dataclass(frozen=True)
class TraditionalEntry:
    """Explicit milestone number: the bot plans it directly."""
    milestone_number: int
    description: str


def parse_milestone_number(command_args: str | None) -> int | None:
    """Extract the milestone number, or None if none is given.

    Raises:
        MilestoneInputError: if the number is 0 or too large
    """
    if not command_args:
        return None

    for pattern in (MILESTONE_FLAG_RE, SHORT_FLAG_RE, LEADING_NUMBER_RE):
        match = pattern.search(command_args)
        if match:
            digits = match.group(1)
            if len(digits.lstrip("0")) > MAX_MILESTONE_DIGITS:
                raise MilestoneInputError(
                    f"Milestone number is too large (at most {MAX_MILESTONE_DIGITS} digits)"
                )
            number = int(digits)
            if number < 1:
                raise MilestoneInputError(f"Milestone number must be positive, got {number}")
            return number

    return None


def parse_milestone_description(command_args: str | None) -> str:
    """Strip milestone number flags from the arguments; the rest is the description.

    Raises:
        MilestoneInputError: if nothing is left
    """
    description = command_args or ""
    if MILESTONE_FLAG_RE.search(description) or SHORT_FLAG_RE.search(description):
        description = MILESTONE_FLAG_RE.sub(" ", description)
        description = SHORT_FLAG_RE.sub(" ", description)
    else:
        # Only a leading number names the milestone; "5 3 widgets" keeps "3 widgets"
        description = LEADING_NUMBER_RE.sub("", description, count=1)
    description = description.strip()

    if not description:
        raise MilestoneInputError(DESCRIPTION_REQUIRED)
    return description


def parse_entry(command_args: str | None) -> DelegatedEntry | TraditionalEntry:
    """Decide the flow for a new-milestone command.

    Raises:
        MilestoneInputError: if the description is empty (either flow) or
            the milestone number is invalid
    """
    number = parse_milestone_number(command_args)

    if number is None:
        description = (command_args or "").strip()
        if not description:
            raise MilestoneInputError(DESCRIPTION_REQUIRED)
        return DelegatedEntry(description=description)

    return TraditionalEntry(
        milestone_number=number,
        description=parse_milestone_description(command_args),
    )
