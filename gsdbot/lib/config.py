"""
Configuration loader for GSD Bot.

Reads .github/gsd-config.json (or .yml) from the target repository through
the contents API. A missing file means defaults; an unreadable or invalid
file is an error.
"""

import logging
from dataclasses import dataclass, field

import yaml

from gsdbot.lib import constants
from gsdbot.lib import github
from gsdbot.lib.validate import ValidationError, validate

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Repository configuration could not be loaded."""


@dataclass
class ProjectSettings:
    """GitHub Projects v2 board used for iteration tracking."""
    number: int | None = None  # None disables iteration validation
    is_org: bool = True


@dataclass
class PathSettings:
    """Where planning artifacts live in the repository."""
    milestones: str = constants.MILESTONES_DIR


@dataclass
class BotConfig:
    """Repository-level configuration from gsd-config."""
    project: ProjectSettings = field(default_factory=ProjectSettings)
    paths: PathSettings = field(default_factory=PathSettings)


def parse_config(text: str, source: str = "gsd-config") -> BotConfig:
    """Parse and validate config text (JSON is valid YAML, so both work)."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {source}: {e}") from e

    if data is None:
        return BotConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{source} must contain a mapping, got {type(data).__name__}")

    try:
        validate(data, "gsd_config")
    except ValidationError as e:
        raise ConfigError(f"Invalid {source}: {e}") from e

    project = data.get("project") or {}
    paths = data.get("paths") or {}
    defaults = PathSettings()

    return BotConfig(
        project=ProjectSettings(
            number=project.get("number"),
            is_org=project.get("isOrg", True),
        ),
        paths=PathSettings(
            milestones=paths.get("milestones", defaults.milestones),
        ),
    )


def load_config(owner: str, repo: str) -> BotConfig:
    """Load repository config, falling back to defaults when absent.

    Raises:
        ConfigError: if the file exists but can't be read or is invalid
    """
    for path in constants.CONFIG_PATHS:
        try:
            found = github.get_file_content(owner, repo, path)
        except github.GitHubError as e:
            raise ConfigError(f"Failed to load config: {e}") from e

        if found is not None:
            logger.info(f"Loaded config from {path}")
            return parse_config(found.content, path)

    logger.info("Config file not found, using defaults")
    return BotConfig()
