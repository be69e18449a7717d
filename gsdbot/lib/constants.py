"""Shared constants for GSD Bot."""

# Planning artifact layout. The milestone number is the only key.
MILESTONES_DIR = ".github/planning/milestones/"

PROJECT_FILE = "PROJECT.md"
STATE_FILE = "STATE.md"
ROADMAP_FILE = "ROADMAP.md"

CONFIG_PATHS = (".github/gsd-config.json", ".github/gsd-config.yml")

# Branches
BRANCH_PREFIX = "gsd"

# Identity used for commits and to recognise our own comments
BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"
BOT_LOGINS = frozenset({"github-actions[bot]"})
BOT_USER_TYPE = "Bot"

# Mention used in user-facing next steps
BOT_MENTION = "@gsd-bot"
