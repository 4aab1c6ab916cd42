"""Shared constants for git-worktree-keeper."""

# Tokens with special meaning when targeting worktrees
MAIN_WORKTREE_TOKEN = "@"
CURRENT_WORKTREE_TOKEN = "."

# Porcelain parsing
UNKNOWN_HASH = "(unknown)"
SHORT_HASH_LENGTH = 8
BRANCH_REF_PREFIX = "refs/heads/"

# Worktree directory template
DEFAULT_DIR_TEMPLATE = "../{repo}-worktrees/{branch}"
REPO_PLACEHOLDER = "{repo}"
BRANCH_PLACEHOLDER = "{branch}"

# Config file locations
APP_NAME = "gwk"
LOCAL_CONFIG_FILENAME = ".gwk.toml"
GLOBAL_CONFIG_FILENAME = "config.toml"

# Listing labels
LABEL_MAIN = "[@]"
LABEL_DETACHED = "[detached]"
FZF_DETACHED_LABEL = "(detached)"
SYMBOL_ACTIVE = "*"
SYMBOL_INACTIVE = " "
NO_TIMESTAMP = "–"

# Message symbols
SYMBOL_SUCCESS = "✓"
SYMBOL_INFO = "ℹ"
SYMBOL_WARN = "⚠"
SYMBOL_ERROR = "✗"

# Tree item connectors for nested output (hooks)
TREE_BRANCH = "├─"
TREE_LAST = "└─"


# Style names used with rich
class ListingStyle:
    """Rich styles for listing columns."""

    MAIN = "green"
    BRANCH = "cyan"
    DETACHED = "yellow"
    SECONDARY = "dim"
    ACTIVE = "bold magenta"


MESSAGE_STYLES = {
    "success": "bold bright_green",
    "info": "bright_cyan",
    "warn": "bright_yellow",
    "error": "bold bright_red",
}

# tmux
TMUX_WINDOW_NAME_MAX = 50
TMUX_FALLBACK_WINDOW_NAME = "worktree"
TMUX_NAME_SEPARATOR = "·"

# GitHub
GITHUB_REF_PREFIX = "#"
ISSUE_BRANCH_TEMPLATE = "issue-{number}"

# Hooks
GLOB_CHARS = frozenset("*?[]{}")
TIMING_THRESHOLD_MS = 100
