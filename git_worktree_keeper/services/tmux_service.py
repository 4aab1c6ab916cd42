"""tmux integration: open new worktrees in a window or pane"""
import os
from pathlib import Path
from typing import Mapping, Optional

from git_worktree_keeper.constants import (
    TMUX_FALLBACK_WINDOW_NAME,
    TMUX_NAME_SEPARATOR,
    TMUX_WINDOW_NAME_MAX,
)
from git_worktree_keeper.exceptions import ExternalCommandError, ToolUnavailableError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.utils.subprocess_utils import run_command

logger = get_logger(__name__)


def sanitize_window_name(branch: str) -> str:
    """Window name for a branch: ``/`` and spaces become ``·``, at most 50 characters."""
    if not branch:
        return TMUX_FALLBACK_WINDOW_NAME
    name = branch.replace("/", TMUX_NAME_SEPARATOR).replace(" ", TMUX_NAME_SEPARATOR)
    return name[:TMUX_WINDOW_NAME_MAX]


def should_use_tmux(behavior: str, tmux_flag: bool = False, no_tmux_flag: bool = False) -> bool:
    """``--no-tmux`` wins over ``--tmux``, which wins over the configured behavior."""
    if no_tmux_flag:
        return False
    if tmux_flag:
        return True
    return behavior == "always"


class TmuxService:
    """Opens tmux windows and panes."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def detect(self) -> None:
        """Check that we run inside tmux and that tmux works.

        Raises:
            ToolUnavailableError: If not inside a tmux session or tmux is missing
        """
        if not self.environ.get("TMUX"):
            raise ToolUnavailableError(
                "tmux",
                "tmux integration requires running inside a tmux session; "
                "try again from a tmux pane or use --no-tmux",
            )
        try:
            run_command(["tmux", "-V"])
        except ExternalCommandError as e:
            raise ToolUnavailableError("tmux", "tmux -V failed") from e

    def is_available(self) -> bool:
        try:
            self.detect()
            return True
        except ToolUnavailableError:
            return False

    def create_window(self, path: Path, branch: str) -> None:
        name = sanitize_window_name(branch)
        run_command(["tmux", "new-window", "-n", name, "-c", str(path)])
        logger.info(f"Opened tmux window '{name}' at {path}")

    def create_pane(self, path: Path) -> None:
        run_command(["tmux", "split-window", "-h", "-c", str(path)])
        logger.info(f"Opened tmux pane at {path}")

    def open(self, path: Path, branch: str, create: str = "window") -> None:
        """Open the worktree in a new window or pane, as configured."""
        if create == "pane":
            self.create_pane(path)
        else:
            self.create_window(path, branch)
