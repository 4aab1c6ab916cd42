"""Interactive worktree selection with fzf"""
from dataclasses import dataclass
from typing import List, Sequence

from git_worktree_keeper.constants import FZF_DETACHED_LABEL
from git_worktree_keeper.exceptions import ExternalCommandError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.services.git.porcelain import parse_simple_worktree_entries
from git_worktree_keeper.utils.subprocess_utils import command_exists, run_command

logger = get_logger(__name__)

# Exit codes meaning "nothing selected" (no match, or Esc / Ctrl-C)
FZF_NO_SELECTION_CODES = (1, 130)

# fzf replaces {} with the selected line; the path is its last field
PREVIEW_COMMAND = "echo {} | awk '{print $NF}' | xargs -I % git -C % log --oneline -n 10 2>/dev/null"


@dataclass(frozen=True)
class FzfItem:
    display: str
    value: str


def build_worktree_items(porcelain: str) -> List[FzfItem]:
    """One item per worktree: ``<branch> <path>`` shown, the path returned."""
    items = []
    for entry in parse_simple_worktree_entries(porcelain):
        label = entry.branch if entry.branch is not None else FZF_DETACHED_LABEL
        items.append(FzfItem(display=f"{label} {entry.path}", value=entry.path))
    return items


class FzfService:
    """Runs fzf over a list of items."""

    def __init__(self, options: Sequence[str] = ()):
        self.options = list(options)

    @staticmethod
    def is_available() -> bool:
        return command_exists("fzf")

    def build_command(self, multi: bool) -> List[str]:
        cmd = ["fzf"]
        if multi:
            cmd.append("--multi")
        cmd.extend(self.options)
        cmd.extend([
            "--preview", PREVIEW_COMMAND,
            "--height=50%",
            "--reverse",
            "--border",
            "--prompt=Select worktree: ",
        ])
        return cmd

    def pick(self, items: Sequence[FzfItem], multi: bool = False) -> List[str]:
        """
        Let the user pick items.

        Returns:
            Values of the selected items; empty when the user cancelled

        Raises:
            ExternalCommandError: If fzf fails for any other reason
        """
        if not items:
            return []

        # fzf draws its UI on the terminal through stderr
        result = run_command(
            self.build_command(multi),
            input="\n".join(item.display for item in items),
            capture_stderr=False,
            check=False,
        )

        if result.returncode in FZF_NO_SELECTION_CODES:
            logger.debug("fzf selection cancelled")
            return []
        if result.returncode != 0:
            raise ExternalCommandError("fzf", result.returncode, result.stderr or "")

        by_display = {item.display: item.value for item in items}
        return [by_display[line] for line in result.stdout.splitlines() if line in by_display]
