"""zoxide integration: register new worktrees for quick jumping"""
from pathlib import Path

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.utils.subprocess_utils import command_exists, run_command

logger = get_logger(__name__)


class ZoxideService:
    @staticmethod
    def is_available() -> bool:
        return command_exists("zoxide")

    def add(self, path: Path) -> None:
        run_command(["zoxide", "add", str(path)])
        logger.debug(f"Added {path} to zoxide")

    def add_if_enabled(self, path: Path, enabled: bool) -> bool:
        """Register the path when enabled and zoxide is installed; otherwise do nothing."""
        if not enabled or not self.is_available():
            return False
        self.add(path)
        return True
