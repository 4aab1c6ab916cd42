"""Custom exceptions for git-worktree-keeper"""

from typing import Optional


class WorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""
    pass


class GitOperationError(WorktreeKeeperError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotAGitRepositoryError(WorktreeKeeperError):
    """Exception raised when the working directory is not inside a git repository."""

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        error_msg = "Not in a git repository. Run this command from within a git repository."
        if detail:
            error_msg += f"\nGit error: {detail}"
        super().__init__(error_msg)


class WorktreeNotFoundError(WorktreeKeeperError):
    """Exception raised when a target matches no known worktree."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Worktree not found: {target}")


class MainWorktreeTargetedError(WorktreeKeeperError):
    """Exception raised when a target denotes the main worktree."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Cannot target the main worktree: {target}")


class MainWorktreeOrderError(WorktreeKeeperError):
    """Exception raised when git's listing does not start with the main worktree."""

    def __init__(self, first_path: str, main_path: str):
        self.first_path = first_path
        self.main_path = main_path
        super().__init__(
            f"Worktree listing does not start with the main worktree "
            f"(first entry: {first_path}, main worktree: {main_path})"
        )


class ConfigError(WorktreeKeeperError):
    """Exception raised when a configuration file cannot be read or is invalid."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Invalid config file {path}: {message}")


class HookError(WorktreeKeeperError):
    """Exception raised when a hook action fails."""

    def __init__(self, action: str, message: Optional[str] = None):
        self.action = action
        self.message = message

        error_msg = f"Hook failed: {action}"
        if message:
            error_msg += f"\n{message}"

        super().__init__(error_msg)


class ToolUnavailableError(WorktreeKeeperError):
    """Exception raised when a required external tool is not installed."""

    def __init__(self, tool: str, hint: Optional[str] = None):
        self.tool = tool
        self.hint = hint

        error_msg = f"{tool} is not installed or not available"
        if hint:
            error_msg += f". {hint}"

        super().__init__(error_msg)


class ExternalCommandError(WorktreeKeeperError):
    """Exception raised when a non-git subprocess exits unsuccessfully."""

    def __init__(self, cmd: str, returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr

        error_msg = f"Command failed with exit code {returncode}: {cmd}"
        if stderr.strip():
            error_msg += f"\n{stderr.strip()}"

        super().__init__(error_msg)
