"""Subprocess helpers for the non-git tools (gh, tmux, fzf, zoxide, hook commands)."""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from git_worktree_keeper.exceptions import ExternalCommandError, ToolUnavailableError
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


def run_command(
    cmd: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    input: Optional[str] = None,
    capture_stderr: bool = True,
    check: bool = True,
    env: Optional[dict] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command and capture its output as text.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        input: Text fed to stdin
        capture_stderr: Capture stderr; when False it goes to the terminal
        check: Raise on non-zero exit
        env: Environment variables

    Returns:
        CompletedProcess with stdout, stderr, returncode

    Raises:
        ToolUnavailableError: If the executable cannot be found
        ExternalCommandError: If check=True and the command fails
    """
    logger.debug(f"Running: {' '.join(cmd)}" + (f" (in {cwd})" if cwd else ""))
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            input=input,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE if capture_stderr else None,
            text=True,
            env=env,
            check=False,  # We handle check ourselves for better error messages
        )
    except FileNotFoundError as e:
        raise ToolUnavailableError(cmd[0]) from e

    if check and result.returncode != 0:
        raise ExternalCommandError(
            cmd=" ".join(cmd),
            returncode=result.returncode,
            stderr=result.stderr or "",
        )

    return result


def command_exists(command: str) -> bool:
    """Check if a command exists in PATH."""
    return shutil.which(command) is not None
