"""Create/delete hook execution: run commands, copy files, symlink files"""
import os
import shutil
import time
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from git_worktree_keeper.config import HookActions
from git_worktree_keeper.constants import GLOB_CHARS
from git_worktree_keeper.exceptions import HookError, ToolUnavailableError
from git_worktree_keeper.formatters.messages import info, tree_item, warn
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.utils.paths import display_path
from git_worktree_keeper.utils.subprocess_utils import run_command

logger = get_logger(__name__)


def is_glob(pattern: str) -> bool:
    return any(c in GLOB_CHARS for c in pattern)


def _expand_braces(pattern: str) -> List[str]:
    """``a{b,c}d`` -> ``["abd", "acd"]``; nested braces are expanded recursively."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]

    depth = 0
    for end in range(start, len(pattern)):
        if pattern[end] == "{":
            depth += 1
        elif pattern[end] == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        # Unbalanced brace: treat literally
        return [pattern]

    options, current, depth = [], "", 0
    for c in pattern[start + 1:end]:
        if c == "," and depth == 0:
            options.append(current)
            current = ""
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
        current += c
    options.append(current)

    prefix, suffix = pattern[:start], pattern[end + 1:]
    expanded = []
    for option in options:
        expanded.extend(_expand_braces(prefix + option + suffix))
    return expanded


def glob_variants(pattern: str) -> List[str]:
    """fnmatch patterns equivalent to a glob with braces and ``**/``.

    ``**/`` may also match zero directories, so each occurrence is tried both kept and
    dropped.
    """
    variants = []
    pending = _expand_braces(pattern)
    while pending:
        current = pending.pop()
        if current in variants:
            continue
        variants.append(current)
        index = current.find("**/")
        while index != -1:
            pending.append(current[:index] + current[index + 3:])
            index = current.find("**/", index + 1)
    return variants


def expand_pattern(pattern: str, base: Path) -> List[Path]:
    """Paths under ``base`` matching a hook pattern.

    A literal pattern matches itself if it exists. A glob is matched against paths
    relative to ``base``, without following symlinks; a matching directory is not
    searched further. The ``.git`` directory is never searched.
    """
    if not is_glob(pattern):
        path = base / pattern
        return [path] if os.path.lexists(path) else []

    variants = glob_variants(pattern)
    matches = []
    for root, dirs, files in os.walk(base, followlinks=False):
        dirs[:] = sorted(d for d in dirs if d != ".git")
        root_path = Path(root)
        kept_dirs = []
        for name in dirs:
            rel = (root_path / name).relative_to(base).as_posix()
            if any(fnmatchcase(rel, v) for v in variants):
                matches.append(root_path / name)
            else:
                kept_dirs.append(name)
        dirs[:] = kept_dirs
        for name in sorted(files):
            rel = (root_path / name).relative_to(base).as_posix()
            if any(fnmatchcase(rel, v) for v in variants):
                matches.append(root_path / name)
    return matches


class HookService:
    """Runs the actions of a hook against a worktree."""

    def __init__(self, console: Console, show_spinner: bool = False,
                 home: Optional[str] = None):
        """Initialize the hook service.

        Args:
            console: Console for progress output (stderr)
            show_spinner: Show a spinner while commands run
            home: Home directory for path display
        """
        self.console = console
        self.show_spinner = show_spinner
        self.home = home

    def execute(self, actions: HookActions, worktree_path: Path, source_path: Path) -> None:
        """Run commands, then copies, then links.

        Args:
            actions: Hook actions from config
            worktree_path: Worktree being created or deleted
            source_path: Main repository root, where copied and linked files come from

        Raises:
            HookError: If a command fails or a file operation fails
        """
        worktree_path = Path(worktree_path)
        source_path = Path(source_path)
        total = len(actions.run) + len(actions.copy) + len(actions.link)
        index = 0

        for cmd in actions.run:
            index += 1
            self.run_command(cmd, worktree_path, is_last=index == total)

        for pattern in actions.copy:
            index += 1
            self.copy_files(pattern, source_path, worktree_path, is_last=index == total)

        for pattern in actions.link:
            index += 1
            self.link_files(pattern, source_path, worktree_path, is_last=index == total)

    def run_command(self, cmd: str, cwd: Path, is_last: bool = True) -> None:
        label = f"Running hook command: {cmd}"
        logger.debug(f"{label} (in {cwd})")

        start = time.monotonic()
        try:
            if self.show_spinner:
                with self.console.status(label, spinner="dots"):
                    result = self._run_shell(cmd, cwd)
            else:
                result = self._run_shell(cmd, cwd)
        except (OSError, ToolUnavailableError) as e:
            raise HookError(cmd, str(e)) from e
        elapsed_ms = (time.monotonic() - start) * 1000

        self.console.print(tree_item(info(label), is_last, elapsed_ms))

        if result.returncode != 0:
            raise HookError(cmd, result.stderr.strip())

        if result.stdout:
            self.console.print(result.stdout, end="", markup=False, highlight=False)

    @staticmethod
    def _run_shell(cmd: str, cwd: Path):
        return run_command(["sh", "-c", cmd], cwd=cwd, check=False)

    def copy_files(self, pattern: str, source_path: Path, dest_path: Path, is_last: bool = True) -> None:
        matches = expand_pattern(pattern, source_path)
        if not matches:
            if not is_glob(pattern):
                self.console.print(tree_item(
                    warn(f"Source file not found, skipping: {source_path / pattern}"), is_last))
            return

        for src in matches:
            dst = dest_path / src.relative_to(source_path)
            self.console.print(tree_item(info(
                f"Copying: {display_path(src, self.home)} → {display_path(dst, self.home)}"), is_last))
            try:
                dst.parent.mkdir(parents=True, exist_ok=True)
                if src.is_dir() and not src.is_symlink():
                    shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
                else:
                    shutil.copy2(src, dst, follow_symlinks=False)
            except OSError as e:
                raise HookError(f"copy {src} to {dst}", str(e)) from e

    def link_files(self, pattern: str, source_path: Path, worktree_path: Path, is_last: bool = True) -> None:
        matches = expand_pattern(pattern, source_path)
        if not matches:
            if not is_glob(pattern):
                self.console.print(tree_item(
                    warn(f"Source file not found for symlink, skipping: {source_path / pattern}"), is_last))
            return

        for src in matches:
            dst = worktree_path / src.relative_to(source_path)
            self.console.print(tree_item(info(
                f"Creating symlink: {display_path(src, self.home)} → {display_path(dst, self.home)}"), is_last))
            try:
                dst.parent.mkdir(parents=True, exist_ok=True)
                dst.symlink_to(src, target_is_directory=src.is_dir())
            except OSError as e:
                raise HookError(f"link {dst} to {src}", str(e)) from e
