"""Git worktree service for git-worktree-keeper.

Every fact comes from a fresh git invocation; nothing is cached between calls, because
other processes may add or remove worktrees at any time.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import git

from git_worktree_keeper.exceptions import GitOperationError, NotAGitRepositoryError
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


def _describe(e: git.exc.GitCommandError) -> str:
    """Extract git's own error text from a GitCommandError."""
    stderr = (e.stderr if hasattr(e, "stderr") else str(e)) or ""
    stderr = stderr.strip()
    # GitPython wraps stderr as "stderr: '...'"
    if stderr.startswith("stderr: "):
        stderr = stderr[len("stderr: "):].strip("'").strip()
    status = e.status if hasattr(e, "status") else "unknown"
    if stderr:
        return f"exit {status}: {stderr}"
    return f"exit code {status}"


class WorktreeService:
    """Service for listing, adding and removing git worktrees."""

    def __init__(self, repo_path: str = "."):
        """Initialize the worktree service.

        Args:
            repo_path: Any directory inside the repository or one of its worktrees
        """
        self.repo_path = repo_path

    def _get_repo(self) -> git.Repo:
        """Open the repository containing ``repo_path``.

        Raises:
            NotAGitRepositoryError: If ``repo_path`` is not inside a repository
        """
        try:
            return git.Repo(self.repo_path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise NotAGitRepositoryError(str(e)) from e

    def _git(self, cwd: Optional[str] = None) -> git.Git:
        if cwd is not None:
            return git.Git(cwd)
        return self._get_repo().git

    def list_porcelain(self) -> str:
        """Raw ``git worktree list --porcelain`` output."""
        try:
            output = self._git().worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise GitOperationError("worktree list", _describe(e)) from e
        logger.debug(f"worktree list:\n{output}")
        return output

    def show_toplevel(self) -> str:
        """Root of the worktree containing ``repo_path`` (main or linked)."""
        try:
            return self._git().rev_parse("--show-toplevel").strip()
        except git.exc.GitCommandError as e:
            raise GitOperationError("rev-parse --show-toplevel", _describe(e)) from e

    def main_repo_root(self) -> Path:
        """Working directory of the main worktree, even when run from a linked one.

        The common git directory is shared by all worktrees; its parent is the main
        worktree.
        """
        repo = self._get_repo()
        try:
            common_dir = repo.git.rev_parse("--git-common-dir").strip()
        except git.exc.GitCommandError as e:
            raise GitOperationError("rev-parse --git-common-dir", _describe(e)) from e

        common_path = Path(common_dir)
        if not common_path.is_absolute():
            common_path = Path(repo.working_dir) / common_path
        return common_path.resolve().parent

    def branch_exists(self, branch: str) -> bool:
        """True if ``branch`` resolves to a commit (``git rev-parse --verify``)."""
        try:
            self._git().rev_parse("--verify", "--quiet", branch)
            return True
        except git.exc.GitCommandError:
            return False

    def add_worktree(self, path: str, branch: str, start_point: Optional[str] = None,
                     cwd: Optional[str] = None) -> None:
        """Create a worktree at ``path``.

        With a start point, a new branch is created from it. Without one, an existing
        branch is checked out, or a new branch is created from HEAD.
        """
        if start_point:
            args = ["add", "-b", branch, path, start_point]
        elif self.branch_exists(branch):
            args = ["add", path, branch]
        else:
            args = ["add", "-b", branch, path]

        try:
            self._git(cwd).worktree(*args)
        except git.exc.GitCommandError as e:
            raise GitOperationError("worktree add", _describe(e)) from e
        logger.info(f"Created worktree at {path} for branch {branch}")

    def remove_worktree(self, path: str, cwd: Optional[str] = None) -> None:
        """Remove the worktree at ``path``.

        Args:
            path: Worktree path as reported by git
            cwd: Where to run git; the main repository root, since ``path`` may be the
                current directory
        """
        try:
            self._git(cwd).worktree("remove", path)
        except git.exc.GitCommandError as e:
            raise GitOperationError("worktree remove", _describe(e)) from e
        logger.info(f"Removed worktree at {path}")

    def delete_branch(self, branch: str, cwd: Optional[str] = None) -> bool:
        """Force-delete a local branch. Returns False instead of raising on failure."""
        try:
            self._git(cwd).branch("-D", branch)
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not delete branch {branch}: {_describe(e)}")
            return False
        logger.info(f"Deleted branch {branch}")
        return True

    def fetch(self, remote: str, ref: str, cwd: Optional[str] = None) -> None:
        try:
            self._git(cwd).fetch(remote, ref)
        except git.exc.GitCommandError as e:
            raise GitOperationError(f"fetch {remote} {ref}", _describe(e)) from e

    def last_commit_time(self, worktree_path: str) -> Optional[datetime]:
        """Time of the last commit in a worktree, or None if it cannot be read."""
        if not Path(worktree_path).exists():
            return None
        try:
            output = git.Git(worktree_path).log("-1", "--format=%ct").strip()
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not read last commit time for {worktree_path}: {_describe(e)}")
            return None

        if not output:
            return None
        try:
            return datetime.fromtimestamp(int(output), tz=timezone.utc)
        except ValueError:
            return None

    def list_refs(self) -> list[str]:
        """Short names of local branches, remote branches and tags, without symbolic refs."""
        try:
            output = self._git().for_each_ref(
                "--format=%(refname:short)%09%(symref)",
                "refs/heads", "refs/remotes", "refs/tags",
            )
        except git.exc.GitCommandError as e:
            raise GitOperationError("for-each-ref", _describe(e)) from e

        refs = []
        for line in output.splitlines():
            name, _, symref = line.partition("\t")
            name = name.strip()
            if name and not symref.strip():
                refs.append(name)
        return refs
