"""Pytest fixtures for git-worktree-keeper tests"""
import io
import tempfile
from pathlib import Path

import git
import pytest
from rich.console import Console


MAIN_ONLY_PORCELAIN = """worktree /r/main
HEAD 1234567890abcdef1234567890abcdef12345678
branch refs/heads/main

"""

BASIC_PORCELAIN = """worktree /r/main
HEAD 1234567890abcdef1234567890abcdef
branch refs/heads/main

worktree /r/wt/feature
HEAD abcdef1234567890abcdef1234567890
branch refs/heads/feature

"""

# Nested branch names, a detached worktree and a block without HEAD
MIXED_PORCELAIN = """worktree /r/main
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /r/wt/feat
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feat

worktree /r/wt/docs/tweak
HEAD 3333333333333333333333333333333333333333
branch refs/heads/docs/tweak

worktree /r/wt/detached
HEAD 4444444444444444444444444444444444444444
detached

worktree /r/wt/bare
branch refs/heads/bare
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def basic_porcelain():
    """Main worktree plus one linked worktree."""
    return BASIC_PORCELAIN


@pytest.fixture
def main_only_porcelain():
    return MAIN_ONLY_PORCELAIN


@pytest.fixture
def mixed_porcelain():
    """Nested, detached and HEAD-less worktrees."""
    return MIXED_PORCELAIN


@pytest.fixture
def isolated_env(temp_dir):
    """Environment with HOME and XDG_CONFIG_HOME inside the temp dir and no tmux."""
    home = temp_dir / "home"
    home.mkdir()
    return {
        "HOME": str(home),
        "XDG_CONFIG_HOME": str(temp_dir / "xdg"),
    }


@pytest.fixture
def quiet_console():
    """Console that records status output without colour."""
    return Console(file=io.StringIO(), no_color=True, highlight=False, width=200)


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository on branch main for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def git_repo_with_worktrees(git_repo):
    """Repository with linked worktrees for ``feature`` and ``docs/tweak``.

    They live under ``<tmp>/test_repo-worktrees/``, where the default directory
    template puts them.
    """
    repo = git_repo
    root = Path(repo.working_dir).parent / "test_repo-worktrees"

    repo.git.worktree("add", "-b", "feature", str(root / "feature"))
    repo.git.worktree("add", "-b", "docs/tweak", str(root / "docs" / "tweak"))

    yield repo
