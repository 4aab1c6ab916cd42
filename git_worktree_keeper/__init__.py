"""
git-worktree-keeper - Git worktrees with templated directories, hooks and shell integration
"""

from .__version__ import __version__
from .core.worktree_keeper import WorktreeKeeper
from .cli.main import main

__all__ = ["WorktreeKeeper", "main", "__version__"]
