"""Git-related services for git-worktree-keeper."""

from .worktrees import WorktreeService
from .porcelain import (
    parse_worktree_entries,
    parse_simple_worktree_entries,
    assert_main_first,
    split_main,
)

__all__ = [
    "WorktreeService",
    "parse_worktree_entries",
    "parse_simple_worktree_entries",
    "assert_main_first",
    "split_main",
]
