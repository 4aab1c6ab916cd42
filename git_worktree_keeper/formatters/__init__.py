"""Formatting utilities for git-worktree-keeper.

This package provides the formatting functions used for terminal output:
- date: Relative commit ages
- table: Worktree listing rows
- messages: Status lines and hook progress items
"""

# Date formatters
from .date import format_relative_time, format_commit_age

# Listing formatters
from .table import format_worktree_table, format_simple_listing, format_branch_label

# Message formatters
from .messages import success, info, warn, error, dim, tree_item, format_duration

__all__ = [
    # Date
    "format_relative_time",
    "format_commit_age",
    # Listing
    "format_worktree_table",
    "format_simple_listing",
    "format_branch_label",
    # Messages
    "success",
    "info",
    "warn",
    "error",
    "dim",
    "tree_item",
    "format_duration",
]
