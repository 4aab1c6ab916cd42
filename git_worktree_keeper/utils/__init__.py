"""Utility functions for git-worktree-keeper.

This package provides utility modules:
- paths: Lexical normalization, canonicalization and display of paths
- layout: Worktree root derivation and directory templates
- console: Colour mode and rich console construction
- subprocess_utils: Running external tools
"""

from .paths import (
    normalize_lexically,
    canonicalize_allow_missing,
    display_path,
    normalize_absolute_path,
)
from .layout import (
    common_root,
    relative_path,
    branch_depth,
    expand_dir_template,
    worktree_root,
)
from .console import ColorMode, make_console

__all__ = [
    # Paths
    "normalize_lexically",
    "canonicalize_allow_missing",
    "display_path",
    "normalize_absolute_path",
    # Layout
    "common_root",
    "relative_path",
    "branch_depth",
    "expand_dir_template",
    "worktree_root",
    # Console
    "ColorMode",
    "make_console",
]
