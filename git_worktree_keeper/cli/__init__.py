"""Command-line interface for git-worktree-keeper.

This package provides the CLI entry point, argument parsing and shell integration.
"""

from .args import build_parser, parse_args
from .main import main

__all__ = ["main", "parse_args", "build_parser"]
