"""Worktree listing table.

Each row reads ``marker [path] hash [relpath] branch age``. Entry 0 is the main
worktree and is labelled ``[@]`` whatever branch it has checked out.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from rich.cells import cell_len
from rich.text import Text

from git_worktree_keeper.constants import (
    LABEL_DETACHED,
    LABEL_MAIN,
    MAIN_WORKTREE_TOKEN,
    SYMBOL_ACTIVE,
    SYMBOL_INACTIVE,
    ListingStyle,
)
from git_worktree_keeper.formatters.date import format_commit_age
from git_worktree_keeper.models.worktree import WorktreeEntry
from git_worktree_keeper.utils.layout import relative_path
from git_worktree_keeper.utils.paths import PathLike, display_path, normalize_absolute_path


def format_branch_label(entry: WorktreeEntry, is_main: bool) -> tuple[str, str]:
    """Return the bracketed branch label and its style."""
    if is_main:
        return LABEL_MAIN, ListingStyle.MAIN
    if entry.branch is None:
        return LABEL_DETACHED, ListingStyle.DETACHED
    return f"[{entry.branch}]", ListingStyle.BRANCH


def _pad(text: str, width: int) -> str:
    """Pad to a terminal cell width; wide characters take two cells."""
    return text + " " * max(0, width - cell_len(text))


def format_worktree_table(
    entries: Sequence[WorktreeEntry],
    commit_times: Sequence[Optional[datetime]],
    show_path: bool = False,
    worktree_root: Optional[Path] = None,
    now: Optional[datetime] = None,
    home: Optional[PathLike] = None,
) -> list[Text]:
    """
    Format worktrees as aligned table lines.

    Args:
        entries: Parsed worktrees, main first
        commit_times: Last commit time per entry (None when unknown), same order
        show_path: Include the ``~``-abbreviated path column
        worktree_root: When given, include each linked worktree's path relative to it
        now: Reference time for ages
        home: Home directory for path display

    Returns:
        One rich Text per worktree

    Raises:
        ValueError: If entries and commit_times differ in length
    """
    if len(entries) != len(commit_times):
        raise ValueError("entries and commit_times must have the same length")

    rows = []
    for index, (entry, commit_time) in enumerate(zip(entries, commit_times)):
        label, label_style = format_branch_label(entry, is_main=index == 0)
        rel = ""
        if worktree_root is not None and index > 0:
            rel = relative_path(entry.path, worktree_root) or ""
        rows.append({
            "active": entry.is_active,
            "path": display_path(entry.path, home) if show_path else "",
            "hash": entry.hash,
            "rel": rel,
            "label": label,
            "label_style": label_style,
            "age": format_commit_age(commit_time, now),
        })

    path_width = max((cell_len(r["path"]) for r in rows), default=0)
    hash_width = max((cell_len(r["hash"]) for r in rows), default=0)
    rel_width = max((cell_len(r["rel"]) for r in rows), default=0)
    label_width = max((cell_len(r["label"]) for r in rows), default=0)
    show_rel = worktree_root is not None and rel_width > 0

    lines = []
    for row in rows:
        line = Text()
        if row["active"]:
            line.append(SYMBOL_ACTIVE, style=ListingStyle.ACTIVE)
        else:
            line.append(SYMBOL_INACTIVE)
        line.append(" ")

        if show_path:
            line.append(_pad(row["path"], path_width))
            line.append("  ")

        line.append(_pad(row["hash"], hash_width))
        line.append("  ")

        if show_rel:
            line.append(_pad(row["rel"], rel_width))
            line.append("  ")

        line.append(row["label"], style=row["label_style"])
        line.append(" " * max(0, label_width - cell_len(row["label"])))
        line.append("  ")
        line.append(row["age"], style=ListingStyle.SECONDARY)
        lines.append(line)

    return lines


def format_simple_listing(entries: Sequence, cwd: Optional[PathLike] = None) -> list[str]:
    """
    Plain one-per-line listing for pipes: ``@`` for main, else branch or path.

    Every line is a valid target for ``cd`` and ``rm``.
    """
    lines = []
    for index, entry in enumerate(entries):
        if index == 0:
            lines.append(MAIN_WORKTREE_TOKEN)
        elif entry.branch is not None:
            lines.append(entry.branch)
        else:
            lines.append(normalize_absolute_path(entry.path, cwd))
    return lines
