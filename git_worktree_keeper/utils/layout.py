"""Worktree directory layout: the worktree root and paths relative to it.

The worktree root is derived on every call from the current set of non-main
worktree paths; it is never stored. Having no root is a normal state.
"""

import os
from pathlib import Path, PurePath
from typing import Iterable, Optional

from git_worktree_keeper.constants import BRANCH_PLACEHOLDER, REPO_PLACEHOLDER
from git_worktree_keeper.utils.paths import PathLike, normalize_lexically


def common_root(paths: Iterable[PathLike]) -> Optional[Path]:
    """Longest common ancestor directory of the given absolute paths.

    A single path yields its parent directory. Paths that share nothing beyond the
    filesystem anchor (or nothing at all) yield ``None``.
    """
    normalized = [normalize_lexically(p) for p in paths]
    if not normalized:
        return None

    if len(normalized) == 1:
        only = normalized[0]
        parent = only.parent
        if parent == only:
            return None
        return parent

    prefix = list(normalized[0].parts)
    for path in normalized[1:]:
        parts = path.parts
        shared = 0
        limit = min(len(prefix), len(parts))
        while shared < limit and prefix[shared] == parts[shared]:
            shared += 1
        prefix = prefix[:shared]
        if not prefix:
            return None

    root = Path(*prefix)
    if root == Path(root.anchor):
        return None
    return root


def relative_path(worktree_path: PathLike, root: PathLike) -> Optional[str]:
    """Offset of a worktree from the root, or ``None`` if it is not under the root."""
    path = normalize_lexically(worktree_path)
    base = normalize_lexically(root)
    try:
        rel = path.relative_to(base)
    except ValueError:
        return None
    return os.sep.join(rel.parts)


def branch_depth(template: str) -> Optional[int]:
    """Number of plain path segments that precede the ``{branch}`` segment.

    ``"../{repo}-worktrees/{branch}"`` gives 1. Returns ``None`` when the template has
    no ``{branch}`` placeholder.
    """
    template_path = PurePath(template)
    depth = 0
    for segment in template_path.parts:
        if BRANCH_PLACEHOLDER in segment:
            return depth
        if segment in (".", "..") or segment == template_path.anchor:
            continue
        depth += 1
    return None


def expand_dir_template(template: str, repo_root: PathLike, branch: str) -> Path:
    """Worktree directory for ``branch`` from a template such as ``../{repo}-worktrees/{branch}``.

    Relative templates are resolved from the main repository root.
    """
    repo_root = Path(repo_root)
    expanded = template.replace(REPO_PLACEHOLDER, repo_root.name).replace(BRANCH_PLACEHOLDER, branch)
    expanded = os.path.expanduser(expanded)
    path = Path(expanded)
    if path.is_absolute():
        return path
    return repo_root / path


def template_worktree_root(template: str, repo_root: PathLike) -> Optional[Path]:
    """Directory the template places branch directories under, or ``None``.

    Only templates whose ``{branch}`` placeholder fills a whole path segment have such a
    directory. It is the fixed-depth counterpart of :func:`common_root`.
    """
    depth = branch_depth(template)
    if depth is None:
        return None

    parts = PurePath(template).parts
    head: list[str] = []
    for segment in parts:
        if BRANCH_PLACEHOLDER in segment:
            if segment != BRANCH_PLACEHOLDER:
                return None
            break
        head.append(segment)

    prefix = Path(*head) if head else Path()
    expanded = expand_dir_template(str(prefix), repo_root, "")
    return normalize_lexically(expanded)


def worktree_root(
    worktree_paths: list[PathLike],
    template: Optional[str] = None,
    repo_root: Optional[PathLike] = None,
) -> Optional[Path]:
    """Root directory used for relative worktree names.

    With two or more worktrees the paths are intersected, which is correct however
    deeply branch names nest. With exactly one, the intersection degenerates to the
    parent directory, so the template's root is preferred when the worktree lives
    under it.
    """
    if len(worktree_paths) == 1 and template and repo_root is not None:
        root = template_worktree_root(template, repo_root)
        if root is not None and relative_path(worktree_paths[0], root):
            return root
    return common_root(worktree_paths)
