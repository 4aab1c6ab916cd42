"""Path normalization helpers.

Worktree paths are compared in canonical form, but a worktree that is about to be
removed (or was deleted out-of-band) may no longer exist on disk, and a worktree that
is about to be created does not exist yet. Everything here therefore tolerates missing
paths. ``..`` is always resolved lexically, never through symlinks.

The current working directory and the home directory are parameters so the functions
stay pure under test; ``None`` means "read the live value".
"""

import os
from pathlib import Path
from typing import Optional, Union

from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


def _live_cwd() -> Optional[Path]:
    try:
        return Path.cwd()
    except OSError:
        # The working directory itself may have been removed
        return None


def _live_home() -> Optional[Path]:
    try:
        return Path.home()
    except RuntimeError:
        return None


def normalize_lexically(path: PathLike) -> Path:
    """Resolve ``.`` and ``..`` components without touching the filesystem.

    A ``..`` that would climb above the start of the path is dropped.
    """
    path = Path(path)
    anchor = path.anchor
    parts: list[str] = []

    for part in path.parts[1:] if anchor else path.parts:
        if part == ".":
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)

    if anchor:
        return Path(anchor, *parts)
    return Path(*parts)


def make_absolute(path: PathLike, cwd: Optional[PathLike] = None) -> Path:
    """Join a relative path onto the working directory (live cwd when not given)."""
    path = Path(path)
    if path.is_absolute():
        return path

    base = Path(cwd) if cwd is not None else _live_cwd()
    if base is None:
        return path
    return base / path


def canonicalize_allow_missing(path: PathLike, cwd: Optional[PathLike] = None) -> Path:
    """Canonicalize a path even if it (or part of it) does not exist.

    Existing paths are resolved through the filesystem (symlinks included). For a
    missing path, the deepest existing ancestor is canonicalized and the missing tail
    is re-appended in order. If nothing on the way up exists, the lexically normalized
    absolute path is returned unchanged.
    """
    normalized = normalize_lexically(make_absolute(path, cwd))

    try:
        return normalized.resolve(strict=True)
    except (OSError, RuntimeError):
        pass

    tail: list[str] = []
    current = normalized
    while True:
        if current.name:
            tail.append(current.name)

        parent = current.parent
        if parent == current:
            # Reached the filesystem root without finding an existing ancestor
            return normalized

        if parent.exists():
            try:
                canonical_parent = parent.resolve(strict=True)
            except (OSError, RuntimeError) as e:
                logger.debug(f"Could not canonicalize {parent}: {e}")
            else:
                return canonical_parent.joinpath(*reversed(tail))

        current = parent


def display_path(path: PathLike, home: Optional[PathLike] = None) -> str:
    """Render a path for humans, using ``~`` for the home directory.

    Presentation only; never compare the result.
    """
    normalized = normalize_lexically(path)
    home_dir = Path(home) if home is not None else _live_home()

    if home_dir is not None:
        home_dir = normalize_lexically(home_dir)
        if normalized == home_dir:
            return "~"
        if normalized.is_relative_to(home_dir):
            return f"~/{normalized.relative_to(home_dir)}"

    return str(normalized)


def normalize_absolute_path(path: PathLike, cwd: Optional[PathLike] = None) -> str:
    """Absolute, lexically normalized path string for programmatic consumers (shell ``cd``)."""
    return str(normalize_lexically(make_absolute(path, cwd)))
