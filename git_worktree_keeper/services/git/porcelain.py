"""Parser for ``git worktree list --porcelain`` output.

Format::

    worktree /path/to/main
    HEAD <sha>
    branch refs/heads/main

    worktree /path/to/linked
    HEAD <sha>
    detached

Blocks are separated by blank lines and the last one may be unterminated. Git always
lists the main worktree first; every caller relies on entry 0 being the main worktree,
so the entries must never be re-ordered.
"""

from pathlib import Path
from typing import Iterator, Optional

from git_worktree_keeper.constants import BRANCH_REF_PREFIX, SHORT_HASH_LENGTH, UNKNOWN_HASH
from git_worktree_keeper.exceptions import MainWorktreeOrderError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.worktree import SimpleWorktreeEntry, WorktreeEntry
from git_worktree_keeper.utils.paths import PathLike, canonicalize_allow_missing, make_absolute

logger = get_logger(__name__)


def _strip_branch_ref(ref: str) -> str:
    # Remote or malformed refs are passed through verbatim
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    return ref


def _scan_blocks(output: str, with_head: bool = True) -> Iterator[dict]:
    """Yield one dict per ``worktree`` block, with ``path``, ``branch`` and ``head`` keys."""
    block: Optional[dict] = None

    for raw_line in output.splitlines():
        line = raw_line.rstrip("\r")

        if not line.strip():
            # Blank line marks the end of a block
            if block is not None:
                yield block
                block = None
            continue

        if line.startswith("worktree "):
            if block is not None:
                yield block
            block = {"path": line[len("worktree "):], "branch": None, "head": None}
        elif block is None:
            # Attribute line outside any block
            continue
        elif line.startswith("HEAD "):
            if with_head:
                block["head"] = line[len("HEAD "):]
        elif line.startswith("branch "):
            block["branch"] = _strip_branch_ref(line[len("branch "):])
        elif line == "detached":
            block["branch"] = None

    # Input not terminated by a blank line
    if block is not None:
        yield block


def parse_worktree_entries(output: str, active_path: Optional[PathLike] = None,
                           cwd: Optional[PathLike] = None) -> list[WorktreeEntry]:
    """Parse porcelain output into entries, in git's order.

    Args:
        output: Raw ``git worktree list --porcelain`` text
        active_path: Directory to mark as active (usually the current worktree root)
        cwd: Base for relative paths; the live working directory when not given

    Returns:
        List of WorktreeEntry; empty for empty output
    """
    canonical_active = None
    if active_path is not None:
        canonical_active = canonicalize_allow_missing(active_path, cwd)

    entries = []
    for block in _scan_blocks(output):
        head = block["head"]
        short_hash = head[:SHORT_HASH_LENGTH] if head else UNKNOWN_HASH

        is_active = False
        if active_path is not None:
            is_active = _matches_active(block["path"], active_path, canonical_active, cwd)

        entries.append(WorktreeEntry(
            path=block["path"],
            branch=block["branch"],
            hash=short_hash,
            is_active=is_active,
        ))

    logger.debug(f"Parsed {len(entries)} worktrees")
    return entries


def _matches_active(path: str, active_path: PathLike, canonical_active: Path,
                    cwd: Optional[PathLike]) -> bool:
    """Compare canonical paths; a worktree missing on disk falls back to plain equality."""
    try:
        return make_absolute(path, cwd).resolve(strict=True) == canonical_active
    except (OSError, RuntimeError) as e:
        logger.debug(f"Could not canonicalize {path}: {e}")
        return Path(path) in (canonical_active, Path(active_path))


def parse_simple_worktree_entries(output: str) -> list[SimpleWorktreeEntry]:
    """Parse porcelain output into path/branch pairs, skipping hashes."""
    return [
        SimpleWorktreeEntry(path=block["path"], branch=block["branch"])
        for block in _scan_blocks(output, with_head=False)
    ]


def assert_main_first(entries: list) -> None:
    """Fail loudly if entry 0 is provably not the main worktree.

    Only the main worktree has a ``.git`` directory; linked worktrees have a ``.git``
    file. Entries whose paths do not exist prove nothing either way.

    Raises:
        MainWorktreeOrderError: If a later entry is the main worktree and entry 0 is not
    """
    if len(entries) < 2:
        return

    first = entries[0]
    if _is_provably_main(first.path):
        return

    for entry in entries[1:]:
        if _is_provably_main(entry.path):
            raise MainWorktreeOrderError(first.path, entry.path)


def _is_provably_main(path: str) -> bool:
    try:
        return (Path(path) / ".git").is_dir()
    except OSError:
        return False


def split_main(entries: list) -> tuple:
    """Split parsed entries into ``(main, others)``. ``main`` is None for empty input."""
    if not entries:
        return None, []
    return entries[0], list(entries[1:])
