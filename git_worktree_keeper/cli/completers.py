"""Shell completion candidates, wired into argparse through argcomplete."""

from git_worktree_keeper.constants import MAIN_WORKTREE_TOKEN
from git_worktree_keeper.exceptions import WorktreeKeeperError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.services.git.porcelain import parse_simple_worktree_entries
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.utils.layout import relative_path, worktree_root

logger = get_logger(__name__)


def worktree_target_candidates(porcelain: str, prefix: str = "") -> list[str]:
    """``@``, linked worktree branches and their paths relative to the worktree root."""
    entries = parse_simple_worktree_entries(porcelain)
    others = entries[1:]

    candidates = [MAIN_WORKTREE_TOKEN]
    candidates.extend(entry.branch for entry in others if entry.branch)

    root = worktree_root([entry.path for entry in others])
    if root is not None:
        for entry in others:
            rel = relative_path(entry.path, root)
            if rel:
                candidates.append(rel)

    seen = set()
    result = []
    for candidate in candidates:
        if candidate.startswith(prefix) and candidate not in seen:
            seen.add(candidate)
            result.append(candidate)
    return result


def worktree_target_completer(prefix, parsed_args=None, **kwargs):
    """argcomplete completer for ``cd`` and ``rm`` targets."""
    try:
        return worktree_target_candidates(WorktreeService().list_porcelain(), prefix)
    except WorktreeKeeperError as e:
        logger.debug(f"Worktree completion failed: {e}")
        return []


def start_point_completer(prefix, parsed_args=None, **kwargs):
    """argcomplete completer for start points: branches, remote branches and tags."""
    try:
        refs = WorktreeService().list_refs()
    except WorktreeKeeperError as e:
        logger.debug(f"Ref completion failed: {e}")
        return []
    return [ref for ref in refs if ref.startswith(prefix)]
