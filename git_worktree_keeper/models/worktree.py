"""Worktree data models.

All models are immutable snapshots of a single ``git worktree list --porcelain``
invocation. Nothing here is cached across commands.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from git_worktree_keeper.constants import UNKNOWN_HASH


@dataclass(frozen=True)
class SimpleWorktreeEntry:
    """Path and branch of a worktree, without hash or active-state lookups."""

    path: str
    branch: Optional[str] = None  # None means detached HEAD

    @property
    def is_detached(self) -> bool:
        return self.branch is None


@dataclass(frozen=True)
class WorktreeEntry:
    """One block of porcelain output.

    ``path`` is the path exactly as git reported it (not canonicalized).
    """

    path: str
    branch: Optional[str] = None  # None means detached HEAD
    hash: str = UNKNOWN_HASH
    is_active: bool = False

    @property
    def is_detached(self) -> bool:
        return self.branch is None

    def __str__(self) -> str:
        """String representation of worktree."""
        branch = self.branch if self.branch is not None else "(detached)"
        marker = " *" if self.is_active else ""
        return f"{branch} @ {self.path} [{self.hash}]{marker}"


@dataclass(frozen=True)
class ResolvedTarget:
    """A user token resolved to a specific non-main worktree."""

    canonical_path: Path
    worktree_path: str  # as reported by git (or by --show-toplevel for ".")
    branch: Optional[str]
    is_current: bool = False


@dataclass
class RemovalPlan:
    """Ordered removals produced from several targets resolved against one snapshot."""

    non_current: list[ResolvedTarget] = field(default_factory=list)
    current: Optional[ResolvedTarget] = None
    warnings: list[str] = field(default_factory=list)

    def ordered(self) -> list[ResolvedTarget]:
        """Removals in execution order: non-current targets first, then the current one."""
        if self.current is None:
            return list(self.non_current)
        return [*self.non_current, self.current]

    def __len__(self) -> int:
        return len(self.non_current) + (1 if self.current is not None else 0)
