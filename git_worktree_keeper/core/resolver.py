"""Resolve user-supplied worktree targets against a porcelain snapshot.

A target is a branch name, a path, ``.`` (the worktree containing the working
directory) or ``@`` (the main worktree). The main worktree can never be removed, so
``resolve`` refuses every spelling of it. Resolution never re-reads git: every token
of one command is resolved against the same snapshot.
"""

from pathlib import Path
from typing import Callable, Iterable, Optional

from git_worktree_keeper.constants import CURRENT_WORKTREE_TOKEN, MAIN_WORKTREE_TOKEN
from git_worktree_keeper.exceptions import MainWorktreeTargetedError, WorktreeNotFoundError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.worktree import RemovalPlan, ResolvedTarget, WorktreeEntry
from git_worktree_keeper.services.git.porcelain import assert_main_first, parse_worktree_entries
from git_worktree_keeper.utils.layout import relative_path
from git_worktree_keeper.utils.paths import PathLike, canonicalize_allow_missing, display_path

logger = get_logger(__name__)


class TargetResolver:
    """Resolves targets against one parsed ``git worktree list --porcelain`` snapshot."""

    def __init__(self, porcelain: str, current_toplevel: Callable[[], str],
                 cwd: Optional[PathLike] = None, home: Optional[PathLike] = None):
        """Initialize the resolver.

        Args:
            porcelain: Raw porcelain output, read once by the caller
            current_toplevel: Returns ``git rev-parse --show-toplevel`` for the working
                directory. Only called when a target is ``.``.
            cwd: Base for relative paths; the live working directory when not given
            home: Home directory for warning messages
        """
        self.entries: list[WorktreeEntry] = parse_worktree_entries(porcelain)
        assert_main_first(self.entries)
        self._current_toplevel = current_toplevel
        self.cwd = cwd
        self.home = home
        self._canonical: dict[str, Path] = {}

    @property
    def main(self) -> Optional[WorktreeEntry]:
        return self.entries[0] if self.entries else None

    @property
    def others(self) -> list[WorktreeEntry]:
        return self.entries[1:]

    def _canonicalize(self, path: PathLike) -> Path:
        key = str(path)
        if key not in self._canonical:
            self._canonical[key] = canonicalize_allow_missing(path, self.cwd)
        return self._canonical[key]

    def _main_canonical(self) -> Optional[Path]:
        if self.main is None:
            return None
        return self._canonicalize(self.main.path)

    def _find_by_canonical_path(self, canonical: Path) -> Optional[WorktreeEntry]:
        for entry in self.others:
            if self._canonicalize(entry.path) == canonical:
                return entry
        return None

    def resolve(self, token: str) -> ResolvedTarget:
        """Resolve a single target to a non-main worktree.

        Order: ``.``, then ``@``, then an exact branch name of a linked worktree, then
        a path. A branch name wins over a path that happens to be spelled the same.

        Raises:
            MainWorktreeTargetedError: If the target denotes the main worktree
            WorktreeNotFoundError: If nothing matches
        """
        if token == CURRENT_WORKTREE_TOKEN:
            return self._resolve_current()

        if token == MAIN_WORKTREE_TOKEN:
            raise MainWorktreeTargetedError(token)

        for entry in self.others:
            if entry.branch == token:
                logger.debug(f"Resolved '{token}' by branch to {entry.path}")
                return ResolvedTarget(
                    canonical_path=self._canonicalize(entry.path),
                    worktree_path=entry.path,
                    branch=entry.branch,
                )

        if self.main is not None and self.main.branch == token:
            raise MainWorktreeTargetedError(token)

        canonical = canonicalize_allow_missing(token, self.cwd)
        if canonical == self._main_canonical():
            raise MainWorktreeTargetedError(token)

        entry = self._find_by_canonical_path(canonical)
        if entry is None:
            raise WorktreeNotFoundError(token)

        logger.debug(f"Resolved '{token}' by path to {entry.path}")
        return ResolvedTarget(
            canonical_path=canonical,
            worktree_path=entry.path,
            branch=entry.branch,
        )

    def _resolve_current(self) -> ResolvedTarget:
        # --show-toplevel rather than the raw cwd, so subdirectories map to their worktree
        toplevel = self._current_toplevel()
        canonical = canonicalize_allow_missing(toplevel, self.cwd)
        if canonical == self._main_canonical():
            raise MainWorktreeTargetedError(CURRENT_WORKTREE_TOKEN)

        entry = self._find_by_canonical_path(canonical)
        branch = entry.branch if entry is not None else None
        logger.debug(f"Resolved '.' to {toplevel} (branch: {branch})")
        return ResolvedTarget(
            canonical_path=canonical,
            worktree_path=toplevel,
            branch=branch,
            is_current=True,
        )

    def plan_removals(self, tokens: Iterable[str]) -> RemovalPlan:
        """Resolve several targets into one ordered, de-duplicated removal plan.

        A repeated target is dropped with a warning. If ``.`` names a worktree that is
        already queued, the queued entry is promoted to the current-worktree slot, which
        runs last. Any resolution error propagates before anything is planned.
        """
        plan = RemovalPlan()
        seen: set[Path] = set()

        for token in tokens:
            target = self.resolve(token)
            shown = display_path(target.canonical_path, self.home)

            if target.is_current:
                if target.canonical_path in seen:
                    plan.non_current = [
                        t for t in plan.non_current if t.canonical_path != target.canonical_path
                    ]
                    plan.warnings.append(f"Duplicate target {shown} (treating as current worktree)")
                else:
                    seen.add(target.canonical_path)
                plan.current = target
                continue

            if target.canonical_path in seen:
                plan.warnings.append(f"Duplicate target {shown} (skipping)")
                continue

            seen.add(target.canonical_path)
            plan.non_current.append(target)

        for warning in plan.warnings:
            logger.debug(warning)
        return plan

    def locate(self, token: str, worktree_root: Optional[PathLike] = None) -> WorktreeEntry:
        """Find a worktree to navigate to. Unlike ``resolve``, the main worktree is allowed.

        Order: ``@``, then an exact branch name, then a path relative to the worktree
        root, then a filesystem path.

        Raises:
            WorktreeNotFoundError: If nothing matches
        """
        if self.main is None:
            raise WorktreeNotFoundError(token)

        if token == MAIN_WORKTREE_TOKEN:
            return self.main

        for entry in self.entries:
            if entry.branch == token:
                return entry

        if worktree_root is not None:
            for entry in self.others:
                if relative_path(entry.path, worktree_root) == token:
                    return entry

        canonical = canonicalize_allow_missing(token, self.cwd)
        for entry in self.entries:
            if self._canonicalize(entry.path) == canonical:
                return entry

        raise WorktreeNotFoundError(token)


def resolve_target(token: str, porcelain: str, current_toplevel: Callable[[], str],
                   cwd: Optional[PathLike] = None) -> ResolvedTarget:
    """Resolve one target against porcelain output. See :meth:`TargetResolver.resolve`."""
    return TargetResolver(porcelain, current_toplevel, cwd=cwd).resolve(token)


def plan_removals(tokens: Iterable[str], porcelain: str, current_toplevel: Callable[[], str],
                  cwd: Optional[PathLike] = None,
                  home: Optional[PathLike] = None) -> RemovalPlan:
    """Resolve several targets against one snapshot. See :meth:`TargetResolver.plan_removals`."""
    return TargetResolver(porcelain, current_toplevel, cwd=cwd, home=home).plan_removals(tokens)
