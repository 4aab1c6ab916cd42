"""Core functionality for git-worktree-keeper

Each command reads a fresh ``git worktree list --porcelain`` snapshot and works from it.
Status lines go to stderr; stdout carries only what the shell wrapper or a pipe
consumes (a path to ``cd`` into, or a listing).
"""

import os
import sys
from pathlib import Path
from typing import IO, Mapping, Optional, Sequence

from rich.console import Console

from git_worktree_keeper.config import (
    Config,
    TemplateContext,
    generate_global_template,
    generate_local_template,
    global_config_path,
    local_config_path,
)
from git_worktree_keeper.core.resolver import TargetResolver
from git_worktree_keeper.exceptions import (
    ConfigError,
    ExternalCommandError,
    NotAGitRepositoryError,
    ToolUnavailableError,
    WorktreeKeeperError,
)
from git_worktree_keeper.formatters.messages import info, success, warn
from git_worktree_keeper.formatters.table import format_simple_listing, format_worktree_table
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.worktree import ResolvedTarget
from git_worktree_keeper.services.fzf_service import FzfService, build_worktree_items
from git_worktree_keeper.services.git.porcelain import (
    parse_simple_worktree_entries,
    parse_worktree_entries,
)
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.github_service import (
    GitHubService,
    build_issue_branch,
    parse_github_ref,
    pr_fallback_branch,
)
from git_worktree_keeper.services.hook_service import HookService
from git_worktree_keeper.services.tmux_service import TmuxService, should_use_tmux
from git_worktree_keeper.services.zoxide_service import ZoxideService
from git_worktree_keeper.utils.console import ColorMode, color_enabled, make_console
from git_worktree_keeper.utils.layout import expand_dir_template, worktree_root
from git_worktree_keeper.utils.paths import display_path, normalize_absolute_path, normalize_lexically

logger = get_logger(__name__)


class WorktreeKeeper:
    """Implements the worktree commands."""

    def __init__(
        self,
        repo_path: str = ".",
        color_mode: ColorMode = ColorMode.AUTO,
        stdout: Optional[IO[str]] = None,
        console: Optional[Console] = None,
        config: Optional[Config] = None,
        environ: Optional[Mapping[str, str]] = None,
        worktree_service: Optional[WorktreeService] = None,
        github_service: Optional[GitHubService] = None,
        tmux_service: Optional[TmuxService] = None,
        zoxide_service: Optional[ZoxideService] = None,
        fzf_service: Optional[FzfService] = None,
    ):
        """Initialize WorktreeKeeper.

        Args:
            repo_path: Directory to run in (any directory inside a worktree)
            color_mode: Colour mode for both consoles
            stdout: Stream for machine-readable output
            console: Console for status output (stderr by default)
            config: Configuration; loaded from the main repository root when None
            environ: Environment, for config locations and tmux detection
        """
        self.repo_path = repo_path
        self.cwd = os.path.abspath(repo_path)
        self.color_mode = color_mode
        self.stdout = stdout if stdout is not None else sys.stdout
        self.console = console if console is not None else make_console(color_mode, stderr=True)
        self.environ = environ if environ is not None else os.environ
        self._config = config

        self.git = worktree_service or WorktreeService(repo_path)
        self.github = github_service or GitHubService(repo_path)
        self.tmux = tmux_service or TmuxService(self.environ)
        self.zoxide = zoxide_service or ZoxideService()
        self._fzf = fzf_service

    # ----- helpers -----

    def config_for(self, repo_root: Optional[Path]) -> Config:
        if self._config is None:
            self._config = Config.load(repo_root, self.environ)
        return self._config

    def _fzf_service(self, config: Config) -> FzfService:
        if self._fzf is None:
            self._fzf = FzfService(config.integrations.fzf.options)
        return self._fzf

    def _emit(self, line: str) -> None:
        """Write one line of machine-readable output."""
        print(line, file=self.stdout)

    def _hook_service(self) -> HookService:
        return HookService(self.console, show_spinner=color_enabled(self.console),
                           home=self.environ.get("HOME"))

    def _home(self) -> Optional[str]:
        return self.environ.get("HOME")

    def _resolver(self, porcelain: str) -> TargetResolver:
        return TargetResolver(porcelain, self.git.show_toplevel, cwd=self.cwd, home=self._home())

    def _pick(self, config: Config, porcelain: str, multi: bool, skip_main: bool = False) -> list[str]:
        """Let the user choose worktrees with fzf.

        Raises:
            WorktreeKeeperError: If fzf is disabled or there is nothing to pick
            ToolUnavailableError: If fzf is not installed
        """
        if not config.integrations.fzf.enabled:
            raise WorktreeKeeperError("Provide a worktree name or enable fzf in config")

        fzf = self._fzf_service(config)
        if not fzf.is_available():
            raise ToolUnavailableError("fzf", "Install it or provide a worktree name")

        items = build_worktree_items(porcelain)
        if skip_main:
            items = items[1:]
        if not items:
            raise WorktreeKeeperError("No worktrees found")

        return fzf.pick(items, multi=multi)

    # ----- add / create -----

    def _resolve_github_ref(self, number: int, start_point: Optional[str],
                            repo_root: Path) -> tuple[str, Optional[str]]:
        """Branch and start point for ``#N``: an issue branch, or the PR's head branch."""
        if not self.github.is_available():
            raise ToolUnavailableError(
                "GitHub CLI (gh)",
                f"Install gh from https://cli.github.com/ or use a regular branch name instead of #{number}",
            )

        self.console.print(info(f"Fetching GitHub #{number} info…"))
        try:
            issue = self.github.issue_info(number)
        except ExternalCommandError as e:
            logger.debug(f"#{number} is not an issue: {e}")
            issue = None

        if issue is not None and not issue.is_pull_request:
            self.console.print(success(f"Creating worktree for issue #{issue.number}: {issue.title}"))
            return build_issue_branch(number), start_point

        try:
            pr = self.github.pr_info(number)
        except ExternalCommandError as e:
            kind = "pull request" if issue is not None else "issue or pull request"
            raise WorktreeKeeperError(
                f"#{number} is not a valid {kind}. Please check the number and try again."
            ) from e

        self.console.print(success(f"Creating worktree for PR #{pr.number}: {pr.title}"))
        root = str(repo_root)

        if pr.is_cross_repository:
            self.console.print(info("Fetching PR from fork…"))
            self.git.fetch("origin", f"refs/pull/{number}/head", cwd=root)
            if self.git.branch_exists(pr.head_ref_name):
                branch = pr_fallback_branch(number, pr.head_ref_name)
                self.console.print(warn(
                    f"Local branch '{pr.head_ref_name}' already exists. Using '{branch}' instead."))
                return branch, "FETCH_HEAD"
            return pr.head_ref_name, "FETCH_HEAD"

        self.console.print(info(f"Fetching branch: {pr.head_ref_name}"))
        self.git.fetch("origin", pr.head_ref_name, cwd=root)
        if self.git.branch_exists(pr.head_ref_name):
            return pr.head_ref_name, None
        return pr.head_ref_name, f"origin/{pr.head_ref_name}"

    def _create_worktree(self, config: Config, repo_root: Path, branch: str,
                         start_point: Optional[str]) -> Path:
        """Create the worktree, then run create hooks and register it with zoxide."""
        path = normalize_lexically(expand_dir_template(config.worktree.dir, repo_root, branch))
        logger.info(f"Creating worktree for {branch} at {path}")
        self.git.add_worktree(str(path), branch, start_point, cwd=str(repo_root))

        if not config.hooks.create.is_empty():
            self.console.print(info("Executing create hooks…"))
            self._hook_service().execute(config.hooks.create, path, repo_root)

        try:
            self.zoxide.add_if_enabled(path, config.integrations.zoxide.enabled)
        except WorktreeKeeperError as e:
            self.console.print(warn(f"zoxide add failed: {e}"))

        return path

    def add(self, branch: str, start_point: Optional[str] = None,
            tmux: bool = False, no_tmux: bool = False) -> Path:
        """Create a worktree and print its path for the shell wrapper.

        ``#N`` creates the worktree from GitHub issue or PR N when the gh integration is
        enabled. With tmux the worktree opens in a new window or pane instead.
        """
        repo_root = self.git.main_repo_root()
        config = self.config_for(repo_root)

        number = parse_github_ref(branch)
        if number is not None:
            if config.integrations.gh.enabled:
                branch, start_point = self._resolve_github_ref(number, start_point, repo_root)
            else:
                self.console.print(warn(
                    f"GitHub integration is disabled. Treating '#{number}' as a literal branch name. "
                    "Set enabled = true in [integration.gh] in the global config to enable it."))

        use_tmux = should_use_tmux(config.integrations.tmux.behavior, tmux, no_tmux)
        if use_tmux:
            self.tmux.detect()

        path = self._create_worktree(config, repo_root, branch, start_point)

        if use_tmux:
            try:
                self.tmux.open(path, branch, config.integrations.tmux.create)
            except WorktreeKeeperError as e:
                self.console.print(warn(f"tmux creation failed: {e}"))
            # No path on stdout: the shell must stay where it is
        else:
            self._emit(normalize_absolute_path(path))

        return path

    def create(self, branch: str, start_point: Optional[str] = None) -> Path:
        """Create a worktree without changing directory into it."""
        repo_root = self.git.main_repo_root()
        config = self.config_for(repo_root)
        path = self._create_worktree(config, repo_root, branch, start_point)
        self.console.print(success(f"Created worktree at: {display_path(path, self._home())}"))
        return path

    # ----- ls -----

    def list_worktrees(self, show_path: bool = False) -> None:
        """List worktrees.

        On a terminal the table goes to stderr. In a pipe, ``--show-path`` sends the
        table to stdout; otherwise one target per line is written.
        """
        porcelain = self.git.list_porcelain()
        interactive = self.stdout.isatty()

        if not interactive and not show_path:
            for line in format_simple_listing(parse_simple_worktree_entries(porcelain), self.cwd):
                self._emit(line)
            return

        try:
            active = self.git.show_toplevel()
        except WorktreeKeeperError:
            active = None
        entries = parse_worktree_entries(porcelain, active, cwd=self.cwd)
        commit_times = [self.git.last_commit_time(entry.path) for entry in entries]

        template, repo_root = None, None
        try:
            repo_root = self.git.main_repo_root()
            template = self.config_for(repo_root).worktree.dir
        except (WorktreeKeeperError, ConfigError) as e:
            logger.debug(f"No directory template for listing: {e}")
        root = worktree_root([entry.path for entry in entries[1:]], template, repo_root)

        lines = format_worktree_table(entries, commit_times, show_path=show_path,
                                      worktree_root=root, home=self._home())

        target = self.console if interactive else make_console(self.color_mode, stderr=False,
                                                               file=self.stdout)
        for line in lines:
            target.print(line, soft_wrap=True)

    # ----- cd -----

    def cd(self, name: Optional[str] = None) -> Optional[str]:
        """Print the path of a worktree for the shell wrapper to ``cd`` into.

        Returns:
            The printed path, or None when the picker was cancelled
        """
        porcelain = self.git.list_porcelain()

        if name is None:
            repo_root = self.git.main_repo_root()
            selected = self._pick(self.config_for(repo_root), porcelain, multi=False)
            if not selected:
                return None
            path = normalize_absolute_path(selected[0], self.cwd)
            self._emit(path)
            return path

        resolver = self._resolver(porcelain)
        root = worktree_root([entry.path for entry in resolver.others])
        entry = resolver.locate(name, root)
        path = normalize_absolute_path(entry.path, self.cwd)
        self._emit(path)
        return path

    # ----- rm -----

    def _remove_one(self, target: ResolvedTarget, config: Config, repo_root: Path) -> None:
        path = Path(target.worktree_path)
        if path.exists() and not config.hooks.delete.is_empty():
            self.console.print(info("Executing delete hooks…"))
            self._hook_service().execute(config.hooks.delete, path, repo_root)

        self.git.remove_worktree(target.worktree_path, cwd=str(repo_root))
        self.console.print(success(f"Removed worktree: {display_path(path, self._home())}"))

        if target.branch and self.git.delete_branch(target.branch, cwd=str(repo_root)):
            self.console.print(success(f"Deleted branch: {target.branch}"))

    def remove(self, targets: Sequence[str] = ()) -> int:
        """Remove worktrees and their branches.

        All targets are resolved against one snapshot before anything is removed; one
        bad target aborts the whole command. The current worktree is removed last and
        the main worktree path is printed so the shell can leave it.

        Returns:
            Number of worktrees removed
        """
        # Resolve the main root first; the current directory may be about to disappear
        repo_root = self.git.main_repo_root()
        config = self.config_for(repo_root)
        porcelain = self.git.list_porcelain()

        tokens = list(targets)
        if not tokens:
            tokens = self._pick(config, porcelain, multi=True, skip_main=True)
            if not tokens:
                return 0

        resolver = self._resolver(porcelain)
        plan = resolver.plan_removals(tokens)
        for warning in plan.warnings:
            self.console.print(warn(warning))

        for target in plan.ordered():
            self._remove_one(target, config, repo_root)

        if plan.current is not None and resolver.main is not None:
            self._emit(normalize_absolute_path(resolver.main.path))

        return len(plan)

    # ----- init -----

    def _write_config(self, path: Path, content: str, force: bool, label: str) -> bool:
        if path.exists() and not force:
            self.console.print(warn(f"{label} config already exists: {display_path(path, self._home())}"))
            self.console.print("Use --force to overwrite", markup=False)
            return False

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        except OSError as e:
            raise ConfigError(str(path), f"cannot write file: {e}") from e

        self.console.print(success(f"Created {label} config: {display_path(path, self._home())}"))
        return True

    def detect_tools(self) -> TemplateContext:
        return TemplateContext(
            gh_available=self.github.is_available(),
            zoxide_available=self.zoxide.is_available(),
            fzf_available=FzfService.is_available(),
            tmux_available=self.tmux.is_available(),
        )

    def init(self, global_only: bool = False, local_only: bool = False,
             force: bool = False) -> list[Path]:
        """Write commented config templates. Neither flag means both files.

        Returns:
            Paths that were written
        """
        written = []

        if global_only or not local_only:
            path = global_config_path(self.environ)
            if path is None:
                raise ConfigError("(global)", "Could not determine the global config path; set HOME or XDG_CONFIG_HOME")
            if self._write_config(path, generate_global_template(self.detect_tools()), force, "Global"):
                written.append(path)

        if local_only or not global_only:
            try:
                repo_root = self.git.main_repo_root()
            except NotAGitRepositoryError:
                repo_root = Path(self.cwd)
            path = local_config_path(repo_root)
            if self._write_config(path, generate_local_template(), force, "Local"):
                written.append(path)

        return written
