"""Tests for the worktree commands against real repositories"""
import io
from pathlib import Path
from unittest.mock import Mock

import pytest

from git_worktree_keeper.config import Config, HookActions, Hooks
from git_worktree_keeper.core.worktree_keeper import WorktreeKeeper
from git_worktree_keeper.exceptions import (
    ExternalCommandError,
    HookError,
    MainWorktreeTargetedError,
    ToolUnavailableError,
    WorktreeKeeperError,
    WorktreeNotFoundError,
)
from git_worktree_keeper.services.fzf_service import FzfService
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.github_service import GitHubService, IssueInfo, PrInfo
from git_worktree_keeper.services.tmux_service import TmuxService
from git_worktree_keeper.services.zoxide_service import ZoxideService
from git_worktree_keeper.utils.console import ColorMode


class TTYStringIO(io.StringIO):
    """stdout that claims to be a terminal."""

    def isatty(self):
        return True


@pytest.fixture
def make_keeper(isolated_env, quiet_console):
    """Build a keeper with captured output and no real zoxide or tmux."""
    def _make(repo_path, config=None, stdout=None, **services):
        services.setdefault("zoxide_service", Mock(spec=ZoxideService))
        services.setdefault("tmux_service", Mock(spec=TmuxService))
        return WorktreeKeeper(
            str(repo_path),
            color_mode=ColorMode.NEVER,
            stdout=stdout if stdout is not None else io.StringIO(),
            console=quiet_console,
            config=config,
            environ=isolated_env,
            **services,
        )
    return _make


def main_dir(repo):
    return Path(repo.working_dir)


def worktrees_dir(repo):
    return main_dir(repo).parent / "test_repo-worktrees"


def branches(repo):
    return [head.name for head in repo.heads]


class TestAdd:
    """Test creating worktrees with add."""

    def test_add_new_branch(self, git_repo, make_keeper):
        """Test that add creates the branch and prints the path."""
        keeper = make_keeper(main_dir(git_repo))
        path = keeper.add("new-feat")

        expected = worktrees_dir(git_repo) / "new-feat"
        assert path == expected
        assert (expected / "README.md").exists()
        assert keeper.stdout.getvalue() == f"{expected}\n"
        assert "new-feat" in branches(git_repo)

    def test_add_existing_branch(self, git_repo, make_keeper):
        """Test that an existing branch is checked out instead of created."""
        git_repo.git.branch("existing")
        make_keeper(main_dir(git_repo)).add("existing")
        porcelain = git_repo.git.worktree("list", "--porcelain")
        assert "branch refs/heads/existing" in porcelain

    def test_add_with_start_point(self, git_repo, make_keeper):
        (main_dir(git_repo) / "later.txt").write_text("x")
        git_repo.index.add(["later.txt"])
        git_repo.index.commit("Later commit")

        make_keeper(main_dir(git_repo)).add("from-first", "HEAD~1")
        assert not (worktrees_dir(git_repo) / "from-first" / "later.txt").exists()

    def test_add_nested_branch(self, git_repo, make_keeper):
        path = make_keeper(main_dir(git_repo)).add("docs/tweak")
        assert path == worktrees_dir(git_repo) / "docs" / "tweak"

    def test_add_runs_create_hooks(self, git_repo, make_keeper, quiet_console):
        (main_dir(git_repo) / ".env").write_text("SECRET=1\n")
        config = Config(hooks=Hooks(create=HookActions(run=["touch created.txt"], copy=[".env"])))

        path = make_keeper(main_dir(git_repo), config=config).add("hooked")
        assert (path / "created.txt").exists()
        assert (path / ".env").read_text() == "SECRET=1\n"
        assert "Executing create hooks" in quiet_console.file.getvalue()

    def test_add_failing_hook(self, git_repo, make_keeper):
        config = Config(hooks=Hooks(create=HookActions(run=["exit 1"])))
        with pytest.raises(HookError):
            make_keeper(main_dir(git_repo), config=config).add("broken")

    def test_add_registers_with_zoxide(self, git_repo, make_keeper):
        zoxide = Mock(spec=ZoxideService)
        path = make_keeper(main_dir(git_repo), zoxide_service=zoxide).add("z")
        zoxide.add_if_enabled.assert_called_once_with(path, True)

    def test_zoxide_failure_only_warns(self, git_repo, make_keeper, quiet_console):
        zoxide = Mock(spec=ZoxideService)
        zoxide.add_if_enabled.side_effect = ExternalCommandError("zoxide add", 1, "db locked")
        make_keeper(main_dir(git_repo), zoxide_service=zoxide).add("z")
        assert "zoxide add failed" in quiet_console.file.getvalue()

    def test_add_duplicate_fails(self, git_repo_with_worktrees, make_keeper):
        with pytest.raises(WorktreeKeeperError):
            make_keeper(main_dir(git_repo_with_worktrees)).add("feature")

    def test_local_config_read_from_main_root(self, git_repo_with_worktrees, make_keeper):
        """Test that .gwk.toml in the main worktree applies inside linked worktrees."""
        repo = git_repo_with_worktrees
        (main_dir(repo) / ".gwk.toml").write_text('[worktree]\ndir = "../{repo}-wt/{branch}"\n')

        keeper = make_keeper(worktrees_dir(repo) / "feature")
        path = keeper.create("from-linked")
        assert path == main_dir(repo).parent / "test_repo-wt" / "from-linked"


class TestAddTmux:
    """Test tmux handling in add."""

    def test_tmux_flag(self, git_repo, make_keeper):
        tmux = Mock(spec=TmuxService)
        keeper = make_keeper(main_dir(git_repo), tmux_service=tmux)
        path = keeper.add("tm", tmux=True)

        tmux.detect.assert_called_once()
        tmux.open.assert_called_once_with(path, "tm", "window")
        assert keeper.stdout.getvalue() == ""

    def test_tmux_unavailable_aborts_before_creating(self, git_repo, make_keeper):
        tmux = Mock(spec=TmuxService)
        tmux.detect.side_effect = ToolUnavailableError("tmux", "not in a session")
        with pytest.raises(ToolUnavailableError):
            make_keeper(main_dir(git_repo), tmux_service=tmux).add("tm", tmux=True)
        assert not (worktrees_dir(git_repo) / "tm").exists()

    def test_no_tmux_overrides_always(self, git_repo, make_keeper):
        config = Config()
        config.integrations.tmux.behavior = "always"
        tmux = Mock(spec=TmuxService)
        keeper = make_keeper(main_dir(git_repo), config=config, tmux_service=tmux)
        keeper.add("plain", no_tmux=True)
        tmux.open.assert_not_called()
        assert keeper.stdout.getvalue().strip().endswith("plain")


class TestAddGitHub:
    """Test #N branch arguments with mocked git and gh."""

    @pytest.fixture
    def git_service(self, temp_dir):
        service = Mock(spec=WorktreeService)
        service.main_repo_root.return_value = temp_dir / "repo"
        service.branch_exists.return_value = False
        return service

    @pytest.fixture
    def github(self):
        service = Mock(spec=GitHubService)
        service.is_available.return_value = True
        return service

    def test_issue(self, make_keeper, temp_dir, git_service, github):
        github.issue_info.return_value = IssueInfo(number=5, title="Bug", url="u")
        keeper = make_keeper(temp_dir, worktree_service=git_service, github_service=github)
        keeper.add("#5", "main")

        path = str(temp_dir / "repo-worktrees" / "issue-5")
        git_service.add_worktree.assert_called_once_with(path, "issue-5", "main", cwd=str(temp_dir / "repo"))

    def test_same_repo_pr(self, make_keeper, temp_dir, git_service, github):
        github.issue_info.return_value = IssueInfo(number=9, title="PR", url="u", is_pull_request=True)
        github.pr_info.return_value = PrInfo(number=9, title="PR", url="u", head_ref_name="fix-x")
        keeper = make_keeper(temp_dir, worktree_service=git_service, github_service=github)
        keeper.add("#9")

        git_service.fetch.assert_called_once_with("origin", "fix-x", cwd=str(temp_dir / "repo"))
        args = git_service.add_worktree.call_args[0]
        assert args[1:] == ("fix-x", "origin/fix-x")

    def test_same_repo_pr_existing_branch(self, make_keeper, temp_dir, git_service, github):
        github.issue_info.side_effect = ExternalCommandError("gh issue view 9", 1)
        github.pr_info.return_value = PrInfo(number=9, title="PR", url="u", head_ref_name="fix-x")
        git_service.branch_exists.return_value = True
        make_keeper(temp_dir, worktree_service=git_service, github_service=github).add("#9")
        assert git_service.add_worktree.call_args[0][1:] == ("fix-x", None)

    def test_fork_pr_with_taken_branch(self, make_keeper, temp_dir, git_service, github, quiet_console):
        github.issue_info.side_effect = ExternalCommandError("gh issue view 9", 1)
        github.pr_info.return_value = PrInfo(number=9, title="PR", url="u",
                                             head_ref_name="user/fix", is_cross_repository=True)
        git_service.branch_exists.return_value = True
        make_keeper(temp_dir, worktree_service=git_service, github_service=github).add("#9")

        git_service.fetch.assert_called_once_with("origin", "refs/pull/9/head", cwd=str(temp_dir / "repo"))
        assert git_service.add_worktree.call_args[0][1:] == ("pr-9-user-fix", "FETCH_HEAD")
        assert "already exists" in quiet_console.file.getvalue()

    def test_neither_issue_nor_pr(self, make_keeper, temp_dir, git_service, github):
        github.issue_info.side_effect = ExternalCommandError("gh issue view 3", 1)
        github.pr_info.side_effect = ExternalCommandError("gh pr view 3", 1)
        with pytest.raises(WorktreeKeeperError, match="not a valid issue or pull request"):
            make_keeper(temp_dir, worktree_service=git_service, github_service=github).add("#3")
        git_service.add_worktree.assert_not_called()

    def test_gh_missing(self, make_keeper, temp_dir, git_service, github):
        github.is_available.return_value = False
        with pytest.raises(ToolUnavailableError):
            make_keeper(temp_dir, worktree_service=git_service, github_service=github).add("#3")

    def test_gh_disabled(self, make_keeper, temp_dir, git_service, github, quiet_console):
        """Test that #N is a literal branch name when the integration is disabled."""
        config = Config()
        config.integrations.gh.enabled = False
        make_keeper(temp_dir, config=config, worktree_service=git_service, github_service=github).add("#5")

        github.issue_info.assert_not_called()
        assert git_service.add_worktree.call_args[0][1] == "#5"
        assert "GitHub integration is disabled" in quiet_console.file.getvalue()


class TestCreate:
    """Test create."""

    def test_create_prints_nothing_on_stdout(self, git_repo, make_keeper, quiet_console):
        keeper = make_keeper(main_dir(git_repo))
        path = keeper.create("quiet")
        assert path.exists()
        assert keeper.stdout.getvalue() == ""
        assert "Created worktree at:" in quiet_console.file.getvalue()


class TestList:
    """Test ls."""

    def test_piped_simple_listing(self, git_repo_with_worktrees, make_keeper):
        keeper = make_keeper(main_dir(git_repo_with_worktrees))
        keeper.list_worktrees()
        lines = keeper.stdout.getvalue().splitlines()
        assert lines[0] == "@"
        assert sorted(lines[1:]) == ["docs/tweak", "feature"]

    def test_piped_detached_prints_path(self, git_repo, make_keeper):
        detached = worktrees_dir(git_repo) / "det"
        git_repo.git.worktree("add", "--detach", str(detached))
        keeper = make_keeper(main_dir(git_repo))
        keeper.list_worktrees()
        assert keeper.stdout.getvalue().splitlines() == ["@", str(detached)]

    def test_piped_show_path_table(self, git_repo_with_worktrees, make_keeper):
        keeper = make_keeper(main_dir(git_repo_with_worktrees))
        keeper.list_worktrees(show_path=True)
        lines = keeper.stdout.getvalue().splitlines()
        assert len(lines) == 3
        assert lines[0].startswith("*")
        assert "[@]" in lines[0]
        assert any("docs/tweak  [docs/tweak]" in line for line in lines[1:])

    def test_interactive_table_on_stderr(self, git_repo_with_worktrees, make_keeper, quiet_console):
        keeper = make_keeper(main_dir(git_repo_with_worktrees), stdout=TTYStringIO())
        keeper.list_worktrees()
        assert keeper.stdout.getvalue() == ""
        output = quiet_console.file.getvalue()
        assert "[feature]" in output
        assert "ago" in output or "just now" in output

    def test_active_marker_in_linked_worktree(self, git_repo_with_worktrees, make_keeper, quiet_console):
        keeper = make_keeper(worktrees_dir(git_repo_with_worktrees) / "feature", stdout=TTYStringIO())
        keeper.list_worktrees()
        rows = quiet_console.file.getvalue().splitlines()
        active = [row for row in rows if row.startswith("*")]
        assert len(active) == 1
        assert "[feature]" in active[0]


class TestCd:
    """Test cd."""

    def test_branch(self, git_repo_with_worktrees, make_keeper):
        keeper = make_keeper(main_dir(git_repo_with_worktrees))
        expected = str(worktrees_dir(git_repo_with_worktrees) / "docs" / "tweak")
        assert keeper.cd("docs/tweak") == expected
        assert keeper.stdout.getvalue() == f"{expected}\n"

    def test_main_marker(self, git_repo_with_worktrees, make_keeper):
        keeper = make_keeper(worktrees_dir(git_repo_with_worktrees) / "feature")
        assert keeper.cd("@") == str(main_dir(git_repo_with_worktrees))

    def test_path(self, git_repo_with_worktrees, make_keeper):
        keeper = make_keeper(main_dir(git_repo_with_worktrees))
        assert keeper.cd("../test_repo-worktrees/feature") == str(worktrees_dir(git_repo_with_worktrees) / "feature")

    def test_unknown(self, git_repo_with_worktrees, make_keeper):
        with pytest.raises(WorktreeNotFoundError):
            make_keeper(main_dir(git_repo_with_worktrees)).cd("nope")

    def test_picker_disabled(self, git_repo_with_worktrees, make_keeper):
        config = Config()
        config.integrations.fzf.enabled = False
        with pytest.raises(WorktreeKeeperError, match="enable fzf"):
            make_keeper(main_dir(git_repo_with_worktrees), config=config).cd()

    def test_picker(self, git_repo_with_worktrees, make_keeper):
        fzf = Mock(spec=FzfService)
        fzf.is_available.return_value = True
        target = str(worktrees_dir(git_repo_with_worktrees) / "feature")
        fzf.pick.return_value = [target]

        keeper = make_keeper(main_dir(git_repo_with_worktrees), fzf_service=fzf)
        assert keeper.cd() == target
        assert fzf.pick.call_args[1]["multi"] is False

    def test_picker_cancelled(self, git_repo_with_worktrees, make_keeper):
        fzf = Mock(spec=FzfService)
        fzf.is_available.return_value = True
        fzf.pick.return_value = []
        keeper = make_keeper(main_dir(git_repo_with_worktrees), fzf_service=fzf)
        assert keeper.cd() is None
        assert keeper.stdout.getvalue() == ""


class TestRemove:
    """Test rm."""

    def test_remove_branch(self, git_repo_with_worktrees, make_keeper, quiet_console):
        repo = git_repo_with_worktrees
        keeper = make_keeper(main_dir(repo))
        assert keeper.remove(["feature"]) == 1

        assert not (worktrees_dir(repo) / "feature").exists()
        assert "feature" not in branches(repo)
        assert keeper.stdout.getvalue() == ""
        output = quiet_console.file.getvalue()
        assert "Removed worktree:" in output
        assert "Deleted branch: feature" in output

    def test_remove_several_with_duplicate(self, git_repo_with_worktrees, make_keeper, quiet_console):
        repo = git_repo_with_worktrees
        keeper = make_keeper(main_dir(repo))
        assert keeper.remove(["feature", "docs/tweak", "feature"]) == 2
        assert "Duplicate target" in quiet_console.file.getvalue()
        assert len(repo.git.worktree("list", "--porcelain").split("\n\n")) == 1

    def test_remove_current(self, git_repo_with_worktrees, make_keeper):
        """Test that removing . prints the main worktree path for the shell."""
        repo = git_repo_with_worktrees
        keeper = make_keeper(worktrees_dir(repo) / "docs" / "tweak")
        assert keeper.remove(["feature", "."]) == 2
        assert keeper.stdout.getvalue() == f"{main_dir(repo)}\n"
        assert not (worktrees_dir(repo) / "docs" / "tweak").exists()

    def test_bad_target_removes_nothing(self, git_repo_with_worktrees, make_keeper):
        repo = git_repo_with_worktrees
        with pytest.raises(WorktreeNotFoundError):
            make_keeper(main_dir(repo)).remove(["feature", "nope"])
        assert (worktrees_dir(repo) / "feature").exists()

    def test_main_refused(self, git_repo_with_worktrees, make_keeper):
        with pytest.raises(MainWorktreeTargetedError):
            make_keeper(main_dir(git_repo_with_worktrees)).remove(["@"])
        with pytest.raises(MainWorktreeTargetedError):
            make_keeper(main_dir(git_repo_with_worktrees)).remove(["main"])

    def test_delete_hooks(self, git_repo_with_worktrees, make_keeper, temp_dir):
        marker = temp_dir / "deleted-from.txt"
        config = Config(hooks=Hooks(delete=HookActions(run=[f"pwd > '{marker}'"])))
        make_keeper(main_dir(git_repo_with_worktrees), config=config).remove(["feature"])
        assert Path(marker.read_text().strip()).name == "feature"

    def test_picker_excludes_main(self, git_repo_with_worktrees, make_keeper):
        fzf = Mock(spec=FzfService)
        fzf.is_available.return_value = True
        fzf.pick.return_value = [str(worktrees_dir(git_repo_with_worktrees) / "feature")]

        keeper = make_keeper(main_dir(git_repo_with_worktrees), fzf_service=fzf)
        assert keeper.remove() == 1
        items = fzf.pick.call_args[0][0]
        assert all(item.value != str(main_dir(git_repo_with_worktrees)) for item in items)
        assert fzf.pick.call_args[1]["multi"] is True

    def test_picker_cancelled(self, git_repo_with_worktrees, make_keeper):
        fzf = Mock(spec=FzfService)
        fzf.is_available.return_value = True
        fzf.pick.return_value = []
        assert make_keeper(main_dir(git_repo_with_worktrees), fzf_service=fzf).remove() == 0


class TestInit:
    """Test init."""

    @pytest.fixture
    def tools(self):
        github = Mock(spec=GitHubService)
        github.is_available.return_value = False
        zoxide = Mock(spec=ZoxideService)
        zoxide.is_available.return_value = False
        tmux = Mock(spec=TmuxService)
        tmux.is_available.return_value = False
        return {"github_service": github, "zoxide_service": zoxide, "tmux_service": tmux}

    def test_init_both(self, git_repo, make_keeper, isolated_env, tools):
        written = make_keeper(main_dir(git_repo), **tools).init()
        global_path = Path(isolated_env["XDG_CONFIG_HOME"]) / "gwk" / "config.toml"
        assert written == [global_path, main_dir(git_repo) / ".gwk.toml"]
        assert 'behavior = "never"' in global_path.read_text()

    def test_init_local_only(self, git_repo, make_keeper, tools):
        written = make_keeper(main_dir(git_repo), **tools).init(local_only=True)
        assert written == [main_dir(git_repo) / ".gwk.toml"]

    def test_existing_kept_without_force(self, git_repo, make_keeper, tools, quiet_console):
        local = main_dir(git_repo) / ".gwk.toml"
        local.write_text("# mine\n")
        assert make_keeper(main_dir(git_repo), **tools).init(local_only=True) == []
        assert local.read_text() == "# mine\n"
        assert "already exists" in quiet_console.file.getvalue()

        assert make_keeper(main_dir(git_repo), **tools).init(local_only=True, force=True) == [local]
        assert "[worktree]" in local.read_text()

    def test_init_outside_repository(self, temp_dir, make_keeper, tools):
        written = make_keeper(temp_dir, **tools).init(local_only=True)
        assert written == [temp_dir / ".gwk.toml"]
