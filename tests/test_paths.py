"""Tests for path normalization"""
import os
from pathlib import Path

import pytest

from git_worktree_keeper.utils.paths import (
    canonicalize_allow_missing,
    display_path,
    make_absolute,
    normalize_absolute_path,
    normalize_lexically,
)


class TestNormalizeLexically:
    """Test lexical resolution of . and .. components."""

    @pytest.mark.parametrize("raw, expected", [
        ("/a/b/../c", "/a/c"),
        ("/a/./b/.", "/a/b"),
        ("/a/b/../../..", "/"),
        ("a/../../b", "b"),
        ("../x", "x"),
        ("/r/wt/../wt/feature", "/r/wt/feature"),
    ])
    def test_normalize(self, raw, expected):
        """Test lexical normalization results."""
        assert normalize_lexically(raw) == Path(expected)

    @pytest.mark.parametrize("raw", [
        "/a/b/../c/./d", "../../x/y", "a/./b", "/", "", "/x/../../y/..",
    ])
    def test_idempotent(self, raw):
        """Test that normalizing twice equals normalizing once."""
        once = normalize_lexically(raw)
        assert normalize_lexically(once) == once

    @pytest.mark.parametrize("clean", ["/a/b/c", "rel/path", "/home/user/repo-worktrees/feature"])
    def test_clean_paths_unchanged(self, clean):
        """Test that paths without . or .. are returned as-is."""
        assert normalize_lexically(clean) == Path(clean)

    def test_does_not_resolve_symlinks(self, temp_dir):
        """Test that .. after a symlink is taken literally."""
        target = temp_dir / "deep" / "target"
        target.mkdir(parents=True)
        link = temp_dir / "link"
        link.symlink_to(target)
        assert normalize_lexically(link / "..") == temp_dir


class TestCanonicalizeAllowMissing:
    """Test canonicalization that tolerates missing paths."""

    def test_existing_path(self, temp_dir):
        """Test that existing paths are fully resolved."""
        (temp_dir / "a").mkdir()
        assert canonicalize_allow_missing(temp_dir / "a") == temp_dir / "a"

    def test_symlink_resolved(self, temp_dir):
        """Test that symlinks in existing paths are followed."""
        real = temp_dir / "real"
        real.mkdir()
        (temp_dir / "alias").symlink_to(real)
        assert canonicalize_allow_missing(temp_dir / "alias") == real

    def test_missing_tail_reappended(self, temp_dir):
        """Test that a missing tail is kept below the deepest existing ancestor."""
        real = temp_dir / "real"
        real.mkdir()
        (temp_dir / "alias").symlink_to(real)
        result = canonicalize_allow_missing(temp_dir / "alias" / "gone" / "deeper")
        assert result == real / "gone" / "deeper"

    def test_dotdot_in_missing_path(self, temp_dir):
        """Test that .. is resolved lexically before walking up."""
        result = canonicalize_allow_missing(temp_dir / "missing" / ".." / "other")
        assert result == temp_dir / "other"

    def test_relative_uses_cwd(self, temp_dir):
        """Test that relative paths are joined onto the given cwd."""
        (temp_dir / "wt").mkdir()
        assert canonicalize_allow_missing("wt", cwd=temp_dir) == temp_dir / "wt"

    def test_nothing_exists(self):
        """Test a path whose every component below the root is missing."""
        result = canonicalize_allow_missing("/definitely-missing-root-xyz/a/b")
        assert result == Path("/definitely-missing-root-xyz/a/b")


class TestDisplayPath:
    """Test home-relative display."""

    def test_under_home(self):
        assert display_path("/home/u/src/repo", home="/home/u") == "~/src/repo"

    def test_home_itself(self):
        assert display_path("/home/u", home="/home/u") == "~"

    def test_outside_home(self):
        assert display_path("/opt/repo", home="/home/u") == "/opt/repo"

    def test_sibling_prefix_is_not_home(self):
        """Test that /home/user2 is not shown under /home/user."""
        assert display_path("/home/user2/x", home="/home/user") == "/home/user2/x"

    def test_normalized_before_display(self):
        assert display_path("/home/u/a/../b", home="/home/u") == "~/b"


class TestNormalizeAbsolutePath:
    """Test absolute paths for programmatic consumers."""

    def test_never_uses_tilde(self):
        """Test that home paths are not abbreviated."""
        home = os.path.expanduser("~")
        assert normalize_absolute_path(os.path.join(home, "x")) == os.path.join(home, "x")

    def test_relative_joined_onto_cwd(self):
        assert normalize_absolute_path("../b/./c", cwd="/a/x") == "/a/b/c"

    def test_make_absolute_keeps_absolute(self):
        assert make_absolute("/a/b", cwd="/ignored") == Path("/a/b")
