"""Configuration handling for git-worktree-keeper

Configuration lives in two TOML files:

- global: ``$XDG_CONFIG_HOME/gwk/config.toml`` (or ``~/.config/gwk/config.toml``)
- local: ``.gwk.toml`` in the main repository root

When the local file exists it wins, except for integrations, which are only ever read
from the global file.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

from git_worktree_keeper.constants import (
    APP_NAME,
    DEFAULT_DIR_TEMPLATE,
    GLOBAL_CONFIG_FILENAME,
    LOCAL_CONFIG_FILENAME,
)
from git_worktree_keeper.exceptions import ConfigError
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

TMUX_BEHAVIORS = ["auto", "always", "never"]
TMUX_CREATE_MODES = ["window", "pane"]


def _string_list(value: Any, name: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{name} must be a list of strings")
    return list(value)


def _check_bool(value: Any, name: str) -> None:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")


def _section(data: Mapping, key: str) -> dict:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"[{key}] must be a table")
    return value


@dataclass
class HookActions:
    """Actions run when a worktree is created or deleted."""

    run: List[str] = field(default_factory=list)
    copy: List[str] = field(default_factory=list)
    link: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate action lists."""
        self.run = _string_list(self.run, "run")
        self.copy = _string_list(self.copy, "copy")
        self.link = _string_list(self.link, "link")

    def is_empty(self) -> bool:
        return not (self.run or self.copy or self.link)

    def merge(self, other: "HookActions") -> "HookActions":
        return HookActions(
            run=self.run + other.run,
            copy=self.copy + other.copy,
            link=self.link + other.link,
        )

    @classmethod
    def from_dict(cls, data: Mapping) -> "HookActions":
        return cls(**{k: data[k] for k in ("run", "copy", "link") if k in data})


@dataclass
class Hooks:
    create: HookActions = field(default_factory=HookActions)
    delete: HookActions = field(default_factory=HookActions)

    def merge(self, other: "Hooks") -> "Hooks":
        return Hooks(create=self.create.merge(other.create), delete=self.delete.merge(other.delete))

    @classmethod
    def from_dict(cls, data: Mapping) -> "Hooks":
        return cls(
            create=HookActions.from_dict(_section(data, "create")),
            delete=HookActions.from_dict(_section(data, "delete")),
        )


@dataclass
class WorktreeConfig:
    """Where new worktrees are placed."""

    dir: str = DEFAULT_DIR_TEMPLATE

    def __post_init__(self):
        """Validate the directory template."""
        if not isinstance(self.dir, str) or not self.dir.strip():
            raise ValueError("worktree.dir cannot be empty")


@dataclass
class ZoxideConfig:
    enabled: bool = True

    def __post_init__(self):
        _check_bool(self.enabled, "zoxide.enabled")


@dataclass
class FzfConfig:
    enabled: bool = True
    options: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate fzf settings."""
        _check_bool(self.enabled, "fzf.enabled")
        self.options = _string_list(self.options, "fzf.options")


@dataclass
class TmuxConfig:
    """tmux integration settings.

    ``behavior``: "auto" opens tmux only with ``--tmux``, "always" unless ``--no-tmux``,
    "never" ignores tmux entirely. ``create`` chooses a new window or a split pane.
    """

    behavior: str = "auto"
    create: str = "window"

    def __post_init__(self):
        """Validate tmux settings."""
        if self.behavior not in TMUX_BEHAVIORS:
            raise ValueError(f"tmux.behavior must be one of {TMUX_BEHAVIORS}, got '{self.behavior}'")
        if self.create not in TMUX_CREATE_MODES:
            raise ValueError(f"tmux.create must be one of {TMUX_CREATE_MODES}, got '{self.create}'")


@dataclass
class GhConfig:
    enabled: bool = True

    def __post_init__(self):
        _check_bool(self.enabled, "gh.enabled")


@dataclass
class IntegrationsConfig:
    zoxide: ZoxideConfig = field(default_factory=ZoxideConfig)
    fzf: FzfConfig = field(default_factory=FzfConfig)
    tmux: TmuxConfig = field(default_factory=TmuxConfig)
    gh: GhConfig = field(default_factory=GhConfig)

    @classmethod
    def from_dict(cls, data: Mapping) -> "IntegrationsConfig":
        zoxide = _section(data, "zoxide")
        fzf = _section(data, "fzf")
        tmux = _section(data, "tmux")
        gh = _section(data, "gh")
        return cls(
            zoxide=ZoxideConfig(enabled=zoxide.get("enabled", True)),
            fzf=FzfConfig(enabled=fzf.get("enabled", True), options=fzf.get("options", [])),
            tmux=TmuxConfig(behavior=tmux.get("behavior", "auto"), create=tmux.get("create", "window")),
            gh=GhConfig(enabled=gh.get("enabled", True)),
        )


@dataclass
class Config:
    """Configuration for git-worktree-keeper."""

    worktree: WorktreeConfig = field(default_factory=WorktreeConfig)
    hooks: Hooks = field(default_factory=Hooks)
    integrations: IntegrationsConfig = field(default_factory=IntegrationsConfig)

    @classmethod
    def from_dict(cls, data: Mapping) -> "Config":
        """Create Config from parsed TOML. Unknown keys are ignored."""
        if "integrations" in data:
            integrations = _section(data, "integrations")
        else:
            integrations = _section(data, "integration")

        worktree = _section(data, "worktree")
        return cls(
            worktree=WorktreeConfig(dir=worktree.get("dir", DEFAULT_DIR_TEMPLATE)),
            hooks=Hooks.from_dict(_section(data, "hooks")),
            integrations=IntegrationsConfig.from_dict(integrations),
        )

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Read and validate a TOML config file.

        Raises:
            ConfigError: If the file cannot be read, parsed or validated
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except OSError as e:
            raise ConfigError(str(path), f"cannot read file: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(str(path), str(e)) from e

        try:
            return cls.from_dict(data)
        except (ValueError, TypeError) as e:
            raise ConfigError(str(path), str(e)) from e

    @classmethod
    def load(cls, repo_root: Optional[Path] = None,
             environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Load configuration for a repository.

        Args:
            repo_root: Main repository root, where the local file lives
            environ: Environment for locating the global file

        Returns:
            The local config (with global integrations), else the global config, else
            defaults
        """
        global_path = global_config_path(environ)

        if repo_root is not None:
            local_path = local_config_path(repo_root)
            if local_path.exists():
                logger.debug(f"Loading local config from {local_path}")
                config = cls.from_file(local_path)
                config.integrations = _global_integrations(global_path)
                return config

        if global_path is not None and global_path.exists():
            logger.debug(f"Loading global config from {global_path}")
            return cls.from_file(global_path)

        logger.debug("No config file found, using defaults")
        return cls()

    def merge(self, other: "Config") -> "Config":
        """Combine with another config: hook lists concatenate, everything else comes from ``other``."""
        return Config(
            worktree=other.worktree,
            hooks=self.hooks.merge(other.hooks),
            integrations=other.integrations,
        )


def _global_integrations(global_path: Optional[Path]) -> IntegrationsConfig:
    if global_path is None or not global_path.exists():
        return IntegrationsConfig()
    try:
        return Config.from_file(global_path).integrations
    except ConfigError as e:
        logger.warning(f"Ignoring integrations from global config: {e}")
        return IntegrationsConfig()


def global_config_path(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Location of the global config file, or None when no home directory is known."""
    env = os.environ if environ is None else environ

    config_home = env.get("XDG_CONFIG_HOME")
    if config_home and Path(config_home).is_absolute():
        base = Path(config_home)
    else:
        home = env.get("HOME")
        if home:
            base = Path(home) / ".config"
        else:
            try:
                base = Path.home() / ".config"
            except RuntimeError:
                return None

    return base / APP_NAME / GLOBAL_CONFIG_FILENAME


def local_config_path(repo_root: Path) -> Path:
    return Path(repo_root) / LOCAL_CONFIG_FILENAME


@dataclass
class TemplateContext:
    """Which integration tools are installed, for generating the global template."""

    gh_available: bool = False
    zoxide_available: bool = False
    fzf_available: bool = False
    tmux_available: bool = False


_HOOKS_TEMPLATE = '''[hooks.create]
# Commands to run after creating a worktree (executed in the worktree directory)
run = [
    # "npm install",
]

# Files to copy from the main repository into the new worktree
copy = [
    # ".env.local",
]

# Files to symlink from the main repository into the new worktree
# Glob patterns are supported: "*.env", "config/**/*.json"
link = [
    # "node_modules",
]

[hooks.delete]
# Commands to run before deleting a worktree (executed in the worktree directory)
run = [
    # "docker compose down",
]
'''


def generate_global_template(context: TemplateContext) -> str:
    """Commented global config, with integrations enabled only for installed tools."""
    if context.zoxide_available:
        zoxide = "[integration.zoxide]\n# Register new worktrees with zoxide\nenabled = true"
    else:
        zoxide = ("[integration.zoxide]\n"
                  "# zoxide not detected - install from https://github.com/ajeetdsouza/zoxide\n"
                  "enabled = false")

    if context.fzf_available:
        fzf = ("[integration.fzf]\n"
               "# Pick worktrees interactively when `cd` or `rm` get no argument\n"
               "enabled = true\n"
               "# Extra fzf options\n"
               '# options = ["--height=50%", "--border"]')
    else:
        fzf = ("[integration.fzf]\n"
               "# fzf not detected - install from https://github.com/junegunn/fzf\n"
               "enabled = false")

    if context.tmux_available:
        tmux = ("[integration.tmux]\n"
                '# "auto" (only with --tmux), "always" (unless --no-tmux) or "never"\n'
                'behavior = "auto"\n'
                '# "window" or "pane"\n'
                'create = "window"')
    else:
        tmux = ("[integration.tmux]\n"
                "# tmux not detected - install from https://github.com/tmux/tmux\n"
                'behavior = "never"\n'
                'create = "window"')

    if context.gh_available:
        gh = ("[integration.gh]\n"
              "# `add #123` creates worktrees from GitHub issues and pull requests\n"
              "enabled = true")
    else:
        gh = ("[integration.gh]\n"
              "# gh CLI not detected - install from https://cli.github.com/\n"
              "enabled = false")

    return f'''# git-worktree-keeper global configuration
# Settings here apply to every repository. A .gwk.toml in a repository's
# main worktree takes precedence, except for the [integration.*] tables.

[worktree]
# Directory template for new worktrees
# {{repo}} = repository directory name, {{branch}} = branch name
# Relative paths are resolved from the main repository root
dir = "{DEFAULT_DIR_TEMPLATE}"

{_HOOKS_TEMPLATE}
{zoxide}

{fzf}

{tmux}

{gh}
'''


def generate_local_template() -> str:
    """Commented project config."""
    return f'''# git-worktree-keeper project configuration
# This file is always read from the main repository root, even when the
# command runs inside a linked worktree.
#
# Integration settings are only read from the global config.

[worktree]
# dir = "{DEFAULT_DIR_TEMPLATE}"

{_HOOKS_TEMPLATE}'''
