"""Command-line argument parsing for git-worktree-keeper."""

import argparse

import argcomplete

from git_worktree_keeper.__version__ import __version__
from git_worktree_keeper.cli.completers import start_point_completer, worktree_target_completer
from git_worktree_keeper.cli.shell_scripts import SUPPORTED_SHELLS
from git_worktree_keeper.utils.console import ColorMode


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="gwk",
        description="Git worktree helper: templated directories, hooks and shell integration",
        epilog="Setup: eval \"$(gwk shell-init bash)\" lets cd, add and rm change your shell's directory",
    )
    parser.add_argument(
        "--color",
        choices=[mode.value for mode in ColorMode],
        default=None,
        metavar="WHEN",
        help="Colour output: always, auto or never (default: auto, NO_COLOR is honoured)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    add = subparsers.add_parser(
        "add",
        help="Create a worktree and print its path",
        description="Create a worktree and print its path. BRANCH may be #N for a GitHub issue or PR.",
    )
    add.add_argument("branch", help="Branch name, or #N for a GitHub issue or pull request")
    add.add_argument(
        "start_point", nargs="?", help="Commit, branch or tag to start from"
    ).completer = start_point_completer
    tmux = add.add_mutually_exclusive_group()
    tmux.add_argument("--tmux", action="store_true", help="Open the worktree in tmux")
    tmux.add_argument("--no-tmux", action="store_true", help="Never open the worktree in tmux")

    create = subparsers.add_parser("create", help="Create a worktree without changing directory")
    create.add_argument("branch", help="Branch name")
    create.add_argument(
        "start_point", nargs="?", help="Commit, branch or tag to start from"
    ).completer = start_point_completer

    ls = subparsers.add_parser("ls", aliases=["list"], help="List worktrees")
    ls.add_argument("-p", "--show-path", action="store_true", help="Show worktree paths")

    cd = subparsers.add_parser("cd", help="Print the path of a worktree")
    cd.add_argument(
        "name", nargs="?", help="Branch, path or @ for the main worktree (fzf picker when omitted)"
    ).completer = worktree_target_completer

    rm = subparsers.add_parser("rm", aliases=["remove"], help="Remove worktrees and their branches")
    rm.add_argument(
        "targets", nargs="*", help="Branches or paths; . for the current worktree (fzf picker when omitted)"
    ).completer = worktree_target_completer

    init = subparsers.add_parser("init", help="Write config file templates")
    scope = init.add_mutually_exclusive_group()
    scope.add_argument("--global", dest="global_only", action="store_true",
                       help="Only write the global config")
    scope.add_argument("--local", dest="local_only", action="store_true",
                       help="Only write the local config")
    init.add_argument("-f", "--force", action="store_true", help="Overwrite existing files")

    completion = subparsers.add_parser("completion", help="Print shell completion setup")
    completion.add_argument("shell", choices=SUPPORTED_SHELLS)

    shell_init = subparsers.add_parser("shell-init", help="Print the shell wrapper function")
    shell_init.add_argument("shell", choices=SUPPORTED_SHELLS)

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
