"""Command-line interface for git-worktree-keeper"""

import os
import sys

from git_worktree_keeper.cli.args import parse_args
from git_worktree_keeper.cli.shell_scripts import completion_script, shell_init_script
from git_worktree_keeper.core.worktree_keeper import WorktreeKeeper
from git_worktree_keeper.exceptions import WorktreeKeeperError
from git_worktree_keeper.formatters.messages import error
from git_worktree_keeper.logging_config import get_logger, setup_logging
from git_worktree_keeper.utils.console import ColorMode, make_console

logger = get_logger(__name__)

# Commands that only print text and never need a repository
_SCRIPT_COMMANDS = {
    "completion": completion_script,
    "shell-init": shell_init_script,
}

_ALIASES = {"list": "ls", "remove": "rm"}


def current_directory() -> str:
    """The shell's working directory.

    Raises:
        WorktreeKeeperError: If the directory was removed, e.g. by `gwk rm` elsewhere
    """
    try:
        return os.getcwd()
    except OSError as e:
        raise WorktreeKeeperError(
            "Current directory no longer exists; cd to an existing directory and try again"
        ) from e


def run(args, keeper: WorktreeKeeper) -> int:
    """Dispatch a parsed command to the keeper."""
    command = _ALIASES.get(args.command, args.command)
    logger.debug(f"Running command {command}")

    if command == "add":
        keeper.add(args.branch, args.start_point, tmux=args.tmux, no_tmux=args.no_tmux)
    elif command == "create":
        keeper.create(args.branch, args.start_point)
    elif command == "ls":
        keeper.list_worktrees(show_path=args.show_path)
    elif command == "cd":
        keeper.cd(args.name)
    elif command == "rm":
        keeper.remove(args.targets)
    elif command == "init":
        keeper.init(global_only=args.global_only, local_only=args.local_only, force=args.force)
    else:
        raise WorktreeKeeperError(f"Unknown command: {args.command}")
    return 0


def main(argv=None):
    """Main entry point for the application."""
    parsed_args = parse_args(argv)

    color_mode = ColorMode.resolve(parsed_args.color)

    # Setup logging before anything talks to git
    setup_logging(
        verbose=parsed_args.verbose,
        debug=parsed_args.debug,
        use_color=None if color_mode is ColorMode.AUTO else color_mode is ColorMode.ALWAYS,
    )
    console = make_console(color_mode, stderr=True)

    try:
        if parsed_args.command in _SCRIPT_COMMANDS:
            print(_SCRIPT_COMMANDS[parsed_args.command](parsed_args.shell))
            return 0

        if parsed_args.debug:
            console.print(f"[yellow]Debug mode enabled[/yellow] [dim](color: {color_mode.value})[/dim]")

        keeper = WorktreeKeeper(current_directory(), color_mode=color_mode, console=console)
        return run(parsed_args, keeper)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130
    except WorktreeKeeperError as e:
        console.print(error(f"Error: {e}"))
        if parsed_args.debug:
            console.print_exception()
        return 1
    except Exception as e:
        console.print(error(f"Error: {e}"))
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
