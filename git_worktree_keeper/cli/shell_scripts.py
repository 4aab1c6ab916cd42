"""Shell integration scripts printed by ``shell-init`` and ``completion``."""

import argcomplete

SUPPORTED_SHELLS = ["bash", "zsh", "fish"]

# Subcommands whose stdout is a directory to change into
CD_COMMANDS = ["cd", "add", "rm"]

_POSIX_WRAPPER = '''# git-worktree-keeper shell integration for {shell}
# Add this to your ~/.{rc}:
#   eval "$({prog} shell-init {shell})"

{prog}() {{
    case "$1" in
        {commands})
            local result
            result=$(command {prog} "$@") || return $?
            if [ -n "$result" ]; then
                cd -- "$result" || return $?
            fi
            ;;
        *)
            command {prog} "$@"
            ;;
    esac
}}
'''

_FISH_WRAPPER = '''# git-worktree-keeper shell integration for fish
# Add this to ~/.config/fish/config.fish:
#   {prog} shell-init fish | source

function {prog} --wraps {prog}
    if contains -- "$argv[1]" {commands}
        set -l result (command {prog} $argv)
        or return $status
        if test -n "$result"
            cd -- "$result"
        end
    else
        command {prog} $argv
    end
end
'''


def shell_init_script(shell: str, prog: str = "gwk") -> str:
    """Wrapper function that changes directory after ``cd``, ``add`` and ``rm``.

    Raises:
        ValueError: For an unsupported shell
    """
    if shell == "bash":
        return _POSIX_WRAPPER.format(shell=shell, rc="bashrc", prog=prog, commands="|".join(CD_COMMANDS))
    if shell == "zsh":
        return _POSIX_WRAPPER.format(shell=shell, rc="zshrc", prog=prog, commands="|".join(CD_COMMANDS))
    if shell == "fish":
        return _FISH_WRAPPER.format(prog=prog, commands=" ".join(CD_COMMANDS))
    raise ValueError(f"Invalid shell: {shell}. Supported shells: {', '.join(SUPPORTED_SHELLS)}")


def completion_script(shell: str, executables: tuple = ("gwk", "git-worktree-keeper")) -> str:
    """argcomplete registration code for the given shell.

    Raises:
        ValueError: For an unsupported shell
    """
    if shell not in SUPPORTED_SHELLS:
        raise ValueError(f"Invalid shell: {shell}. Supported shells: {', '.join(SUPPORTED_SHELLS)}")
    return argcomplete.shellcode(list(executables), shell=shell)
