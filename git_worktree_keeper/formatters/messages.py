"""Status line formatting for stderr output.

Lines are returned as rich markup strings for ``console.print``.
"""

from rich.markup import escape

from git_worktree_keeper.constants import (
    MESSAGE_STYLES,
    SYMBOL_ERROR,
    SYMBOL_INFO,
    SYMBOL_SUCCESS,
    SYMBOL_WARN,
    TIMING_THRESHOLD_MS,
    TREE_BRANCH,
    TREE_LAST,
    ListingStyle,
)


def _styled(kind: str, symbol: str, message: str) -> str:
    style = MESSAGE_STYLES[kind]
    return f"[{style}]{symbol}[/{style}] {escape(message)}"


def success(message: str) -> str:
    return _styled("success", SYMBOL_SUCCESS, message)


def info(message: str) -> str:
    return _styled("info", SYMBOL_INFO, message)


def warn(message: str) -> str:
    return _styled("warn", SYMBOL_WARN, message)


def error(message: str) -> str:
    style = MESSAGE_STYLES["error"]
    return f"[{style}]{SYMBOL_ERROR} {escape(message)}[/{style}]"


def dim(message: str) -> str:
    return f"[{ListingStyle.SECONDARY}]{escape(message)}[/{ListingStyle.SECONDARY}]"


def format_duration(elapsed_ms: float) -> str:
    """
    Format an elapsed time for hook output.

    Args:
        elapsed_ms: Elapsed milliseconds

    Returns:
        "" below the display threshold, else "(NNNms)" or "(N.Ns)"
    """
    if elapsed_ms < TIMING_THRESHOLD_MS:
        return ""
    if elapsed_ms < 1000:
        return f"({int(elapsed_ms)}ms)"
    return f"({elapsed_ms / 1000:.1f}s)"


def tree_item(line_markup: str, is_last: bool, elapsed_ms: float = 0.0) -> str:
    """Indent an already formatted status line under a tree connector.

    Timing is appended when it is worth showing.
    """
    connector = TREE_LAST if is_last else TREE_BRANCH
    line = f"  {dim(connector)} {line_markup}"
    duration = format_duration(elapsed_ms)
    if duration:
        line += f" {dim(duration)}"
    return line
