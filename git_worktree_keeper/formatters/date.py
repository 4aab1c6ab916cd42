"""Date and time formatting utilities."""

from datetime import datetime, timezone
from typing import Optional

from git_worktree_keeper.constants import NO_TIMESTAMP

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MONTH = 30 * _DAY
_YEAR = 365 * _DAY


def _plural(count: int, unit: str, single: str) -> str:
    if count == 1:
        return f"{single} {unit} ago"
    return f"{count} {unit}s ago"


def format_relative_time(then: datetime, now: Optional[datetime] = None) -> str:
    """
    Format a past moment as rough, human-friendly text.

    Args:
        then: The moment to describe (timezone-aware)
        now: Reference time; the current UTC time when not given

    Returns:
        Text such as "just now", "an hour ago" or "3 days ago"
    """
    if now is None:
        now = datetime.now(timezone.utc)

    seconds = max(0, int((now - then).total_seconds()))

    if seconds < 45:
        return "just now"
    if seconds < 90:
        return "a minute ago"
    if seconds < 45 * _MINUTE:
        return _plural(round(seconds / _MINUTE), "minute", "a")
    if seconds < 90 * _MINUTE:
        return "an hour ago"
    if seconds < 22 * _HOUR:
        return _plural(round(seconds / _HOUR), "hour", "an")
    if seconds < 36 * _HOUR:
        return "a day ago"
    if seconds < _WEEK:
        return _plural(round(seconds / _DAY), "day", "a")
    if seconds < _MONTH:
        return _plural(seconds // _WEEK, "week", "a")
    if seconds < _YEAR:
        return _plural(seconds // _MONTH, "month", "a")
    return _plural(seconds // _YEAR, "year", "a")


def format_commit_age(commit_time: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Format the age of a worktree's last commit.

    Args:
        commit_time: Commit time, or None when it could not be read

    Returns:
        Relative time text, or a dash when unknown
    """
    if commit_time is None:
        return NO_TIMESTAMP
    return format_relative_time(commit_time, now)
