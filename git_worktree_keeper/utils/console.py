"""Colour mode handling and rich console construction."""

import os
from enum import Enum
from typing import IO, Mapping, Optional

from rich.console import Console


class ColorMode(Enum):
    """When to emit ANSI colours."""

    ALWAYS = "always"
    AUTO = "auto"
    NEVER = "never"

    @classmethod
    def resolve(cls, cli_value: Optional[str] = None,
                environ: Optional[Mapping[str, str]] = None) -> "ColorMode":
        """Pick the colour mode.

        Priority: the ``--color`` flag, then ``NO_COLOR`` (any value disables colour),
        then ``TERM=dumb``, then automatic detection.
        """
        if cli_value:
            return cls(cli_value)

        env = os.environ if environ is None else environ
        if "NO_COLOR" in env:
            return cls.NEVER
        if env.get("TERM") == "dumb":
            return cls.NEVER
        return cls.AUTO


def make_console(mode: ColorMode = ColorMode.AUTO, stderr: bool = True,
                 file: Optional[IO[str]] = None) -> Console:
    """Build a console for the given colour mode.

    Status output goes to stderr; stdout is kept for paths and piped listings.
    ``file`` overrides the stream.
    """
    if mode is ColorMode.ALWAYS:
        return Console(file=file, stderr=stderr, force_terminal=True, no_color=False, highlight=False)
    if mode is ColorMode.NEVER:
        return Console(file=file, stderr=stderr, no_color=True, highlight=False)
    return Console(file=file, stderr=stderr, highlight=False)


def color_enabled(console: Console) -> bool:
    """Whether the console will actually emit colour."""
    return console.is_terminal and not console.no_color
