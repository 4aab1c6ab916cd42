"""Logging configuration for git-worktree-keeper

Log records always go to stderr. stdout is reserved for paths consumed by the
shell wrapper and for piped listings.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_PREFIX = 'git_worktree_keeper.'

DEBUG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '[%(name)s] %(message)s'


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name.

    ``use_color=None`` colours only when stderr is a TTY; ``True``/``False`` force it.
    """

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt=None, datefmt=None, use_color: Optional[bool] = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def _should_color(self) -> bool:
        if self.use_color is None:
            return sys.stderr.isatty()
        return self.use_color

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno)
        if not color or not self._should_color():
            return super().format(record)

        # Copy so the file handler still sees the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def log_file_path() -> Path:
    """Location of the --debug log file."""
    return Path.home() / '.git-worktree-keeper' / 'git-worktree-keeper.log'


def _level_for(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbose: bool = False, debug: bool = False,
                  use_color: Optional[bool] = None) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and also write them to the log file
        use_color: Colour level names; None means "only on a TTY"
    """
    level = _level_for(verbose, debug)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        fmt=DEBUG_FORMAT if debug else CONSOLE_FORMAT,
        datefmt=DATE_FORMAT,
        use_color=use_color,
    ))
    root_logger.addHandler(console_handler)

    if debug:
        log_file = log_file_path()
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='w')
        except OSError as e:
            root_logger.warning(f"Could not open debug log {log_file}: {e}")
            return
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=DEBUG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, named without the package prefix (``services.fzf_service``)."""
    if name.startswith(PACKAGE_PREFIX):
        name = name[len(PACKAGE_PREFIX):]
    return logging.getLogger(name)
