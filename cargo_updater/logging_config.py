"""
Logging setup for cargo-updater.

stdout is reserved for the inventory table (or JSON) and the update
messages, so console logging goes to stderr. Records are labelled the way
cargo labels its own diagnostics (``warning: ...``, ``error: ...``) so the
subcommand's output blends with cargo's.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO


LOGGER_NAME = "cargo_updater"

CONSOLE_FORMAT = "%(label)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_logger: Optional[logging.Logger] = None


def _level_for(level: str, verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.getLevelName(level.upper())


def _console_handler(stream: TextIO, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(CargoFormatter(CONSOLE_FORMAT, use_colors=stream.isatty()))
    return handler


def _file_handler(path: str) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the ``cargo_updater`` logger, replacing earlier handlers.

    Args:
        level: Level name used when neither verbose nor quiet is set
        log_file: File that additionally receives every record at DEBUG
        verbose: Console at DEBUG (``--verbose``)
        quiet: No console handler, level WARNING (``--quiet``)
        propagate: Pass records on to the root logger
        stream: Console stream, stderr when omitted

    Returns:
        The configured logger
    """
    global _logger

    effective = _level_for(level, verbose, quiet)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(effective)
    logger.handlers.clear()

    if not quiet:
        logger.addHandler(_console_handler(stream if stream is not None else sys.stderr, effective))
    if log_file:
        logger.addHandler(_file_handler(log_file))

    logger.propagate = propagate
    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the package logger, setting up the defaults on first use."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


class CargoFormatter(logging.Formatter):
    """Formatter that adds a cargo-style ``label`` field (``warning:``, ``error:``)."""

    LABELS = {
        "DEBUG": ("debug:", "\033[1;36m"),
        "INFO": ("info:", "\033[1;32m"),
        "WARNING": ("warning:", "\033[1;33m"),
        "ERROR": ("error:", "\033[1;31m"),
        "CRITICAL": ("error:", "\033[1;31m"),
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str = CONSOLE_FORMAT, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        label, color = self.LABELS.get(record.levelname, (record.levelname.lower() + ":", ""))
        record.label = f"{color}{label}{self.RESET}" if self.use_colors and color else label
        return super().format(record)
