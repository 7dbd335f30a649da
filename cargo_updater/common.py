"""
Common utilities shared across cargo_updater modules.
"""

from __future__ import annotations

import os
import platform
import sys

from . import __version__


def env_flag(name: str, default: bool = True) -> bool:
    """
    Read a 0/1 style environment toggle.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset

    Returns:
        True if the variable is "1", False if it is "0", default otherwise.
    """
    value = os.environ.get(name)
    if value is None:
        return default
    return value == "1"


def user_agent() -> str:
    """User-Agent sent to the registry, e.g. ``cargo-updater/1.0.0 (linux, x86_64)``."""
    return f"cargo-updater/{__version__} ({platform.system().lower()}, {platform.machine()})"


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log a verbose message through the package logger.

    Messages are emitted when ``verbose`` is set or when
    ``CARGO_UPDATER_DEBUG=1`` is present in the environment.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or os.environ.get("CARGO_UPDATER_DEBUG", "0") == "1":
        try:
            from .logging_config import get_logger
            get_logger().info(msg)
        except Exception:
            # Last resort when the logging stack itself is broken
            print(f"[cargo-updater] {msg}", file=sys.stderr)
