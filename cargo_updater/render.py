"""
Output rendering and formatting.

Tables are aligned by display width: ANSI colors and OSC 8 hyperlinks are
kept in the output but stripped before measuring.
"""

from __future__ import annotations

import json
import re
import sys
from typing import Sequence, TextIO

from wcwidth import wcswidth

from .common import env_flag
from .reconcile import InventoryRow


# Environment options
USE_COLOR = env_flag("CARGO_UPDATER_COLOR")
ENABLE_LINKS = env_flag("CARGO_UPDATER_LINKS")

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
CYAN = "\033[36m"
RED = "\033[31m"
BOLD = "\033[1m"
RESET = "\033[0m"

HEADERS = ("Crate", "Current", "Latest", "Updated", "Source", "Repository")
COLUMN_PAD = 2

# CSI (colors): ESC [ ... cmd
CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
# OSC 8 hyperlink open/close; the link text between them is kept
OSC8_OPEN_RE = re.compile(r"\x1b\]8;[^\x1b]*\x1b\\")
OSC8_CLOSE_RE = re.compile(r"\x1b\]8;;\x1b\\")

NOTHING_TO_UPDATE = "Nothing to update, run with --list to view available updates."


def _is_tty(stream: TextIO) -> bool:
    return hasattr(stream, "isatty") and stream.isatty()


def colorize(text: str, color: str, enabled: bool = True) -> str:
    """Apply color to text.

    Args:
        text: Text to colorize
        color: ANSI color code
        enabled: Caller-side switch (e.g. output is not a terminal)

    Returns:
        Colored text or plain text if colors are disabled
    """
    if not enabled or not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def osc8(url: str, text: str, enabled: bool = True) -> str:
    """Create OSC 8 hyperlink.

    Args:
        url: Link URL
        text: Display text
        enabled: Caller-side switch

    Returns:
        Hyperlinked text, or plain text if links are disabled or url is not a URL
    """
    if not enabled or not ENABLE_LINKS or not url.startswith(("http://", "https://")):
        return text
    return f"\033]8;;{url}\033\\{text}\033]8;;\033\\"


def strip_control(text: str) -> str:
    """Remove color and hyperlink escape sequences, keeping the visible text."""
    text = OSC8_OPEN_RE.sub("", text)
    text = OSC8_CLOSE_RE.sub("", text)
    return CSI_RE.sub("", text)


def display_width(text: str) -> int:
    """Terminal column width of text, ignoring escape sequences."""
    visible = strip_control(text)
    width = wcswidth(visible)
    # Non-printable characters make wcswidth give up
    return width if width >= 0 else len(visible)


def _pad(cell: str, width: int) -> str:
    return cell + " " * (width - display_width(cell))


def format_table(rows: Sequence[Sequence[str]], pad: int = COLUMN_PAD) -> list[str]:
    """
    Align rows into columns.

    Args:
        rows: Cells per row, header first; cells may contain escape sequences
        pad: Spaces between columns

    Returns:
        One string per row, without trailing whitespace
    """
    if not rows:
        return []

    ncol = max(len(r) for r in rows)
    widths = [0] * ncol
    for r in rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], display_width(cell))

    lines = []
    for r in rows:
        cells = [_pad(r[i] if i < len(r) else "", widths[i]) for i in range(ncol)]
        lines.append((" " * pad).join(cells).rstrip())
    return lines


def _row_cells(row: InventoryRow, color: bool) -> list[str]:
    if row.upgradable:
        latest = colorize(row.latest, RED, color)
    elif row.source == "crates.io":
        latest = colorize(row.latest, GREEN, color)
    else:
        latest = row.latest

    source_color = CYAN if row.source == "crates.io" else YELLOW

    return [
        colorize(row.name, BLUE, color),
        row.installed,
        latest,
        row.updated,
        colorize(row.source, source_color, color),
        osc8(row.repository, row.repository, color),
    ]


def render_inventory(rows: Sequence[InventoryRow], file: TextIO | None = None) -> None:
    """Print the inventory table.

    Args:
        rows: Rows in display order
        file: Output stream, stdout by default
    """
    out = file if file is not None else sys.stdout
    color = _is_tty(out)

    table = [[colorize(h, BOLD, color) for h in HEADERS]]
    table.extend(_row_cells(row, color) for row in rows)

    for line in format_table(table):
        print(line, file=out)


def render_json(rows: Sequence[InventoryRow], file: TextIO | None = None) -> None:
    """Print rows as a JSON array."""
    out = file if file is not None else sys.stdout
    print(json.dumps([row.to_dict() for row in rows], indent=2), file=out)


def print_skipped(names: Sequence[str], file: TextIO | None = None) -> None:
    """Report crates that update mode leaves alone."""
    if not names:
        return
    out = file if file is not None else sys.stdout
    print(f"Skipped updating binaries not installed from crates.io: {', '.join(names)}", file=out)


def print_nothing_to_update(file: TextIO | None = None) -> None:
    out = file if file is not None else sys.stdout
    print(NOTHING_TO_UPDATE, file=out)
