"""
Local terminal dimension probing.
"""

from __future__ import annotations
import os
import sys
from dataclasses import dataclass

# Used when the size cannot be measured at session start
FALLBACK_COLUMNS = 80
FALLBACK_ROWS = 24


@dataclass(frozen=True)
class TerminalSnapshot:
    """Terminal dimensions at one point in time."""
    columns: int
    rows: int

    def __str__(self) -> str:
        return f"{self.columns}x{self.rows}"


FALLBACK_SIZE = TerminalSnapshot(FALLBACK_COLUMNS, FALLBACK_ROWS)


def stdin_fd() -> int:
    return sys.stdin.fileno()


def stdout_fd() -> int:
    return sys.stdout.fileno()


def is_terminal(fd: int) -> bool:
    """Is fd attached to an interactive terminal?"""
    try:
        return os.isatty(fd)
    except OSError:
        return False


def get_terminal_size(fd: int = None) -> TerminalSnapshot:
    """
    Measure the terminal attached to fd (stdout by default).

    Raises:
        OSError: fd is not a terminal or the measurement failed.
    """
    if fd is None:
        fd = stdout_fd()
    size = os.get_terminal_size(fd)
    return TerminalSnapshot(columns=size.columns, rows=size.lines)
