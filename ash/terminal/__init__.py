"""
Local terminal control: size probing, raw mode, resize propagation.
"""

from .size import (
    TerminalSnapshot,
    FALLBACK_SIZE,
    get_terminal_size,
    is_terminal,
)
from .control import RawModeToken, enter_raw, restore
from .resize import ResizeWatcher, WatcherState, RESIZE_POLL_INTERVAL

__all__ = [
    # Size
    "TerminalSnapshot",
    "FALLBACK_SIZE",
    "get_terminal_size",
    "is_terminal",
    # Raw mode
    "RawModeToken",
    "enter_raw",
    "restore",
    # Resize
    "ResizeWatcher",
    "WatcherState",
    "RESIZE_POLL_INTERVAL",
]
