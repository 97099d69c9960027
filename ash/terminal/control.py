"""
Raw mode switching for the local terminal.

Raw mode is entered once per session and must be undone on every exit
path; the caller owns the token between enter_raw() and restore().
"""

from __future__ import annotations
import logging
import sys
from typing import Optional

from ..errors import TerminalError
from .size import is_terminal, stdin_fd

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == 'win32'

if not IS_WINDOWS:
    import termios
    import tty


class RawModeToken:
    """
    Saved terminal attributes, taken on entering raw mode.

    Consumed by restore(); restoring the same token twice is a no-op.
    """

    def __init__(self, fd: int, saved_attributes: list):
        self.fd = fd
        self._saved_attributes: Optional[list] = saved_attributes

    @property
    def consumed(self) -> bool:
        return self._saved_attributes is None

    def take(self) -> Optional[list]:
        """Hand out the saved attributes exactly once."""
        attributes, self._saved_attributes = self._saved_attributes, None
        return attributes

    def __repr__(self) -> str:
        state = "consumed" if self.consumed else "pending"
        return f"<RawModeToken fd={self.fd} {state}>"


def enter_raw(fd: int = None) -> RawModeToken:
    """
    Put the terminal on fd (stdin by default) into raw mode.

    Returns:
        Token holding the previous mode, for restore().

    Raises:
        TerminalError: fd is not a terminal or the mode change was refused.
    """
    if IS_WINDOWS:
        raise TerminalError("raw mode requires a POSIX terminal")

    if fd is None:
        fd = stdin_fd()

    if not is_terminal(fd):
        raise TerminalError(f"fd {fd} is not a terminal")

    try:
        saved = termios.tcgetattr(fd)
        tty.setraw(fd)
    except (termios.error, OSError) as e:
        raise TerminalError(f"failed to set terminal to raw mode: {e}") from e

    logger.debug(f"Terminal fd {fd} switched to raw mode")
    return RawModeToken(fd, saved)


def restore(token: RawModeToken) -> bool:
    """
    Return the terminal to the mode saved in token.

    Never raises: a failed restore is logged so it cannot hide the
    session's own result.

    Returns:
        True if the saved mode was applied.
    """
    attributes = token.take()
    if attributes is None:
        return False

    try:
        termios.tcsetattr(token.fd, termios.TCSADRAIN, attributes)
    except (termios.error, OSError) as e:
        logger.warning(f"Failed to restore terminal mode on fd {token.fd}: {e}")
        return False

    logger.debug(f"Terminal fd {token.fd} restored")
    return True
