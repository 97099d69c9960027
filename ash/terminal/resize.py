"""
Propagates local terminal resizes to the remote PTY.
"""

from __future__ import annotations
import logging
import threading
from enum import Enum, auto
from typing import Callable, Optional

from ..errors import TerminalError
from .size import TerminalSnapshot, get_terminal_size, is_terminal, stdin_fd

logger = logging.getLogger(__name__)

RESIZE_POLL_INTERVAL = 0.5


class WatcherState(Enum):
    """Resize watcher lifecycle states."""
    IDLE = auto()
    RUNNING = auto()
    STOPPED = auto()


class ResizeWatcher:
    """
    Polls the local terminal size and sends a window-change message to
    the channel whenever it differs from the last size sent.

    Only a changed size is sent, so a terminal that is not being resized
    produces no traffic at all.

    Usage:
        watcher = ResizeWatcher(channel, initial=size)
        watcher.start()
        ...
        watcher.stop()   # returns once the polling thread has exited
    """

    def __init__(
        self,
        channel,
        initial: TerminalSnapshot,
        fd: int = None,
        interval: float = RESIZE_POLL_INTERVAL,
        sampler: Callable[[], TerminalSnapshot] = None,
    ):
        """
        Args:
            channel: Anything with resize_pty(width=, height=) (paramiko.Channel)
            initial: Size the remote PTY was opened with
            fd: Input descriptor that must be a terminal (stdin by default)
            interval: Seconds between samples
            sampler: Size sampler; defaults to measuring stdout
        """
        self._channel = channel
        self._last_sent = initial
        self._fd = fd
        self._interval = interval
        self._sampler = sampler or get_terminal_size

        self._state = WatcherState.IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def last_sent(self) -> TerminalSnapshot:
        """Last size propagated to the remote side."""
        return self._last_sent

    def start(self) -> None:
        """
        Start polling in a background thread.

        Raises:
            TerminalError: The input descriptor is not a terminal.
        """
        if self._state is not WatcherState.IDLE:
            raise RuntimeError(f"Cannot start resize watcher from state {self._state.name}")

        fd = stdin_fd() if self._fd is None else self._fd
        if not is_terminal(fd):
            raise TerminalError("stdin is not a terminal")

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="ash-resize-watcher", daemon=True
        )
        self._state = WatcherState.RUNNING
        self._thread.start()
        logger.debug(f"Resize watcher started at {self._last_sent}")

    def stop(self) -> None:
        """
        Stop polling. Returns only after the polling thread has exited,
        so no window change can be sent once this returns.
        """
        if self._state is not WatcherState.RUNNING:
            self._state = WatcherState.STOPPED
            return

        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None
        self._state = WatcherState.STOPPED
        logger.debug("Resize watcher stopped")

    def poll_once(self) -> bool:
        """
        Sample the size once and send it if it changed.

        Returns:
            True if a window-change message was sent.
        """
        try:
            current = self._sampler()
        except Exception as e:
            # Size sampling is best-effort, skip this tick
            logger.debug(f"Terminal size sample failed: {e}")
            return False

        if current == self._last_sent:
            return False

        try:
            self._channel.resize_pty(width=current.columns, height=current.rows)
        except Exception as e:
            logger.debug(f"Window change to {current} failed: {e}")
        else:
            logger.debug(f"Window change sent: {self._last_sent} -> {current}")
        self._last_sent = current
        return True

    def _run(self) -> None:
        """Polling loop (runs in thread)."""
        # wait() returns True as soon as stop() sets the event
        while not self._stop_event.wait(self._interval):
            self.poll_once()
