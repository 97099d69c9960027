"""
Interactive session lifecycle.

SessionCoordinator drives one remote shell from PTY request to exit:

    bind streams -> measure size -> pty-req -> resize watcher -> raw mode
    -> shell -> wait (shell exit | cancellation) -> unwind

Unwind always runs in this order, for whatever was acquired:

    stop resize watcher -> stop stream pumps -> restore terminal mode

The watcher is stopped before the terminal leaves raw mode so no
window change is in flight while the mode changes back.
"""

from __future__ import annotations
import logging
import threading
from typing import Optional

import paramiko

from ..errors import ProtocolError, TerminalError
from ..terminal.control import RawModeToken, enter_raw, restore
from ..terminal.resize import RESIZE_POLL_INTERVAL, ResizeWatcher
from ..terminal.size import FALLBACK_SIZE, TerminalSnapshot, get_terminal_size
from .base import CancelToken, OneShot, SessionOutcome, SessionState
from .pty import request_pty, start_shell
from .streams import JOIN_TIMEOUT, StreamBinder

logger = logging.getLogger(__name__)

# How often the main thread re-checks for cancellation
WAKEUP_POLL_INTERVAL = 0.1


class SessionCoordinator:
    """
    Runs one interactive shell on an already opened session channel.

    The coordinator owns the channel for the duration of run() but does
    not close it; the connection's owner does that afterwards.
    """

    def __init__(
        self,
        channel: paramiko.Channel,
        stdin_fd: int = None,
        resize_interval: float = RESIZE_POLL_INTERVAL,
    ):
        self._channel = channel
        self._stdin_fd = stdin_fd
        self._resize_interval = resize_interval

        self._state = SessionState.RUNNING
        self._binder: Optional[StreamBinder] = None
        self._binder_started = False
        self._watcher: Optional[ResizeWatcher] = None
        self._raw_token: Optional[RawModeToken] = None

    @property
    def state(self) -> SessionState:
        return self._state

    def _measure_size(self) -> TerminalSnapshot:
        try:
            return get_terminal_size()
        except (OSError, ValueError) as e:
            logger.info(f"Terminal size unavailable ({e}), using {FALLBACK_SIZE}")
            return FALLBACK_SIZE

    def run(self, cancel: CancelToken) -> SessionOutcome:
        """
        Run the shell until it exits or cancel fires.

        Returns:
            The outcome. Cancellation and any shell exit are not errors.

        Raises:
            ProtocolError: PTY or shell request refused, or the connection
                died before the shell reported an exit.
            TerminalError: Local terminal unusable (not a tty, raw mode
                refused, resize tracking unavailable).
        """
        self._state = SessionState.RUNNING
        try:
            self._binder = StreamBinder(self._channel, stdin_fd=self._stdin_fd)

            size = self._measure_size()
            request_pty(self._channel, size)

            watcher = ResizeWatcher(
                self._channel, size, fd=self._stdin_fd, interval=self._resize_interval
            )
            try:
                watcher.start()
            except TerminalError as e:
                raise TerminalError(f"failed to start resize watcher: {e}") from e
            self._watcher = watcher

            self._raw_token = enter_raw(self._stdin_fd)

            start_shell(self._channel)
            self._binder.start()
            self._binder_started = True

            outcome = self._wait(cancel)
            if outcome.completed:
                # Let trailing output reach the screen before unwinding
                self._binder.drain(JOIN_TIMEOUT)
            return outcome
        finally:
            self._unwind()

    def _wait(self, cancel: CancelToken) -> SessionOutcome:
        """Block until the shell exits or cancel fires, whichever is first."""
        wakeup = threading.Event()
        shell_exit = OneShot()

        waiter = threading.Thread(
            target=self._wait_for_exit,
            args=(shell_exit, wakeup),
            name="ash-shell-waiter",
            daemon=True,
        )

        waiter.start()
        # cancel() may run in a signal handler on this thread, so it never
        # touches wakeup; cancellation is polled instead
        while not (shell_exit.fired or cancel.cancelled):
            wakeup.wait(WAKEUP_POLL_INTERVAL)

        exited_first = shell_exit.fired and (
            not cancel.cancelled or shell_exit.fired_at <= cancel.cancelled_at
        )
        if exited_first:
            error, status = shell_exit.value
            if error is not None:
                raise error
            logger.info(f"Remote shell exited (status {status})")
            return SessionOutcome(exit_status=status)

        self._state = SessionState.CANCELLING
        logger.info(f"Session cancelled: {cancel.reason}")
        return SessionOutcome(cancelled=True)

    def _wait_for_exit(self, shell_exit: OneShot, wakeup: threading.Event) -> None:
        """Wait for the remote shell (runs in thread)."""
        error = None
        status = None
        try:
            status = self._channel.recv_exit_status()
            if status == -1:
                status = None
                transport = self._channel.get_transport()
                if transport is None or not transport.is_active():
                    error = ProtocolError(
                        "connection lost before the remote shell reported an exit status"
                    )
        except Exception as e:
            error = ProtocolError(f"waiting for remote shell failed: {e}")

        shell_exit.fire((error, status))
        wakeup.set()

    def _unwind(self) -> None:
        """Release what run() acquired. Never raises."""
        if self._watcher is not None:
            try:
                self._watcher.stop()
            except Exception as e:
                logger.warning(f"Failed to stop resize watcher: {e}")
            self._watcher = None

        if self._binder is not None and self._binder_started:
            try:
                self._binder.stop()
            except Exception as e:
                logger.warning(f"Failed to stop stream pumps: {e}")
            self._binder_started = False

        if self._raw_token is not None:
            restore(self._raw_token)
            self._raw_token = None

        self._state = SessionState.CLOSED
