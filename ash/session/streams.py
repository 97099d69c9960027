"""
Copies bytes between the local standard streams and the session channel.

Two background threads:
    output pump  channel stdout/stderr -> local stdout/stderr
    input pump   local stdin -> channel
"""

from __future__ import annotations
import logging
import os
import select
import socket
import sys
import threading
import time
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

READ_BUFFER_SIZE = 32768
POLL_INTERVAL = 0.01
STDIN_SELECT_TIMEOUT = 0.1
JOIN_TIMEOUT = 1.0


class StreamBinder:
    """
    Binds a channel to the process's stdin/stdout/stderr.

    Usage:
        binder = StreamBinder(channel)
        binder.start()
        ...
        binder.drain(1.0)   # optional: let remaining output through
        binder.stop()
    """

    def __init__(
        self,
        channel,
        stdin_fd: int = None,
        stdout: BinaryIO = None,
        stderr: BinaryIO = None,
    ):
        self._channel = channel
        self._stdin_fd = stdin_fd
        self._stdout = stdout
        self._stderr = stderr

        self._stop_event = threading.Event()
        self._output_thread: Optional[threading.Thread] = None
        self._input_thread: Optional[threading.Thread] = None

    def _resolve_streams(self) -> None:
        if self._stdin_fd is None:
            self._stdin_fd = sys.stdin.fileno()
        if self._stdout is None:
            self._stdout = sys.stdout.buffer
        if self._stderr is None:
            self._stderr = sys.stderr.buffer

    def start(self) -> None:
        """Start both pumps."""
        self._resolve_streams()
        self._stop_event.clear()

        self._output_thread = threading.Thread(
            target=self._output_loop, name="ash-output-pump", daemon=True
        )
        self._input_thread = threading.Thread(
            target=self._input_loop, name="ash-input-pump", daemon=True
        )
        self._output_thread.start()
        self._input_thread.start()

    def drain(self, timeout: float = JOIN_TIMEOUT) -> bool:
        """
        Wait for the output pump to reach end of stream.

        Returns:
            True if all remote output was copied.
        """
        if self._output_thread is None:
            return True
        self._output_thread.join(timeout)
        return not self._output_thread.is_alive()

    def stop(self) -> None:
        """Stop both pumps and wait for them to exit."""
        self._stop_event.set()
        for thread in (self._input_thread, self._output_thread):
            if thread is None or thread is threading.current_thread():
                continue
            thread.join(JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning(f"{thread.name} did not stop within {JOIN_TIMEOUT}s")
        self._input_thread = None
        self._output_thread = None

    def _write(self, stream: BinaryIO, data: bytes) -> None:
        stream.write(data)
        stream.flush()

    def _output_loop(self) -> None:
        """Copy remote output until end of stream or stop."""
        channel = self._channel
        while not self._stop_event.is_set():
            try:
                if channel.recv_ready():
                    data = channel.recv(READ_BUFFER_SIZE)
                    if not data:
                        logger.debug("Remote output reached end of stream")
                        break
                    self._write(self._stdout, data)
                elif channel.recv_stderr_ready():
                    self._write(self._stderr, channel.recv_stderr(READ_BUFFER_SIZE))
                elif channel.closed or channel.eof_received:
                    # Data may have landed between the ready checks and EOF
                    if channel.recv_ready() or channel.recv_stderr_ready():
                        continue
                    logger.debug("Channel closed")
                    break
                else:
                    time.sleep(POLL_INTERVAL)

            except socket.timeout:
                continue
            except Exception as e:
                logger.debug(f"Output pump stopped: {e}")
                break

    def _input_loop(self) -> None:
        """Copy local keystrokes to the channel until EOF or stop."""
        fd = self._stdin_fd
        while not self._stop_event.is_set():
            try:
                ready, _, _ = select.select([fd], [], [], STDIN_SELECT_TIMEOUT)
                if not ready:
                    continue
                data = os.read(fd, READ_BUFFER_SIZE)
                if not data:
                    logger.debug("Local input reached end of file")
                    self._channel.shutdown_write()
                    break
                self._channel.sendall(data)

            except InterruptedError:
                continue
            except Exception as e:
                logger.debug(f"Input pump stopped: {e}")
                break
