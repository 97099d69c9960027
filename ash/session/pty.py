"""
PTY negotiation for the session channel.

paramiko's Channel.get_pty() always sends an empty terminal-modes
string. ash wants explicit modes (echo on, fixed baud hints), so the
pty-req message is built here the same way get_pty() builds it, with
the encoded modes filled in (RFC 4254 section 8).
"""

from __future__ import annotations
import logging
import struct
from typing import Mapping

import paramiko
from paramiko.common import cMSG_CHANNEL_REQUEST

from ..errors import ProtocolError
from ..terminal.size import TerminalSnapshot

logger = logging.getLogger(__name__)

TERM_TYPE = "xterm"

# Terminal mode opcodes
TTY_OP_END = 0
ECHO = 53
TTY_OP_ISPEED = 128
TTY_OP_OSPEED = 129

DEFAULT_TERMINAL_MODES = {
    ECHO: 1,
    TTY_OP_ISPEED: 14400,
    TTY_OP_OSPEED: 14400,
}


def encode_terminal_modes(modes: Mapping[int, int]) -> bytes:
    """
    Encode modes as opcode (byte) + value (uint32) pairs, TTY_OP_END last.
    """
    encoded = bytearray()
    for opcode, value in sorted(modes.items()):
        if not 0 < opcode < 160:
            raise ValueError(f"invalid terminal mode opcode {opcode}")
        encoded += struct.pack(">BI", opcode, value)
    encoded.append(TTY_OP_END)
    return bytes(encoded)


def request_pty(
    channel: paramiko.Channel,
    size: TerminalSnapshot,
    term: str = TERM_TYPE,
    modes: Mapping[int, int] = None,
) -> None:
    """
    Ask the server for a PTY on channel and wait for the reply.

    Raises:
        ProtocolError: The server refused the request or the channel closed.
    """
    if modes is None:
        modes = DEFAULT_TERMINAL_MODES

    m = paramiko.Message()
    m.add_byte(cMSG_CHANNEL_REQUEST)
    m.add_int(channel.remote_chanid)
    m.add_string("pty-req")
    m.add_boolean(True)
    m.add_string(term)
    m.add_int(size.columns)
    m.add_int(size.rows)
    m.add_int(0)
    m.add_int(0)
    m.add_string(encode_terminal_modes(modes))

    try:
        if channel.closed:
            raise paramiko.SSHException("Channel is not open")
        channel._event_pending()
        channel.transport._send_user_message(m)
        channel._wait_for_event()
    except (paramiko.SSHException, EOFError, OSError) as e:
        raise ProtocolError(f"PTY request rejected: {e}") from e

    logger.info(f"PTY allocated: term={term} size={size}")


def start_shell(channel: paramiko.Channel) -> None:
    """
    Start the remote login shell.

    Raises:
        ProtocolError: The server refused to start a shell.
    """
    try:
        channel.invoke_shell()
    except (paramiko.SSHException, EOFError, OSError) as e:
        raise ProtocolError(f"failed to start remote shell: {e}") from e
    logger.info("Remote shell started")
