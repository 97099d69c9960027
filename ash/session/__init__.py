"""
Session management - auth, transport, and the interactive shell lifecycle.

Entry point:

- run_interactive_session(): resolve auth, connect, run the shell,
  return the result plus the profile to persist

Building blocks:

- resolve_auth_methods(): ordered auth methods for a host
- TransportConnector: paramiko connection + session channel
- SessionCoordinator: PTY, raw mode, resize tracking, shutdown
"""

from .base import (
    SessionState,
    SessionOutcome,
    SessionResult,
    CancelToken,
    OneShot,
)
from .auth import (
    AuthMethod,
    PasswordAuth,
    PublicKeyAuth,
    InteractivePromptAuth,
    resolve_auth_methods,
    load_private_key,
)
from .transport import Connection, HostKeyPolicy, PromptedPassword, TransportConnector
from .pty import request_pty, start_shell, encode_terminal_modes
from .streams import StreamBinder
from .coordinator import SessionCoordinator
from .runner import run_interactive_session

__all__ = [
    # Base types
    "SessionState",
    "SessionOutcome",
    "SessionResult",
    "CancelToken",
    "OneShot",
    # Auth
    "AuthMethod",
    "PasswordAuth",
    "PublicKeyAuth",
    "InteractivePromptAuth",
    "resolve_auth_methods",
    "load_private_key",
    # Transport
    "Connection",
    "HostKeyPolicy",
    "TransportConnector",
    "PromptedPassword",
    # PTY
    "request_pty",
    "start_shell",
    "encode_terminal_modes",
    # Lifecycle
    "StreamBinder",
    "SessionCoordinator",
    "run_interactive_session",
]
