"""
ash - alias-based interactive SSH shells.

Remembers hosts by alias in ~/.ash/config.yml and attaches the local
terminal to a remote shell:

- Auth: stored password, identity file (with passphrase prompt),
  interactive password prompt as the last resort
- Raw-mode local terminal, restored on every exit path
- Window size changes forwarded to the remote PTY
- Clean shutdown on shell exit, SIGINT or SIGTERM
"""

__version__ = "0.1.0"

from .config import AshConfig, ConfigStore, HostProfile
from .errors import (
    AshError,
    AuthError,
    ConfigError,
    ConnectError,
    LocalIOError,
    ProtocolError,
    TerminalError,
)
from .session import (
    CancelToken,
    HostKeyPolicy,
    SessionOutcome,
    SessionResult,
    run_interactive_session,
)

__all__ = [
    # Config
    "AshConfig",
    "ConfigStore",
    "HostProfile",
    # Errors
    "AshError",
    "AuthError",
    "ConfigError",
    "ConnectError",
    "LocalIOError",
    "ProtocolError",
    "TerminalError",
    # Sessions
    "CancelToken",
    "HostKeyPolicy",
    "SessionOutcome",
    "SessionResult",
    "run_interactive_session",
]
