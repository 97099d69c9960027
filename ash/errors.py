"""
Error taxonomy for ash.

Every failure the session lifecycle can report derives from AshError,
so callers can catch one type and still tell the causes apart.
"""


class AshError(Exception):
    """Base class for all ash errors."""
    pass


class ConfigError(AshError):
    """Config file unreadable, malformed, or holds invalid values."""
    pass


class LocalIOError(AshError):
    """Local file or descriptor access failed (e.g. identity file)."""
    pass


class AuthError(AshError):
    """All auth methods were rejected, or a key passphrase was wrong."""
    pass


class ConnectError(AshError):
    """Transport-level connection failure."""
    pass


class ProtocolError(AshError):
    """Remote side rejected a PTY or shell request, or the channel died."""
    pass


class TerminalError(AshError):
    """Local terminal is not interactive or refused a mode change."""
    pass
