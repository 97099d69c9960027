"""
Run one interactive session for a host profile, end to end.
"""

from __future__ import annotations
import getpass
import logging

from ..config import HostProfile
from .auth import AskSecret, resolve_auth_methods
from .base import CancelToken, SessionOutcome, SessionResult
from .coordinator import SessionCoordinator
from .transport import HostKeyPolicy, TransportConnector

logger = logging.getLogger(__name__)


def run_interactive_session(
    profile: HostProfile,
    cancel: CancelToken = None,
    policy: HostKeyPolicy = HostKeyPolicy.IGNORE,
    connect_timeout: float = None,
    ask_secret: AskSecret = getpass.getpass,
    stdin_fd: int = None,
) -> SessionResult:
    """
    Authenticate, connect, and run an interactive shell for profile.

    Args:
        profile: Host to connect to
        cancel: Cooperative cancellation (e.g. wired to SIGINT/SIGTERM)
        policy: Host key verification policy
        connect_timeout: TCP connect timeout in seconds, None to wait
        ask_secret: Echo-free prompt used for passphrases and passwords
        stdin_fd: Local input descriptor (stdin by default)

    Returns:
        SessionResult. Its profile carries the password typed at the
        prompt if that is what authenticated. If cancel fires before the
        shell starts, the outcome is cancelled and profile is returned as is.

    Raises:
        AshError: Any fatal error; the connection is closed first.
    """
    cancel = cancel or CancelToken()

    methods = resolve_auth_methods(profile, ask_secret)
    if cancel.cancelled:
        logger.info(f"Cancelled before connecting: {cancel.reason}")
        return SessionResult(profile=profile, outcome=SessionOutcome(cancelled=True))

    connection = TransportConnector(policy, connect_timeout).connect(profile, methods)

    try:
        if cancel.cancelled:
            # Nothing typed during a cancelled login is kept
            logger.info(f"Cancelled before the session started: {cancel.reason}")
            return SessionResult(profile=profile, outcome=SessionOutcome(cancelled=True))

        coordinator = SessionCoordinator(connection.channel, stdin_fd=stdin_fd)
        outcome = coordinator.run(cancel)
    finally:
        connection.close()

    updated = profile
    if connection.captured_password is not None:
        logger.info(f"Recording password for {profile.alias}")
        updated = profile.with_password(connection.captured_password)

    return SessionResult(profile=updated, outcome=outcome)
