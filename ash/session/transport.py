"""
Opens the SSH transport and the single session channel.

Handshake, key exchange and encryption are paramiko's job; this module
decides which credential to offer on each attempt and turns paramiko's
exceptions into ash errors.
"""

from __future__ import annotations
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

import paramiko

from ..config import HostProfile
from ..errors import AuthError, ConnectError
from .auth import AuthMethod, InteractivePromptAuth, PasswordAuth, PublicKeyAuth

logger = logging.getLogger(__name__)


class HostKeyPolicy(Enum):
    """
    What to do with the server's host key.

    IGNORE is the historical default: nothing is verified. It is kept as
    the default for compatibility and logged as insecure.
    """
    IGNORE = "ignore"
    WARN = "warn"
    AUTO_ADD = "auto-add"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: str) -> HostKeyPolicy:
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(f"unknown host key policy '{value}' (choose from {choices})")


def _missing_host_key_policy(policy: HostKeyPolicy) -> paramiko.MissingHostKeyPolicy:
    if policy is HostKeyPolicy.WARN:
        return paramiko.WarningPolicy()
    if policy is HostKeyPolicy.AUTO_ADD:
        return paramiko.AutoAddPolicy()
    if policy is HostKeyPolicy.REJECT:
        return paramiko.RejectPolicy()
    # Base policy accepts any key silently
    return paramiko.MissingHostKeyPolicy()


class PromptedPassword(paramiko.AuthStrategy):
    """
    Password auth whose secret is asked for only after the handshake.

    An unreachable host or a rejected host key therefore never reaches
    the prompt. The secret that was sent is kept in `secret`.
    """

    def __init__(self, username: str, ask: Callable[[], str]):
        super().__init__(ssh_config=None)
        self.username = username
        self.ask = ask
        self.secret: Optional[str] = None

    def _ask(self) -> str:
        self.secret = self.ask()
        return self.secret

    def get_sources(self):
        yield paramiko.Password(self.username, self._ask)

    def authenticate(self, transport: paramiko.Transport):
        # Unlike the base class, errors from the prompt propagate
        for source in self.get_sources():
            return source.authenticate(transport)


@dataclass
class Connection:
    """
    A connected client and its open session channel.

    Owned by whoever called connect(); close() releases the channel
    first, then the transport.
    """
    client: paramiko.SSHClient
    channel: paramiko.Channel
    method: str
    captured_password: Optional[str] = None

    def close(self) -> None:
        """Close channel then client. Failures are logged, not raised."""
        if self.channel is not None:
            try:
                self.channel.close()
            except Exception as e:
                logger.warning(f"Failed to close session channel: {e}")
            self.channel = None

        if self.client is not None:
            try:
                self.client.close()
            except Exception as e:
                logger.warning(f"Failed to close SSH transport: {e}")
            self.client = None


class TransportConnector:
    """
    Connects to a host trying each auth method in order.

    Every attempt uses a fresh SSHClient offering exactly one credential,
    so paramiko never falls back to agent or ~/.ssh keys on its own.
    """

    def __init__(
        self,
        policy: HostKeyPolicy = HostKeyPolicy.IGNORE,
        connect_timeout: float = None,
    ):
        self.policy = policy
        self.connect_timeout = connect_timeout

    def _create_client(self) -> paramiko.SSHClient:
        """Create a new SSHClient honouring the host key policy."""
        client = paramiko.SSHClient()
        if self.policy is not HostKeyPolicy.IGNORE:
            client.load_system_host_keys()
        client.set_missing_host_key_policy(_missing_host_key_policy(self.policy))
        return client

    def _credential_kwargs(self, profile: HostProfile, method: AuthMethod) -> dict:
        """Connect kwargs offering exactly the credential of method."""
        kwargs = {'look_for_keys': False, 'allow_agent': False}

        if isinstance(method, PasswordAuth):
            kwargs["password"] = method.secret
            return kwargs

        if isinstance(method, PublicKeyAuth):
            kwargs["pkey"] = method.key
            return kwargs

        if isinstance(method, InteractivePromptAuth):
            kwargs["auth_strategy"] = PromptedPassword(profile.user, method.ask)
            return kwargs

        raise TypeError(f"Unsupported auth method: {method!r}")

    def _attempt(self, profile: HostProfile, kwargs: dict) -> paramiko.SSHClient:
        client = self._create_client()
        try:
            client.connect(
                profile.address,
                port=profile.port,
                username=profile.user,
                timeout=self.connect_timeout,
                **kwargs
            )
        except BaseException:
            client.close()
            raise
        return client

    def connect(self, profile: HostProfile, methods: Sequence[AuthMethod]) -> Connection:
        """
        Authenticate and open a session channel.

        Raises:
            ConnectError: Network failure, host key rejected, or the
                channel could not be opened.
            AuthError: The server rejected every method.
        """
        if self.policy is HostKeyPolicy.IGNORE:
            logger.info(f"Host key verification disabled for {profile.address}")

        client = None
        used = None
        captured = None
        last_error: Optional[Exception] = None

        for method in methods:
            kwargs = self._credential_kwargs(profile, method)
            logger.info(f"Trying auth method {method.kind} for {profile.target}")
            try:
                client = self._attempt(profile, kwargs)
            except paramiko.AuthenticationException as e:
                last_error = e
                logger.info(f"Auth method {method.kind} rejected: {e}")
                continue
            except paramiko.BadHostKeyException as e:
                raise ConnectError(f"host key mismatch for {profile.address}: {e}") from e
            except (paramiko.SSHException, socket.timeout, OSError) as e:
                raise ConnectError(f"cannot connect to {profile.target}: {e}") from e

            used = method.kind
            strategy = kwargs.get("auth_strategy")
            captured = strategy.secret if strategy is not None else None
            break

        if client is None:
            raise AuthError(f"unable to authenticate as {profile.user}: {last_error or 'no methods'}")

        logger.info(f"Authenticated to {profile.target} with {used}")

        try:
            transport = client.get_transport()
            if transport is None or not transport.is_active():
                raise paramiko.SSHException("transport closed after authentication")
            channel = transport.open_session()
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise ConnectError(f"cannot open session channel: {e}") from e

        return Connection(client=client, channel=channel, method=used, captured_password=captured)
