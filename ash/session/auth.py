"""
Builds the ordered list of authentication methods offered to the server.

Order:
    1. stored password, or else the identity file's key
    2. interactive password prompt (always last)
"""

from __future__ import annotations
import getpass
import logging
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Callable, Optional, Union

import paramiko

from ..config import HostProfile
from ..errors import AuthError, LocalIOError

logger = logging.getLogger(__name__)

# Tried in order when decoding an identity file
KEY_CLASSES = (
    paramiko.RSAKey,
    paramiko.Ed25519Key,
    paramiko.ECDSAKey,
)

AskSecret = Callable[[str], str]


@dataclass(frozen=True)
class PasswordAuth:
    """Stored password."""
    secret: str = field(repr=False)
    kind: str = field(default="password", init=False)


@dataclass(frozen=True)
class PublicKeyAuth:
    """Decoded private key from the identity file."""
    key: paramiko.PKey = field(repr=False)
    source: str = ""
    kind: str = field(default="publickey", init=False)


@dataclass(frozen=True)
class InteractivePromptAuth:
    """
    Ask the user for a password when the server gets this far.

    ask() returns the typed secret. The profile is never touched here;
    whoever runs the handshake reports the secret that worked.
    """
    ask: Callable[[], str] = field(repr=False)
    kind: str = field(default="interactive", init=False)


AuthMethod = Union[PasswordAuth, PublicKeyAuth, InteractivePromptAuth]


def password_prompt(ask_secret: AskSecret = getpass.getpass) -> Callable[[], str]:
    """
    Build the callback behind InteractivePromptAuth.

    getpass disables echo while reading and prints the newline the
    user's Enter did not.
    """
    def ask() -> str:
        try:
            return ask_secret("Password: ")
        except (EOFError, OSError) as e:
            raise LocalIOError(f"failed to read password: {e}") from e

    return ask


def load_private_key(key_data: str, passphrase: str = None) -> paramiko.PKey:
    """
    Decode a private key, trying each supported key type.

    Raises:
        paramiko.PasswordRequiredException: Key is encrypted and no
            passphrase was given.
        paramiko.SSHException: No key type could decode the data.
    """
    key_file = StringIO(key_data)
    last_error: Optional[Exception] = None

    for key_class in KEY_CLASSES:
        try:
            key_file.seek(0)
            return key_class.from_private_key(key_file, password=passphrase)
        except paramiko.PasswordRequiredException:
            raise
        except (paramiko.SSHException, ValueError, TypeError) as e:
            last_error = e
            continue

    raise paramiko.SSHException(f"Unable to parse private key: {last_error}")


def _read_identity_file(path: str) -> str:
    try:
        return Path(path).expanduser().read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise LocalIOError(f"cannot read identity file {path}: {e}") from e


def _decode_identity(path: str, ask_secret: AskSecret) -> paramiko.PKey:
    key_data = _read_identity_file(path)

    try:
        return load_private_key(key_data)
    except paramiko.PasswordRequiredException:
        logger.info(f"Identity file {path} is passphrase protected")
    except paramiko.SSHException as e:
        raise LocalIOError(f"cannot decode identity file {path}: {e}") from e

    try:
        passphrase = ask_secret(f"Enter passphrase for {path}: ")
    except (EOFError, OSError) as e:
        raise LocalIOError(f"failed to read passphrase: {e}") from e

    try:
        return load_private_key(key_data, passphrase)
    except paramiko.SSHException as e:
        # One attempt only; the password prompt is not offered after this
        raise AuthError("wrong passphrase") from e


def resolve_auth_methods(
    profile: HostProfile,
    ask_secret: AskSecret = getpass.getpass,
) -> list[AuthMethod]:
    """
    Build the auth methods to offer for profile, in order.

    Args:
        profile: Host being connected to
        ask_secret: Echo-free prompt, getpass-compatible

    Returns:
        Ordered methods; the interactive prompt is always last.

    Raises:
        LocalIOError: Identity file unreadable or not a supported key.
        AuthError: Wrong passphrase for an encrypted identity file.
    """
    methods: list[AuthMethod] = []

    if profile.password:
        methods.append(PasswordAuth(profile.password))
    elif profile.identity_file:
        key = _decode_identity(profile.identity_file, ask_secret)
        methods.append(PublicKeyAuth(key, source=profile.identity_file))

    methods.append(InteractivePromptAuth(password_prompt(ask_secret)))

    logger.info(f"Auth methods for {profile.alias}: {[m.kind for m in methods]}")
    return methods
