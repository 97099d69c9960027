"""Pytest fixtures and configuration."""

import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Generator

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ash.config import HostProfile

KEY_PASSPHRASE = "correct horse"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_ash_logger() -> Generator[None, None, None]:
    """Drop handlers installed by setup_logging() between tests."""
    yield
    log = logging.getLogger("ash")
    for handler in list(log.handlers):
        log.removeHandler(handler)
    log.propagate = True
    log.setLevel(logging.NOTSET)


@pytest.fixture
def box_profile() -> HostProfile:
    """The 'box' host with a stored password."""
    return HostProfile(
        alias="box",
        address="10.0.0.5",
        user="ops",
        port=22,
        identity_file=None,
        password="secret",
    )


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """One RSA key for the whole run; generation is slow-ish."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def plain_key_file(temp_dir: Path, rsa_private_key: rsa.RSAPrivateKey) -> Path:
    """Unencrypted PEM private key on disk."""
    pem = rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    path = temp_dir / "id_rsa"
    path.write_bytes(pem)
    return path


@pytest.fixture
def encrypted_key_file(temp_dir: Path, rsa_private_key: rsa.RSAPrivateKey) -> Path:
    """PEM private key protected by KEY_PASSPHRASE."""
    pem = rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.BestAvailableEncryption(KEY_PASSPHRASE.encode()),
    )
    path = temp_dir / "id_rsa_protected"
    path.write_bytes(pem)
    return path


class FakeChannel:
    """
    Scripted stand-in for paramiko.Channel's stream methods.

    Output chunks are served in order; after the last one the channel
    reports end of stream unless keep_open is set.
    """

    def __init__(self, output: list[bytes] = None, stderr: list[bytes] = None, keep_open: bool = False):
        self.keep_open = keep_open
        self._lock = threading.Lock()
        self._output = list(output or [])
        self._stderr = list(stderr or [])
        self.sent: list[bytes] = []
        self.write_shut = threading.Event()
        self.closed = False

    @property
    def eof_received(self) -> bool:
        with self._lock:
            return not self.keep_open and not self._output and not self._stderr

    def recv_ready(self) -> bool:
        with self._lock:
            return bool(self._output)

    def recv(self, size: int) -> bytes:
        with self._lock:
            return self._output.pop(0) if self._output else b""

    def recv_stderr_ready(self) -> bool:
        with self._lock:
            return bool(self._stderr)

    def recv_stderr(self, size: int) -> bytes:
        with self._lock:
            return self._stderr.pop(0) if self._stderr else b""

    def sendall(self, data: bytes) -> None:
        with self._lock:
            self.sent.append(data)

    def shutdown_write(self) -> None:
        self.write_shut.set()


@pytest.fixture
def fake_channel_factory():
    """Build FakeChannel instances."""
    return FakeChannel


@pytest.fixture
def key_passphrase() -> str:
    """Passphrase protecting encrypted_key_file."""
    return KEY_PASSPHRASE
