"""
Persistent host aliases for ash.
Stored in ~/.ash/config.yml
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Default config location
DEFAULT_CONFIG_DIR = Path.home() / ".ash"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yml"

DEFAULT_PORT = 22
DEFAULT_HOST_KEY_POLICY = "ignore"


@dataclass(frozen=True)
class HostProfile:
    """
    One remembered SSH host.

    The session core only ever reads a profile. A password captured
    during authentication comes back as a new profile via with_password().
    """
    alias: str
    address: str
    user: str
    port: int = DEFAULT_PORT
    identity_file: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        if not 1 <= self.port <= 65535:
            raise ConfigError(f"invalid port {self.port} for '{self.alias}': expected 1-65535")

    @property
    def target(self) -> str:
        """user@address:port, for log lines."""
        return f"{self.user}@{self.address}:{self.port}"

    def with_password(self, password: str) -> HostProfile:
        """Copy of this profile with the password replaced."""
        return replace(self, password=password)

    def to_dict(self) -> dict:
        """Serialize using the on-disk key names."""
        return {
            "alias": self.alias,
            "host_name": self.address,
            "user": self.user,
            "password": self.password or "",
            "port": self.port,
            "identityFile": self.identity_file or "",
        }

    @classmethod
    def from_dict(cls, data: dict) -> HostProfile:
        """Deserialize from the on-disk key names."""
        if not isinstance(data, dict):
            raise ConfigError(f"host entry must be a mapping, got {type(data).__name__}")

        alias = data.get("alias")
        if not alias:
            raise ConfigError("host entry without alias")

        try:
            port = int(data.get("port") or DEFAULT_PORT)
        except (TypeError, ValueError):
            raise ConfigError(f"invalid port {data.get('port')!r} for '{alias}'")

        return cls(
            alias=str(alias),
            address=str(data.get("host_name") or ""),
            user=str(data.get("user") or ""),
            port=port,
            identity_file=data.get("identityFile") or None,
            password=data.get("password") or None,
        )


@dataclass
class AshConfig:
    """
    Everything the config file holds.
    """
    hosts: list[HostProfile] = field(default_factory=list)
    verbose: bool = False
    host_key_policy: str = DEFAULT_HOST_KEY_POLICY

    def find(self, alias: str) -> Optional[HostProfile]:
        """Return the host stored under alias, or None."""
        for host in self.hosts:
            if host.alias == alias:
                return host
        return None

    def upsert(self, profile: HostProfile) -> None:
        """Replace the host with the same alias, or append it."""
        for i, host in enumerate(self.hosts):
            if host.alias == profile.alias:
                self.hosts[i] = profile
                return
        self.hosts.append(profile)

    def to_dict(self) -> dict:
        """Serialize to dict. Default-valued settings are left out."""
        data: dict = {}
        if self.hosts:
            data["hosts"] = [host.to_dict() for host in self.hosts]
        if self.verbose:
            data["verbose"] = True
        if self.host_key_policy != DEFAULT_HOST_KEY_POLICY:
            data["host_key_policy"] = self.host_key_policy
        return data

    @classmethod
    def from_dict(cls, data: dict) -> AshConfig:
        """Deserialize from dict, ignoring unknown keys."""
        hosts = [HostProfile.from_dict(item) for item in data.get("hosts") or []]
        return cls(
            hosts=hosts,
            verbose=bool(data.get("verbose", False)),
            host_key_policy=str(data.get("host_key_policy") or DEFAULT_HOST_KEY_POLICY),
        )


class ConfigStore:
    """
    Loads and saves the config file at one explicit path.

    Usage:
        store = ConfigStore()
        config = store.load()

        config.upsert(profile)
        store.save(config)
    """

    def __init__(self, config_path: Path = None):
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE

    @property
    def path(self) -> Path:
        """Get the config file path."""
        return self._config_path

    def ensure_exists(self) -> None:
        """Create the config directory and an empty config file if missing."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            if not self._config_path.exists():
                self._config_path.touch()
                logger.info(f"Created empty config at {self._config_path}")
        except OSError as e:
            raise ConfigError(f"cannot create config file {self._config_path}: {e}") from e

    def load(self) -> AshConfig:
        """Load config from disk. A missing or empty file is an empty config."""
        if not self._config_path.exists():
            logger.debug(f"No config file at {self._config_path}, using defaults")
            return AshConfig()

        try:
            with open(self._config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"cannot read config file {self._config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"config file parsing error: {e}") from e

        if data is None:
            return AshConfig()
        if not isinstance(data, dict):
            raise ConfigError(f"config file {self._config_path} must hold a mapping")

        config = AshConfig.from_dict(data)
        logger.debug(f"Loaded {len(config.hosts)} host(s) from {self._config_path}")
        return config

    def save(self, config: AshConfig) -> None:
        """Write config to disk."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self._config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"cannot write config file {self._config_path}: {e}") from e
        logger.debug(f"Saved {len(config.hosts)} host(s) to {self._config_path}")


def default_identity_file(home: Path = None) -> Optional[str]:
    """Path of ~/.ssh/id_rsa if it exists, else None."""
    home = home or Path.home()
    key_path = home / ".ssh" / "id_rsa"
    if key_path.is_file():
        return str(key_path)
    return None
