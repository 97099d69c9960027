"""Tests for ash.cli module."""

import signal
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from ash.cli import cancel_on_signals, cli, parse_target
from ash.config import AshConfig, ConfigStore, HostProfile
from ash.errors import AuthError
from ash.session import CancelToken, HostKeyPolicy, SessionOutcome, SessionResult


@pytest.fixture
def config_path(temp_dir: Path) -> Path:
    return temp_dir / "config.yml"


@pytest.fixture
def run_session() -> Generator[MagicMock, None, None]:
    """Patch the session runner; by default the shell exits with status 0."""
    def finish(profile, cancel, policy):
        return SessionResult(profile=profile, outcome=SessionOutcome(exit_status=0))

    with patch("ash.cli.run_interactive_session", side_effect=finish) as mock:
        yield mock


class TestParseTarget:
    """Tests for parse_target function."""

    def test_alias_only(self) -> None:
        """Test a single alias argument."""
        assert parse_target(("box",)) == (None, None, "box")

    def test_user_host_alias(self) -> None:
        """Test user@host plus alias."""
        assert parse_target(("ops@10.0.0.5", "box")) == ("ops", "10.0.0.5", "box")

    @pytest.mark.parametrize("args,message", [
        ((), "too few arguments"),
        (("a", "b", "c"), "too many arguments"),
        (("no-at-sign", "box"), "invalid ssh argument"),
        (("a@b@c", "box"), "invalid ssh argument"),
        (("@host", "box"), "invalid ssh argument"),
    ])
    def test_usage_errors(self, args: tuple, message: str) -> None:
        """Test malformed argument lists."""
        with pytest.raises(click.UsageError, match=message):
            parse_target(args)


class TestCancelOnSignals:
    """Tests for cancel_on_signals context manager."""

    def test_signal_cancels_and_handler_is_restored(self) -> None:
        """Test that SIGTERM inside the block cancels the token."""
        previous = signal.getsignal(signal.SIGTERM)
        token = CancelToken()

        with cancel_on_signals(token, signals=(signal.SIGTERM,)):
            signal.raise_signal(signal.SIGTERM)
            assert token.cancelled

        assert token.reason == "received SIGTERM"
        assert signal.getsignal(signal.SIGTERM) is previous


class TestCli:
    """Tests for the ash command."""

    def test_no_arguments(self, config_path: Path, run_session: MagicMock) -> None:
        """Test the usage error for no arguments."""
        result = CliRunner().invoke(cli, ["--config", str(config_path)])

        assert result.exit_code == 2
        assert "too few arguments" in result.output
        run_session.assert_not_called()

    def test_unknown_alias(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that an unknown alias without user@host fails."""
        result = CliRunner().invoke(cli, ["--config", str(config_path), "nope"])

        assert result.exit_code == 1
        assert "specified alias does not exist" in result.output
        run_session.assert_not_called()
        assert config_path.exists()

    def test_new_host_is_saved(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that a new user@host is connected and stored under its alias."""
        result = CliRunner().invoke(cli, [
            "--config", str(config_path), "-p", "2222", "-i", "/keys/id_ed25519",
            "ops@10.0.0.5", "box",
        ])

        assert result.exit_code == 0, result.output
        assert "Bye!" in result.output

        profile = run_session.call_args[0][0]
        assert profile == HostProfile(
            alias="box", address="10.0.0.5", user="ops", port=2222,
            identity_file="/keys/id_ed25519",
        )
        assert run_session.call_args.kwargs["policy"] is HostKeyPolicy.IGNORE

        saved = ConfigStore(config_path).load()
        assert saved.hosts == [profile]

    def test_new_host_default_identity(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that ~/.ssh/id_rsa is used when no identity is given."""
        with patch("ash.cli.default_identity_file", return_value="/home/ops/.ssh/id_rsa"):
            CliRunner().invoke(cli, ["--config", str(config_path), "ops@h", "box"])

        assert run_session.call_args[0][0].identity_file == "/home/ops/.ssh/id_rsa"

    def test_existing_alias_with_captured_password(
        self, config_path: Path, run_session: MagicMock
    ) -> None:
        """Test that a password typed during the session is persisted."""
        stored = HostProfile(alias="box", address="10.0.0.5", user="ops")
        other = HostProfile(alias="db", address="db.local", user="root")
        ConfigStore(config_path).save(AshConfig(hosts=[stored, other]))

        def finish(profile, cancel, policy):
            return SessionResult(
                profile=profile.with_password("typed"),
                outcome=SessionOutcome(exit_status=0),
            )
        run_session.side_effect = finish

        result = CliRunner().invoke(cli, ["--config", str(config_path), "box"])

        assert result.exit_code == 0, result.output
        assert run_session.call_args[0][0] == stored
        saved = ConfigStore(config_path).load()
        assert [h.alias for h in saved.hosts] == ["box", "db"]
        assert saved.hosts[0].password == "typed"

    def test_session_error(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that a fatal session error exits 1 without saving."""
        run_session.side_effect = AuthError("unable to authenticate")

        result = CliRunner().invoke(cli, ["--config", str(config_path), "ops@h", "box"])

        assert result.exit_code == 1
        assert "error while running ssh: unable to authenticate" in result.output
        assert "Bye!" not in result.output
        assert ConfigStore(config_path).load().hosts == []

    def test_host_key_policy_option(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that --host-key-policy overrides the config file."""
        ConfigStore(config_path).save(AshConfig(
            hosts=[HostProfile(alias="box", address="h", user="u")],
            host_key_policy="warn",
        ))

        CliRunner().invoke(cli, ["--config", str(config_path), "--host-key-policy", "reject", "box"])

        assert run_session.call_args.kwargs["policy"] is HostKeyPolicy.REJECT

    def test_host_key_policy_from_config(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that the config file policy applies without the option."""
        ConfigStore(config_path).save(AshConfig(
            hosts=[HostProfile(alias="box", address="h", user="u")],
            host_key_policy="warn",
        ))

        CliRunner().invoke(cli, ["--config", str(config_path), "box"])

        assert run_session.call_args.kwargs["policy"] is HostKeyPolicy.WARN

    def test_verbose_logs_info(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that -v enables INFO messages."""
        result = CliRunner().invoke(cli, ["--config", str(config_path), "-v", "ops@h", "box"])

        assert "level=INFO" in result.output
        assert "New host box" in result.output

    def test_malformed_config(self, config_path: Path, run_session: MagicMock) -> None:
        """Test that a broken config file is reported."""
        config_path.write_text("hosts: [unclosed\n")

        result = CliRunner().invoke(cli, ["--config", str(config_path), "box"])

        assert result.exit_code == 1
        run_session.assert_not_called()

    def test_interrupt_at_prompt_saves_no_password(self, config_path: Path) -> None:
        """Test that Ctrl-C during login never starts the shell or stores a secret."""
        def resolve(profile, ask):
            signal.raise_signal(signal.SIGINT)
            return []

        with patch("ash.session.runner.resolve_auth_methods", side_effect=resolve), \
                patch("ash.session.runner.TransportConnector") as connector, \
                patch("ash.session.runner.SessionCoordinator") as coordinator:
            connector.return_value.connect.return_value.captured_password = "typed"
            result = CliRunner().invoke(cli, [
                "--config", str(config_path), "-i", "/keys/id", "ops@10.0.0.5", "box",
            ])

        assert result.exit_code == 0, result.output
        connector.return_value.connect.assert_not_called()
        coordinator.assert_not_called()
        saved = ConfigStore(config_path).load()
        assert [h.password for h in saved.hosts] == [None]
        assert signal.getsignal(signal.SIGINT) is signal.default_int_handler
