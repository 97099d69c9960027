"""
ash/cli.py

Command-line entry point.

Usage:
    ash [OPTIONS] ALIAS              connect to a saved alias
    ash [OPTIONS] USER@HOST ALIAS    connect and save the host as ALIAS
"""

from __future__ import annotations
import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import click

from .config import ConfigStore, HostProfile, default_identity_file
from .errors import AshError, ConfigError
from .logger import setup_logging
from .session import CancelToken, HostKeyPolicy, run_interactive_session

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def parse_target(args: tuple[str, ...]) -> tuple[Optional[str], Optional[str], str]:
    """
    Split positional arguments into (user, host, alias).

    Raises:
        click.UsageError: Wrong number of arguments or malformed user@host.
    """
    if len(args) == 0:
        raise click.UsageError("too few arguments")
    if len(args) > 2:
        raise click.UsageError("too many arguments")

    if len(args) == 1:
        return None, None, args[0]

    ssh_arg, alias = args
    parts = ssh_arg.split("@")
    if len(parts) != 2 or not all(parts):
        raise click.UsageError(f"invalid ssh argument: expected user@host, got {ssh_arg}")
    return parts[0], parts[1], alias


@contextmanager
def cancel_on_signals(cancel: CancelToken, signals=CANCEL_SIGNALS) -> Iterator[CancelToken]:
    """Route SIGINT/SIGTERM to cancel while the block runs."""
    def handler(signum, frame):
        cancel.cancel(f"received {signal.Signals(signum).name}")

    previous = {}
    for signum in signals:
        previous[signum] = signal.signal(signum, handler)
    try:
        yield cancel
    finally:
        for signum, old_handler in previous.items():
            signal.signal(signum, old_handler)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Path to config file (default: ~/.ash/config.yml)")
@click.option("-p", "--port", type=click.IntRange(1, 65535), default=22, show_default=True,
              help="Port for a new host")
@click.option("-i", "--identity-file", default=None,
              help="Identity file for a new host (default: ~/.ssh/id_rsa if present)")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option("--host-key-policy", type=click.Choice([p.value for p in HostKeyPolicy]),
              default=None, help="Host key verification (default: ignore)")
@click.argument("args", nargs=-1)
def cli(config_path, port, identity_file, verbose, host_key_policy, args):
    """Open an interactive SSH shell to a saved or new host alias."""
    user, address, alias = parse_target(args)

    store = ConfigStore(config_path)
    try:
        store.ensure_exists()
        config = store.load()
    except ConfigError as e:
        raise click.ClickException(str(e))

    log = setup_logging(verbose or config.verbose)

    try:
        policy = HostKeyPolicy.parse(host_key_policy or config.host_key_policy)
    except ValueError as e:
        raise click.ClickException(str(e))

    host = config.find(alias)
    if host is None:
        if user is None or address is None:
            log.error("specified alias does not exist")
            sys.exit(1)

        host = HostProfile(
            alias=alias,
            address=address,
            user=user,
            port=port,
            identity_file=identity_file or default_identity_file(),
        )
        config.hosts.append(host)
        log.info(f"New host {alias} -> {host.target}")

    cancel = CancelToken()
    try:
        with cancel_on_signals(cancel):
            result = run_interactive_session(host, cancel, policy=policy)
    except AshError as e:
        log.error(f"error while running ssh: {e}")
        sys.exit(1)

    config.upsert(result.profile)
    try:
        store.save(config)
    except ConfigError as e:
        log.error(f"error while saving config data: {e}")
        sys.exit(1)

    click.echo("Bye!")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
