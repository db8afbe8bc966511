"""Typer-based CLI for inspecting a Druid cluster through ZooKeeper."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

import typer

from druid_discovery import __version__
from druid_discovery.cluster_membership import DruidClusterMembership
from druid_discovery.config import DiscoveryOptions, load_options
from druid_discovery.connection.connection_manager import ConnectionManager
from druid_discovery.discovery.service_lookup import ServiceLookup
from druid_discovery.exceptions import ServiceLookupError

app = typer.Typer(help="Druid cluster discovery CLI", no_args_is_help=True, pretty_exceptions_enable=False)

ConfigOption = typer.Option(None, "--config", "-c", help="YAML file with discovery options.")
HostsOption = typer.Option(None, "--zk-hosts", help="Override the ZooKeeper connect string.")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
        handlers=[logging.StreamHandler()],
    )


def _resolve_options(config: Optional[Path], zk_hosts: Optional[str]) -> DiscoveryOptions:
    options = load_options(config)
    if zk_hosts:
        options = options.model_copy(update={"zk_hosts": zk_hosts})
    return options


def _open_connection(options: DiscoveryOptions) -> ConnectionManager:
    return ConnectionManager.connect(
        options.zk_hosts,
        session_timeout_ms=options.zk_session_timeout_ms,
        compression_enabled=options.zk_enable_compression,
        retry=options.retry,
        connect_timeout=options.zk_connect_timeout_s,
    )


def _build_lookup(options: DiscoveryOptions, connection: ConnectionManager) -> ServiceLookup:
    return ServiceLookup(
        connection,
        options.discovery_path,
        name_prefix=options.zk_druid_path if options.zk_qualify_discovery_names else None,
    )


@app.command()
def version() -> None:
    """Print the library version."""
    typer.echo(f"druid-discovery {__version__}")


@app.command()
def services(
    name: str = typer.Argument(..., help="Service name, e.g. 'broker' or 'coordinator'."),
    config: Optional[Path] = ConfigOption,
    zk_hosts: Optional[str] = HostsOption,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List every live instance of a named service."""
    _configure_logging(verbose)
    options = _resolve_options(config, zk_hosts)
    connection = _open_connection(options)
    try:
        for instance in _build_lookup(options, connection).get_services(name):
            typer.echo(instance)
    except ServiceLookupError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    finally:
        connection.close()


@app.command()
def broker(
    config: Optional[Path] = ConfigOption,
    zk_hosts: Optional[str] = HostsOption,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Print one live broker."""
    _configure_logging(verbose)
    options = _resolve_options(config, zk_hosts)
    connection = _open_connection(options)
    try:
        typer.echo(_build_lookup(options, connection).get_service("broker"))
    except ServiceLookupError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    finally:
        connection.close()


@app.command()
def watch(
    config: Optional[Path] = ConfigOption,
    zk_hosts: Optional[str] = HostsOption,
    seconds: Optional[float] = typer.Option(None, "--seconds", help="Stop after this many seconds."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Follow data servers, segments and brokers until interrupted."""
    _configure_logging(verbose)
    logger = logging.getLogger("druid_discovery.watch")
    options = _resolve_options(config, zk_hosts)

    def on_segment_change(payload: bytes) -> None:
        logger.info("Segment change (%d bytes)", len(payload))

    stop = threading.Event()
    with DruidClusterMembership(options, on_segment_change=on_segment_change) as membership:
        try:
            while not stop.wait(timeout=seconds if seconds is not None else 5.0):
                logger.info(
                    "%d data servers, brokers: %s",
                    len(membership.active_servers()),
                    ", ".join(membership.brokers()) or "-",
                )
                if seconds is not None:
                    break
        except KeyboardInterrupt:
            logger.info("Interrupted, closing watches")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
