#!/usr/bin/env python3
"""
networkhub CLI
Start thor test networks on local processes or Docker from a config file.
"""

import logging
import sys
import threading

import click
from rich import box
from rich.table import Table

from networkhub import __version__
from networkhub.constants import BEST_BLOCK, HEALTH_CHECK_TIMEOUT, PEER_WAIT_TIMEOUT
from networkhub.environments import Overseer
from networkhub.errors import NetworkHubError
from networkhub.network.config import NetworkConfig, load_network_config
from networkhub.network.enode import enode
from networkhub.network.health import check_network_health, wait_for_peers_connection
from networkhub.utils import console


def create_nodes_table(network_cfg: NetworkConfig) -> Table:
    """Create a table listing the nodes of a network."""
    table = Table(title=f"Network {network_cfg.id}", box=box.ROUNDED)
    table.add_column("Node", style="cyan")
    table.add_column("API", style="green")
    table.add_column("P2P Port", style="yellow")
    table.add_column("Artifact", style="blue")

    for node in network_cfg.nodes:
        table.add_row(
            node.id, node.http_addr, str(node.p2p_listen_port), node.exec_artifact
        )
    return table


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose):
    """networkhub CLI - Run thor test networks locally or in Docker."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--wait-peers/--no-wait-peers",
    default=True,
    help="Wait until every node is connected to all the others",
)
@click.option(
    "--timeout",
    type=int,
    default=PEER_WAIT_TIMEOUT,
    show_default=True,
    help="Seconds to wait for peers to connect",
)
def start(config_path, wait_peers, timeout):
    """Start the network described in CONFIG_PATH and keep it running until Ctrl-C."""
    try:
        network_cfg = load_network_config(config_path)
        overseer = Overseer(network_cfg)
    except NetworkHubError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    try:
        overseer.start_network()
        console.print(create_nodes_table(overseer.config()))
        if wait_peers:
            wait_for_peers_connection(overseer.config().nodes, timeout)
        console.print("[cyan]Network is running, press Ctrl-C to stop[/cyan]")
        threading.Event().wait()
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping network...[/yellow]")
    except NetworkHubError as e:
        console.print(f"[red]✗ {e}[/red]")
        _stop(overseer)
        sys.exit(1)

    _stop(overseer)


def _stop(overseer: Overseer) -> None:
    try:
        overseer.stop_network()
    except NetworkHubError as e:
        console.print(f"[red]✗ Failed to stop network: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--block", default=BEST_BLOCK, show_default=True, help="Block to check")
@click.option(
    "--timeout", type=int, default=HEALTH_CHECK_TIMEOUT, show_default=True
)
def health(config_path, block, timeout):
    """Check that an already running network is healthy."""
    try:
        check_network_health(load_network_config(config_path), block, timeout)
    except NetworkHubError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


@cli.command(name="enode")
@click.argument("key")
@click.option("--ip", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, required=True, help="P2P port")
def enode_command(key, ip, port):
    """Print the enode for a hex private KEY."""
    try:
        click.echo(enode(key, ip, port))
    except NetworkHubError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


def main():
    """Main entry point for the networkhub CLI."""
    cli()


if __name__ == "__main__":
    main()
