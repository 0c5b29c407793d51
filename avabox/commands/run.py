"""
Run command - Bring up a test network from a YAML definition.
"""

import asyncio
import signal
import sys

import click
import docker
from rich import box
from rich.table import Table

from avabox.commands.config import load_network_config
from avabox.commands.errors import AvaboxError, ConfigurationError
from avabox.commands.network import AvalancheNetwork
from avabox.commands.result import all_succeeded
from avabox.commands.utils import console


async def _run_network(network: AvalancheNetwork, skip_subnets: bool) -> dict:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, network.cancel.cancel, f"received {sig.name}")
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on some platforms
            pass

    results = await network.start(skip_subnets=skip_subnets)
    height = await network.height()
    console.print(f"[cyan]Platform chain height: {height}[/cyan]")
    return results


def _print_subnets(network: AvalancheNetwork, results: dict) -> None:
    """Print the subnets and chains each node created."""
    table = Table(title="Subnets", box=box.ROUNDED)
    table.add_column("Node", style="cyan")
    table.add_column("Subnet", style="blue")
    table.add_column("Subnet ID", style="yellow")
    table.add_column("Chain ID", style="magenta")
    table.add_column("Status", style="green")

    for node in network.nodes:
        result = results.get(node.index)
        if result is None:
            continue
        for subnet in node.descriptor.subnets:
            if subnet.is_created:
                status = "[green]created[/green]"
            elif result["success"]:
                status = "[yellow]pending[/yellow]"
            else:
                status = f"[red]{result['error']}[/red]"
            table.add_row(
                node.name,
                subnet.name,
                subnet.subnet_id or "-",
                subnet.chain_id or "-",
                status,
            )

    if table.row_count:
        console.print(table)


@click.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--skip-subnets",
    is_flag=True,
    help="Stop once every node is bootstrapped, without creating subnets",
)
@click.option(
    "--keep",
    is_flag=True,
    help="Leave containers, volumes and the network in place afterwards",
)
def run(config_path, skip_subnets, keep):
    """Start an Avalanche test network and create its subnets."""
    try:
        config = load_network_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)

    network = AvalancheNetwork(config)
    exit_code = 0
    try:
        results = asyncio.run(_run_network(network, skip_subnets))
        _print_subnets(network, results)
        if not all_succeeded(results.values()):
            exit_code = 1
    except AvaboxError as e:
        console.print(f"[red]❌ {e}[/red]")
        if e.details:
            for key, value in e.details.items():
                console.print(f"  {key}: {value}")
        exit_code = 1
    except docker.errors.DockerException as e:
        console.print(f"[red]❌ Docker error: {str(e)}[/red]")
        exit_code = 1
    finally:
        if not keep:
            network.teardown()

    if exit_code == 0:
        console.print(f"[green]✓ Network {config.name} completed[/green]")
    sys.exit(exit_code)
