"""
Health command - Report chain readiness and height of a running node.
"""

import asyncio
import sys

import click
from rich import box
from rich.table import Table

from avabox.commands.constants import DEFAULT_CHAINS, DEFAULT_RPC_PORT
from avabox.commands.errors import ClientError
from avabox.commands.rpc import RpcClient
from avabox.commands.utils import console


async def check_node_health(rpc: RpcClient, chains) -> dict:
    """Query isBootstrapped for each chain and the platform height."""
    status = {}
    for chain in chains:
        try:
            status[chain] = await rpc.info_is_bootstrapped(chain)
        except ClientError as e:
            status[chain] = e
    try:
        height = await rpc.platform_get_height()
    except ClientError as e:
        height = e
    return {"chains": status, "height": height}


@click.command()
@click.option("--host", default="127.0.0.1", help="Host the node RPC port is published on")
@click.option("--port", type=int, default=DEFAULT_RPC_PORT, help="Published RPC port")
@click.option(
    "--chain",
    "chains",
    multiple=True,
    default=DEFAULT_CHAINS,
    help="Chain alias to check (repeatable)",
)
def health(host, port, chains):
    """Check whether a node's chains are bootstrapped."""
    rpc = RpcClient.for_port(port, host=host)
    report = asyncio.run(check_node_health(rpc, chains))

    table = Table(title=f"Node {host}:{port}", box=box.ROUNDED)
    table.add_column("Chain", style="cyan")
    table.add_column("Bootstrapped", style="green")

    healthy = True
    for chain, state in report["chains"].items():
        if isinstance(state, Exception):
            healthy = False
            table.add_row(chain, f"[red]error: {state}[/red]")
        elif state:
            table.add_row(chain, "[green]yes[/green]")
        else:
            healthy = False
            table.add_row(chain, "[yellow]no[/yellow]")
    console.print(table)

    height = report["height"]
    if isinstance(height, Exception):
        console.print(f"[red]Platform height unavailable: {height}[/red]")
        healthy = False
    else:
        console.print(f"[cyan]Platform chain height: {height}[/cyan]")

    sys.exit(0 if healthy else 1)
