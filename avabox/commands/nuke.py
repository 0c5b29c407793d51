"""
Nuke command - Remove every Docker resource created for a test network.

Containers, volumes and networks are found by their cleanup label, so
resources left behind by an interrupted run can be removed later.
"""

from typing import Optional

import click
import docker

from avabox.commands.constants import CLEANUP_LABEL
from avabox.commands.managers.network import NetworkManager
from avabox.commands.managers.node import NodeManager
from avabox.commands.managers.volume import VolumeManager
from avabox.commands.utils import console


def execute_nuke(
    test_name: str,
    client: Optional[docker.DockerClient] = None,
    silent: bool = False,
) -> dict[str, int]:
    """Remove labelled containers, then volumes, then networks.

    Returns:
        Number of removed resources per kind.
    """
    label_filter = f"{CLEANUP_LABEL}={test_name}"
    nodes = NodeManager(client)
    volumes = VolumeManager(nodes.client)
    networks = NetworkManager(nodes.client)

    removed = {
        "containers": nodes.remove_containers(label_filter),
        "volumes": volumes.remove_volumes(label_filter),
        "networks": networks.remove_networks(label_filter),
    }
    if not silent:
        console.print(
            f"[green]✓ Removed {removed['containers']} container(s), "
            f"{removed['volumes']} volume(s), {removed['networks']} network(s) "
            f"for {test_name}[/green]"
        )
    return removed


@click.command()
@click.option("--test-name", required=True, help="Name of the test network to remove")
@click.option(
    "--force", "-f", is_flag=True, help="Force deletion without confirmation prompt"
)
def nuke(test_name, force):
    """Delete all containers, volumes and networks of a test network."""
    if not force:
        click.confirm(
            f"Remove every Docker resource labelled {CLEANUP_LABEL}={test_name}?",
            abort=True,
        )
    execute_nuke(test_name)
