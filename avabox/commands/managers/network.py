"""
NetworkManager - Docker network management for test networks.
"""

from dataclasses import dataclass
from typing import Optional

import docker

from avabox.commands.managers.base import BaseManager
from avabox.commands.utils import console


@dataclass(frozen=True)
class NetworkInfo:
    id: str
    name: str


class NetworkManager(BaseManager):
    """Manages the bridge network the nodes of a test share."""

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """Initialize the NetworkManager.

        Args:
            client: Optional Docker client. If not provided, creates one from environment.
        """
        super().__init__(client)

    def ensure_network(
        self, name: str, subnet: Optional[str], labels: dict[str, str]
    ) -> NetworkInfo:
        """Get or create a bridge network with a fixed subnet.

        A fixed subnet lets every node keep the public IP it was configured
        with.
        """
        try:
            network = self.client.networks.get(name)
            console.print(f"[cyan]✓ Network {name} already exists[/cyan]")
            return NetworkInfo(id=network.id, name=network.name)
        except docker.errors.NotFound:
            pass

        console.print(f"[yellow]Creating network: {name}[/yellow]")
        ipam = None
        if subnet:
            ipam = docker.types.IPAMConfig(
                pool_configs=[docker.types.IPAMPool(subnet=subnet)]
            )
        network = self.client.networks.create(
            name, driver="bridge", ipam=ipam, labels=labels
        )
        console.print(f"[green]✓ Created network: {name}[/green]")
        return NetworkInfo(id=network.id, name=network.name)

    def remove_networks(self, label_filter: str) -> int:
        """Remove every network matching ``label_filter``; return how many."""
        removed = 0
        for network in self.client.networks.list(filters={"label": label_filter}):
            try:
                network.remove()
                removed += 1
            except docker.errors.APIError as e:
                console.print(
                    f"[yellow]⚠️  Warning: Could not remove network {network.name}: {str(e)}[/yellow]"
                )
        return removed
