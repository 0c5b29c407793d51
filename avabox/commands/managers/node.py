"""
NodeManager - Avalanche node container management.
"""

from typing import Any, Optional

import docker

from avabox.commands.constants import (
    CLEANUP_LABEL,
    CONTAINER_STOP_TIMEOUT,
    DEFAULT_RPC_PORT,
    DEFAULT_STAKING_PORT,
    NODE_HOME_DIR,
    NODE_LABEL,
    NODE_OWNER_LABEL,
    RPC_PORT_BINDING,
    STAKING_PORT_BINDING,
)
from avabox.commands.managers.base import BaseManager
from avabox.commands.managers.network import NetworkInfo
from avabox.commands.models import NodeDescriptor
from avabox.commands.utils import console


class NodeManager(BaseManager):
    """Creates, starts and inspects node containers."""

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """Initialize the NodeManager.

        Args:
            client: Optional Docker client. If not provided, creates one from environment.
        """
        super().__init__(client)

    def create_container(
        self,
        descriptor: NodeDescriptor,
        image: str,
        command: list[str],
        volume_name: str,
        network: NetworkInfo,
    ) -> str:
        """Create (but do not start) the node container; return its id.

        Both node ports are published on random host ports and the container
        joins ``network`` with the descriptor's public IP.
        """
        api = self.client.api
        host_config = api.create_host_config(
            port_bindings={RPC_PORT_BINDING: None, STAKING_PORT_BINDING: None},
            binds=[f"{volume_name}:{NODE_HOME_DIR}"],
        )
        networking_config = api.create_networking_config(
            {
                network.name: api.create_endpoint_config(
                    ipv4_address=descriptor.public_ip
                )
            }
        )
        response = api.create_container(
            image,
            command=command,
            name=descriptor.name,
            hostname=descriptor.host_name,
            ports=[DEFAULT_RPC_PORT, DEFAULT_STAKING_PORT],
            host_config=host_config,
            networking_config=networking_config,
            labels={
                CLEANUP_LABEL: descriptor.test_name,
                NODE_OWNER_LABEL: descriptor.name,
                NODE_LABEL: "true",
            },
        )
        container_id = response["Id"]
        console.print(
            f"[cyan]Created container {descriptor.name} ({container_id[:12]})[/cyan]"
        )
        return container_id

    def start_container(self, container_id: str) -> None:
        self.client.api.start(container_id)

    def inspect(self, container_id: str) -> dict[str, Any]:
        return self.client.api.inspect_container(container_id)

    def container_ip(self, container_id: str, network_name: str) -> str:
        """IP address of the container on ``network_name``.

        Raises:
            LookupError: if the container is not attached or has no address yet.
        """
        attrs = self.inspect(container_id)
        networks = attrs.get("NetworkSettings", {}).get("Networks") or {}
        endpoint = networks.get(network_name)
        if not endpoint or not endpoint.get("IPAddress"):
            raise LookupError(
                f"container {container_id[:12]} has no address on network {network_name}"
            )
        return endpoint["IPAddress"]

    def host_port(self, container_id: str, container_port: str) -> int:
        """Host port published for ``container_port``.

        Raises:
            LookupError: if the port is not published.
        """
        port = self._extract_host_port(self.inspect(container_id), container_port)
        if port is None:
            raise LookupError(
                f"container {container_id[:12]} does not publish {container_port}"
            )
        return port

    def logs(self, container_id: str, tail: int = 100) -> str:
        return self.client.api.logs(container_id, tail=tail, timestamps=True).decode(
            "utf-8", errors="replace"
        )

    def remove_containers(self, label_filter: str) -> int:
        """Stop and remove every container matching ``label_filter``."""
        containers = self.client.containers.list(
            all=True, filters={"label": label_filter}
        )
        removed = 0
        for container in containers:
            try:
                if container.status == "running":
                    container.stop(timeout=CONTAINER_STOP_TIMEOUT)
                container.remove(force=True)
                console.print(f"[green]✓ Stopped and removed {container.name}[/green]")
                removed += 1
            except docker.errors.APIError as e:
                console.print(
                    f"[red]✗ Failed to remove {container.name}: {str(e)}[/red]"
                )
        return removed
