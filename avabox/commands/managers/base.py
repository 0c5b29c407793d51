"""
BaseManager - Docker client shared by the volume, network and node managers.
"""

import sys
from typing import Any, Iterator, Optional

import docker

from avabox.commands.utils import console


def _published_bindings(attrs: dict[str, Any], container_port: str) -> Iterator[dict]:
    # Runtime bindings first, then the ones requested at creation
    runtime = (attrs.get("NetworkSettings") or {}).get("Ports") or {}
    requested = (attrs.get("HostConfig") or {}).get("PortBindings") or {}
    for source in (runtime, requested):
        yield from source.get(container_port) or []


class BaseManager:
    """Holds one Docker client; subclasses add resource specific calls."""

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """Use ``client`` or connect through the environment.

        Exits the process when no Docker daemon is reachable, since nothing
        in avabox can work without one.
        """
        if client is not None:
            self.client = client
            return
        try:
            self.client = docker.from_env()
        except docker.errors.DockerException as e:
            console.print(f"[red]Failed to connect to Docker: {str(e)}[/red]")
            console.print(
                "[yellow]Make sure Docker is running and you have permission to access it.[/yellow]"
            )
            sys.exit(1)

    def _ensure_image_pulled(self, image: str) -> bool:
        """Return True once ``image`` is present locally, pulling it if needed."""
        try:
            self.client.images.get(image)
            return True
        except docker.errors.ImageNotFound:
            console.print(f"[yellow]Pulling image: {image}[/yellow]")

        try:
            self.client.images.pull(image)
        except docker.errors.NotFound:
            console.print(f"[red]✗ Image {image} not found in registry[/red]")
            return False
        except docker.errors.APIError as e:
            console.print(f"[red]✗ Docker API error pulling {image}: {str(e)}[/red]")
            return False
        console.print(f"[green]✓ Pulled image: {image}[/green]")
        return True

    def _extract_host_port(self, attrs: dict[str, Any], container_port: str) -> Optional[int]:
        """Host port published for ``container_port`` in inspect output, if any."""
        for binding in _published_bindings(attrs, container_port):
            host_port = binding.get("HostPort")
            if host_port and host_port.isdigit():
                return int(host_port)
        return None
