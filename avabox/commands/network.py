"""
AvalancheNetwork - bring up a whole test network.

Nodes are created strictly one after another: node i is provisioned, then
its container is created with nodes 0..i-1 as bootstrap peers, then started.
Readiness and subnet pipelines fan out over all nodes once every container
is running.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import docker

from avabox.commands.clock import CancelSignal, Clock
from avabox.commands.config import NetworkConfig, WalletConfig
from avabox.commands.constants import CLEANUP_LABEL
from avabox.commands.errors import AvaboxError, CancellationError
from avabox.commands.managers.network import NetworkInfo, NetworkManager
from avabox.commands.managers.node import NodeManager
from avabox.commands.managers.volume import VolumeManager
from avabox.commands.models import OutputOwners
from avabox.commands.node import AvalancheNode
from avabox.commands.provisioner import Provisioner
from avabox.commands.readiness import ReadinessState
from avabox.commands.result import fail, ok
from avabox.commands.utils import console
from avabox.commands.wallet import KeystoreWallet

# Credits a node's asset chain account before its pipeline runs
Funder = Callable[[AvalancheNode], Awaitable[None]]


class AvalancheNetwork:
    """Owns every node, volume and container of one test network."""

    def __init__(
        self,
        config: NetworkConfig,
        client: Optional[docker.DockerClient] = None,
        clock: Optional[Clock] = None,
        cancel: Optional[CancelSignal] = None,
    ):
        self.config = config
        self.clock = clock or Clock()
        self.cancel = cancel or CancelSignal()

        self.network_manager = NetworkManager(client)
        shared_client = self.network_manager.client
        self.node_manager = NodeManager(shared_client)
        self.volume_manager = VolumeManager(shared_client)
        self.provisioner = Provisioner(
            self.volume_manager, config.image.ref, config.image.uid_gid
        )

        self.network_info: Optional[NetworkInfo] = None
        self.nodes: list[AvalancheNode] = []

    @property
    def label_filter(self) -> str:
        return f"{CLEANUP_LABEL}={self.config.name}"

    def initialize(self) -> NetworkInfo:
        """Make sure the node image and the docker network exist."""
        image = self.config.image.ref
        if not self.node_manager._ensure_image_pulled(image):
            raise AvaboxError(
                f"Cannot proceed without image: {image}", code="IMAGE_UNAVAILABLE"
            )
        self.network_info = self.network_manager.ensure_network(
            self.config.docker_network,
            self.config.docker_subnet,
            {CLEANUP_LABEL: self.config.name},
        )
        return self.network_info

    def create_nodes(self) -> list[AvalancheNode]:
        """Provision, create and start every node in declaration order.

        Raises:
            ProvisionError: a node volume could not be prepared.
            NetworkResolutionError: a bootstrap peer could not be resolved.
        """
        if self.network_info is None:
            self.initialize()

        console.print(
            f"[bold]Starting {len(self.config.nodes)} Avalanche nodes for {self.config.name}...[/bold]"
        )
        for node_config in self.config.nodes:
            self.cancel.raise_if_cancelled(
                "node creation", node_config.descriptor.index
            )
            node = AvalancheNode(
                node_config.descriptor,
                self.config.image.ref,
                self.config.binary,
                self.node_manager,
                self.provisioner,
                self.network_info,
                clock=self.clock,
                cancel=self.cancel,
                poll_interval=self.config.poll_interval,
                poll_jitter=self.config.poll_jitter,
            )
            node.provision(self.config.genesis)
            node.create_container(list(self.nodes))
            node.start_container()
            self.nodes.append(node)

        return self.nodes

    async def wait_ready(self) -> dict[int, dict[str, ReadinessState]]:
        """Wait until every node reports all default chains bootstrapped."""
        states = await asyncio.gather(
            *(node.wait_network_ready() for node in self.nodes)
        )
        console.print(f"[green]✓ All {len(self.nodes)} nodes are bootstrapped[/green]")
        return {node.index: state for node, state in zip(self.nodes, states)}

    async def _run_pipeline(
        self,
        node: AvalancheNode,
        wallet_config: Optional[WalletConfig],
        funder: Optional[Funder],
    ) -> dict[str, Any]:
        if wallet_config is None:
            return fail(
                f"Node {node.name} has subnets but no wallet configured",
                node=node.name,
            )
        try:
            if funder is not None:
                await funder(node)
            wallet = KeystoreWallet(
                node.rpc(),
                wallet_config.username,
                wallet_config.password,
                private_key=node.descriptor.credentials.private_key,
                x_address=wallet_config.x_address,
                clock=self.clock,
                cancel=self.cancel,
            )
            owner = OutputOwners(addresses=(wallet_config.p_address,))
            result = await node.start_subnets(wallet, owner)
        except CancellationError:
            raise
        except AvaboxError as e:
            return fail(str(e), error=e, node=node.name)

        return ok(
            [
                {"step": tx.step, "tx_id": tx.tx_id, "subnet": tx.subnet}
                for tx in result.transactions
            ],
            node=node.name,
        )

    async def start_subnets(self, funder: Optional[Funder] = None) -> dict[int, dict[str, Any]]:
        """Run the subnet pipeline of every node that has subnets assigned.

        Pipelines of different nodes run concurrently; a failure in one node
        does not stop the others.
        """
        targets = [
            (node, node_config.wallet)
            for node, node_config in zip(self.nodes, self.config.nodes)
            if node.descriptor.subnets
        ]
        results = await asyncio.gather(
            *(self._run_pipeline(node, wallet, funder) for node, wallet in targets)
        )
        return {node.index: result for (node, _), result in zip(targets, results)}

    async def start(
        self, funder: Optional[Funder] = None, skip_subnets: bool = False
    ) -> dict[int, dict[str, Any]]:
        """Create all nodes, wait for readiness, then create subnets."""
        # Docker calls block; keep the loop free to deliver cancellation
        await asyncio.to_thread(self.create_nodes)
        await self.wait_ready()
        if skip_subnets:
            return {}
        return await self.start_subnets(funder)

    async def height(self) -> int:
        """Platform chain height as seen by the first node."""
        if not self.nodes:
            raise AvaboxError("Network has no nodes")
        return await self.nodes[0].height()

    def teardown(self) -> None:
        """Remove the containers, volumes and network created for this test."""
        console.print(f"[yellow]Tearing down {self.config.name}...[/yellow]")
        self.node_manager.remove_containers(self.label_filter)
        self.volume_manager.remove_volumes(self.label_filter)
        self.network_manager.remove_networks(self.label_filter)
