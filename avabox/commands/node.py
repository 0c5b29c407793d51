"""
AvalancheNode - lifecycle of a single node container.

    provision -> create_container(bootstrap peers) -> start_container
              -> wait_ready -> start_subnets
"""

from typing import Optional, Sequence

import docker

from avabox.commands.addresses import parse_address
from avabox.commands.bootstrap import BootstrapCoordinator, build_node_command
from avabox.commands.clock import CancelSignal, Clock
from avabox.commands.errors import AvaboxError, CancellationError, NodeError
from avabox.commands.constants import (
    ASSET_CHAIN,
    DEFAULT_CHAINS,
    DEFAULT_STAKING_PORT,
    ERROR_NODE_NOT_STARTED,
    NODE_LOG_TAIL,
    READINESS_POLL_INTERVAL,
    READINESS_POLL_JITTER,
    RPC_PORT_BINDING,
)
from avabox.commands.managers.network import NetworkInfo
from avabox.commands.managers.node import NodeManager
from avabox.commands.models import NodeDescriptor, OutputOwners
from avabox.commands.pipeline import PipelineResult, SubnetPipeline
from avabox.commands.provisioner import Genesis, Provisioner
from avabox.commands.readiness import ReadinessPoller, ReadinessState, wait_network
from avabox.commands.rpc import RpcClient
from avabox.commands.utils import console
from avabox.commands.wallet import Wallet

LOCALHOST = "127.0.0.1"


class AvalancheNode:
    """One validator of a test network and the handles it needs."""

    def __init__(
        self,
        descriptor: NodeDescriptor,
        image: str,
        binary: str,
        nodes: NodeManager,
        provisioner: Provisioner,
        network: NetworkInfo,
        clock: Optional[Clock] = None,
        cancel: Optional[CancelSignal] = None,
        poll_interval: float = READINESS_POLL_INTERVAL,
        poll_jitter: float = READINESS_POLL_JITTER,
    ):
        self.descriptor = descriptor
        self.image = image
        self.binary = binary
        self.nodes = nodes
        self.provisioner = provisioner
        self.network = network
        self.clock = clock or Clock()
        self.cancel = cancel
        self.poll_interval = poll_interval
        self.poll_jitter = poll_jitter
        self.volume_name: Optional[str] = None
        self.container_id: Optional[str] = None

    @property
    def index(self) -> int:
        return self.descriptor.index

    @property
    def node_id(self) -> str:
        return self.descriptor.node_id

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def ip(self) -> str:
        return self.descriptor.public_ip

    def _require_container(self) -> str:
        if self.container_id is None:
            raise RuntimeError(ERROR_NODE_NOT_STARTED.format(node=self.name))
        return self.container_id

    def provision(self, genesis: Genesis) -> str:
        self.volume_name = self.provisioner.provision(self.descriptor, genesis)
        return self.volume_name

    def create_container(self, bootstrap_nodes: Sequence["AvalancheNode"]) -> str:
        """Create the container, joining the given already started nodes.

        Raises:
            NetworkResolutionError: if any peer address cannot be resolved.
        """
        if self.volume_name is None:
            raise RuntimeError(f"Node {self.name} must be provisioned first")

        coordinator = BootstrapCoordinator(lambda peer: peer.public_staking_addr())
        self.descriptor.bootstrap = coordinator.resolve(bootstrap_nodes, self.index)

        command = build_node_command(self.binary, self.descriptor)
        try:
            self.container_id = self.nodes.create_container(
                self.descriptor, self.image, command, self.volume_name, self.network
            )
        except docker.errors.DockerException as e:
            raise NodeError(
                f"failed to create container for {self.name}: {e}", node_index=self.index
            ) from e
        return self.container_id

    def start_container(self) -> None:
        try:
            self.nodes.start_container(self._require_container())
        except docker.errors.DockerException as e:
            raise NodeError(
                f"failed to start {self.name}: {e}", node_index=self.index
            ) from e
        role = "genesis node" if self.descriptor.is_genesis else (
            f"bootstrapping from {len(self.descriptor.bootstrap)} peer(s)"
        )
        console.print(f"[green]✓ Started {self.name} ({role})[/green]")

    def public_staking_addr(self) -> str:
        ip = self.nodes.container_ip(self._require_container(), self.network.name)
        return f"{ip}:{DEFAULT_STAKING_PORT}"

    def rpc_port(self) -> int:
        """Host port the RPC port is published on.

        Raises:
            NodeError: if the container cannot be inspected or does not
                publish the port.
        """
        try:
            return self.nodes.host_port(self._require_container(), RPC_PORT_BINDING)
        except (LookupError, docker.errors.DockerException) as e:
            raise NodeError(
                f"no RPC port for {self.name}: {e}", node_index=self.index
            ) from e

    def print_logs(self, tail: int = NODE_LOG_TAIL) -> None:
        """Print the last ``tail`` log lines of the node container."""
        if self.container_id is None:
            return
        try:
            logs = self.nodes.logs(self.container_id, tail=tail)
        except docker.errors.DockerException as e:
            console.print(f"[yellow]⚠️  Could not read logs of {self.name}: {str(e)}[/yellow]")
            return
        console.print(f"[bold]Last {tail} log lines of {self.name}:[/bold]")
        console.print(logs, markup=False, highlight=False)

    def rpc(self) -> RpcClient:
        return RpcClient.for_port(self.rpc_port(), host=LOCALHOST)

    def _poller_options(self) -> dict:
        return {
            "clock": self.clock,
            "cancel": self.cancel,
            "interval": self.poll_interval,
            "jitter": self.poll_jitter,
            "node_name": self.name,
            "node_index": self.index,
        }

    async def wait_ready(self, chain: str = ASSET_CHAIN) -> ReadinessState:
        """Wait for one chain of this node to finish bootstrapping."""
        port = self.rpc_port()
        poller = ReadinessPoller(
            RpcClient.for_port(port, host=LOCALHOST),
            LOCALHOST,
            port,
            chain=chain,
            **self._poller_options(),
        )
        return await poller.run()

    async def wait_network_ready(self) -> dict[str, ReadinessState]:
        """Wait for all three default chains of this node.

        The container log tail is printed when readiness fails for any reason
        other than cancellation.
        """
        try:
            port = self.rpc_port()
            return await wait_network(
                RpcClient.for_port(port, host=LOCALHOST),
                LOCALHOST,
                port,
                DEFAULT_CHAINS,
                **self._poller_options(),
            )
        except CancellationError:
            raise
        except AvaboxError:
            self.print_logs()
            raise

    async def start(self) -> ReadinessState:
        """Start the container and wait for the asset chain to bootstrap."""
        self.start_container()
        return await self.wait_ready()

    async def start_subnets(self, wallet: Wallet, owner: OutputOwners) -> PipelineResult:
        pipeline = SubnetPipeline(wallet, cancel=self.cancel, clock=self.clock)
        return await pipeline.run(self.descriptor, owner)

    async def height(self) -> int:
        return await self.rpc().platform_get_height()

    async def get_balance(self, address: str) -> int:
        return await parse_address(address).get_balance(self.rpc())
