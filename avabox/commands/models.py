"""
Data model for one node of a test network.

A NodeDescriptor is created from the network config before anything touches
Docker. Its credentials never change; the bootstrap peers are filled in when
the container is created and the subnet/chain ids are filled in by the subnet
pipeline.
"""

import json
from dataclasses import dataclass, field
from typing import Optional, Union

from avabox.commands.constants import NODE_NAME_PREFIX
from avabox.commands.utils import condense_host_name, sanitize_container_name


@dataclass(frozen=True)
class NodeCredentials:
    """Staking identity of a node."""

    private_key: str
    node_id: str
    tls_cert: bytes
    tls_key: bytes

    def __repr__(self) -> str:
        # Keep key material out of logs and tracebacks
        return f"NodeCredentials(node_id={self.node_id!r})"


@dataclass
class SubnetEntry:
    """A subnet assigned to a node, plus the ids the pipeline created for it."""

    name: str
    vm_id: str
    vm: bytes
    genesis: bytes
    subnet_id: Optional[str] = None
    chain_id: Optional[str] = None

    @property
    def is_created(self) -> bool:
        return self.subnet_id is not None and self.chain_id is not None


@dataclass(frozen=True)
class BootstrapPeer:
    """Resolved staking address and node id of an already started node."""

    address: str
    node_id: str


@dataclass(frozen=True)
class OutputOwners:
    """Owners of the outputs produced by pipeline transactions."""

    addresses: tuple[str, ...]
    threshold: int = 1


@dataclass
class NodeDescriptor:
    """Everything needed to provision, start and drive one node."""

    index: int
    test_name: str
    network_id: str
    docker_network: str
    credentials: NodeCredentials
    public_ip: str
    subnets: list[SubnetEntry] = field(default_factory=list)
    bootstrap: tuple[BootstrapPeer, ...] = ()

    @property
    def name(self) -> str:
        """Container and volume name."""
        return f"{NODE_NAME_PREFIX}-{sanitize_container_name(self.test_name)}-{self.index}"

    @property
    def host_name(self) -> str:
        return condense_host_name(self.name)

    @property
    def node_id(self) -> str:
        return self.credentials.node_id

    @property
    def is_genesis(self) -> bool:
        """True when this node was created without any bootstrap peers."""
        return not self.bootstrap


def build_vm_aliases(subnets: list[SubnetEntry]) -> dict[str, list[str]]:
    """Map each subnet's VM id to a list holding just that subnet's name."""
    return {subnet.vm_id: [subnet.name] for subnet in subnets}


def dump_vm_aliases(subnets: list[SubnetEntry]) -> bytes:
    """Serialize the VM alias map as the node expects it in aliases.json."""
    return json.dumps(build_vm_aliases(subnets), indent=2).encode("utf-8")


def parse_vm_aliases(data: Union[bytes, str]) -> dict[str, list[str]]:
    """Parse an aliases.json payload back into a VM alias map."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    aliases = json.loads(data)
    if not isinstance(aliases, dict):
        raise ValueError("VM alias file must contain a JSON object")
    return {str(vm_id): list(names) for vm_id, names in aliases.items()}
