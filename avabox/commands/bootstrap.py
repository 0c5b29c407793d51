"""
Bootstrap coordination - tell a new node which started peers to join.

The peers' staking addresses are resolved once, when the new node's container
is created, and kept as an immutable snapshot of (address, node id) pairs.
"""

import posixpath
from typing import Callable, Optional, Protocol, Sequence

from avabox.commands.constants import (
    GENESIS_FILE,
    NODE_HOME_DIR,
    TLS_CERT_FILE,
    TLS_KEY_FILE,
)
from avabox.commands.errors import NetworkResolutionError
from avabox.commands.models import BootstrapPeer, NodeDescriptor
from avabox.commands.utils import console


class StartedPeer(Protocol):
    index: int

    @property
    def node_id(self) -> str: ...


class BootstrapCoordinator:
    """Resolves bootstrap peers through an injected address resolver.

    ``resolver`` receives a peer and returns its public staking address
    (``ip:port``); it usually inspects the peer's container.
    """

    def __init__(self, resolver: Callable[[StartedPeer], str]):
        self.resolver = resolver

    def resolve(
        self, peers: Sequence[StartedPeer], node_index: Optional[int] = None
    ) -> tuple[BootstrapPeer, ...]:
        """Resolve every peer, in order.

        Raises:
            NetworkResolutionError: if any single peer cannot be resolved;
                no partial result is returned.
        """
        resolved = []
        for position, peer in enumerate(peers):
            try:
                address = self.resolver(peer)
            except Exception as e:
                console.print(
                    f"[red]✗ Failed to resolve staking address of bootstrap peer {position}: {str(e)}[/red]"
                )
                raise NetworkResolutionError(
                    f"failed to get public staking address for index {position}: {e}",
                    node_index=node_index,
                    peer_index=position,
                ) from e
            resolved.append(BootstrapPeer(address=address, node_id=peer.node_id))
        return tuple(resolved)


def join_strings(peers: Sequence[BootstrapPeer]) -> tuple[str, str]:
    """Comma-joined addresses and ids; entry i of one matches entry i of the other."""
    return (
        ",".join(peer.address for peer in peers),
        ",".join(peer.node_id for peer in peers),
    )


def bootstrap_flags(peers: Sequence[BootstrapPeer]) -> list[str]:
    """Node flags for the bootstrap set; empty for the genesis node."""
    if not peers:
        return []
    ips, ids = join_strings(peers)
    return ["--bootstrap-ips", ips, "--bootstrap-ids", ids]


def build_node_command(
    binary: str, descriptor: NodeDescriptor, home: str = NODE_HOME_DIR
) -> list[str]:
    """Full command line of the node process inside its container."""
    return [
        binary,
        "--http-host", "0.0.0.0",
        "--data-dir", home,
        "--public-ip", descriptor.public_ip,
        "--network-id", descriptor.network_id,
        "--genesis", posixpath.join(home, GENESIS_FILE),
        "--staking-tls-cert-file", posixpath.join(home, TLS_CERT_FILE),
        "--staking-tls-key-file", posixpath.join(home, TLS_KEY_FILE),
    ] + bootstrap_flags(descriptor.bootstrap)
