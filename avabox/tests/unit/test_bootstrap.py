"""
Unit tests for bootstrap peer resolution and the node command line.
"""

from types import SimpleNamespace

import pytest

from avabox.commands.bootstrap import (
    BootstrapCoordinator,
    bootstrap_flags,
    build_node_command,
    join_strings,
)
from avabox.commands.errors import NetworkResolutionError
from avabox.commands.models import BootstrapPeer


def _peers(count):
    return [SimpleNamespace(index=i, node_id=f"NodeID-{i}") for i in range(count)]


class TestBootstrapCoordinator:
    def test_resolves_in_order(self):
        """Test that addresses and ids keep the order of the started nodes."""
        coordinator = BootstrapCoordinator(lambda peer: f"10.0.0.{peer.index + 2}:9651")
        resolved = coordinator.resolve(_peers(3), node_index=3)

        assert resolved == (
            BootstrapPeer("10.0.0.2:9651", "NodeID-0"),
            BootstrapPeer("10.0.0.3:9651", "NodeID-1"),
            BootstrapPeer("10.0.0.4:9651", "NodeID-2"),
        )

    def test_no_peers(self):
        coordinator = BootstrapCoordinator(lambda peer: "unused")
        assert coordinator.resolve([], node_index=0) == ()

    def test_single_failure_fails_whole_resolution(self):
        """Test that no partial bootstrap list is produced."""
        calls = []

        def resolver(peer):
            calls.append(peer.index)
            if peer.index == 1:
                raise LookupError("no address on network")
            return "10.0.0.2:9651"

        coordinator = BootstrapCoordinator(resolver)
        with pytest.raises(NetworkResolutionError) as exc_info:
            coordinator.resolve(_peers(3), node_index=3)

        assert exc_info.value.peer_index == 1
        assert exc_info.value.node_index == 3
        assert "index 1" in str(exc_info.value)
        assert calls == [0, 1]


class TestBootstrapFlags:
    def test_join_strings_are_aligned(self):
        peers = [
            BootstrapPeer("10.0.0.2:9651", "NodeID-a"),
            BootstrapPeer("10.0.0.3:9651", "NodeID-b"),
        ]
        ips, ids = join_strings(peers)
        assert ips == "10.0.0.2:9651,10.0.0.3:9651"
        assert ids == "NodeID-a,NodeID-b"
        assert len(ips.split(",")) == len(ids.split(","))

    def test_genesis_node_gets_no_flags(self):
        assert bootstrap_flags(()) == []

    def test_flags_for_peers(self):
        flags = bootstrap_flags([BootstrapPeer("10.0.0.2:9651", "NodeID-a")])
        assert flags == [
            "--bootstrap-ips",
            "10.0.0.2:9651",
            "--bootstrap-ids",
            "NodeID-a",
        ]


class TestBuildNodeCommand:
    def test_genesis_node_command(self, descriptor_factory):
        descriptor = descriptor_factory(index=0)
        command = build_node_command("/avalanchego/build/avalanchego", descriptor)

        assert command[0] == "/avalanchego/build/avalanchego"
        assert "--bootstrap-ips" not in command
        assert command[command.index("--public-ip") + 1] == "10.10.0.2"
        assert command[command.index("--network-id") + 1] == "1337"
        assert command[command.index("--http-host") + 1] == "0.0.0.0"
        assert command[command.index("--genesis") + 1] == "/home/heighliner/ava/genesis.json"
        assert (
            command[command.index("--staking-tls-key-file") + 1]
            == "/home/heighliner/ava/tls.key"
        )

    def test_joining_node_command(self, descriptor_factory):
        descriptor = descriptor_factory(index=1)
        descriptor.bootstrap = (BootstrapPeer("10.10.0.2:9651", "NodeID-0"),)
        command = build_node_command("avalanchego", descriptor, home="/data")

        assert command[command.index("--data-dir") + 1] == "/data"
        assert command[-4:] == [
            "--bootstrap-ips",
            "10.10.0.2:9651",
            "--bootstrap-ids",
            "NodeID-0",
        ]
