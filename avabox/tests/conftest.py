"""Pytest configuration and shared fixtures for avabox tests."""

import asyncio

import pytest

from avabox.commands.clock import Clock
from avabox.commands.models import NodeCredentials, NodeDescriptor, SubnetEntry


class FakeClock(Clock):
    """Clock that records requested sleeps instead of waiting."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock():
    return FakeClock()


def make_subnet(name: str = "subnet-a", vm_id: str = "vm-a") -> SubnetEntry:
    return SubnetEntry(
        name=name, vm_id=vm_id, vm=b"\x7fELF" + name.encode(), genesis=b'{"alloc": {}}'
    )


def make_descriptor(index: int = 0, test_name: str = "local", subnets=None) -> NodeDescriptor:
    return NodeDescriptor(
        index=index,
        test_name=test_name,
        network_id="1337",
        docker_network="avabox-local",
        credentials=NodeCredentials(
            private_key=f"PrivateKey-{index}",
            node_id=f"NodeID-{index}",
            tls_cert=f"cert-{index}".encode(),
            tls_key=f"key-{index}".encode(),
        ),
        public_ip=f"10.10.0.{index + 2}",
        subnets=list(subnets or []),
    )


@pytest.fixture
def descriptor_factory():
    return make_descriptor


@pytest.fixture
def subnet_factory():
    return make_subnet
