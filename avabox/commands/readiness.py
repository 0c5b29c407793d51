"""
Readiness polling for node chains.

A ReadinessPoller walks one chain of one node through

    PortClosed -> PortOpen -> Bootstrapping -> Bootstrapped

and ends in Failed only when the shared cancel signal fires. The RPC port is
probed in a tight connect/disconnect loop; once it accepts connections the
poller asks ``info.isBootstrapped`` every poll interval until the node says
yes. A connection closed mid-response counts as "not yet".
"""

import asyncio
import random
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from avabox.commands.clock import CancelSignal, Clock, poll_delay
from avabox.commands.constants import (
    ASSET_CHAIN,
    DEFAULT_CHAINS,
    PORT_PROBE_TIMEOUT,
    READINESS_POLL_INTERVAL,
    READINESS_POLL_JITTER,
)
from avabox.commands.errors import CancellationError, TransientTransportError
from avabox.commands.rpc import RpcClient
from avabox.commands.utils import console


class ReadinessState(str, Enum):
    PORT_CLOSED = "PortClosed"
    PORT_OPEN = "PortOpen"
    BOOTSTRAPPING = "Bootstrapping"
    BOOTSTRAPPED = "Bootstrapped"
    FAILED = "Failed"


PortProbe = Callable[[str, int], Awaitable[bool]]


async def is_port_open(host: str, port: int, timeout: float = PORT_PROBE_TIMEOUT) -> bool:
    """Connect to host:port and disconnect again; True if the connect worked."""
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (OSError, asyncio.TimeoutError):
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


class ReadinessPoller:
    """Wait for one chain on one node to report bootstrapped."""

    def __init__(
        self,
        rpc: RpcClient,
        host: str,
        port: int,
        chain: str = ASSET_CHAIN,
        clock: Optional[Clock] = None,
        cancel: Optional[CancelSignal] = None,
        interval: float = READINESS_POLL_INTERVAL,
        jitter: float = READINESS_POLL_JITTER,
        port_probe: Optional[PortProbe] = None,
        on_transition: Optional[Callable[["ReadinessPoller", ReadinessState], None]] = None,
        node_name: Optional[str] = None,
        node_index: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.rpc = rpc
        self.host = host
        self.port = port
        self.chain = chain
        self.clock = clock or Clock()
        self.cancel = cancel
        self.interval = interval
        self.jitter = jitter
        self.port_probe = port_probe or is_port_open
        self.on_transition = on_transition
        self.node_name = node_name or f"{host}:{port}"
        self.node_index = node_index
        self.rng = rng
        self.state = ReadinessState.PORT_CLOSED
        self.history: list[ReadinessState] = [ReadinessState.PORT_CLOSED]
        self.polls = 0

    def _transition(self, state: ReadinessState) -> None:
        self.state = state
        self.history.append(state)
        if state == ReadinessState.FAILED:
            console.print(
                f"[red]✗ {self.node_name} {self.chain}-chain readiness: {state.value}[/red]"
            )
        elif state == ReadinessState.BOOTSTRAPPED:
            console.print(
                f"[green]✓ {self.node_name} {self.chain}-chain bootstrapped after {self.polls} poll(s)[/green]"
            )
        else:
            console.print(
                f"[cyan]{self.node_name} {self.chain}-chain readiness: {state.value}[/cyan]"
            )
        if self.on_transition is not None:
            self.on_transition(self, state)

    def _check_cancel(self, waiting_for: str) -> None:
        if self.cancel is not None:
            self.cancel.raise_if_cancelled(waiting_for, self.node_index)

    async def wait_port(self) -> None:
        """Probe the RPC port until it accepts a connection."""
        while True:
            self._check_cancel(f"{self.node_name} RPC port {self.port}")
            if await self.port_probe(self.host, self.port):
                self._transition(ReadinessState.PORT_OPEN)
                return
            # yield so the cancel signal and sibling pollers get a turn
            await asyncio.sleep(0)

    async def _query(self) -> bool:
        self.polls += 1
        try:
            return await self.rpc.info_is_bootstrapped(self.chain)
        except TransientTransportError:
            return False

    async def run(self) -> ReadinessState:
        """Drive the state machine to Bootstrapped.

        Raises:
            CancellationError: if the cancel signal fires first; the poller
                is left in the Failed state. A cancelled task also ends in
                Failed.
        """
        waiting_for = f"{self.node_name} {self.chain}-chain bootstrap"
        try:
            if self.state == ReadinessState.PORT_CLOSED:
                await self.wait_port()
            if self.state == ReadinessState.PORT_OPEN:
                self._transition(ReadinessState.BOOTSTRAPPING)

            while True:
                self._check_cancel(waiting_for)
                if await self._query():
                    self._transition(ReadinessState.BOOTSTRAPPED)
                    return self.state
                await self.clock.sleep_or_cancel(
                    poll_delay(self.interval, self.jitter, self.rng),
                    self.cancel,
                    waiting_for,
                    self.node_index,
                )
        except (CancellationError, asyncio.CancelledError):
            self._transition(ReadinessState.FAILED)
            raise


async def wait_network(
    rpc: RpcClient,
    host: str,
    port: int,
    chains: Sequence[str] = DEFAULT_CHAINS,
    **poller_options,
) -> dict[str, ReadinessState]:
    """Wait until every default chain of a node is bootstrapped.

    One poller per chain runs concurrently; the network counts as ready only
    when all of them reach Bootstrapped. If one poller raises, the others
    are cancelled and awaited, so every poller has settled in Failed (or the
    state it raised from) before the error propagates.
    """
    pollers = [
        ReadinessPoller(rpc, host, port, chain=chain, **poller_options)
        for chain in chains
    ]
    tasks = [asyncio.ensure_future(poller.run()) for poller in pollers]
    try:
        states = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return dict(zip(chains, states))
