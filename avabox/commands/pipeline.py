"""
Subnet pipeline - fund the platform chain and create each assigned subnet.

For a node with N subnets the pipeline issues exactly 2 + 2N transactions:

    export (X -> P), import (P), then create_subnet/create_chain per subnet

The wallet is prepared first (keystore user and signing key); preparing
issues no transaction.

Each step starts only after the previous transaction was accepted. A failed
step stops the pipeline; accepted transactions are final, so earlier subnets
keep their ids and the failing subnet may hold a subnet id without a chain id.
"""

from dataclasses import dataclass, field
from typing import Optional

from avabox.commands.clock import CancelSignal, Clock
from avabox.commands.constants import (
    ASSET_CHAIN,
    PLATFORM_CHAIN,
    STEP_CREATE_CHAIN,
    STEP_CREATE_SUBNET,
    STEP_EXPORT,
    STEP_IMPORT,
    STEP_PREPARE,
)
from avabox.commands.errors import AvaboxError, CancellationError, TransactionError
from avabox.commands.models import NodeDescriptor, OutputOwners
from avabox.commands.utils import console, format_duration
from avabox.commands.wallet import Wallet


def export_amount(subnet_count: int, create_subnet_fee: int) -> int:
    """Amount moved to the platform chain: two fees per subnet plus headroom."""
    return 2 * (subnet_count + 1) * create_subnet_fee


@dataclass(frozen=True)
class IssuedTransaction:
    step: str
    tx_id: str
    subnet: Optional[str] = None
    duration: float = 0.0


@dataclass
class PipelineResult:
    node_index: int
    transactions: list[IssuedTransaction] = field(default_factory=list)


class SubnetPipeline:
    """Runs the funding and subnet creation transactions for one node."""

    def __init__(
        self,
        wallet: Wallet,
        cancel: Optional[CancelSignal] = None,
        clock: Optional[Clock] = None,
    ):
        self.wallet = wallet
        self.cancel = cancel
        self.clock = clock or Clock()

    async def run(self, descriptor: NodeDescriptor, owner: OutputOwners) -> PipelineResult:
        """Issue every pipeline transaction for ``descriptor`` in order.

        Raises:
            TransactionError: naming the failed step; later steps are skipped.
            CancellationError: if the cancel signal fired between steps.
        """
        result = PipelineResult(node_index=descriptor.index)

        await self._step(descriptor, STEP_PREPARE, None, self.wallet.prepare())
        fee = await self._step(
            descriptor, STEP_EXPORT, None, self.wallet.create_subnet_tx_fee()
        )
        amount = export_amount(len(descriptor.subnets), fee)

        await self._issue(
            result,
            descriptor,
            STEP_EXPORT,
            None,
            lambda: self.wallet.issue_export_tx(PLATFORM_CHAIN, amount, owner),
            "issued X->P export",
        )
        await self._issue(
            result,
            descriptor,
            STEP_IMPORT,
            None,
            lambda: self.wallet.issue_import_tx(ASSET_CHAIN, owner),
            "issued X->P import",
        )

        for subnet in descriptor.subnets:
            subnet_id = await self._issue(
                result,
                descriptor,
                STEP_CREATE_SUBNET,
                subnet.name,
                lambda: self.wallet.issue_create_subnet_tx(owner),
                "issued create subnet transaction",
            )
            subnet.subnet_id = subnet_id

            chain_id = await self._issue(
                result,
                descriptor,
                STEP_CREATE_CHAIN,
                subnet.name,
                lambda: self.wallet.issue_create_chain_tx(
                    subnet_id, subnet.genesis, subnet.vm_id, subnet.name
                ),
                "created new chain",
            )
            subnet.chain_id = chain_id

        return result

    async def _issue(self, result, descriptor, step, subnet, issue, message) -> str:
        if self.cancel is not None:
            self.cancel.raise_if_cancelled(f"{step} on {descriptor.name}", descriptor.index)

        started = self.clock.monotonic()
        tx_id = await self._step(descriptor, step, subnet, issue())
        duration = self.clock.monotonic() - started

        result.transactions.append(
            IssuedTransaction(step=step, tx_id=tx_id, subnet=subnet, duration=duration)
        )
        label = f" [{subnet}]" if subnet else ""
        console.print(
            f"[green]✓ {descriptor.name}: {message}{label} {tx_id} ({format_duration(duration)})[/green]"
        )
        return tx_id

    async def _step(self, descriptor, step, subnet, awaitable):
        try:
            return await awaitable
        except CancellationError:
            raise
        except (AvaboxError, KeyError, ValueError, TypeError) as e:
            label = f" for subnet {subnet}" if subnet else ""
            console.print(
                f"[red]✗ {descriptor.name}: {step}{label} failed: {str(e)}[/red]"
            )
            raise TransactionError(
                f"{step}{label} failed on {descriptor.name}: {e}",
                step=step,
                node_index=descriptor.index,
                subnet=subnet,
            ) from e
