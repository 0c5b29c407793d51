"""
Unit tests for the subnet creation pipeline.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from avabox.commands.clock import CancelSignal
from avabox.commands.errors import CancellationError, ClientError, TransactionError
from avabox.commands.models import OutputOwners
from avabox.commands.pipeline import SubnetPipeline, export_amount
from avabox.commands.wallet import KeystoreWallet

FEE = 1_000_000


class FakeWallet:
    """Wallet that accepts every transaction unless told to fail a step."""

    def __init__(self, fail_on=None, fee=FEE):
        self.fail_on = fail_on
        self.fee = fee
        self.calls = []
        self.counter = 0
        self.prepared = False

    def _tx(self, step, *args):
        self.calls.append((step,) + args)
        if self.fail_on == (step, args[-1] if args else None) or self.fail_on == step:
            raise ClientError(f"{step} rejected")
        self.counter += 1
        return f"tx-{self.counter}"

    async def prepare(self):
        if self.fail_on == "prepare":
            raise ClientError("keystore unavailable")
        self.prepared = True

    async def create_subnet_tx_fee(self):
        return self.fee

    async def issue_export_tx(self, destination_chain, amount, owner):
        return self._tx("export", destination_chain, amount)

    async def issue_import_tx(self, source_chain, owner):
        return self._tx("import", source_chain)

    async def issue_create_subnet_tx(self, owner):
        return self._tx("create_subnet")

    async def issue_create_chain_tx(self, subnet_id, genesis, vm_id, name):
        return self._tx("create_chain", subnet_id, vm_id, name)


OWNER = OutputOwners(addresses=("P-local1abc",))


@pytest.fixture(autouse=True)
def mock_console():
    with patch("avabox.commands.pipeline.console"):
        yield


def test_export_amount():
    assert export_amount(2, FEE) == 6 * FEE
    assert export_amount(0, FEE) == 2 * FEE


class TestSubnetPipeline:
    @pytest.mark.asyncio
    async def test_issues_two_plus_two_n_transactions(self, descriptor_factory, subnet_factory):
        """Test the transaction order for a node with two subnets."""
        descriptor = descriptor_factory(
            subnets=[subnet_factory("A", "vm-a"), subnet_factory("B", "vm-b")]
        )
        wallet = FakeWallet()

        result = await SubnetPipeline(wallet).run(descriptor, OWNER)

        assert [tx.step for tx in result.transactions] == [
            "export",
            "import",
            "create_subnet",
            "create_chain",
            "create_subnet",
            "create_chain",
        ]
        assert [tx.subnet for tx in result.transactions] == [None, None, "A", "A", "B", "B"]
        assert wallet.calls[0] == ("export", "P", 6 * FEE)
        assert wallet.calls[1] == ("import", "X")

    @pytest.mark.asyncio
    async def test_ids_are_recorded(self, descriptor_factory, subnet_factory):
        descriptor = descriptor_factory(subnets=[subnet_factory("A", "vm-a")])
        wallet = FakeWallet()

        await SubnetPipeline(wallet).run(descriptor, OWNER)

        subnet = descriptor.subnets[0]
        assert subnet.subnet_id == "tx-3"
        assert subnet.chain_id == "tx-4"
        # the chain is created on the subnet that was just created
        assert wallet.calls[-1] == ("create_chain", "tx-3", "vm-a", "A")

    @pytest.mark.asyncio
    async def test_no_subnets_still_funds(self, descriptor_factory):
        wallet = FakeWallet()
        result = await SubnetPipeline(wallet).run(descriptor_factory(), OWNER)
        assert [tx.step for tx in result.transactions] == ["export", "import"]
        assert wallet.calls[0] == ("export", "P", 2 * FEE)

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_earlier_subnets(
        self, descriptor_factory, subnet_factory
    ):
        """Test that a rejected chain of subnet B stops before subnet C."""
        descriptor = descriptor_factory(
            index=1,
            subnets=[
                subnet_factory("A", "vm-a"),
                subnet_factory("B", "vm-b"),
                subnet_factory("C", "vm-c"),
            ],
        )
        wallet = FakeWallet(fail_on=("create_chain", "B"))

        with pytest.raises(TransactionError) as exc_info:
            await SubnetPipeline(wallet).run(descriptor, OWNER)

        error = exc_info.value
        assert error.step == "create_chain"
        assert error.subnet == "B"
        assert error.node_index == 1

        a, b, c = descriptor.subnets
        assert a.is_created
        assert b.subnet_id is not None and b.chain_id is None
        assert c.subnet_id is None and c.chain_id is None
        assert ("create_subnet",) in wallet.calls
        assert all(call[-1] != "C" for call in wallet.calls)

    @pytest.mark.asyncio
    async def test_export_failure_skips_everything(self, descriptor_factory, subnet_factory):
        descriptor = descriptor_factory(subnets=[subnet_factory()])
        wallet = FakeWallet(fail_on="export")

        with pytest.raises(TransactionError) as exc_info:
            await SubnetPipeline(wallet).run(descriptor, OWNER)

        assert exc_info.value.step == "export"
        assert exc_info.value.subnet is None
        assert [call[0] for call in wallet.calls] == ["export"]

    @pytest.mark.asyncio
    async def test_fee_query_failure_is_export_step(self, descriptor_factory):
        wallet = FakeWallet()

        async def no_fee():
            raise ClientError("info.getTxFee failed")

        wallet.create_subnet_tx_fee = no_fee

        with pytest.raises(TransactionError) as exc_info:
            await SubnetPipeline(wallet).run(descriptor_factory(), OWNER)
        assert exc_info.value.step == "export"
        assert wallet.calls == []

    @pytest.mark.asyncio
    async def test_cancelled_between_steps(self, descriptor_factory, subnet_factory):
        cancel = CancelSignal()
        wallet = FakeWallet()
        original = wallet.issue_import_tx

        async def import_then_cancel(source_chain, owner):
            tx_id = await original(source_chain, owner)
            cancel.cancel("shutdown")
            return tx_id

        wallet.issue_import_tx = import_then_cancel
        descriptor = descriptor_factory(subnets=[subnet_factory()])

        with pytest.raises(CancellationError):
            await SubnetPipeline(wallet, cancel=cancel).run(descriptor, OWNER)

        assert [call[0] for call in wallet.calls] == ["export", "import"]
        assert descriptor.subnets[0].subnet_id is None

    @pytest.mark.asyncio
    async def test_prepares_wallet_before_export(self, descriptor_factory):
        wallet = FakeWallet()
        original = wallet.issue_export_tx

        async def export_after_prepare(destination_chain, amount, owner):
            assert wallet.prepared
            return await original(destination_chain, amount, owner)

        wallet.issue_export_tx = export_after_prepare

        await SubnetPipeline(wallet).run(descriptor_factory(), OWNER)
        assert wallet.prepared

    @pytest.mark.asyncio
    async def test_prepare_failure_issues_nothing(self, descriptor_factory, subnet_factory):
        wallet = FakeWallet(fail_on="prepare")
        descriptor = descriptor_factory(subnets=[subnet_factory()])

        with pytest.raises(TransactionError) as exc_info:
            await SubnetPipeline(wallet).run(descriptor, OWNER)

        assert exc_info.value.step == "prepare_keystore"
        assert wallet.calls == []

    @pytest.mark.asyncio
    async def test_durations_come_from_clock(self, descriptor_factory, fake_clock):
        wallet = FakeWallet()
        original = wallet.issue_export_tx

        async def slow_export(destination_chain, amount, owner):
            fake_clock.now += 2.0
            return await original(destination_chain, amount, owner)

        wallet.issue_export_tx = slow_export

        result = await SubnetPipeline(wallet, clock=fake_clock).run(
            descriptor_factory(), OWNER
        )

        assert [tx.duration for tx in result.transactions] == [2.0, 0.0]


class TestPipelineWithKeystoreWallet:
    @pytest.mark.asyncio
    async def test_fresh_node(self, descriptor_factory, subnet_factory, fake_clock):
        """Test a node that knows no keystore user until the wallet creates one."""
        users = set()
        counter = {"tx": 0}

        async def call(endpoint, method, params):
            if method == "keystore.createUser":
                users.add(params["username"])
                return {"success": True}
            if params["username"] not in users:
                raise ClientError(f"{method}: user not found")
            if method.endswith("importKey"):
                return {"address": "local1funded"}
            counter["tx"] += 1
            return {"txID": f"tx-{counter['tx']}"}

        rpc = MagicMock()
        rpc.call = AsyncMock(side_effect=call)
        rpc.get_tx_status = AsyncMock(return_value="Committed")
        rpc.info_get_tx_fee = AsyncMock(return_value={"createSubnetTxFee": FEE})
        descriptor = descriptor_factory(subnets=[subnet_factory("A", "vm-a")])
        wallet = KeystoreWallet(
            rpc,
            "node-0",
            "secret",
            private_key=descriptor.credentials.private_key,
            clock=fake_clock,
        )

        result = await SubnetPipeline(wallet, clock=fake_clock).run(descriptor, OWNER)

        assert [c.args[1] for c in rpc.call.await_args_list] == [
            "keystore.createUser",
            "avm.importKey",
            "platform.importKey",
            "avm.export",
            "platform.importAVAX",
            "platform.createSubnet",
            "platform.createBlockchain",
        ]
        assert len(result.transactions) == 4
        assert descriptor.subnets[0].chain_id == "tx-4"
