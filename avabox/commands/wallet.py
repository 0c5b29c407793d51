"""
Wallet primitives used by the subnet pipeline.

``Wallet`` is the contract the pipeline depends on: each ``issue_*`` call
returns a transaction id only after the network accepted the transaction.
``KeystoreWallet`` implements it against a node's keystore-backed JSON-RPC
API. Before the first transaction the wallet creates its keystore user on the
node and imports the node's configured private key into the asset and
platform chains. Generating keys or deriving addresses is outside avabox.
"""

from typing import Optional, Protocol

from avabox.commands.clock import CancelSignal, Clock
from avabox.commands.constants import (
    ASSET_CHAIN,
    ASSET_CHAIN_ENDPOINT,
    AVAX_ASSET_ID,
    ERROR_KEYSTORE_USER_EXISTS,
    KEYSTORE_ENDPOINT,
    PLATFORM_CHAIN,
    PLATFORM_CHAIN_ENDPOINT,
    TX_ACCEPTED_STATUSES,
    TX_REJECTED_STATUSES,
    TX_STATUS_POLL_INTERVAL,
)
from avabox.commands.errors import ClientError, RpcError
from avabox.commands.models import OutputOwners
from avabox.commands.rpc import RpcClient


class Wallet(Protocol):
    async def prepare(self) -> None: ...

    async def create_subnet_tx_fee(self) -> int: ...

    async def issue_export_tx(
        self, destination_chain: str, amount: int, owner: OutputOwners
    ) -> str: ...

    async def issue_import_tx(self, source_chain: str, owner: OutputOwners) -> str: ...

    async def issue_create_subnet_tx(self, owner: OutputOwners) -> str: ...

    async def issue_create_chain_tx(
        self, subnet_id: str, genesis: bytes, vm_id: str, name: str
    ) -> str: ...


class KeystoreWallet:
    """Wallet that signs through a keystore user on the node itself."""

    def __init__(
        self,
        rpc: RpcClient,
        username: str,
        password: str,
        private_key: Optional[str] = None,
        x_address: Optional[str] = None,
        clock: Optional[Clock] = None,
        cancel: Optional[CancelSignal] = None,
        poll_interval: float = TX_STATUS_POLL_INTERVAL,
    ):
        self.rpc = rpc
        self.username = username
        self.password = password
        self.private_key = private_key
        self.x_address = x_address
        self.clock = clock or Clock()
        self.cancel = cancel
        self.poll_interval = poll_interval

    def _credentials(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}

    async def prepare(self) -> None:
        """Create the keystore user and import the signing key on both chains.

        An existing user is reused so a wallet can be prepared twice against
        the same node.
        """
        try:
            await self.rpc.call(KEYSTORE_ENDPOINT, "keystore.createUser", self._credentials())
        except RpcError as e:
            if ERROR_KEYSTORE_USER_EXISTS not in e.message:
                raise

        if self.private_key is None:
            return
        params = {"privateKey": self.private_key, **self._credentials()}
        await self.rpc.call(ASSET_CHAIN_ENDPOINT, "avm.importKey", params)
        await self.rpc.call(PLATFORM_CHAIN_ENDPOINT, "platform.importKey", params)

    async def create_subnet_tx_fee(self) -> int:
        fees = await self.rpc.info_get_tx_fee()
        try:
            return fees["createSubnetTxFee"]
        except KeyError as e:
            raise ClientError("info.getTxFee did not report createSubnetTxFee") from e

    async def issue_export_tx(
        self, destination_chain: str, amount: int, owner: OutputOwners
    ) -> str:
        params = {
            "to": owner.addresses[0],
            "amount": amount,
            "assetID": AVAX_ASSET_ID,
            **self._credentials(),
        }
        if self.x_address:
            params["from"] = [self.x_address]
            params["changeAddr"] = self.x_address
        result = await self.rpc.call(ASSET_CHAIN_ENDPOINT, "avm.export", params)
        return await self._wait_accepted(ASSET_CHAIN, result["txID"])

    async def issue_import_tx(self, source_chain: str, owner: OutputOwners) -> str:
        params = {
            "to": owner.addresses[0],
            "sourceChain": source_chain,
            **self._credentials(),
        }
        result = await self.rpc.call(
            PLATFORM_CHAIN_ENDPOINT, "platform.importAVAX", params
        )
        return await self._wait_accepted(PLATFORM_CHAIN, result["txID"])

    async def issue_create_subnet_tx(self, owner: OutputOwners) -> str:
        params = {
            "controlKeys": list(owner.addresses),
            "threshold": owner.threshold,
            **self._credentials(),
        }
        result = await self.rpc.call(
            PLATFORM_CHAIN_ENDPOINT, "platform.createSubnet", params
        )
        return await self._wait_accepted(PLATFORM_CHAIN, result["txID"])

    async def issue_create_chain_tx(
        self, subnet_id: str, genesis: bytes, vm_id: str, name: str
    ) -> str:
        params = {
            "subnetID": subnet_id,
            "vmID": vm_id,
            "name": name,
            "genesisData": "0x" + genesis.hex(),
            "encoding": "hex",
            **self._credentials(),
        }
        result = await self.rpc.call(
            PLATFORM_CHAIN_ENDPOINT, "platform.createBlockchain", params
        )
        return await self._wait_accepted(PLATFORM_CHAIN, result["txID"])

    async def _wait_accepted(self, chain: str, tx_id: str) -> str:
        """Poll the transaction status until it is accepted or rejected."""
        while True:
            status = await self.rpc.get_tx_status(chain, tx_id)
            if status in TX_ACCEPTED_STATUSES:
                return tx_id
            if status in TX_REJECTED_STATUSES:
                raise ClientError(f"Transaction {tx_id} on {chain}-chain was {status}")
            await self.clock.sleep_or_cancel(
                self.poll_interval, self.cancel, f"transaction {tx_id}"
            )
