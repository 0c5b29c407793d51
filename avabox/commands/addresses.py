"""
Chain-scoped addresses.

Each primary network chain has its own address kind and its own balance
query; ``parse_address`` picks the kind from the address prefix once, so
callers never branch on prefixes themselves.
"""

from dataclasses import dataclass
from typing import Union

from avabox.commands.constants import AVAX_ASSET_ID
from avabox.commands.errors import ValidationError
from avabox.commands.rpc import RpcClient


@dataclass(frozen=True)
class AssetChainAddress:
    """``X-`` address on the asset chain."""

    value: str
    chain = "X"

    async def get_balance(self, rpc: RpcClient, asset_id: str = AVAX_ASSET_ID) -> int:
        return await rpc.avm_get_balance(self.value, asset_id)


@dataclass(frozen=True)
class PlatformChainAddress:
    """``P-`` address on the platform chain."""

    value: str
    chain = "P"

    async def get_balance(self, rpc: RpcClient) -> int:
        return await rpc.platform_get_balance(self.value)


@dataclass(frozen=True)
class ContractChainAddress:
    """``0x`` address on the contract chain."""

    value: str
    chain = "C"

    async def get_balance(self, rpc: RpcClient) -> int:
        return await rpc.eth_get_balance(self.value)


ChainAddress = Union[AssetChainAddress, PlatformChainAddress, ContractChainAddress]


def parse_address(address: str) -> ChainAddress:
    """Return the address kind matching ``address``'s prefix.

    Raises:
        ValidationError: if the prefix is not X-, P- or 0x.
    """
    if address.startswith("X-"):
        return AssetChainAddress(address)
    if address.startswith("P-"):
        return PlatformChainAddress(address)
    if address.startswith("0x"):
        return ContractChainAddress(address)
    raise ValidationError(
        f"address should have prefix X-, P- or 0x, got: {address}",
        field="address",
        value=address,
    )
