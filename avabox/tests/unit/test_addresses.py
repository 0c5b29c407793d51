"""
Unit tests for chain-scoped addresses.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from avabox.commands.addresses import (
    AssetChainAddress,
    ContractChainAddress,
    PlatformChainAddress,
    parse_address,
)
from avabox.commands.errors import ValidationError


class TestParseAddress:
    def test_prefixes(self):
        assert isinstance(parse_address("X-local1abc"), AssetChainAddress)
        assert isinstance(parse_address("P-local1abc"), PlatformChainAddress)
        assert isinstance(parse_address("0x8db97C7cEcE249c2b98bDC0226Cc4C2A57BF52FC"), ContractChainAddress)

    def test_unknown_prefix(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_address("Q-local1abc")
        assert exc_info.value.field == "address"


class TestGetBalance:
    @pytest.mark.asyncio
    async def test_each_kind_uses_its_chain(self):
        rpc = MagicMock()
        rpc.avm_get_balance = AsyncMock(return_value=1)
        rpc.platform_get_balance = AsyncMock(return_value=2)
        rpc.eth_get_balance = AsyncMock(return_value=3)

        assert await parse_address("X-a").get_balance(rpc) == 1
        assert await parse_address("P-a").get_balance(rpc) == 2
        assert await parse_address("0xa").get_balance(rpc) == 3
        rpc.avm_get_balance.assert_awaited_once_with("X-a", "AVAX")
