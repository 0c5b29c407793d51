"""
JSON-RPC client for node HTTP endpoints.

Every call opens its own aiohttp.ClientSession, posts once and closes the
session again; nothing is pooled or reused between polls.
"""

import asyncio
from typing import Any, Optional

import aiohttp

from avabox.commands.constants import (
    ASSET_CHAIN_ENDPOINT,
    AVAX_ASSET_ID,
    CONTRACT_CHAIN_ENDPOINT,
    INFO_ENDPOINT,
    PLATFORM_CHAIN,
    PLATFORM_CHAIN_ENDPOINT,
    PORT_PROBE_TIMEOUT,
    RPC_READ_TIMEOUT,
)
from avabox.commands.errors import ClientError, RpcError, TransientTransportError

# Exceptions that mean the node hung up before sending a full response
PREMATURE_CLOSE_ERRORS = (
    aiohttp.ServerDisconnectedError,
    aiohttp.ClientPayloadError,
    asyncio.IncompleteReadError,
)


def decode_response(url: str, method: str, body: Any) -> Any:
    """Return the ``result`` member of a JSON-RPC response body.

    Raises:
        RpcError: if the response carries an error object.
        ClientError: if the body is not a JSON-RPC response at all.
    """
    if not isinstance(body, dict):
        raise ClientError(f"Unexpected response to {method}: {body!r}", url=url)
    error = body.get("error")
    if error:
        if isinstance(error, dict):
            raise RpcError(
                error.get("message", "unknown error"),
                url=url,
                method=method,
                rpc_code=error.get("code"),
            )
        raise RpcError(str(error), url=url, method=method)
    if "result" not in body:
        raise ClientError(f"Response to {method} has no result", url=url)
    return body["result"]


class RpcClient:
    """Thin JSON-RPC client bound to one node's HTTP port."""

    def __init__(
        self,
        base_url: str,
        read_timeout: float = RPC_READ_TIMEOUT,
        connect_timeout: float = PORT_PROBE_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.read_timeout = read_timeout
        self.connect_timeout = connect_timeout

    @classmethod
    def for_port(cls, port: int, host: str = "127.0.0.1") -> "RpcClient":
        return cls(f"http://{host}:{port}")

    async def call(
        self, endpoint: str, method: str, params: Optional[Any] = None
    ) -> Any:
        """Issue a single JSON-RPC request and return its result."""
        url = f"{self.base_url}{endpoint}"
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params if params is not None else {},
        }
        timeout = aiohttp.ClientTimeout(
            total=self.read_timeout, connect=self.connect_timeout
        )

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(url, json=payload, timeout=timeout) as response:
                    if response.status >= 400:
                        text = await response.text()
                        raise ClientError(
                            f"{method} failed: HTTP {response.status}: {text[:200]}",
                            url=url,
                            status_code=response.status,
                        )
                    body = await response.json(content_type=None)
        except PREMATURE_CLOSE_ERRORS as e:
            raise TransientTransportError(
                f"Connection closed before {method} completed: {e}", url=url
            ) from e
        except aiohttp.ClientError as e:
            raise ClientError(f"{method} failed: {e}", url=url) from e
        except asyncio.TimeoutError as e:
            raise ClientError(f"{method} timed out", url=url) from e
        except ValueError as e:
            raise ClientError(f"{method} returned invalid JSON: {e}", url=url) from e

        return decode_response(url, method, body)

    async def info_is_bootstrapped(self, chain: str) -> bool:
        result = await self.call(INFO_ENDPOINT, "info.isBootstrapped", {"chain": chain})
        return bool(result.get("isBootstrapped"))

    async def info_get_tx_fee(self) -> dict[str, int]:
        result = await self.call(INFO_ENDPOINT, "info.getTxFee")
        return {key: int(value) for key, value in result.items()}

    async def platform_get_height(self) -> int:
        result = await self.call(PLATFORM_CHAIN_ENDPOINT, "platform.getHeight")
        return int(result["height"])

    async def platform_get_balance(self, address: str) -> int:
        result = await self.call(
            PLATFORM_CHAIN_ENDPOINT, "platform.getBalance", {"addresses": [address]}
        )
        return int(result["balance"])

    async def avm_get_balance(self, address: str, asset_id: str = AVAX_ASSET_ID) -> int:
        result = await self.call(
            ASSET_CHAIN_ENDPOINT,
            "avm.getBalance",
            {"address": address, "assetID": asset_id},
        )
        return int(result["balance"])

    async def eth_get_balance(self, address: str) -> int:
        result = await self.call(
            CONTRACT_CHAIN_ENDPOINT, "eth_getBalance", [address, "latest"]
        )
        return int(result, 16)

    async def get_tx_status(self, chain: str, tx_id: str) -> str:
        """Return the status string of a transaction on the X or P chain."""
        if chain == PLATFORM_CHAIN:
            result = await self.call(
                PLATFORM_CHAIN_ENDPOINT, "platform.getTxStatus", {"txID": tx_id}
            )
        else:
            result = await self.call(
                ASSET_CHAIN_ENDPOINT, "avm.getTxStatus", {"txID": tx_id}
            )
        if isinstance(result, dict):
            return str(result.get("status", "Unknown"))
        return str(result)
