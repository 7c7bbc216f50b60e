"""
Neo JSON-RPC Client

Async client for a Neo N3 node's JSON-RPC endpoint.
Provides the two remote capabilities the explorer needs:

- fetch_height(): `getblockcount`, the chain height (head index = height - 1)
- fetch_block(index): `getblock [index, true]`, a verbose block

Every call is fallible. Transport failures, timeouts, non-200 responses and
node-side RPC errors raise RemoteUnavailable; payloads that cannot be decoded
or have the wrong shape raise MalformedResponse.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import aiohttp

from .types import Block


# neo-express default RPC port
DEFAULT_RPC_URL = "http://127.0.0.1:50012"


class RemoteUnavailable(Exception):
    """Raised when the node cannot be reached or refuses a request."""
    pass


class MalformedResponse(RemoteUnavailable):
    """Raised when the node answers with an unusable payload."""
    pass


@dataclass
class RpcClientConfig:
    """Configuration for the Neo RPC client."""
    rpc_url: str = DEFAULT_RPC_URL
    request_timeout: float = 10.0  # Total time per HTTP request (seconds)


class NeoRpcClient:
    """
    Neo JSON-RPC client.

    Usage:
        async with NeoRpcClient(RpcClientConfig(rpc_url=url)) as client:
            height = await client.fetch_height()
            block = await client.fetch_block(height - 1)
    """

    def __init__(self, config: Optional[RpcClientConfig] = None):
        self.config = config or RpcClientConfig()
        self._logger = logging.getLogger("NeoRpcClient")
        self._session: Optional[aiohttp.ClientSession] = None
        self._request_ids = itertools.count(1)

    @property
    def rpc_url(self) -> str:
        return self.config.rpc_url

    async def start(self):
        """Open the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout)
            )

    async def stop(self):
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "NeoRpcClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    # =========================================================================
    # RPC Methods
    # =========================================================================

    async def fetch_height(self) -> int:
        """
        Get the current chain height.

        API: getblockcount
        """
        result = await self._call("getblockcount", [])
        if isinstance(result, bool) or not isinstance(result, int) or result < 0:
            raise MalformedResponse(f"getblockcount returned {result!r}")
        return result

    async def fetch_block(self, index: int) -> Block:
        """
        Get a single block by index.

        API: getblock [index, true]
        """
        result = await self._call("getblock", [index, True])
        if not isinstance(result, dict):
            raise MalformedResponse(f"getblock {index} returned {type(result).__name__}")
        try:
            return Block.from_rpc(result)
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"getblock {index}: {e}") from e

    # =========================================================================
    # Transport
    # =========================================================================

    async def _call(self, method: str, params: List[Any]) -> Any:
        """Issue one JSON-RPC request and return its `result` member."""
        if self._session is None:
            raise RemoteUnavailable("client not started")

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._request_ids),
        }

        try:
            async with self._session.post(
                self.config.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"}
            ) as response:
                if response.status != 200:
                    self._logger.debug(f"{method} failed: HTTP {response.status}")
                    raise RemoteUnavailable(f"{method}: HTTP {response.status}")

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise MalformedResponse(f"{method}: invalid JSON ({e})") from e

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.debug(f"{method} error: {e!r}")
            raise RemoteUnavailable(f"{method}: {e!r}") from e

        if not isinstance(data, dict):
            raise MalformedResponse(f"{method}: response is not an object")

        error = data.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RemoteUnavailable(f"{method}: RPC error {message}")

        if "result" not in data:
            raise MalformedResponse(f"{method}: response has no result")

        return data["result"]
