"""
Mock Data Generator for Neo

Offline stand-in for NeoRpcClient. Produces deterministic blocks that follow
the verbose `getblock` schema, and lets tests script chain growth and
failures.

Use cases:
- Unit testing without a node
- Running the explorer CLI with --mock
"""

import asyncio
import hashlib
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from .rpc_client import RemoteUnavailable
from .types import Block


@dataclass
class MockConfig:
    """Configuration for mock chain generation."""

    # Chain shape
    initial_height: int = 100
    blocks_per_poll: int = 0  # Height growth on each fetch_height call
    genesis_time_ms: int = 1_600_000_000_000
    block_interval_ms: int = 15_000

    # Transactions per block
    max_transactions: int = 5

    # Random failures (0.0 = never)
    failure_rate: float = 0.0

    # Simulated latency per call (seconds)
    latency: float = 0.0


class MockNeoRpcClient:
    """
    Mock client exposing fetch_height/fetch_block.

    Usage:
        client = MockNeoRpcClient(MockConfig(initial_height=100))
        height = await client.fetch_height()
        block = await client.fetch_block(height - 1)

        client.set_height(120)
        client.fail_next_height()
        client.fail_blocks({42})
    """

    rpc_url = "mock://neo"

    def __init__(self, config: Optional[MockConfig] = None, seed: int = None):
        """Initialize mock client.

        Args:
            config: Mock chain configuration
            seed: Random seed for reproducible failures
        """
        self._config = config or MockConfig()
        self._rng = random.Random(seed)
        self._height = self._config.initial_height

        # Scripted failures
        self._fail_height_calls = 0
        self._failing_blocks: Set[int] = set()

        # Call log
        self.height_calls = 0
        self.block_calls: List[int] = []

    async def start(self):
        pass

    async def stop(self):
        pass

    # =========================================================================
    # Scripting
    # =========================================================================

    @property
    def height(self) -> int:
        return self._height

    def set_height(self, height: int):
        self._height = height

    def fail_next_height(self, times: int = 1):
        """Make the next `times` fetch_height calls raise."""
        self._fail_height_calls += times

    def fail_blocks(self, indices):
        """Make fetch_block raise for these indices until cleared."""
        self._failing_blocks = set(indices)

    # =========================================================================
    # RPC Surface
    # =========================================================================

    async def fetch_height(self) -> int:
        self.height_calls += 1
        await self._simulate_latency()

        if self._fail_height_calls > 0:
            self._fail_height_calls -= 1
            raise RemoteUnavailable("getblockcount: mock failure")
        self._maybe_fail("getblockcount")

        self._height += self._config.blocks_per_poll
        return self._height

    async def fetch_block(self, index: int) -> Block:
        self.block_calls.append(index)
        await self._simulate_latency()

        if index in self._failing_blocks:
            raise RemoteUnavailable(f"getblock {index}: mock failure")
        if index < 0 or index >= self._height:
            raise RemoteUnavailable(f"getblock {index}: unknown block")
        self._maybe_fail(f"getblock {index}")

        return Block.from_rpc(self.generate_block(index))

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_block(self, index: int) -> Dict:
        """Generate the verbose RPC payload for a block."""
        cfg = self._config
        tx_count = (index * 7) % (cfg.max_transactions + 1)
        payload = {
            "hash": self._hash("block", index),
            "size": 700 + tx_count * 250,
            "version": 0,
            "previousblockhash": self._hash("block", index - 1) if index > 0 else "0x" + "00" * 32,
            "merkleroot": self._hash("merkle", index),
            "time": cfg.genesis_time_ms + index * cfg.block_interval_ms,
            "index": index,
            "primary": index % 7,
            "nextconsensus": "NVg7LjGcUSrgxgjX3zEgqaksfMaiS8Z6e1",
            "witnesses": [],
            "tx": [
                {"hash": self._hash(f"tx{i}", index), "size": 250, "sysfee": "0", "netfee": "0"}
                for i in range(tx_count)
            ],
            "confirmations": self._height - index,
        }
        if index < self._height - 1:
            payload["nextblockhash"] = self._hash("block", index + 1)
        return payload

    @staticmethod
    def _hash(kind: str, index: int) -> str:
        return "0x" + hashlib.sha256(f"{kind}:{index}".encode()).hexdigest()

    async def _simulate_latency(self):
        if self._config.latency > 0:
            await asyncio.sleep(self._config.latency)

    def _maybe_fail(self, what: str):
        if self._config.failure_rate > 0 and self._rng.random() < self._config.failure_rate:
            raise RemoteUnavailable(f"{what}: random mock failure")
