"""
Bounded Block Cache

Fixed-capacity, insertion-ordered cache of immutable blocks.

Rules:
- The current head block is never cached; it is re-fetched every time
  because its next-block link and confirmations still change.
- When full, the oldest inserted entry is evicted first (FIFO). Lookups do
  not refresh an entry's position.
- Re-inserting an index that is already cached is a no-op.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from tracker.neo.types import Block


# Matches the explorer panel's cache size
DEFAULT_CACHE_CAPACITY = 10240


class BoundedBlockCache:
    """
    FIFO block cache keyed by block index.

    Usage:
        cache = BoundedBlockCache(capacity=10240)
        cache.set_head(height - 1)
        if cache.get(n) is None:
            cache.put(n, await client.fetch_block(n))
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY):
        if capacity < 1:
            raise ValueError(f"cache capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._blocks: "OrderedDict[int, Block]" = OrderedDict()
        self._head_index = -1
        self._logger = logging.getLogger("BoundedBlockCache")

        # Stats
        self._evictions = 0
        self._rejected = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def head_index(self) -> int:
        """Most recently observed head index (-1 if unknown)."""
        return self._head_index

    def set_head(self, index: int):
        """Record a new head index, dropping any entry cached under it."""
        self._head_index = index
        if self._blocks.pop(index, None) is not None:
            self._logger.debug(f"Dropped cached block {index}: now head")

    def get(self, index: int) -> Optional[Block]:
        return self._blocks.get(index)

    def put(self, index: int, block: Block) -> bool:
        """
        Insert a block.

        Returns True if the block is cached after the call, False if it was
        rejected for being at or above the head.
        """
        if self._head_index >= 0 and index >= self._head_index:
            self._rejected += 1
            return False

        if index in self._blocks:
            return True

        if len(self._blocks) >= self._capacity:
            # popitem(last=False) removes the oldest insertion
            self._blocks.popitem(last=False)
            self._evictions += 1

        self._blocks[index] = block
        return True

    def indices(self) -> List[int]:
        """Cached indices, oldest insertion first."""
        return list(self._blocks.keys())

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, index: int) -> bool:
        return index in self._blocks

    def get_stats(self) -> Dict:
        """Get cache statistics."""
        return {
            "size": len(self._blocks),
            "capacity": self._capacity,
            "head_index": self._head_index,
            "evictions": self._evictions,
            "rejected_puts": self._rejected,
        }
