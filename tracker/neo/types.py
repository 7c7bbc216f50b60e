"""
Neo Data Types

Immutable block records parsed from verbose `getblock` RPC results.
A block is identified by its index and never changes once fetched.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Block:
    """
    Single block as returned by the node.

    Only `index` participates in equality; the remaining fields are
    factual copies of the RPC payload.
    """
    index: int
    hash: str = field(compare=False)
    timestamp: int = field(compare=False)  # milliseconds since epoch
    transactions: Tuple[Dict[str, Any], ...] = field(default=(), compare=False)
    size: int = field(default=0, compare=False)
    previous_hash: Optional[str] = field(default=None, compare=False)
    next_hash: Optional[str] = field(default=None, compare=False)

    # Raw RPC result, kept for the web panel
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def tx_count(self) -> int:
        return len(self.transactions)

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "Block":
        """
        Build a Block from a verbose `getblock` result.

        Raises:
            KeyError, TypeError, ValueError: if required fields are missing
            or carry the wrong type. The RPC client maps these to
            MalformedResponse.
        """
        index = data["index"]
        timestamp = data["time"]
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"invalid block index: {index!r}")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValueError(f"invalid block time: {timestamp!r}")

        block_hash = data["hash"]
        if not isinstance(block_hash, str):
            raise TypeError(f"invalid block hash: {block_hash!r}")

        txs = data.get("tx") or []
        if not isinstance(txs, list):
            raise TypeError("block tx field is not a list")

        return cls(
            index=index,
            hash=block_hash,
            timestamp=timestamp,
            transactions=tuple(txs),
            size=int(data.get("size", 0)),
            previous_hash=data.get("previousblockhash"),
            next_hash=data.get("nextblockhash"),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render in the RPC field naming used by the web panel."""
        if self.raw is not None:
            return dict(self.raw)
        return {
            "index": self.index,
            "hash": self.hash,
            "time": self.timestamp,
            "tx": list(self.transactions),
            "size": self.size,
            "previousblockhash": self.previous_hash,
            "nextblockhash": self.next_hash,
        }
