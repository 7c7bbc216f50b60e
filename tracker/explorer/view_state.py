"""
Tracker View State

Immutable snapshot pushed to the render sink. Each update produces a new
snapshot via dataclasses.replace; consumers never mutate one.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Tuple

from tracker.neo.types import Block

from .window import UNPINNED


class ControllerState(Enum):
    """Polling controller lifecycle."""
    IDLE = "IDLE"
    POLLING = "POLLING"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class ViewState:
    """
    Explorer view snapshot.

    Invariants:
    - blocks sorted by index, newest first, at most one page long
    - start_at_block is UNPINNED or within [0, block_height - 1]
    """
    panel_title: str
    pagination_distance: int
    block_height: int = 0
    start_at_block: int = UNPINNED
    selected_block: int = UNPINNED
    blocks: Tuple[Block, ...] = field(default=())
    view: str = "tracker"

    @property
    def is_pinned(self) -> bool:
        return self.start_at_block >= 0

    @property
    def block_indices(self) -> Tuple[int, ...]:
        return tuple(block.index for block in self.blocks)

    def update(self, **changes) -> "ViewState":
        """Return a new snapshot with `changes` applied."""
        if "blocks" in changes:
            changes["blocks"] = tuple(changes["blocks"])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Message payload for the web panel."""
        return {
            "view": self.view,
            "panelTitle": self.panel_title,
            "blockHeight": self.block_height,
            "startAtBlock": self.start_at_block,
            "selectedBlock": self.selected_block,
            "paginationDistance": self.pagination_distance,
            "blocks": [block.to_dict() for block in self.blocks],
        }
