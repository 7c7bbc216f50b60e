"""
Block Explorer Core

Components:
- BoundedBlockCache: FIFO cache of immutable blocks, never holding the head
- compute_range: which block indices a page shows
- ViewState: immutable snapshot sent to the render sink
- PollingController: polls height, resolves blocks, emits snapshots
- TrackerConfig: configuration with environment overrides
"""

from .block_cache import BoundedBlockCache, DEFAULT_CACHE_CAPACITY
from .window import UNPINNED, clamp_start, compute_range, effective_start
from .view_state import ControllerState, ViewState
from .config import TrackerConfig
from .metrics import ControllerMetrics
from .controller import PollingController

__all__ = [
    "BoundedBlockCache",
    "DEFAULT_CACHE_CAPACITY",
    "UNPINNED",
    "clamp_start",
    "compute_range",
    "effective_start",
    "ControllerState",
    "ViewState",
    "TrackerConfig",
    "ControllerMetrics",
    "PollingController",
]
