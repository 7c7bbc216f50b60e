"""
Explorer Window

Pure functions deciding which block indices the explorer shows.
"""

from typing import List


# Sentinel for "not pinned" / "nothing selected"
UNPINNED = -1


def effective_start(pinned_start: int, height: int) -> int:
    """Start index actually used: the pin if it is a real block, else the head."""
    if pinned_start < 0 or pinned_start >= height:
        return height - 1
    return pinned_start


def compute_range(pinned_start: int, height: int, page_size: int) -> List[int]:
    """
    Indices visible in the explorer, newest first.

    Counts down up to `page_size` indices from the effective start and
    stops at block 0.

    Examples:
        compute_range(-1, 100, 50) -> [99, 98, ..., 50]
        compute_range(30, 100, 50) -> [30, 29, ..., 0]
    """
    start = effective_start(pinned_start, height)
    stop = max(start - page_size, -1)
    return list(range(start, stop, -1))


def clamp_start(start: int, height: int) -> int:
    """
    Normalise a requested pin to [0, height - 1].

    Negative requests unpin. Requests past the head pin at the head. With no
    blocks there is nothing to pin.
    """
    if start < 0 or height <= 0:
        return UNPINNED
    return min(start, height - 1)
