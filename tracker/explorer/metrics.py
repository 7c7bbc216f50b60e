"""
Controller Metrics

Counters for monitoring the polling controller.
"""

from dataclasses import dataclass, field
from typing import Dict
import time


@dataclass
class ControllerMetrics:
    """Metrics for PollingController."""

    # Polling cycles
    cycles: int = 0
    failed_cycles: int = 0
    consecutive_failures: int = 0

    # Chain
    last_height: int = 0
    new_heights: int = 0

    # Block resolution
    blocks_fetched: int = 0
    cache_hits: int = 0
    fetch_errors: int = 0

    # Output
    snapshots_emitted: int = 0
    sink_errors: int = 0

    # Timing
    start_time: float = field(default_factory=time.time)
    last_success_time: float = 0.0

    @property
    def cache_hit_rate(self) -> float:
        lookups = self.cache_hits + self.blocks_fetched
        return self.cache_hits / lookups if lookups > 0 else 0.0

    def record_success(self):
        self.cycles += 1
        self.consecutive_failures = 0
        self.last_success_time = time.time()

    def record_failure(self):
        self.cycles += 1
        self.failed_cycles += 1
        self.consecutive_failures += 1

    def to_dict(self) -> Dict:
        return {
            'cycles': self.cycles,
            'failed_cycles': self.failed_cycles,
            'consecutive_failures': self.consecutive_failures,
            'last_height': self.last_height,
            'new_heights': self.new_heights,
            'blocks_fetched': self.blocks_fetched,
            'cache_hits': self.cache_hits,
            'cache_hit_rate': round(self.cache_hit_rate, 4),
            'fetch_errors': self.fetch_errors,
            'snapshots_emitted': self.snapshots_emitted,
            'sink_errors': self.sink_errors,
            'uptime_seconds': round(time.time() - self.start_time, 1),
        }
