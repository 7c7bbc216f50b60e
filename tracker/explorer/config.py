"""
Tracker Configuration

All configurable parameters for the block explorer controller.
Values can be overridden from the environment (or a .env file).
"""

import os
from dataclasses import dataclass, fields

from dotenv import load_dotenv

from tracker.neo.rpc_client import DEFAULT_RPC_URL

from .block_cache import DEFAULT_CACHE_CAPACITY


ENV_PREFIX = "TRACKER_"


@dataclass
class TrackerConfig:
    """Configuration for PollingController."""

    # ========== Node ==========
    rpc_url: str = DEFAULT_RPC_URL

    # ========== Polling ==========
    # Delay between the end of one height check and the start of the next
    poll_interval_ms: int = 3000

    # ========== Pagination ==========
    # Blocks shown per page
    page_size: int = 50

    # Page-jump distance offered by the panel's pager
    pagination_distance: int = 15

    # ========== Cache ==========
    cache_capacity: int = DEFAULT_CACHE_CAPACITY

    # ========== Fetching ==========
    # Upper bound on any single remote call (seconds)
    fetch_timeout: float = 10.0

    # Parallel getblock requests while resolving a page
    max_concurrent_fetches: int = 10

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

    def validate(self) -> "TrackerConfig":
        """Raise ValueError on unusable settings."""
        if self.poll_interval_ms < 0:
            raise ValueError(f"poll_interval_ms must be >= 0, got {self.poll_interval_ms}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.pagination_distance < 1:
            raise ValueError(f"pagination_distance must be >= 1, got {self.pagination_distance}")
        if self.cache_capacity < 1:
            raise ValueError(f"cache_capacity must be >= 1, got {self.cache_capacity}")
        if self.fetch_timeout <= 0:
            raise ValueError(f"fetch_timeout must be > 0, got {self.fetch_timeout}")
        if self.max_concurrent_fetches < 1:
            raise ValueError(
                f"max_concurrent_fetches must be >= 1, got {self.max_concurrent_fetches}"
            )
        return self

    @classmethod
    def from_env(cls, **overrides) -> "TrackerConfig":
        """
        Build a config from TRACKER_* environment variables.

        e.g. TRACKER_RPC_URL, TRACKER_POLL_INTERVAL_MS, TRACKER_PAGE_SIZE.
        Explicit keyword overrides win over the environment.
        """
        load_dotenv()

        values = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            try:
                values[f.name] = f.type(raw) if isinstance(f.type, type) else raw
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}{f.name.upper()}: invalid value {raw!r}")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values).validate()
