"""
Property-based tests for explorer invariants.

Verifies, over seeded random inputs:
- Window shape (length, ordering, contiguity, bounds)
- Pinned windows start at the pin
- Cache bound and FIFO eviction
- Head never cached
- View state invariants across random request sequences
"""

import random

import pytest

from tracker.explorer.block_cache import BoundedBlockCache
from tracker.explorer.config import TrackerConfig
from tracker.explorer.controller import PollingController
from tracker.explorer.window import UNPINNED, compute_range
from tracker.neo.mock_data import MockConfig, MockNeoRpcClient
from tracker.neo.types import Block


ITERATIONS = 500


def make_block(index: int) -> Block:
    return Block(index=index, hash=f"0x{index:x}", timestamp=index)


class TestWindowInvariants:
    """Window shape holds for all heights and page sizes."""

    @pytest.fixture
    def rng(self):
        return random.Random(1337)

    def test_unpinned_window_shape(self, rng):
        for _ in range(ITERATIONS):
            height = rng.randint(0, 5000)
            page_size = rng.randint(1, 200)

            window = compute_range(UNPINNED, height, page_size)

            assert len(window) == min(page_size, height)
            if window:
                assert window[0] == height - 1
                assert window[-1] >= 0
            assert all(a - b == 1 for a, b in zip(window, window[1:]))

    def test_pinned_window_starts_at_pin(self, rng):
        for _ in range(ITERATIONS):
            height = rng.randint(1, 5000)
            page_size = rng.randint(1, 200)
            pin = rng.randint(0, height - 1)

            window = compute_range(pin, height, page_size)

            assert window[0] == pin
            assert len(window) == min(page_size, pin + 1)
            assert window[-1] >= 0

    def test_out_of_range_pin_is_unpinned(self, rng):
        for _ in range(ITERATIONS):
            height = rng.randint(0, 5000)
            page_size = rng.randint(1, 200)
            pin = rng.choice([rng.randint(height, height + 1000), rng.randint(-1000, -1)])

            assert compute_range(pin, height, page_size) == compute_range(UNPINNED, height, page_size)


class TestCacheInvariants:
    """Cache bound, FIFO order and head exclusion."""

    @pytest.fixture
    def rng(self):
        return random.Random(4242)

    def test_capacity_plus_one_drops_first(self, rng):
        for _ in range(50):
            capacity = rng.randint(1, 300)
            indices = rng.sample(range(100_000), capacity + 1)
            cache = BoundedBlockCache(capacity)

            for index in indices:
                cache.put(index, make_block(index))

            assert len(cache) == capacity
            assert indices[0] not in cache
            assert all(index in cache for index in indices[1:])

    def test_size_never_exceeds_capacity(self, rng):
        cache = BoundedBlockCache(capacity=64)
        for _ in range(ITERATIONS * 4):
            index = rng.randint(0, 1000)
            cache.put(index, make_block(index))
            assert len(cache) <= 64

    def test_head_never_cached(self, rng):
        cache = BoundedBlockCache(capacity=128)
        for _ in range(ITERATIONS):
            head = rng.randint(0, 10_000)
            cache.set_head(head)
            cache.put(head, make_block(head))

            assert cache.get(head) is None
            assert head not in cache.indices()


class TestControllerInvariants:
    """View state invariants across random pin/select/poll sequences."""

    @pytest.mark.asyncio
    async def test_random_request_sequences(self):
        rng = random.Random(7)
        client = MockNeoRpcClient(MockConfig(initial_height=300))
        config = TrackerConfig(page_size=25, cache_capacity=100)
        controller = PollingController(client, config)

        for _ in range(200):
            action = rng.random()
            if action < 0.3:
                client.set_height(client.height + rng.randint(0, 3))
                await controller.poll_once()
            elif action < 0.65:
                await controller.pin(rng.randint(-5, client.height + 20))
            else:
                await controller.select(rng.randint(0, client.height + 5))

            state = controller.view_state
            indices = list(state.block_indices)
            head = state.block_height - 1

            assert len(indices) <= config.page_size
            assert all(a - b == 1 for a, b in zip(indices, indices[1:]))
            assert all(i >= 0 for i in indices)
            if state.start_at_block >= 0:
                assert state.start_at_block <= head
            if state.block_height > 0:
                assert head not in controller.cache
            assert len(controller.cache) <= config.cache_capacity
