"""
Block Explorer Polling Controller

Keeps an explorer view of the chain up to date:
- Polls the node for chain height on a fixed delay
- Recomputes the visible window when the head advances (unless pinned)
- Resolves visible blocks from the cache, fetching misses in parallel
- Pushes an immutable ViewState snapshot to the render sink

Cycles and user requests (pin/select) are serialized by a single lock, so
the view state and cache only ever change from one flow at a time. The next
cycle is scheduled only after the previous one has finished.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from tracker.neo.rpc_client import MalformedResponse, RemoteUnavailable
from tracker.neo.types import Block

from .block_cache import BoundedBlockCache
from .config import TrackerConfig
from .metrics import ControllerMetrics
from .view_state import ControllerState, ViewState
from .window import UNPINNED, clamp_start, compute_range


RenderSink = Callable[[ViewState], Union[None, Awaitable[None]]]


class PollingController:
    """
    Polling controller for one explorer view.

    Lifecycle: IDLE -> POLLING (start) -> CLOSED (stop). CLOSED is terminal;
    once closed no further remote calls are made and no snapshots are emitted.
    Results of calls still in flight at close are discarded.

    Usage:
        controller = PollingController(client, config, render_sink=panel.show)
        await controller.start()

        await controller.pin(30)      # browse history
        await controller.select(10)   # select a block, keep it visible

        await controller.stop()
    """

    def __init__(
        self,
        client,  # NeoRpcClient or MockNeoRpcClient
        config: Optional[TrackerConfig] = None,
        render_sink: Optional[RenderSink] = None,
        cache: Optional[BoundedBlockCache] = None,
    ):
        """Initialize controller.

        Args:
            client: Remote collaborator with fetch_height()/fetch_block(index)
            config: Tracker configuration (uses defaults if None)
            render_sink: Receives every new ViewState snapshot
            cache: Block cache (built from config.cache_capacity if None)
        """
        self.config = (config or TrackerConfig()).validate()
        self._client = client
        self._render_sink = render_sink
        self._cache = cache if cache is not None else BoundedBlockCache(self.config.cache_capacity)
        self._logger = logging.getLogger("PollingController")

        rpc_url = getattr(client, "rpc_url", self.config.rpc_url)
        self._view_state = ViewState(
            panel_title=f"Block Explorer: {rpc_url}",
            pagination_distance=self.config.pagination_distance,
        )

        # Lifecycle
        self._state = ControllerState.IDLE
        self._task: Optional[asyncio.Task] = None
        self._wakeup = asyncio.Event()

        # Serializes cycles and requests
        self._lock = asyncio.Lock()
        self._fetch_slots = asyncio.Semaphore(self.config.max_concurrent_fetches)

        self._last_cycle_ok: Optional[bool] = None
        self.metrics = ControllerMetrics()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state == ControllerState.CLOSED

    @property
    def view_state(self) -> ViewState:
        """Last known good snapshot."""
        return self._view_state

    @property
    def last_cycle_ok(self) -> Optional[bool]:
        """Outcome of the latest polling cycle (None before the first one)."""
        return self._last_cycle_ok

    @property
    def cache(self) -> BoundedBlockCache:
        return self._cache

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self):
        """Start polling. The first height check runs immediately."""
        if self._state != ControllerState.IDLE:
            return
        self._state = ControllerState.POLLING
        self._task = asyncio.create_task(self._refresh_loop())
        self._logger.info(
            f"Polling {self._view_state.panel_title} every {self.config.poll_interval_ms}ms"
        )

    async def stop(self):
        """Close the controller and wait for the polling loop to exit."""
        if self.closed:
            return
        self._state = ControllerState.CLOSED
        self._wakeup.set()

        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except Exception as e:
                self._logger.error(f"Polling loop ended with error: {e}")
        self._logger.info("Controller closed")

    async def _refresh_loop(self):
        """Check height, then wait, until closed."""
        while not self.closed:
            try:
                await self.poll_once()
            except Exception as e:
                self._logger.error(f"Refresh loop error: {e}")
            await self._sleep(self.config.poll_interval)

    async def _sleep(self, delay: float):
        """Wait for `delay` seconds, returning early if stop() is called."""
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    # =========================================================================
    # Polling
    # =========================================================================

    async def poll_once(self) -> bool:
        """
        Run one polling cycle.

        Returns True if the cycle completed, False if it failed or the
        controller is closed. A failed cycle leaves the view state untouched.
        """
        if self.closed:
            return False

        async with self._lock:
            if self.closed:
                return False
            try:
                height = await self._remote(self._client.fetch_height(), "getblockcount")
                if self.closed:
                    return False
                if height > self._view_state.block_height:
                    self._logger.info(f"New block available: height {height}")
                    await self._on_new_block_available(height)
            except RemoteUnavailable as e:
                self._last_cycle_ok = False
                self.metrics.record_failure()
                self._logger.warning(f"Polling cycle failed: {e}")
                return False

            self._last_cycle_ok = True
            self.metrics.record_success()
            return True

    async def _on_new_block_available(self, height: int):
        self._cache.set_head(height - 1)

        if self._view_state.is_pinned:
            # Operator is browsing history; keep the window where it is
            published = await self._publish(self._view_state.update(block_height=height))
        else:
            blocks = await self._resolve_blocks(UNPINNED, height)
            published = await self._publish(
                self._view_state.update(block_height=height, blocks=blocks)
            )

        if published:
            self.metrics.last_height = height
            self.metrics.new_heights += 1

    # =========================================================================
    # Requests
    # =========================================================================

    async def pin(self, start_index: int) -> bool:
        """
        Pin the window to start at `start_index` (-1 to follow the head).

        Returns True if a new snapshot was emitted.
        """
        if self.closed:
            return False

        async with self._lock:
            if self.closed:
                return False
            height = self._view_state.block_height
            start = clamp_start(start_index, height)
            try:
                blocks = await self._resolve_blocks(start, height)
            except RemoteUnavailable as e:
                self._logger.warning(f"Pin to block {start_index} failed: {e}")
                return False
            return await self._publish(
                self._view_state.update(start_at_block=start, blocks=blocks)
            )

    async def select(self, block_index: int) -> bool:
        """
        Select a block and pin the window two blocks above it.

        A negative index clears the selection; below -2 it also unpins.
        Returns True if a new snapshot was emitted.
        """
        if self.closed:
            return False

        async with self._lock:
            if self.closed:
                return False
            height = self._view_state.block_height
            start = clamp_start(min(height - 1, block_index + 2), height)
            try:
                blocks = await self._resolve_blocks(start, height)
            except RemoteUnavailable as e:
                self._logger.warning(f"Select block {block_index} failed: {e}")
                return False
            return await self._publish(
                self._view_state.update(
                    selected_block=max(block_index, UNPINNED),
                    start_at_block=start,
                    blocks=blocks,
                )
            )

    async def retrieve_view_state(self) -> bool:
        """Re-send the current snapshot to the render sink."""
        if self.closed:
            return False
        await self._emit(self._view_state)
        return True

    async def handle_request(self, message: Dict[str, Any]):
        """
        Dispatch a message from the web panel.

        Accepts `retrieveViewState`, and `setStartAtBlock` / `selectBlock`
        either at the top level or nested under `typedRequest`.
        """
        self._logger.debug(f"Request received: {message}")

        try:
            retrieve = message.get("retrieveViewState")
            typed = message.get("typedRequest") or message
            start_at = typed.get("setStartAtBlock")
            select_block = typed.get("selectBlock")
            if start_at is not None:
                start_at = int(start_at)
            if select_block is not None:
                select_block = int(select_block)
        except (AttributeError, TypeError, ValueError) as e:
            self._logger.warning(f"Ignoring invalid request {message!r}: {e}")
            return

        if retrieve:
            await self.retrieve_view_state()
        if start_at is not None:
            await self.pin(start_at)
        if select_block is not None:
            await self.select(select_block)

    # =========================================================================
    # Block Resolution
    # =========================================================================

    async def _resolve_blocks(self, start: int, height: int) -> List[Block]:
        """
        Resolve every block in the window, newest first.

        All fetches are joined before returning. If any of them failed, the
        first failure (in window order) is raised and nothing is returned.
        """
        indices = compute_range(start, height, self.config.page_size)
        results = await asyncio.gather(
            *(self._get_block(index) for index in indices),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _get_block(self, index: int) -> Block:
        cached = self._cache.get(index)
        if cached is not None:
            self.metrics.cache_hits += 1
            return cached

        async with self._fetch_slots:
            self._logger.debug(f"Retrieving block {index}")
            try:
                block = await self._remote(self._client.fetch_block(index), f"getblock {index}")
            except RemoteUnavailable:
                self.metrics.fetch_errors += 1
                raise

        if block.index != index:
            self.metrics.fetch_errors += 1
            raise MalformedResponse(f"getblock {index} returned block {block.index}")

        self.metrics.blocks_fetched += 1
        if not self.closed:
            self._cache.put(index, block)
        return block

    async def _remote(self, call: Awaitable, what: str):
        """Await a remote call under the fetch timeout."""
        try:
            return await asyncio.wait_for(call, timeout=self.config.fetch_timeout)
        except asyncio.TimeoutError:
            raise RemoteUnavailable(f"{what}: timed out after {self.config.fetch_timeout}s")

    # =========================================================================
    # Output
    # =========================================================================

    async def _publish(self, snapshot: ViewState) -> bool:
        """Swap in a new snapshot and emit it, unless closed meanwhile."""
        if self.closed:
            return False
        self._view_state = snapshot
        await self._emit(snapshot)
        return True

    async def _emit(self, snapshot: ViewState):
        if self._render_sink is None:
            return
        try:
            result = self._render_sink(snapshot)
            if inspect.isawaitable(result):
                await result
            self.metrics.snapshots_emitted += 1
        except Exception as e:
            self.metrics.sink_errors += 1
            self._logger.error(f"Render sink error: {e}")

    # =========================================================================
    # Stats
    # =========================================================================

    def get_stats(self) -> Dict:
        """Get controller statistics."""
        return {
            "state": self._state.value,
            "last_cycle_ok": self._last_cycle_ok,
            "block_height": self._view_state.block_height,
            "start_at_block": self._view_state.start_at_block,
            "selected_block": self._view_state.selected_block,
            "visible_blocks": len(self._view_state.blocks),
            "metrics": self.metrics.to_dict(),
            "cache": self._cache.get_stats(),
        }
