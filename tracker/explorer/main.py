"""
Block Explorer Runner

Runs a PollingController against a Neo node (or the mock chain) and logs a
summary of every snapshot.

Usage:
    python -m tracker.explorer.main --rpc-url http://127.0.0.1:50012
    python -m tracker.explorer.main --mock --duration 30
"""

import asyncio
import logging
from typing import Optional

from tracker.neo.mock_data import MockConfig, MockNeoRpcClient
from tracker.neo.rpc_client import NeoRpcClient, RpcClientConfig

from .config import TrackerConfig
from .controller import PollingController
from .view_state import ViewState


logger = logging.getLogger(__name__)


def log_snapshot(snapshot: ViewState):
    """Render sink that logs one line per snapshot."""
    indices = snapshot.block_indices
    window = f"{indices[0]}..{indices[-1]}" if indices else "empty"
    pinned = f"pinned at {snapshot.start_at_block}" if snapshot.is_pinned else "following head"
    logger.info(
        f"Height {snapshot.block_height:,} | window {window} ({len(indices)} blocks) | {pinned}"
    )


async def run(
    config: TrackerConfig,
    use_mock: bool = False,
    pin: Optional[int] = None,
    duration: Optional[float] = None,
):
    if use_mock:
        client = MockNeoRpcClient(MockConfig(blocks_per_poll=1))
    else:
        client = NeoRpcClient(RpcClientConfig(
            rpc_url=config.rpc_url,
            request_timeout=config.fetch_timeout,
        ))

    await client.start()
    controller = PollingController(client, config, render_sink=log_snapshot)

    try:
        await controller.start()
        if pin is not None:
            # Give the first cycle a chance to learn the height
            await controller.poll_once()
            await controller.pin(pin)

        if duration is not None:
            await asyncio.sleep(duration)
        else:
            await asyncio.Event().wait()
    finally:
        await controller.stop()
        await client.stop()
        logger.info(f"Final stats: {controller.get_stats()}")


def main():
    """Entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Neo Block Explorer Tracker')
    parser.add_argument('--rpc-url', default=None, help='Node JSON-RPC URL')
    parser.add_argument('--poll-interval-ms', type=int, default=None, help='Height poll interval')
    parser.add_argument('--page-size', type=int, default=None, help='Blocks per page')
    parser.add_argument('--mock', action='store_true', help='Use the offline mock chain')
    parser.add_argument('--pin', type=int, default=None, help='Pin the window at this block')
    parser.add_argument('--duration', type=float, default=None, help='Stop after N seconds')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    config = TrackerConfig.from_env(
        rpc_url=args.rpc_url,
        poll_interval_ms=args.poll_interval_ms,
        page_size=args.page_size,
    )

    try:
        asyncio.run(run(config, use_mock=args.mock, pin=args.pin, duration=args.duration))
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == '__main__':
    main()
