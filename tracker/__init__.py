"""
Neo Block Tracker

Core of a block explorer panel: a bounded block cache feeding a paginated
explorer window, refreshed by polling a Neo node for new chain height.

Subpackages:
- neo: node access (RPC client, mock client, block type)
- explorer: cache, window, view state and the polling controller
"""
