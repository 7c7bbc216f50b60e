"""
Neo Node Access

Components:
- rpc_client.py: Async JSON-RPC client (getblockcount, getblock)
- mock_data.py: Offline mock client with scripted chain growth and failures
- types.py: Immutable Block record
"""

from .types import Block
from .rpc_client import (
    DEFAULT_RPC_URL,
    MalformedResponse,
    NeoRpcClient,
    RemoteUnavailable,
    RpcClientConfig,
)
from .mock_data import MockConfig, MockNeoRpcClient

__all__ = [
    'Block',
    'DEFAULT_RPC_URL',
    'MalformedResponse',
    'NeoRpcClient',
    'RemoteUnavailable',
    'RpcClientConfig',
    'MockConfig',
    'MockNeoRpcClient',
]
