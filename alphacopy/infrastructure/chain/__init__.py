"""Solana chain adapters: RPC client, activity sources, swap parsing."""

from .activity_source import ChainActivitySource
from .polling_source import PollingActivitySource
from .rpc_client import RpcError, RpcTransportError, SolanaRpcClient
from .token_metadata import RpcTokenMetadataProvider
from .websocket_source import WebsocketActivitySource

__all__ = [
    "ChainActivitySource",
    "PollingActivitySource",
    "WebsocketActivitySource",
    "SolanaRpcClient",
    "RpcError",
    "RpcTransportError",
    "RpcTokenMetadataProvider",
]
