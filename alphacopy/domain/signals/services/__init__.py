"""Signal domain services."""

from .asset_policy import (
    AllowAllAssets,
    AssetPolicy,
    MemecoinHeuristic,
    TokenMetadata,
)

__all__ = [
    "AssetPolicy",
    "AllowAllAssets",
    "MemecoinHeuristic",
    "TokenMetadata",
]
