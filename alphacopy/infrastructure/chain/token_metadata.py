"""RpcTokenMetadataProvider - cached token metadata over Solana RPC."""

import logging
from collections import OrderedDict
from decimal import Decimal, InvalidOperation
from typing import Any

from alphacopy.domain.signals.ports import TokenMetadataPort
from alphacopy.domain.signals.services import TokenMetadata
from alphacopy.domain.signals.value_objects import NATIVE_SOL_DECIMALS, WRAPPED_SOL_MINT

from .rpc_client import SolanaRpcClient

logger = logging.getLogger(__name__)


def _ui_supply(raw: Any, decimals: int | None) -> Decimal | None:
    try:
        supply = Decimal(str(raw))
    except (InvalidOperation, TypeError, ValueError):
        return None
    return supply.scaleb(-(decimals or 0))


class RpcTokenMetadataProvider(TokenMetadataPort):
    """Token metadata via DAS `getAsset`, falling back to `getTokenSupply`.

    Supply is reported in UI units (raw supply / 10**decimals). Only
    successful lookups are cached; failures are retried on the next call.
    """

    def __init__(self, rpc: SolanaRpcClient, *, cache_size: int = 2048) -> None:
        self._rpc = rpc
        self._cache_size = cache_size
        self._cache: OrderedDict[str, TokenMetadata] = OrderedDict()

    async def get_metadata(self, mint: str) -> TokenMetadata | None:
        if mint == WRAPPED_SOL_MINT:
            return TokenMetadata(mint=mint, symbol="SOL", name="Wrapped SOL", decimals=NATIVE_SOL_DECIMALS)

        cached = self._cache.get(mint)
        if cached is not None:
            self._cache.move_to_end(mint)
            return cached

        metadata = await self._fetch(mint)
        if metadata is not None:
            self._cache[mint] = metadata
            if len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
        return metadata

    async def _fetch(self, mint: str) -> TokenMetadata | None:
        try:
            asset = await self._rpc.get_asset(mint)
        except Exception as e:
            logger.debug("token_metadata.das_unavailable", extra={"mint": mint, "error": str(e)})
            asset = None

        if asset:
            metadata = self._from_asset(mint, asset)
            if metadata.supply is not None:
                return metadata
        else:
            metadata = None

        try:
            supply = await self._rpc.get_token_supply(mint)
        except Exception as e:
            logger.warning("token_metadata.lookup_failed", extra={"mint": mint, "error": str(e)})
            return metadata

        decimals = supply.get("decimals")
        return TokenMetadata(
            mint=mint,
            symbol=metadata.symbol if metadata else None,
            name=metadata.name if metadata else None,
            supply=_ui_supply(supply.get("amount"), decimals),
            decimals=decimals,
        )

    @staticmethod
    def _from_asset(mint: str, asset: dict[str, Any]) -> TokenMetadata:
        content = (asset.get("content") or {}).get("metadata") or {}
        token_info = asset.get("token_info") or {}
        decimals = token_info.get("decimals")
        supply = token_info.get("supply")
        return TokenMetadata(
            mint=mint,
            symbol=token_info.get("symbol") or content.get("symbol") or None,
            name=content.get("name") or None,
            supply=_ui_supply(supply, decimals) if supply is not None else None,
            decimals=decimals,
        )
