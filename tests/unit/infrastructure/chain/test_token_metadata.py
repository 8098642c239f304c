"""Tests for RpcTokenMetadataProvider."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from alphacopy.domain.signals.value_objects import WRAPPED_SOL_MINT
from alphacopy.infrastructure.chain import RpcError, SolanaRpcClient
from alphacopy.infrastructure.chain.token_metadata import RpcTokenMetadataProvider

BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"

DAS_ASSET = {
    "id": BONK,
    "content": {"metadata": {"name": "Bonk", "symbol": "Bonk"}},
    "token_info": {"symbol": "Bonk", "supply": 8_800_000_000_000_000_000, "decimals": 5},
}


@pytest.fixture
def mock_rpc():
    return AsyncMock(spec=SolanaRpcClient)


@pytest.fixture
def provider(mock_rpc):
    return RpcTokenMetadataProvider(mock_rpc, cache_size=2)


class TestTokenMetadata:
    """Tests для DAS lookup, supply fallback and cache."""

    @pytest.mark.asyncio
    async def test_das_asset(self, provider, mock_rpc):
        # Arrange
        mock_rpc.get_asset.return_value = DAS_ASSET

        # Act
        metadata = await provider.get_metadata(BONK)

        # Assert
        assert metadata.symbol == "Bonk"
        assert metadata.name == "Bonk"
        assert metadata.decimals == 5
        assert metadata.supply == Decimal("88000000000000")
        mock_rpc.get_token_supply.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_to_token_supply(self, provider, mock_rpc):
        mock_rpc.get_asset.side_effect = RpcError("getAsset", -32601, "Method not found")
        mock_rpc.get_token_supply.return_value = {"amount": "1000000000000", "decimals": 6}

        metadata = await provider.get_metadata(BONK)

        assert metadata.symbol is None
        assert metadata.supply == Decimal("1000000")
        assert metadata.decimals == 6

    @pytest.mark.asyncio
    async def test_unresolvable_returns_none_and_is_not_cached(self, provider, mock_rpc):
        mock_rpc.get_asset.return_value = None
        mock_rpc.get_token_supply.side_effect = RpcError("getTokenSupply", -32602, "not a mint")

        assert await provider.get_metadata(BONK) is None
        assert await provider.get_metadata(BONK) is None
        assert mock_rpc.get_asset.await_count == 2

    @pytest.mark.asyncio
    async def test_cached_after_first_lookup(self, provider, mock_rpc):
        mock_rpc.get_asset.return_value = DAS_ASSET

        await provider.get_metadata(BONK)
        await provider.get_metadata(BONK)

        assert mock_rpc.get_asset.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_evicts_least_recently_used(self, provider, mock_rpc):
        mock_rpc.get_asset.side_effect = lambda mint: {**DAS_ASSET, "id": mint}

        for mint in ("mint-a", "mint-b", "mint-c"):
            await provider.get_metadata(mint)
        await provider.get_metadata("mint-a")

        assert mock_rpc.get_asset.await_count == 4

    @pytest.mark.asyncio
    async def test_wrapped_sol_needs_no_lookup(self, provider, mock_rpc):
        metadata = await provider.get_metadata(WRAPPED_SOL_MINT)

        assert metadata.symbol == "SOL"
        mock_rpc.get_asset.assert_not_called()
