"""TokenMetadataPort - lookup of token symbol/supply for asset policies."""

from abc import ABC, abstractmethod

from alphacopy.domain.signals.services.asset_policy import TokenMetadata


class TokenMetadataPort(ABC):
    """Source of token metadata.

    Implementations:
    - RpcTokenMetadataProvider (DAS getAsset, getTokenSupply fallback)
    """

    @abstractmethod
    async def get_metadata(self, mint: str) -> TokenMetadata | None:
        """Metadata for a mint, None when it cannot be resolved.

        Lookup failures must not raise: a missing answer is the same as
        "no metadata" for eligibility purposes.
        """
