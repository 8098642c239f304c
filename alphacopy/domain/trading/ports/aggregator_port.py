"""AggregatorPort - abstract interface для liquidity aggregator.

Domain визначає ЩО потрібно (quote + swap), infrastructure імплементує
ЯК (JupiterClient).
"""

from abc import ABC, abstractmethod

from ..value_objects import Quote, SwapResult
from .custody_port import SignerHandle


class AggregatorPort(ABC):
    """Quote + swap construction/submission.

    Retries and circuit breaking belong to the implementation; callers see
    a single outcome per call.
    """

    @abstractmethod
    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
    ) -> Quote:
        """Get best route for swapping `amount` base units of input_mint.

        Raises:
            QuoteUnavailableError: No route, or provider error.
        """

    @abstractmethod
    async def execute_swap(self, quote: Quote, signer: SignerHandle) -> SwapResult:
        """Build the swap transaction for `quote`, sign it, submit it and wait
        for confirmation.

        Raises:
            SwapSubmissionError: Build/submit failed, or the transaction
                landed with an error.
            SigningError: Signer rejected the transaction.
        """

    async def close(self) -> None:
        """Release HTTP resources."""
        return None
