"""Jupiter v6 Aggregator Adapter - implements AggregatorPort.

GET /quote for the route, POST /swap for a serialized transaction, local
signing through the custody SignerHandle, submission via Solana RPC, then
a wait for confirmation: a transaction that lands with an error is a failed
swap.
Includes retry logic and circuit breaker protection.
"""

import base64
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from alphacopy.domain.trading.exceptions import (
    QuoteUnavailableError,
    SwapSubmissionError,
)
from alphacopy.domain.trading.ports import AggregatorPort, SignerHandle
from alphacopy.domain.trading.value_objects import Quote, SwapResult
from alphacopy.infrastructure.chain.rpc_client import RpcError, RpcTransportError, SolanaRpcClient
from alphacopy.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    RetryableError,
    retry_with_backoff,
)

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class JupiterTransportError(RetryableError):
    """Network error, timeout or throttling response from Jupiter."""

    pass


class JupiterClient(AggregatorPort):
    """Jupiter aggregator adapter з retry logic та circuit breaker.

    "No route" answers are QuoteUnavailableError and do not trip the
    breaker: the API is healthy, the pair is just not tradable.

    Example:
        >>> jupiter = JupiterClient(rpc, api_url="https://quote-api.jup.ag/v6")
        >>> quote = await jupiter.get_quote(WSOL, BONK, 10_000_000, 300)
        >>> result = await jupiter.execute_swap(quote, signer)
        >>> print(result.signature)
        >>> await jupiter.close()
    """

    def __init__(
        self,
        rpc: SolanaRpcClient,
        *,
        api_url: str = "https://quote-api.jup.ag/v6",
        timeout_seconds: float = 15.0,
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
        circuit_breaker: CircuitBreaker | None = None,
        priority_fee_micro_lamports: int = 0,
        confirm_poll_interval: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.confirm_poll_interval = confirm_poll_interval
        self.priority_fee_micro_lamports = priority_fee_micro_lamports
        self._rpc = rpc
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._owns_client = client is None
        self._circuit = circuit_breaker or CircuitBreaker(
            "jupiter",
            failure_threshold=5,
            timeout_seconds=60,
            excluded_exceptions=(QuoteUnavailableError,),
        )
        retry = retry_with_backoff(
            max_retries=max_retries,
            base_delay=retry_base_delay,
            max_delay=10.0,
            retryable_exceptions=(JupiterTransportError,),
        )
        self._fetch_quote = retry(self._protected(self._fetch_quote_once))
        self._build_swap = retry(self._protected(self._build_swap_once))

    @property
    def circuit(self) -> CircuitBreaker:
        return self._circuit

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
        logger.info("jupiter.closed")

    # ==================== AggregatorPort ====================

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
    ) -> Quote:
        if amount <= 0:
            raise QuoteUnavailableError(input_mint, output_mint, "amount must be positive")

        logger.info(
            "jupiter.quote.start",
            extra={
                "input_mint": input_mint,
                "output_mint": output_mint,
                "amount": amount,
                "slippage_bps": slippage_bps,
            },
        )
        try:
            body = await self._fetch_quote(input_mint, output_mint, amount, slippage_bps)
        except CircuitBreakerOpenError as e:
            raise QuoteUnavailableError(input_mint, output_mint, "aggregator unavailable") from e
        except JupiterTransportError as e:
            raise QuoteUnavailableError(input_mint, output_mint, str(e)) from e

        quote = self._parse_quote(body, input_mint, output_mint, slippage_bps)
        logger.info(
            "jupiter.quote.success",
            extra={
                "input_mint": input_mint,
                "output_mint": output_mint,
                "in_amount": quote.in_amount,
                "out_amount": quote.out_amount,
                "price_impact_pct": str(quote.price_impact_pct),
            },
        )
        return quote

    async def execute_swap(self, quote: Quote, signer: SignerHandle) -> SwapResult:
        try:
            swap_tx = await self._build_swap(quote, signer.public_key)
        except CircuitBreakerOpenError as e:
            raise SwapSubmissionError("Aggregator unavailable") from e
        except JupiterTransportError as e:
            raise SwapSubmissionError(f"Swap build failed: {e}") from e

        try:
            tx_bytes = base64.b64decode(swap_tx)
        except (ValueError, TypeError) as e:
            raise SwapSubmissionError("Aggregator returned an undecodable transaction") from e

        signed = signer.sign(tx_bytes)

        try:
            signature = await self._rpc.send_raw_transaction(signed)
        except (RpcError, RpcTransportError) as e:
            logger.error(
                "jupiter.swap.submit_failed",
                extra={"input_mint": quote.input_mint, "output_mint": quote.output_mint, "error": str(e)},
            )
            raise SwapSubmissionError(f"Transaction submission failed: {e}") from e

        logger.info(
            "jupiter.swap.submitted",
            extra={
                "signature": signature,
                "input_mint": quote.input_mint,
                "output_mint": quote.output_mint,
                "in_amount": quote.in_amount,
                "out_amount": quote.out_amount,
            },
        )

        try:
            status = await self._rpc.confirm_transaction(
                signature, poll_interval=self.confirm_poll_interval
            )
        except (RpcError, RpcTransportError) as e:
            logger.error(
                "jupiter.swap.confirmation_failed",
                extra={"signature": signature, "error": str(e)},
            )
            raise SwapSubmissionError(
                f"Confirmation failed: {e}", signature=signature
            ) from e

        if status.get("err") is not None:
            logger.warning(
                "jupiter.swap.reverted",
                extra={"signature": signature, "error": status["err"]},
            )
            raise SwapSubmissionError(
                f"Transaction failed on chain: {json.dumps(status['err'])}",
                signature=signature,
            )

        logger.info(
            "jupiter.swap.confirmed",
            extra={"signature": signature, "slot": status.get("slot")},
        )
        return SwapResult(signature=signature, in_amount=quote.in_amount, out_amount=quote.out_amount)

    # ==================== HTTP ====================

    def _protected(self, func):
        async def call(*args: Any) -> Any:
            return await self._circuit.call(func, *args)

        call.__name__ = func.__name__
        return call

    async def _fetch_quote_once(
        self, input_mint: str, output_mint: str, amount: int, slippage_bps: int
    ) -> dict[str, Any]:
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
        }
        response = await self._request("GET", "/quote", params=params)
        if response.status_code >= 400:
            raise QuoteUnavailableError(input_mint, output_mint, _error_message(response))

        body = _json(response)
        if not body or "outAmount" not in body:
            raise QuoteUnavailableError(input_mint, output_mint, "no route returned")
        return body

    async def _build_swap_once(self, quote: Quote, user_public_key: str) -> str:
        payload: dict[str, Any] = {
            "quoteResponse": dict(quote.route),
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
        }
        if self.priority_fee_micro_lamports:
            payload["computeUnitPriceMicroLamports"] = self.priority_fee_micro_lamports

        response = await self._request("POST", "/swap", json=payload)
        if response.status_code >= 400:
            raise SwapSubmissionError(f"Swap build rejected: {_error_message(response)}")

        body = _json(response)
        swap_tx = body.get("swapTransaction") if body else None
        if not swap_tx:
            raise SwapSubmissionError("No swap transaction received from Jupiter")
        return swap_tx

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, f"{self.api_url}{path}", **kwargs)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            logger.warning("jupiter.network_error", extra={"path": path, "error": str(e)})
            raise JupiterTransportError(f"{path}: {type(e).__name__}: {e}") from e

        if response.status_code in _RETRYABLE_STATUS:
            logger.warning("jupiter.rate_limit", extra={"path": path, "status": response.status_code})
            raise JupiterTransportError(f"{path}: HTTP {response.status_code}")
        return response

    @staticmethod
    def _parse_quote(
        body: dict[str, Any], input_mint: str, output_mint: str, slippage_bps: int
    ) -> Quote:
        try:
            impact = body.get("priceImpactPct")
            return Quote(
                input_mint=input_mint,
                output_mint=output_mint,
                in_amount=int(body["inAmount"]),
                out_amount=int(body["outAmount"]),
                slippage_bps=int(body.get("slippageBps", slippage_bps)),
                route=body,
                price_impact_pct=Decimal(str(impact)) if impact is not None else None,
            )
        except (KeyError, ValueError, TypeError, InvalidOperation) as e:
            raise QuoteUnavailableError(input_mint, output_mint, f"malformed quote: {e}") from e


def _json(response: httpx.Response) -> dict[str, Any] | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _error_message(response: httpx.Response) -> str:
    body = _json(response)
    if body:
        return str(body.get("error") or body.get("errorCode") or body)[:200]
    return f"HTTP {response.status_code}"
