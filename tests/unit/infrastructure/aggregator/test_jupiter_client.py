"""Tests for JupiterClient (AggregatorPort) over httpx.MockTransport."""

import base64
import json
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest

from alphacopy.domain.signals.value_objects import WRAPPED_SOL_MINT
from alphacopy.domain.trading.exceptions import QuoteUnavailableError, SwapSubmissionError
from alphacopy.domain.trading.ports import SignerHandle
from alphacopy.domain.trading.value_objects import Quote
from alphacopy.infrastructure.aggregator import JupiterClient
from alphacopy.infrastructure.chain import RpcError, RpcTransportError, SolanaRpcClient
from alphacopy.infrastructure.resilience import CircuitBreaker, CircuitState

TOKEN = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
USER_PUBKEY = "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T"

QUOTE_BODY = {
    "inputMint": WRAPPED_SOL_MINT,
    "outputMint": TOKEN,
    "inAmount": "50000000",
    "outAmount": "123456789",
    "slippageBps": 300,
    "priceImpactPct": "0.12",
    "routePlan": [{"swapInfo": {"label": "Raydium"}}],
}


class StaticSigner(SignerHandle):
    def __init__(self) -> None:
        self.signed: list[bytes] = []

    @property
    def public_key(self) -> str:
        return USER_PUBKEY

    def sign(self, tx_bytes: bytes) -> bytes:
        self.signed.append(tx_bytes)
        return b"signed:" + tx_bytes


class Router:
    """MockTransport handler returning queued responses per path."""

    def __init__(self) -> None:
        self.responses: dict[str, list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, *responses: httpx.Response) -> None:
        self.responses.setdefault(path, []).extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.responses.get(request.url.path, [])
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]


@pytest.fixture
def router():
    return Router()


@pytest.fixture
def mock_rpc():
    rpc = AsyncMock(spec=SolanaRpcClient)
    rpc.send_raw_transaction.return_value = "sig-out"
    rpc.confirm_transaction.return_value = {"slot": 250, "confirmationStatus": "confirmed", "err": None}
    return rpc


@pytest.fixture
def circuit():
    return CircuitBreaker(
        "jupiter",
        failure_threshold=3,
        timeout_seconds=60,
        excluded_exceptions=(QuoteUnavailableError,),
    )


@pytest.fixture
async def jupiter(router, mock_rpc, circuit):
    client = httpx.AsyncClient(transport=httpx.MockTransport(router))
    jupiter = JupiterClient(
        mock_rpc,
        api_url="https://quote-api.jup.ag/v6",
        max_retries=2,
        retry_base_delay=0.001,
        circuit_breaker=circuit,
        client=client,
    )
    yield jupiter
    await client.aclose()


class TestJupiterQuote:
    """Tests для get_quote()."""

    @pytest.mark.asyncio
    async def test_quote_success(self, jupiter, router):
        # Arrange
        router.add("/v6/quote", httpx.Response(200, json=QUOTE_BODY))

        # Act
        quote = await jupiter.get_quote(WRAPPED_SOL_MINT, TOKEN, 50_000_000, 300)

        # Assert
        assert quote.in_amount == 50_000_000
        assert quote.out_amount == 123_456_789
        assert quote.slippage_bps == 300
        assert quote.price_impact_pct == Decimal("0.12")
        assert quote.route["routePlan"][0]["swapInfo"]["label"] == "Raydium"
        params = router.requests[0].url.params
        assert params["inputMint"] == WRAPPED_SOL_MINT
        assert params["outputMint"] == TOKEN
        assert params["amount"] == "50000000"
        assert params["slippageBps"] == "300"

    @pytest.mark.asyncio
    async def test_no_route_does_not_trip_breaker(self, jupiter, router, circuit):
        router.add(
            "/v6/quote",
            httpx.Response(400, json={"error": "Could not find any route", "errorCode": "COULD_NOT_FIND_ANY_ROUTE"}),
        )

        for _ in range(5):
            with pytest.raises(QuoteUnavailableError, match="Could not find any route"):
                await jupiter.get_quote(WRAPPED_SOL_MINT, TOKEN, 1_000, 300)

        assert circuit.state == CircuitState.CLOSED
        assert len(router.requests) == 5

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, jupiter, router):
        router.add(
            "/v6/quote",
            httpx.Response(503),
            httpx.Response(200, json=QUOTE_BODY),
        )

        quote = await jupiter.get_quote(WRAPPED_SOL_MINT, TOKEN, 50_000_000, 300)

        assert quote.out_amount == 123_456_789
        assert len(router.requests) == 2

    @pytest.mark.asyncio
    async def test_outage_opens_breaker_and_fails_fast(self, jupiter, router, circuit):
        # Arrange
        router.add("/v6/quote", httpx.Response(503))

        # Act
        with pytest.raises(QuoteUnavailableError):
            await jupiter.get_quote(WRAPPED_SOL_MINT, TOKEN, 1_000, 300)
        calls_before = len(router.requests)
        with pytest.raises(QuoteUnavailableError, match="aggregator unavailable"):
            await jupiter.get_quote(WRAPPED_SOL_MINT, TOKEN, 1_000, 300)

        # Assert
        assert calls_before == 3  # 1 + max_retries
        assert circuit.state == CircuitState.OPEN
        assert len(router.requests) == calls_before

    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected_without_request(self, jupiter, router):
        with pytest.raises(QuoteUnavailableError):
            await jupiter.get_quote(WRAPPED_SOL_MINT, TOKEN, 0, 300)

        assert router.requests == []

    @pytest.mark.asyncio
    async def test_malformed_quote(self, jupiter, router):
        router.add("/v6/quote", httpx.Response(200, json={"outAmount": "abc", "inAmount": "1"}))

        with pytest.raises(QuoteUnavailableError, match="malformed"):
            await jupiter.get_quote(WRAPPED_SOL_MINT, TOKEN, 1, 300)


class TestJupiterSwap:
    """Tests для execute_swap()."""

    @pytest.fixture
    def quote(self):
        return Quote(
            input_mint=WRAPPED_SOL_MINT,
            output_mint=TOKEN,
            in_amount=50_000_000,
            out_amount=123_456_789,
            slippage_bps=300,
            route=QUOTE_BODY,
        )

    @pytest.mark.asyncio
    async def test_swap_signed_and_submitted(self, jupiter, router, mock_rpc, quote):
        # Arrange
        router.add(
            "/v6/swap",
            httpx.Response(200, json={"swapTransaction": base64.b64encode(b"unsigned-tx").decode()}),
        )
        signer = StaticSigner()

        # Act
        result = await jupiter.execute_swap(quote, signer)

        # Assert
        assert result.signature == "sig-out"
        assert result.in_amount == 50_000_000
        assert result.out_amount == 123_456_789
        assert signer.signed == [b"unsigned-tx"]
        mock_rpc.send_raw_transaction.assert_awaited_once_with(b"signed:unsigned-tx")
        body = json.loads(router.requests[0].content)
        assert body["userPublicKey"] == USER_PUBKEY
        assert body["wrapAndUnwrapSol"] is True
        assert body["quoteResponse"]["outAmount"] == "123456789"

    @pytest.mark.asyncio
    async def test_submission_failure(self, jupiter, router, mock_rpc, quote):
        router.add(
            "/v6/swap",
            httpx.Response(200, json={"swapTransaction": base64.b64encode(b"tx").decode()}),
        )
        mock_rpc.send_raw_transaction.side_effect = RpcError("sendTransaction", -32002, "blockhash not found")

        with pytest.raises(SwapSubmissionError, match="blockhash not found"):
            await jupiter.execute_swap(quote, StaticSigner())

    @pytest.mark.asyncio
    async def test_swap_build_rejected(self, jupiter, router, mock_rpc, quote):
        router.add("/v6/swap", httpx.Response(400, json={"error": "Invalid quote"}))

        with pytest.raises(SwapSubmissionError, match="Invalid quote"):
            await jupiter.execute_swap(quote, StaticSigner())
        mock_rpc.send_raw_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_swap_waits_for_confirmation(self, jupiter, router, mock_rpc, quote):
        router.add(
            "/v6/swap",
            httpx.Response(200, json={"swapTransaction": base64.b64encode(b"tx").decode()}),
        )

        await jupiter.execute_swap(quote, StaticSigner())

        mock_rpc.confirm_transaction.assert_awaited_once_with("sig-out", poll_interval=0.5)

    @pytest.mark.asyncio
    async def test_landed_but_reverted_swap_fails(self, jupiter, router, mock_rpc, quote):
        # Arrange
        router.add(
            "/v6/swap",
            httpx.Response(200, json={"swapTransaction": base64.b64encode(b"tx").decode()}),
        )
        mock_rpc.confirm_transaction.return_value = {
            "slot": 250,
            "confirmationStatus": "confirmed",
            "err": {"InstructionError": [3, {"Custom": 6001}]},
        }

        # Act / Assert
        with pytest.raises(SwapSubmissionError, match="failed on chain") as exc_info:
            await jupiter.execute_swap(quote, StaticSigner())
        assert exc_info.value.context["signature"] == "sig-out"

    @pytest.mark.asyncio
    async def test_confirmation_rpc_failure(self, jupiter, router, mock_rpc, quote):
        router.add(
            "/v6/swap",
            httpx.Response(200, json={"swapTransaction": base64.b64encode(b"tx").decode()}),
        )
        mock_rpc.confirm_transaction.side_effect = RpcTransportError("getSignatureStatuses: HTTP 503")

        with pytest.raises(SwapSubmissionError, match="Confirmation failed"):
            await jupiter.execute_swap(quote, StaticSigner())
