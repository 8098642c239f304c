"""Solana JSON-RPC client over httpx.

Every call has an explicit timeout (httpx.Timeout) and transient failures
(network errors, timeouts, HTTP 429/5xx) are retried with exponential
backoff. Retried calls run behind a circuit breaker so a dead node fails
fast. JSON-RPC error objects are not retried and do not trip the breaker:
they are answers, not outages.
"""

import asyncio
import base64
import itertools
import logging
from typing import Any

import httpx

from alphacopy.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    RetryableError,
    retry_with_backoff,
)

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class RpcError(Exception):
    """RPC node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int | None, message: str) -> None:
        super().__init__(f"{method} failed: [{code}] {message}")
        self.method = method
        self.code = code
        self.message = message


class RpcTransportError(RetryableError):
    """Network error, timeout or throttling response from the RPC node."""

    pass


class SolanaRpcClient:
    """Minimal async Solana RPC client.

    Example:
        >>> rpc = SolanaRpcClient("https://api.mainnet-beta.solana.com")
        >>> sigs = await rpc.get_signatures_for_address("Alpha111...", limit=10)
        >>> tx = await rpc.get_transaction(sigs[0]["signature"])
        >>> await rpc.close()
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        retry_base_delay: float = 0.5,
        commitment: str = "confirmed",
        client: httpx.AsyncClient | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        self.url = url
        self.commitment = commitment
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._owns_client = client is None
        self._ids = itertools.count(1)
        self._call = retry_with_backoff(
            max_retries=max_retries,
            base_delay=retry_base_delay,
            max_delay=10.0,
            retryable_exceptions=(RpcTransportError,),
        )(self._call_once)
        self._circuit = circuit_breaker or CircuitBreaker("rpc", excluded_exceptions=(RpcError,))

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def call(self, method: str, params: list[Any] | dict[str, Any] | None = None) -> Any:
        """Call an RPC method and return its `result`.

        Raises:
            RpcError: Node returned an error object.
            RpcTransportError: Retries exhausted on transient failures, or
                the circuit is open.
        """
        try:
            return await self._circuit.call(self._call, method, params if params is not None else [])
        except CircuitBreakerOpenError as e:
            raise RpcTransportError(f"{method}: rpc unavailable ({e})") from e

    async def _call_once(self, method: str, params: list[Any] | dict[str, Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self._client.post(self.url, json=payload)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise RpcTransportError(f"{method}: {type(e).__name__}: {e}") from e

        if response.status_code in _RETRYABLE_STATUS:
            raise RpcTransportError(f"{method}: HTTP {response.status_code}")
        if response.status_code >= 400:
            raise RpcError(method, response.status_code, response.text[:200])

        try:
            body = response.json()
        except ValueError as e:
            raise RpcTransportError(f"{method}: invalid JSON response") from e

        error = body.get("error")
        if error:
            raise RpcError(method, error.get("code"), error.get("message", str(error)))
        return body.get("result")

    # ==================== Typed helpers ====================

    async def get_signatures_for_address(
        self,
        address: str,
        *,
        until: str | None = None,
        limit: int = 10,
        before: str | None = None,
    ) -> list[dict[str, Any]]:
        """Newest-first signatures for an address between `before` and `until`."""
        config: dict[str, Any] = {"limit": limit, "commitment": self.commitment}
        if until:
            config["until"] = until
        if before:
            config["before"] = before
        return await self.call("getSignaturesForAddress", [address, config]) or []

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        """Transaction in jsonParsed encoding, None if not found (yet)."""
        return await self.call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "commitment": self.commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )

    async def get_balance(self, address: str) -> int:
        """Native balance in lamports."""
        result = await self.call("getBalance", [address, {"commitment": self.commitment}])
        return int(result["value"])

    async def get_token_accounts_by_owner(self, owner: str, mint: str) -> list[dict[str, Any]]:
        """Parsed SPL token accounts of `owner` for `mint`."""
        result = await self.call(
            "getTokenAccountsByOwner",
            [owner, {"mint": mint}, {"encoding": "jsonParsed", "commitment": self.commitment}],
        )
        return result.get("value", []) if result else []

    async def get_token_supply(self, mint: str) -> dict[str, Any]:
        """`{amount, decimals, uiAmountString}` of a mint."""
        result = await self.call("getTokenSupply", [mint])
        return result["value"]

    async def get_asset(self, mint: str) -> dict[str, Any] | None:
        """Helius DAS `getAsset` (token metadata incl. symbol and supply)."""
        return await self.call("getAsset", {"id": mint})

    async def send_raw_transaction(self, tx_bytes: bytes, *, skip_preflight: bool = False) -> str:
        """Submit a signed transaction, return its signature."""
        encoded = base64.b64encode(tx_bytes).decode()
        return await self.call(
            "sendTransaction",
            [
                encoded,
                {
                    "encoding": "base64",
                    "skipPreflight": skip_preflight,
                    "preflightCommitment": self.commitment,
                    "maxRetries": 3,
                },
            ],
        )

    async def get_signature_statuses(self, signatures: list[str]) -> list[dict[str, Any] | None]:
        """Status per signature (None when the node has not seen it)."""
        result = await self.call("getSignatureStatuses", [signatures])
        return result.get("value", []) if result else []

    async def confirm_transaction(self, signature: str, *, poll_interval: float = 0.5) -> dict[str, Any]:
        """Wait until `signature` reaches this client's commitment.

        Polls until then with no deadline of its own; callers bound the
        wait (`asyncio.wait_for`).

        Returns:
            The signature status. `err` is set when the transaction
            landed but failed.
        """
        target = _COMMITMENT_RANK[self.commitment]
        while True:
            statuses = await self.get_signature_statuses([signature])
            status = statuses[0] if statuses else None
            if status is not None:
                if status.get("err") is not None:
                    return status
                level = status.get("confirmationStatus") or "processed"
                if _COMMITMENT_RANK.get(level, 0) >= target:
                    return status
            await asyncio.sleep(poll_interval)
