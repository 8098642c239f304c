"""PollingActivitySource - fixed-interval getSignaturesForAddress diffing."""

import asyncio
import logging
from typing import Any

from alphacopy.domain.signals.value_objects import RawTransaction

from .activity_source import ChainActivitySource
from .rpc_client import RpcError, SolanaRpcClient

logger = logging.getLogger(__name__)


class PollingActivitySource(ChainActivitySource):
    """Poll each tracked address every `interval_seconds`.

    A per-address cursor is passed as `until`, so only newer signatures
    come back. The first poll of an address only records that baseline:
    history from before tracking started is never replayed as fresh
    signals.

    Signatures are handled oldest first and the cursor moves past a
    signature only once it is emitted, failed on chain, or abandoned, and
    only if everything older in the round is too. A transaction the node
    has not indexed yet stays pending and is fetched again next round,
    up to `max_fetch_attempts` times. A full page is followed by older
    pages (`before`) until the cursor is reached, at most `max_pages`.

    Transport failures abort the round and go through the reconnect
    backoff; the cursor keeps whatever was already handled. A JSON-RPC
    error for one address is logged and skipped.
    """

    name = "polling"

    def __init__(
        self,
        rpc: SolanaRpcClient,
        *,
        interval_seconds: float = 30.0,
        signature_limit: int = 10,
        max_pages: int = 10,
        max_fetch_attempts: int = 5,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._rpc = rpc
        self.interval_seconds = interval_seconds
        self.signature_limit = signature_limit
        self.max_pages = max_pages
        self.max_fetch_attempts = max_fetch_attempts
        self._last_seen: dict[str, str | None] = {}
        self._fetch_attempts: dict[tuple[str, str], int] = {}

    async def _run(self) -> None:
        while self._running:
            await self.poll_once()
            await self._mark_connected()
            await asyncio.sleep(self.interval_seconds)

    async def _on_wallet_removed(self, address: str) -> None:
        self._last_seen.pop(address, None)
        for key in [k for k in self._fetch_attempts if k[0] == address]:
            del self._fetch_attempts[key]

    async def poll_once(self) -> int:
        """Poll every address once.

        Returns:
            Number of transactions emitted.
        """
        emitted = 0
        for address in sorted(self._addresses):
            try:
                emitted += await self._poll_address(address)
            except RpcError as e:
                logger.warning(
                    "polling_source.address_failed",
                    extra={"address": address, "error": str(e)},
                )
        return emitted

    async def _poll_address(self, address: str) -> int:
        if address not in self._last_seen:
            signatures = await self._rpc.get_signatures_for_address(
                address, until=None, limit=self.signature_limit
            )
            self._last_seen[address] = signatures[0]["signature"] if signatures else None
            logger.info(
                "polling_source.baseline",
                extra={"address": address, "last_seen": self._last_seen[address]},
            )
            return 0

        signatures = await self._signatures_since(address, self._last_seen[address])
        emitted = 0
        contiguous = True
        for info in reversed(signatures):
            signature = info["signature"]
            handled = True
            if info.get("err") is None:
                payload = await self._rpc.get_transaction(signature)
                if payload is None:
                    handled = self._give_up_on(address, signature)
                elif await self._emit(
                    RawTransaction(
                        signature=signature,
                        source_wallet=address,
                        payload=payload,
                        slot=info.get("slot"),
                    )
                ):
                    emitted += 1
            if handled:
                self._fetch_attempts.pop((address, signature), None)
            contiguous = contiguous and handled
            if contiguous:
                self._last_seen[address] = signature
        return emitted

    async def _signatures_since(self, address: str, until: str | None) -> list[dict[str, Any]]:
        """Newest-first signatures after `until`, across as many pages as needed."""
        signatures: list[dict[str, Any]] = []
        before: str | None = None
        for _ in range(self.max_pages):
            kwargs: dict[str, Any] = {"until": until, "limit": self.signature_limit}
            if before is not None:
                kwargs["before"] = before
            page = await self._rpc.get_signatures_for_address(address, **kwargs)
            signatures.extend(page)
            if len(page) < self.signature_limit:
                return signatures
            before = page[-1]["signature"]

        logger.warning(
            "polling_source.window_saturated",
            extra={"address": address, "limit": self.signature_limit, "pages": self.max_pages},
        )
        return signatures

    def _give_up_on(self, address: str, signature: str) -> bool:
        """Count a not-found fetch. True once the signature is abandoned."""
        key = (address, signature)
        attempts = self._fetch_attempts.get(key, 0) + 1
        if attempts >= self.max_fetch_attempts:
            logger.warning(
                "polling_source.tx_abandoned",
                extra={"address": address, "signature": signature, "attempts": attempts},
            )
            return True
        self._fetch_attempts[key] = attempts
        logger.debug(
            "polling_source.tx_not_found",
            extra={"signature": signature, "attempts": attempts},
        )
        return False
