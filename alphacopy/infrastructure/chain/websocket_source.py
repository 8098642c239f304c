"""WebsocketActivitySource - push subscription via Solana `logsSubscribe`.

One `logsSubscribe {"mentions": [address]}` per tracked wallet. A
notification only carries the signature, so the full transaction is
fetched over HTTP RPC before it is buffered. Wallets can be added and
removed while connected; on reconnect every tracked address is
resubscribed.
"""

import asyncio
import contextlib
import itertools
import json
import logging
from typing import Any, Callable

import websockets

from alphacopy.domain.signals.value_objects import RawTransaction

from .activity_source import ChainActivitySource
from .rpc_client import SolanaRpcClient

logger = logging.getLogger(__name__)


class WebsocketActivitySource(ChainActivitySource):
    """Solana websocket activity feed.

    Args:
        ws_url: JSON-RPC websocket endpoint.
        rpc: HTTP RPC client used to fetch full transactions.
        commitment: Subscription commitment level.
        fetch_concurrency: Max parallel getTransaction calls.
        fetch_attempts: getTransaction attempts while the node has not
            indexed the transaction yet.
        connect: websocket connect factory (`websockets.connect`).
    """

    name = "websocket"

    def __init__(
        self,
        ws_url: str,
        rpc: SolanaRpcClient,
        *,
        commitment: str = "confirmed",
        fetch_concurrency: int = 8,
        fetch_attempts: int = 3,
        fetch_retry_delay: float = 0.5,
        connect: Callable[..., Any] = websockets.connect,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.ws_url = ws_url
        self.commitment = commitment
        self.fetch_attempts = fetch_attempts
        self.fetch_retry_delay = fetch_retry_delay
        self._rpc = rpc
        self._connect = connect
        self._fetch_slots = asyncio.Semaphore(fetch_concurrency)
        self._fetch_tasks: set[asyncio.Task] = set()

        self._ws: Any = None
        self._ids = itertools.count(1)
        self._pending: dict[int, tuple[str, str]] = {}
        self._sub_by_address: dict[str, int] = {}
        self._address_by_sub: dict[int, str] = {}

    async def _run(self) -> None:
        logger.info("websocket_source.connecting", extra={"url": self.ws_url})
        async with self._connect(
            self.ws_url,
            ping_interval=20,
            ping_timeout=30,
            close_timeout=10,
        ) as ws:
            self._ws = ws
            self._pending.clear()
            self._sub_by_address.clear()
            self._address_by_sub.clear()
            try:
                for address in sorted(self._addresses):
                    await self._subscribe(address)
                await self._mark_connected()

                async for message in ws:
                    if not self._running:
                        break
                    await self._handle_message(message)
            finally:
                self._ws = None

    async def _on_wallet_added(self, address: str) -> None:
        if self._ws is None:
            return
        try:
            await self._subscribe(address)
        except Exception as e:
            # reconnect resubscribes the full address set
            logger.warning(
                "websocket_source.subscribe_failed",
                extra={"address": address, "error": str(e)},
            )

    async def _on_wallet_removed(self, address: str) -> None:
        subscription_id = self._sub_by_address.pop(address, None)
        if subscription_id is None:
            return
        self._address_by_sub.pop(subscription_id, None)
        if self._ws is None:
            return
        try:
            await self._send("logsUnsubscribe", [subscription_id], ("unsubscribe", address))
        except Exception as e:
            logger.warning(
                "websocket_source.unsubscribe_failed",
                extra={"address": address, "error": str(e)},
            )

    async def _on_stopped(self) -> None:
        for task in list(self._fetch_tasks):
            task.cancel()
        for task in list(self._fetch_tasks):
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._fetch_tasks.clear()

    # ==================== Protocol ====================

    async def _subscribe(self, address: str) -> None:
        await self._send(
            "logsSubscribe",
            [{"mentions": [address]}, {"commitment": self.commitment}],
            ("subscribe", address),
        )

    async def _send(self, method: str, params: list[Any], pending: tuple[str, str]) -> None:
        request_id = next(self._ids)
        self._pending[request_id] = pending
        await self._ws.send(
            json.dumps({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params})
        )

    async def _handle_message(self, message: str | bytes) -> None:
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("websocket_source.invalid_message")
            return
        if not isinstance(data, dict):
            logger.warning("websocket_source.invalid_message", extra={"type": type(data).__name__})
            return

        if "id" in data:
            self._handle_response(data)
            return
        if data.get("method") != "logsNotification":
            return

        params = _object(data.get("params"))
        result = _object(params.get("result"))
        value = _object(result.get("value"))
        subscription_id = params.get("subscription")
        if not isinstance(subscription_id, int):
            return
        address = self._address_by_sub.get(subscription_id)
        signature = value.get("signature")
        if address is None or not signature:
            return
        if value.get("err") is not None:
            return

        slot = _object(result.get("context")).get("slot")
        task = asyncio.create_task(self._fetch_and_emit(signature, address, slot))
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)

    def _handle_response(self, data: dict[str, Any]) -> None:
        request_id = data["id"]
        pending = self._pending.pop(request_id, None) if isinstance(request_id, int) else None
        if pending is None:
            return
        action, address = pending

        if "error" in data:
            logger.error(
                "websocket_source.request_rejected",
                extra={"action": action, "address": address, "error": data["error"]},
            )
            return

        if action == "subscribe":
            if address not in self._addresses:
                # removed while the subscribe was in flight
                return
            subscription_id = data.get("result")
            if not isinstance(subscription_id, int):
                logger.error(
                    "websocket_source.request_rejected",
                    extra={"action": action, "address": address, "error": "invalid subscription id"},
                )
                return
            self._sub_by_address[address] = subscription_id
            self._address_by_sub[subscription_id] = address
            logger.debug(
                "websocket_source.subscribed",
                extra={"address": address, "subscription_id": subscription_id},
            )

    async def _fetch_and_emit(self, signature: str, address: str, slot: int | None) -> None:
        async with self._fetch_slots:
            try:
                payload = None
                for attempt in range(self.fetch_attempts):
                    payload = await self._rpc.get_transaction(signature)
                    if payload is not None:
                        break
                    await asyncio.sleep(self.fetch_retry_delay * (attempt + 1))
                if payload is None:
                    logger.warning(
                        "websocket_source.tx_not_found",
                        extra={"signature": signature, "address": address},
                    )
                    return
                await self._emit(
                    RawTransaction(
                        signature=signature,
                        source_wallet=address,
                        payload=payload,
                        slot=slot,
                    )
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "websocket_source.fetch_failed",
                    extra={"signature": signature, "address": address, "error": str(e)},
                )


def _object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}
