"""Telegram Notification Sink - copy trade outcomes as bot messages.

Users are Telegram users: `user_id` is the chat id the bot writes to.
"""

import logging
from html import escape

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError

from alphacopy.domain.signals.value_objects import SwapDirection
from alphacopy.domain.trading.entities import TradeRecord
from alphacopy.domain.trading.ports import NotificationSink

logger = logging.getLogger(__name__)

SOLSCAN_TX_URL = "https://solscan.io/tx/{signature}"

TRADE_SUCCEEDED_MESSAGE = """
<b>Copy trade executed</b> ✅

<b>Side:</b> {side}
<b>Token:</b> <code>{token}</code>
<b>Alpha wallet:</b> <code>{source}</code>
<b>Spent:</b> {amount_in} (base units)
<b>Expected:</b> {amount_out} (base units)

<a href="{tx_url}">View transaction</a>
"""

TRADE_FAILED_MESSAGE = """
<b>Copy trade failed</b> ❌

{reason}
"""


def _short(address: str) -> str:
    return f"{address[:4]}…{address[-4:]}" if len(address) > 12 else address


class TelegramNotificationSink(NotificationSink):
    """Sends one HTML message per terminal copy trade.

    Delivery errors are logged and swallowed: a blocked bot or a deleted
    chat must not affect trading.
    """

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    @classmethod
    def from_token(cls, token: str) -> "TelegramNotificationSink":
        return cls(Bot(token=token, default=DefaultBotProperties(parse_mode=ParseMode.HTML)))

    async def close(self) -> None:
        await self._bot.session.close()

    async def trade_succeeded(self, user_id: int, record: TradeRecord) -> None:
        side = "SELL" if record.direction == SwapDirection.SELL else "BUY"
        text = TRADE_SUCCEEDED_MESSAGE.format(
            side=side,
            token=escape(record.traded_asset),
            source=escape(_short(record.source_wallet)),
            amount_in=record.amount_in,
            amount_out=record.amount_out,
            tx_url=SOLSCAN_TX_URL.format(signature=record.tx_signature_out or ""),
        )
        await self._send(user_id, text)

    async def trade_failed(self, user_id: int, reason: str) -> None:
        await self._send(user_id, TRADE_FAILED_MESSAGE.format(reason=escape(reason)))

    async def _send(self, user_id: int, text: str) -> None:
        try:
            await self._bot.send_message(chat_id=user_id, text=text.strip(), disable_web_page_preview=True)
        except TelegramAPIError as e:
            logger.warning(
                "telegram_sink.send_failed",
                extra={"user_id": user_id, "error": str(e)},
            )
