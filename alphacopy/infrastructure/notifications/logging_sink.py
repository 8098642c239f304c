"""LoggingNotificationSink - used when no Telegram token is configured."""

import logging

from alphacopy.domain.trading.entities import TradeRecord
from alphacopy.domain.trading.ports import NotificationSink

logger = logging.getLogger(__name__)


class LoggingNotificationSink(NotificationSink):
    """Writes notifications to the log stream (development)."""

    async def trade_succeeded(self, user_id: int, record: TradeRecord) -> None:
        logger.info(
            "notification.trade_succeeded",
            extra={
                "user_id": user_id,
                "attempt_id": record.id,
                "traded_asset": record.traded_asset,
                "signature": record.tx_signature_out,
            },
        )

    async def trade_failed(self, user_id: int, reason: str) -> None:
        logger.info("notification.trade_failed", extra={"user_id": user_id, "reason": reason})
