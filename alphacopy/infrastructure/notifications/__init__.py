"""Notification sink adapters."""

from .logging_sink import LoggingNotificationSink
from .telegram_sink import TelegramNotificationSink

__all__ = ["LoggingNotificationSink", "TelegramNotificationSink"]
