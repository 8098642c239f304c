"""Notification use cases."""

from .notification_dispatcher import NotificationDispatcher

__all__ = ["NotificationDispatcher"]
