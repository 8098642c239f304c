"""In-process domain event bus."""

from .event_bus import EventBus, EventHandler

__all__ = ["EventBus", "EventHandler"]
