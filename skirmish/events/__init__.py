"""Domain events and the in-process event bus."""

from .event_bus import EventBus
from .event_types import BaseEvent

__all__ = ["BaseEvent", "EventBus"]
