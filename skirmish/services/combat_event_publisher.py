"""
Fire-and-forget publisher for combat domain events.
"""

from ..events.event_bus import EventBus
from ..events.event_types import BaseEvent
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class CombatEventPublisher:
    """Publishes combat events; failures are logged and reported, never raised."""

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self.event_bus = event_bus

    def publish(self, event: BaseEvent) -> bool:
        """
        Publish an event.

        Returns:
            bool: True when the event was queued, False when it was dropped
        """
        if self.event_bus is None:
            logger.debug("No event bus configured, dropping event", event_type=event.event_type)
            return False
        try:
            self.event_bus.publish(event)
            return True
        except (RuntimeError, ValueError) as e:
            logger.warning("Event publish failed", event_type=event.event_type, error=str(e))
            return False
