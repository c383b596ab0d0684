"""
Event types for Skirmish.

Base class shared by every domain event published on the event bus.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime


def _default_timestamp() -> datetime:
    """Factory function for default timestamp."""
    return datetime.now(UTC)


@dataclass
class BaseEvent:
    """
    Base class for all events in the Skirmish system.

    Child classes set ``event_type`` to their dotted domain name in
    ``__post_init__``.
    """

    timestamp: datetime = field(default_factory=_default_timestamp, init=False)
    event_type: str = field(default="", init=False)
    sequence_number: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        """Timestamp is set by default_factory; event_type is set by child classes."""
