"""
Action log entry model.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ActionLogEntry(BaseModel):
    """Immutable record of one dispatched action."""

    model_config = ConfigDict(frozen=True)

    room_id: str
    actor_id: str
    actor_name: str
    action: str
    emoji: str | None = None
    target: str = ""
    result: str | None = None
    timestamp: datetime
    is_custom: bool = Field(default=False, description="Handler registered at runtime")
