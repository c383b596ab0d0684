"""
Stat modifier ledger entries.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DAMAGE_STAT = "damage"


class Modifier(BaseModel):
    """
    Append-only additive adjustment to a named stat.

    A modifier without ``expires_at`` is permanent until explicitly cleared.
    """

    model_config = ConfigDict(frozen=True)

    modifier_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    combatant_id: str
    stat: str
    value: int
    created_at: datetime
    expires_at: datetime | None = None
    source: str | None = None

    def is_active(self, now: datetime) -> bool:
        """Return True when the modifier counts toward aggregates at ``now``."""
        return self.expires_at is None or self.expires_at > now
