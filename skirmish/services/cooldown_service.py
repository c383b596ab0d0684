"""
Per-actor, per-action cooldown tracking.
"""

import math

from ..persistence.protocols import CooldownStoreProtocol
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.time_utils import NowProvider, utc_now

logger = get_logger(__name__)


class CooldownService:
    """Answers how long an actor must wait before repeating an action."""

    def __init__(self, store: CooldownStoreProtocol, now_provider: NowProvider | None = None) -> None:
        self._store = store
        self._now = now_provider or utc_now

    async def get_remaining_cooldown(self, actor_id: str, action: str, cooldown_ms: int) -> int:
        """
        Return the milliseconds left before the action may be used again, 0 when ready.
        """
        if cooldown_ms <= 0:
            return 0
        last_used = await self._store.get_last_used(actor_id, action)
        if last_used is None:
            return 0
        elapsed_ms = (self._now() - last_used).total_seconds() * 1000
        remaining = cooldown_ms - elapsed_ms
        return max(0, math.ceil(remaining))

    async def set_used(self, actor_id: str, action: str) -> None:
        """Record a successful use at the current time."""
        await self._store.set_last_used(actor_id, action, self._now())
        logger.debug("Cooldown recorded", actor_id=actor_id, action=action)

    @staticmethod
    def remaining_minutes(remaining_ms: int) -> int:
        """Whole minutes shown in wait notices, never less than one."""
        return max(1, math.ceil(remaining_ms / 60_000))
