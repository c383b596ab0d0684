"""
Durable cooldown store backed by the action_cooldowns table.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from skirmish.exceptions import DatabaseError
from skirmish.models.db import ActionCooldownRecord
from skirmish.structured_logging.enhanced_logging_config import get_logger
from skirmish.utils.error_logging import create_error_context, log_and_raise
from skirmish.utils.time_utils import from_naive_utc, to_naive_utc

logger = get_logger(__name__)


class CooldownRepository:
    """Keyed (actor, action) last-used store that survives restarts."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    async def get_last_used(self, actor_id: str, action: str) -> datetime | None:
        """Return when the actor last used the action successfully."""
        context = create_error_context(actor_id=actor_id, command=action)
        context.metadata["operation"] = "get_last_used"
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(ActionCooldownRecord.last_used_at).where(
                        ActionCooldownRecord.actor_id == actor_id,
                        ActionCooldownRecord.action == action,
                    )
                )
                return from_naive_utc(result.scalar_one_or_none())
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error reading cooldown: {e}",
                context=context,
                details={"actor_id": actor_id, "action": action, "error": str(e)},
                user_friendly="Failed to read cooldown",
            )

    async def set_last_used(self, actor_id: str, action: str, used_at: datetime) -> None:
        """Record a successful use, replacing any earlier one."""
        context = create_error_context(actor_id=actor_id, command=action)
        context.metadata["operation"] = "set_last_used"
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(ActionCooldownRecord).where(
                        ActionCooldownRecord.actor_id == actor_id,
                        ActionCooldownRecord.action == action,
                    )
                )
                record = result.scalar_one_or_none()
                if record is None:
                    session.add(ActionCooldownRecord(actor_id=actor_id, action=action, last_used_at=to_naive_utc(used_at)))
                else:
                    record.last_used_at = to_naive_utc(used_at)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error recording cooldown: {e}",
                context=context,
                details={"actor_id": actor_id, "action": action, "error": str(e)},
                user_friendly="Failed to record cooldown",
            )
