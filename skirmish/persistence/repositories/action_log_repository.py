"""
Action log repository for async persistence operations.
"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from skirmish.exceptions import DatabaseError
from skirmish.models.action_log import ActionLogEntry
from skirmish.models.db import ActionLogRecord
from skirmish.structured_logging.enhanced_logging_config import get_logger
from skirmish.utils.error_logging import create_error_context, log_and_raise
from skirmish.utils.time_utils import from_naive_utc, to_naive_utc

logger = get_logger(__name__)


class ActionLogRepository:
    """Append-only action log stored in the action_log table."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    async def append(self, entry: ActionLogEntry) -> None:
        """Append an entry."""
        context = create_error_context(actor_id=entry.actor_id, room_id=entry.room_id, command=entry.action)
        context.metadata["operation"] = "append_action_log"
        try:
            async with self._session_maker() as session:
                session.add(
                    ActionLogRecord(
                        room_id=entry.room_id,
                        actor_id=entry.actor_id,
                        actor_name=entry.actor_name,
                        action=entry.action,
                        emoji=entry.emoji,
                        target=entry.target,
                        result=entry.result,
                        is_custom=entry.is_custom,
                        timestamp=to_naive_utc(entry.timestamp),
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error appending action log: {e}",
                context=context,
                details={"room_id": entry.room_id, "action": entry.action, "error": str(e)},
                user_friendly="Failed to log action",
            )

    async def list_for_room(self, room_id: str, limit: int = 50) -> list[ActionLogEntry]:
        """Return the most recent entries for a room, oldest first."""
        context = create_error_context(room_id=room_id)
        context.metadata["operation"] = "list_action_log"
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(ActionLogRecord)
                    .where(ActionLogRecord.room_id == room_id)
                    .order_by(ActionLogRecord.id.desc())
                    .limit(limit)
                )
                records = list(result.scalars().all())
                records.reverse()
                return [
                    ActionLogEntry(
                        room_id=record.room_id,
                        actor_id=record.actor_id,
                        actor_name=record.actor_name,
                        action=record.action,
                        emoji=record.emoji,
                        target=record.target,
                        result=record.result,
                        is_custom=record.is_custom,
                        timestamp=from_naive_utc(record.timestamp),
                    )
                    for record in records
                ]
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error reading action log: {e}",
                context=context,
                details={"room_id": room_id, "error": str(e)},
                user_friendly="Failed to read action log",
            )
