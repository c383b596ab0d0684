"""
Combatant memory repository.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from skirmish.exceptions import DatabaseError
from skirmish.models.db import CombatantMemoryRecord
from skirmish.structured_logging.enhanced_logging_config import get_logger
from skirmish.utils.error_logging import create_error_context, log_and_raise
from skirmish.utils.time_utils import NowProvider, to_naive_utc, utc_now

logger = get_logger(__name__)


class MemoryRepository:
    """Stores free-text memories for combatants."""

    def __init__(self, session_maker: async_sessionmaker, now_provider: NowProvider | None = None) -> None:
        self._session_maker = session_maker
        self._now = now_provider or utc_now

    async def add_memory(self, combatant_id: str, text: str) -> None:
        """Attach a memory to a combatant."""
        context = create_error_context(actor_id=combatant_id)
        context.metadata["operation"] = "add_memory"
        try:
            async with self._session_maker() as session:
                session.add(
                    CombatantMemoryRecord(
                        combatant_id=combatant_id,
                        text=text,
                        created_at=to_naive_utc(self._now()),
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error storing memory: {e}",
                context=context,
                details={"combatant_id": combatant_id, "error": str(e)},
                user_friendly="Failed to store memory",
            )
