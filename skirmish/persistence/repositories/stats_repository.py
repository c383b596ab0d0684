"""
Combatant stats repository for async persistence operations.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from skirmish.exceptions import DatabaseError
from skirmish.models.db import CombatantStatsRecord
from skirmish.models.stats import CombatantStats
from skirmish.structured_logging.enhanced_logging_config import get_logger
from skirmish.utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)

_STAT_COLUMNS = (
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
    "hp",
    "is_defending",
    "is_hidden",
    "advantage_next_attack",
)


class StatsRepository:
    """Repository for the combatant_stats table."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    async def get(self, combatant_id: str) -> CombatantStats | None:
        """Get the stored stats for a combatant."""
        context = create_error_context()
        context.metadata["operation"] = "get_stats"
        try:
            async with self._session_maker() as session:
                record = await session.get(CombatantStatsRecord, combatant_id)
                if record is None:
                    return None
                return CombatantStats(
                    combatant_id=record.combatant_id,
                    **{column: getattr(record, column) for column in _STAT_COLUMNS},
                )
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error retrieving stats: {e}",
                context=context,
                details={"combatant_id": combatant_id, "error": str(e)},
                user_friendly="Failed to retrieve stats",
            )

    async def save(self, combatant_id: str, stats: CombatantStats) -> CombatantStats:
        """Insert or replace the stats for a combatant."""
        context = create_error_context()
        context.metadata["operation"] = "save_stats"
        try:
            async with self._session_maker() as session:
                record = CombatantStatsRecord(
                    combatant_id=combatant_id,
                    **{column: getattr(stats, column) for column in _STAT_COLUMNS},
                )
                await session.merge(record)
                await session.commit()
                return stats.model_copy(update={"combatant_id": combatant_id})
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error saving stats: {e}",
                context=context,
                details={"combatant_id": combatant_id, "error": str(e)},
                user_friendly="Failed to save stats",
            )
