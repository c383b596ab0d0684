"""
Stat modifier repository for async persistence operations.

Expiry is evaluated in the query against the caller's clock, so the same row
can drop out of aggregates between two calls without being rewritten.
"""

from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from skirmish.exceptions import DatabaseError
from skirmish.models.db import StatModifierRecord
from skirmish.models.modifier import Modifier
from skirmish.structured_logging.enhanced_logging_config import get_logger
from skirmish.utils.error_logging import create_error_context, log_and_raise
from skirmish.utils.time_utils import from_naive_utc, to_naive_utc

logger = get_logger(__name__)


class ModifierRepository:
    """Repository for the stat_modifiers ledger."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    async def insert(self, modifier: Modifier) -> Modifier:
        """Append a modifier to the ledger."""
        context = create_error_context()
        context.metadata["operation"] = "insert_modifier"
        try:
            async with self._session_maker() as session:
                session.add(
                    StatModifierRecord(
                        modifier_id=modifier.modifier_id,
                        combatant_id=modifier.combatant_id,
                        stat=modifier.stat,
                        value=modifier.value,
                        created_at=to_naive_utc(modifier.created_at),
                        expires_at=to_naive_utc(modifier.expires_at),
                        source=modifier.source,
                    )
                )
                await session.commit()
                return modifier
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error inserting modifier: {e}",
                context=context,
                details={"combatant_id": modifier.combatant_id, "stat": modifier.stat, "error": str(e)},
                user_friendly="Failed to record modifier",
            )

    async def find_active(self, combatant_id: str, stat: str, now: datetime) -> list[Modifier]:
        """Return modifiers whose expiry is unset or strictly after ``now``."""
        context = create_error_context()
        context.metadata["operation"] = "find_active_modifiers"
        naive_now = to_naive_utc(now)
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(StatModifierRecord)
                    .where(
                        StatModifierRecord.combatant_id == combatant_id,
                        StatModifierRecord.stat == stat,
                        or_(StatModifierRecord.expires_at.is_(None), StatModifierRecord.expires_at > naive_now),
                    )
                    .order_by(StatModifierRecord.created_at)
                )
                return [
                    Modifier(
                        modifier_id=record.modifier_id,
                        combatant_id=record.combatant_id,
                        stat=record.stat,
                        value=record.value,
                        created_at=from_naive_utc(record.created_at),
                        expires_at=from_naive_utc(record.expires_at),
                        source=record.source,
                    )
                    for record in result.scalars().all()
                ]
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error reading modifiers: {e}",
                context=context,
                details={"combatant_id": combatant_id, "stat": stat, "error": str(e)},
                user_friendly="Failed to read modifiers",
            )

    async def delete_by_stat(self, combatant_id: str, stat: str) -> int:
        """Delete every modifier of one stat for a combatant."""
        context = create_error_context()
        context.metadata["operation"] = "delete_modifiers_by_stat"
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    delete(StatModifierRecord).where(
                        StatModifierRecord.combatant_id == combatant_id,
                        StatModifierRecord.stat == stat,
                    )
                )
                await session.commit()
                deleted = result.rowcount or 0
                logger.debug("Modifiers cleared", combatant_id=combatant_id, stat=stat, deleted=deleted)
                return deleted
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error clearing modifiers: {e}",
                context=context,
                details={"combatant_id": combatant_id, "stat": stat, "error": str(e)},
                user_friendly="Failed to clear modifiers",
            )
