"""
Combatant repository for async persistence operations.
"""

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from skirmish.exceptions import DatabaseError
from skirmish.models.combatant import Combatant, CombatantStatus
from skirmish.models.db import CombatantRecord
from skirmish.structured_logging.enhanced_logging_config import get_logger
from skirmish.utils.error_logging import create_error_context, log_and_raise
from skirmish.utils.time_utils import from_naive_utc, to_naive_utc

logger = get_logger(__name__)


def _to_model(record: CombatantRecord) -> Combatant:
    return Combatant(
        combatant_id=record.combatant_id,
        name=record.name,
        room_id=record.room_id,
        created_at=from_naive_utc(record.created_at),
        status=CombatantStatus(record.status),
        lives=record.lives,
        knocked_out_until=from_naive_utc(record.knocked_out_until),
        combat_cooldown_until=from_naive_utc(record.combat_cooldown_until),
        death_timestamp=from_naive_utc(record.death_timestamp),
    )


def _to_record(combatant: Combatant) -> CombatantRecord:
    return CombatantRecord(
        combatant_id=combatant.combatant_id,
        name=combatant.name,
        room_id=combatant.room_id,
        created_at=to_naive_utc(combatant.created_at),
        status=combatant.status.value,
        lives=combatant.lives,
        knocked_out_until=to_naive_utc(combatant.knocked_out_until),
        combat_cooldown_until=to_naive_utc(combatant.combat_cooldown_until),
        death_timestamp=to_naive_utc(combatant.death_timestamp),
    )


class CombatantRepository:
    """
    Repository for combatant persistence.

    Snapshots go in and out as frozen Combatant models; the ORM rows never
    leave this module.
    """

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    async def get(self, combatant_id: str) -> Combatant | None:
        """
        Get a combatant by ID.

        Raises:
            DatabaseError: If the query fails
        """
        context = create_error_context()
        context.metadata["operation"] = "get_combatant"
        try:
            async with self._session_maker() as session:
                record = await session.get(CombatantRecord, combatant_id)
                return _to_model(record) if record is not None else None
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error retrieving combatant: {e}",
                context=context,
                details={"combatant_id": combatant_id, "error": str(e)},
                user_friendly="Failed to retrieve combatant",
            )

    async def save(self, combatant: Combatant) -> Combatant:
        """
        Insert or replace a combatant snapshot.

        Raises:
            DatabaseError: If the write fails
        """
        context = create_error_context()
        context.metadata["operation"] = "save_combatant"
        try:
            async with self._session_maker() as session:
                await session.merge(_to_record(combatant))
                await session.commit()
                logger.debug("Combatant saved", combatant_id=combatant.combatant_id, status=combatant.status.value)
                return combatant
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error saving combatant: {e}",
                context=context,
                details={"combatant_id": combatant.combatant_id, "error": str(e)},
                user_friendly="Failed to save combatant",
            )

    async def list_in_room(self, room_id: str) -> list[Combatant]:
        """Get all combatants in a room, ordered by name."""
        context = create_error_context()
        context.metadata["operation"] = "list_combatants_in_room"
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(CombatantRecord).where(CombatantRecord.room_id == room_id).order_by(CombatantRecord.name)
                )
                return [_to_model(record) for record in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error listing combatants in room: {e}",
                context=context,
                details={"room_id": room_id, "error": str(e)},
                user_friendly="Failed to list combatants",
            )

    async def update_room(self, combatant_id: str, room_id: str) -> Combatant | None:
        """Move a combatant to another room and return the new snapshot."""
        context = create_error_context()
        context.metadata["operation"] = "update_combatant_room"
        try:
            async with self._session_maker() as session:
                await session.execute(
                    update(CombatantRecord).where(CombatantRecord.combatant_id == combatant_id).values(room_id=room_id)
                )
                await session.commit()
                record = await session.get(CombatantRecord, combatant_id)
                return _to_model(record) if record is not None else None
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error moving combatant: {e}",
                context=context,
                details={"combatant_id": combatant_id, "room_id": room_id, "error": str(e)},
                user_friendly="Failed to move combatant",
            )
