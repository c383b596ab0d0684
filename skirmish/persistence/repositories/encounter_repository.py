"""
Encounter summary repository.

Summaries are written once when an encounter ends; nothing reads them back in
the engine itself.
"""

from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from skirmish.exceptions import DatabaseError
from skirmish.models.db import CombatEncounterRecord
from skirmish.structured_logging.enhanced_logging_config import get_logger
from skirmish.utils.error_logging import create_error_context, log_and_raise
from skirmish.utils.time_utils import to_naive_utc

logger = get_logger(__name__)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return to_naive_utc(datetime.fromisoformat(value))


class EncounterSummaryRepository:
    """Repository for the combat_encounters table."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    async def insert(self, summary: dict[str, Any]) -> None:
        """Store an encounter summary produced by Encounter.to_summary()."""
        context = create_error_context(room_id=summary.get("room_id"))
        context.metadata["operation"] = "insert_encounter_summary"
        try:
            async with self._session_maker() as session:
                session.add(
                    CombatEncounterRecord(
                        room_id=summary["room_id"],
                        guild_id=summary.get("guild_id"),
                        state=summary["state"],
                        end_reason=summary.get("end_reason"),
                        rounds=summary.get("round", 0),
                        created_at=_parse_timestamp(summary["created_at"]),
                        started_at=_parse_timestamp(summary.get("started_at")),
                        ended_at=_parse_timestamp(summary.get("ended_at")),
                        summary=summary,
                    )
                )
                await session.commit()
                logger.debug("Encounter summary stored", room_id=summary["room_id"])
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Database error storing encounter summary: {e}",
                context=context,
                details={"room_id": summary.get("room_id"), "error": str(e)},
                user_friendly="Failed to store encounter summary",
            )
