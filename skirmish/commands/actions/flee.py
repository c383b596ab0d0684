"""
Flee action: try to escape the room's encounter.
"""

from ...error_types import ErrorMessages
from ...models.encounter import EncounterState
from ...services.battle_service import BattleService
from ...services.combat_encounter_service import CombatEncounterService
from ...structured_logging.enhanced_logging_config import get_logger
from .base import ActionContext, BaseAction

logger = get_logger(__name__)


class FleeAction(BaseAction):
    name = "flee"
    symbol = "🏃"
    description = "Attempt to flee from the current encounter."
    cooldown_ms = 30_000
    turn_gated = True

    def __init__(self, battle_service: BattleService, encounter_service: CombatEncounterService | None = None) -> None:
        self._battle = battle_service
        self._encounters = encounter_service

    async def execute(self, context: ActionContext) -> str | None:
        if self._encounters is None:
            return ErrorMessages.COMBAT_UNAVAILABLE
        encounter = self._encounters.get_encounter(context.room_id)
        if (
            encounter is None
            or encounter.state != EncounterState.ACTIVE
            or encounter.get_combatant(context.actor.combatant_id) is None
        ):
            return ErrorMessages.NOT_IN_COMBAT
        result = await self._battle.flee(context.actor, encounter, correlation_id=context.correlation_id)
        if result.result == "invalid":
            return None
        for warning in result.warnings:
            logger.warning("Flee side effect failed", actor_id=context.actor.combatant_id, warning=warning)
        return result.message
