"""
Hide action: stealth check against the room's passive perception.
"""

from ...models.encounter import EncounterState
from ...services.battle_service import BattleService
from ...services.combat_encounter_service import CombatEncounterService
from .base import ActionContext, BaseAction


class HideAction(BaseAction):
    name = "hide"
    symbol = "🫥"
    description = (
        "Attempt to hide (Stealth check vs passive Perception). Grants advantage on the next attack until revealed."
    )
    cooldown_ms = 15_000
    turn_gated = True

    def __init__(self, battle_service: BattleService, encounter_service: CombatEncounterService | None = None) -> None:
        self._battle = battle_service
        self._encounters = encounter_service

    async def execute(self, context: ActionContext) -> str | None:
        result = await self._battle.hide(
            context.actor, context.room_id, correlation_id=context.correlation_id
        )
        encounter = self._encounters.get_encounter(context.room_id) if self._encounters else None
        if (
            encounter is not None
            and encounter.state == EncounterState.ACTIVE
            and encounter.get_combatant(context.actor.combatant_id) is not None
        ):
            await self._encounters.next_turn(encounter)
        return result.message
