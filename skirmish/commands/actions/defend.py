"""
Defend action: take a defensive stance, passing the turn inside an encounter.
"""

from ...models.encounter import EncounterState
from ...services.battle_service import BattleService
from ...services.combat_encounter_service import CombatEncounterService
from .base import ActionContext, BaseAction


class DefendAction(BaseAction):
    name = "defend"
    symbol = "🛡️"
    description = "Take a defensive stance"
    cooldown_ms = 30_000
    turn_gated = True

    def __init__(self, battle_service: BattleService, encounter_service: CombatEncounterService | None = None) -> None:
        self._battle = battle_service
        self._encounters = encounter_service

    async def execute(self, context: ActionContext) -> str | None:
        result = await self._battle.defend(context.actor)
        encounter = self._encounters.get_encounter(context.room_id) if self._encounters else None
        if encounter is not None and encounter.state == EncounterState.ACTIVE:
            seat = encounter.get_combatant(context.actor.combatant_id)
            if seat is not None:
                seat.is_defending = True
                await self._encounters.next_turn(encounter)
        return result.message
