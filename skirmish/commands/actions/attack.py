"""
Attack action: resolve an attack against a named combatant in the room.
"""

import math

from ...error_types import ErrorMessages
from ...exceptions import CombatError
from ...models.combatant import Combatant
from ...services.battle_service import BattleService
from ...services.combat_encounter_service import CombatEncounterService, parse_combat_intent
from ...services.location_service import LocationService
from ...structured_logging.enhanced_logging_config import get_logger
from ...utils.time_utils import NowProvider, utc_now
from .base import ActionContext, BaseAction

logger = get_logger(__name__)

HOUR_MS = 60 * 60 * 1000


def hours_remaining(until, now) -> int:
    """Whole hours left until ``until``, rounded up."""
    return max(1, math.ceil((until - now).total_seconds() * 1000 / HOUR_MS))


class AttackAction(BaseAction):
    """Attack another combatant, opening an encounter when none is running."""

    name = "attack"
    symbol = "🗡️"
    description = "Attack another combatant"
    parameters = "<target>"
    cooldown_ms = 30_000
    turn_gated = True

    def __init__(
        self,
        battle_service: BattleService,
        location_service: LocationService,
        encounter_service: CombatEncounterService | None = None,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._battle = battle_service
        self._locations = location_service
        self._encounters = encounter_service
        self._now = now_provider or utc_now

    async def execute(self, context: ActionContext) -> str | None:
        actor = context.actor
        snapshot = await self._locations.get_location_and_combatants(context.room_id)
        target_name = context.target
        if not target_name:
            others = [c for c in snapshot.combatants if c.combatant_id != actor.combatant_id]
            intent = parse_combat_intent(context.message_content, others)
            if intent is None or intent.action != "attack" or not intent.target:
                return ErrorMessages.NO_TARGET
            target_name = intent.target

        defender = snapshot.find_by_name(target_name)
        if defender is None:
            return f"-# 🫠 [ Target '{target_name}' not found here. ]"
        if defender.combatant_id == actor.combatant_id:
            return f"-# 🤔 [ **{actor.name}** cannot attack themselves. ]"
        defender = await self._battle.recover_if_elapsed(defender)
        refusal = self._defender_refusal(defender)
        if refusal is not None:
            return refusal

        encounter = None
        if self._encounters is not None:
            existed = self._encounters.get_encounter(context.room_id)
            created = existed is None or not existed.is_open()
            try:
                encounter = await self._encounters.ensure_encounter_for_attack(
                    context.room_id,
                    actor,
                    defender,
                    guild_id=context.guild_id,
                    source_message_id=context.message_id,
                )
            except CombatError as e:
                return f"-# 💤 [ {e.user_friendly} ]"
            if not self._encounters.is_turn(encounter, actor.combatant_id):
                if created:
                    first = encounter.get_combatant(encounter.current_turn_combatant_id() or "")
                    first_name = first.name if first else "Unknown"
                    return f"-# ⚔️ [ Combat begins! **{first_name}** acts first. ]"
                logger.debug("Attack out of turn ignored", actor_id=actor.combatant_id, room_id=context.room_id)
                return None

        result = await self._battle.attack(
            actor, defender, room_id=context.room_id, correlation_id=context.correlation_id
        )
        if encounter is not None and self._encounters is not None:
            await self._encounters.handle_attack_result(encounter, actor.combatant_id, defender.combatant_id, result)
        for warning in result.warnings:
            logger.warning("Attack side effect failed", actor_id=actor.combatant_id, warning=warning)
        return result.message

    def _defender_refusal(self, defender: Combatant) -> str | None:
        now = self._now()
        if defender.is_dead():
            return f"-# ⚰️ [ **{defender.name}** is already dead! Have some *respect* for the fallen. ]"
        if defender.is_recovering(now):
            hours = hours_remaining(defender.knocked_out_until, now)
            return f"-# 💤 [ **{defender.name}** is recovering and cannot fight for ~{hours}h. ]"
        return None
