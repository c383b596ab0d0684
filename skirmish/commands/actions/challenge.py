"""
Challenge action: open a duel without attacking.

The encounter is created in the pending state, the turn clock is held while
the presentation hook runs (posters, intro chatter), and initiative is rolled
afterwards.
"""

from collections.abc import Awaitable, Callable

from ...error_types import ErrorMessages
from ...exceptions import CombatError, FleeCooldownError, KnockoutCooldownError
from ...models.combatant import Combatant
from ...models.encounter import Encounter, EncounterState
from ...services.combat_encounter_service import CombatEncounterService
from ...services.location_service import LocationService
from ...structured_logging.enhanced_logging_config import get_logger
from ...utils.time_utils import NowProvider, utc_now
from .base import ActionContext, BaseAction

logger = get_logger(__name__)

PresentationHook = Callable[[Combatant, Combatant, Encounter], Awaitable[None]]


class ChallengeAction(BaseAction):
    name = "challenge"
    symbol = "⚔️"
    description = "Challenge another combatant to a duel (starts combat without attacking)."
    parameters = "<target>"
    cooldown_ms = 10_000

    def __init__(
        self,
        location_service: LocationService,
        encounter_service: CombatEncounterService | None = None,
        presentation_hook: PresentationHook | None = None,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._locations = location_service
        self._encounters = encounter_service
        self.presentation_hook = presentation_hook
        self._now = now_provider or utc_now

    async def execute(self, context: ActionContext) -> str | None:
        actor = context.actor
        now = self._now()
        if actor.is_recovering(now):
            return f"-# 💤 [ **{actor.name}** cannot fight again today. ]"
        if actor.has_combat_cooldown(now):
            return f"-# 💤 [ **{actor.name}** is resting after a narrow escape and cannot enter combat yet. ]"
        if not context.target:
            return ErrorMessages.NO_TARGET

        snapshot = await self._locations.get_location_and_combatants(context.room_id)
        defender = snapshot.find_by_name(context.target)
        if defender is None:
            return f"-# 🫠 [ Target '{context.target}' not found here. ]"
        if defender.combatant_id == actor.combatant_id:
            return f"-# 🤔 [ **{actor.name}** cannot challenge themselves. ]"
        if defender.is_dead():
            return f"-# ⚰️ [ **{defender.name}** is already dead! Have some respect for the fallen. ]"
        if defender.is_recovering(now):
            return f"-# 💤 [ **{defender.name}** cannot fight again today. ]"
        if defender.has_combat_cooldown(now):
            return f"-# 💤 [ **{defender.name}** refuses to fight after fleeing. ]"

        if self._encounters is None:
            return ErrorMessages.COMBAT_UNAVAILABLE
        try:
            encounter = await self._encounters.ensure_encounter_for_attack(
                context.room_id,
                actor,
                defender,
                guild_id=context.guild_id,
                defer_start=True,
                source_message_id=context.message_id,
            )
        except (FleeCooldownError, KnockoutCooldownError) as e:
            return f"-# 💤 [ {e.user_friendly} ]"
        except CombatError as e:
            friendly = e.reason.replace("_", " ").capitalize()
            return f"-# [ ❌ Error: Challenge failed: {friendly}. ]"

        logger.info(
            "Challenge issued",
            actor_id=actor.combatant_id,
            defender_id=defender.combatant_id,
            room_id=context.room_id,
            state=encounter.state.value,
        )

        async with self._encounters.manual_action(encounter):
            await self._present(actor, defender, encounter)

        if encounter.state == EncounterState.PENDING:
            await self._encounters.roll_initiative(encounter, [actor, defender])

        first = encounter.get_combatant(encounter.current_turn_combatant_id() or "")
        first_name = first.name if first else "Unknown"
        return f"-# ⚔️ [ **{actor.name}** challenges **{defender.name}** to a duel! **{first_name}** acts first. ]"

    async def _present(self, actor: Combatant, defender: Combatant, encounter: Encounter) -> None:
        if self.presentation_hook is None:
            return
        try:
            await self.presentation_hook(actor, defender, encounter)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: presentation must never block the duel
            logger.warning("Challenge presentation failed", room_id=encounter.room_id, error=str(e))
