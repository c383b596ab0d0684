"""
Battle service: attack, knockout, defend, hide and flee resolution.

Every method follows a read-compute-persist cycle over frozen snapshots and
returns an ActionResult. Side effects that may fail without invalidating the
outcome (relocation, event publishing) are collected in
``ActionResult.warnings`` instead of being raised.
"""

from typing import TYPE_CHECKING

from ..events.combat_events import (
    AttackAttemptEvent,
    AttackBlockedEvent,
    AttackHitEvent,
    AttackMissEvent,
    DeathEvent,
    FleeAttemptEvent,
    FleeFailEvent,
    FleeSuccessEvent,
    HideFailEvent,
    HideSuccessEvent,
    KnockoutEvent,
)
from ..events.event_types import BaseEvent
from ..models.action_result import ActionResult
from ..models.combatant import Combatant, CombatantStatus
from ..models.encounter import Encounter, EncounterState
from ..models.modifier import DAMAGE_STAT
from ..models.stats import ability_modifier
from ..persistence.protocols import CombatantRepositoryProtocol, DiceProtocol
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.time_utils import NowProvider, add_ms, utc_now
from .combat_event_publisher import CombatEventPublisher
from .combatant_stats_service import CombatantStatsService
from .location_service import LocationService
from .modifier_service import ModifierService

if TYPE_CHECKING:
    from .combat_encounter_service import CombatEncounterService

logger = get_logger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


class BattleService:
    """
    Resolves combat actions between combatants.

    Collaborators are injected explicitly; the encounter service is only needed
    for flee, which consumes turns and ends encounters.
    """

    def __init__(
        self,
        combatant_repository: CombatantRepositoryProtocol,
        stats_service: CombatantStatsService,
        modifier_service: ModifierService,
        dice: DiceProtocol,
        location_service: LocationService | None = None,
        event_publisher: CombatEventPublisher | None = None,
        encounter_service: "CombatEncounterService | None" = None,
        now_provider: NowProvider | None = None,
        knockout_duration_ms: int = DAY_MS,
        flee_cooldown_ms: int = DAY_MS,
        recovery_room_id: str = "tavern",
    ) -> None:
        self._combatants = combatant_repository
        self._stats = stats_service
        self._modifiers = modifier_service
        self._dice = dice
        self._locations = location_service
        self._events = event_publisher
        self.encounter_service = encounter_service
        self._now = now_provider or utc_now
        self.knockout_duration_ms = knockout_duration_ms
        self.flee_cooldown_ms = flee_cooldown_ms
        self.recovery_room_id = recovery_room_id

    def _publish(self, event: BaseEvent, warnings: list[str]) -> None:
        if self._events is None:
            return
        if not self._events.publish(event):
            warnings.append(f"event {event.event_type} not published")

    async def _relocate(self, combatant: Combatant, warnings: list[str]) -> None:
        """Best-effort move to the recovery room."""
        if self._locations is None:
            return
        try:
            await self._locations.relocate(combatant, self.recovery_room_id)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: relocation must never abort a knockout
            logger.warning(
                "Relocation to recovery room failed",
                combatant_id=combatant.combatant_id,
                recovery_room_id=self.recovery_room_id,
                error=str(e),
            )
            warnings.append(f"relocation failed: {e}")

    # --- Attack -------------------------------------------------------------

    async def attack(
        self,
        attacker: Combatant,
        defender: Combatant,
        *,
        room_id: str | None = None,
        correlation_id: str | None = None,
    ) -> ActionResult:
        """
        Resolve one attack.

        AC = 10 + defender DEX mod (+2 while defending). One d20, or the better
        of two when the attacker holds advantage, plus attacker STR mod must
        meet AC. A raw 20 is a critical hit and adds a second damage die.
        Damage is recorded as a permanent ``damage`` modifier; the defending
        stance is consumed by the attack whether it hits or not, and so is
        the attacker's advantage and concealment.
        """
        warnings: list[str] = []
        now = self._now()
        if attacker.is_incapacitated(now):
            logger.info("Attack blocked, attacker cannot act", attacker_id=attacker.combatant_id)
            self._publish(
                AttackBlockedEvent(
                    attacker_id=attacker.combatant_id, reason="status", room_id=room_id, correlation_id=correlation_id
                ),
                warnings,
            )
            return ActionResult(
                result="invalid",
                message=f"-# 💤 [ {attacker.name} cannot act right now. ]",
                warnings=warnings,
            )

        attacker_stats = await self._stats.get_or_create_stats(attacker)
        defender_stats = await self._stats.get_or_create_stats(defender)

        str_mod = ability_modifier(attacker_stats.strength)
        dex_mod = ability_modifier(defender_stats.dexterity)
        armor_class = 10 + dex_mod + (2 if defender_stats.is_defending else 0)

        first_roll = self._dice.roll_die(20)
        advantage_used = attacker_stats.advantage_next_attack
        raw_roll = max(first_roll, self._dice.roll_die(20)) if advantage_used else first_roll
        attack_roll = raw_roll + str_mod
        critical = raw_roll == 20

        self._publish(
            AttackAttemptEvent(
                attacker_id=attacker.combatant_id,
                defender_id=defender.combatant_id,
                raw_roll=raw_roll,
                attack_roll=attack_roll,
                armor_class=armor_class,
                advantage_used=advantage_used,
                room_id=room_id,
                correlation_id=correlation_id,
            ),
            warnings,
        )

        # The defending stance is consumed by this attack, hit or miss.
        await self._stats.update_stats(defender, defender_stats.model_copy(update={"is_defending": False}))

        if advantage_used:
            await self._stats.update_stats(
                attacker,
                attacker_stats.model_copy(update={"advantage_next_attack": False, "is_hidden": False}),
            )

        if attack_roll < armor_class:
            logger.info(
                "Attack missed",
                attacker_id=attacker.combatant_id,
                defender_id=defender.combatant_id,
                attack_roll=attack_roll,
                armor_class=armor_class,
            )
            self._publish(
                AttackMissEvent(
                    attacker_id=attacker.combatant_id,
                    defender_id=defender.combatant_id,
                    attack_roll=attack_roll,
                    armor_class=armor_class,
                    raw_roll=raw_roll,
                    room_id=room_id,
                    correlation_id=correlation_id,
                ),
                warnings,
            )
            return ActionResult(
                result="miss",
                message=(
                    f"-# 🛡️ [ {attacker.name}'s attack misses {defender.name}! "
                    f"({attack_roll} vs AC {armor_class}) ]"
                ),
                critical=critical,
                raw_roll=raw_roll,
                attack_roll=attack_roll,
                armor_class=armor_class,
                advantage_used=advantage_used,
                warnings=warnings,
            )

        damage_dice = self._dice.roll_die(8)
        if critical:
            damage_dice += self._dice.roll_die(8)
        damage = max(1, damage_dice + str_mod)
        await self._modifiers.create_modifier(
            DAMAGE_STAT, damage, combatant_id=defender.combatant_id, source=f"attack:{attacker.combatant_id}"
        )
        total_damage = await self._modifiers.get_total_modifier(defender.combatant_id, DAMAGE_STAT)
        current_hp = defender_stats.hp - total_damage

        if current_hp <= 0:
            knockout = await self.handle_knockout(
                defender, damage, attacker, critical=critical, room_id=room_id, correlation_id=correlation_id
            )
            return knockout.model_copy(
                update={
                    "critical": critical,
                    "raw_roll": raw_roll,
                    "attack_roll": attack_roll,
                    "armor_class": armor_class,
                    "advantage_used": advantage_used,
                    "current_hp": 0,
                    "max_hp": defender_stats.hp,
                    "warnings": warnings + knockout.warnings,
                }
            )

        logger.info(
            "Attack hit",
            attacker_id=attacker.combatant_id,
            defender_id=defender.combatant_id,
            attack_roll=attack_roll,
            armor_class=armor_class,
            damage=damage,
            critical=critical,
        )
        self._publish(
            AttackHitEvent(
                attacker_id=attacker.combatant_id,
                defender_id=defender.combatant_id,
                damage=damage,
                current_hp=current_hp,
                attack_roll=attack_roll,
                armor_class=armor_class,
                raw_roll=raw_roll,
                critical=critical,
                room_id=room_id,
                correlation_id=correlation_id,
            ),
            warnings,
        )
        advantage_note = " with advantage" if advantage_used else ""
        message = (
            f"-# ⚔️ [ {attacker.name} hits {defender.name}{advantage_note} for {damage} damage! "
            f"({attack_roll} vs AC {armor_class}) | HP: {current_hp}/{defender_stats.hp} ]"
        )
        if critical:
            message += "\n-# 💥 [ Critical hit! A devastating blow lands (nat 20). ]"
        return ActionResult(
            result="hit",
            message=message,
            damage=damage,
            current_hp=current_hp,
            max_hp=defender_stats.hp,
            critical=critical,
            raw_roll=raw_roll,
            attack_roll=attack_roll,
            armor_class=armor_class,
            advantage_used=advantage_used,
            warnings=warnings,
        )

    # --- Knockout -----------------------------------------------------------

    async def handle_knockout(
        self,
        target: Combatant,
        damage: int,
        attacker: Combatant,
        *,
        critical: bool = False,
        room_id: str | None = None,
        correlation_id: str | None = None,
    ) -> ActionResult:
        """
        Apply a knockout to a combatant whose HP reached zero.

        One life is lost. With no lives left the combatant dies permanently.
        Otherwise damage is purged, stats are re-rolled from the creation date,
        and the combatant is knocked out for the recovery window and moved to
        the recovery room on a best-effort basis.
        """
        warnings: list[str] = []
        now = self._now()
        current = await self._combatants.get(target.combatant_id) or target
        lives = current.lives - 1

        if lives <= 0:
            fallen = current.model_copy(
                update={"lives": 0, "status": CombatantStatus.DEAD, "death_timestamp": now}
            )
            await self._combatants.save(fallen)
            logger.info("Combatant died", combatant_id=target.combatant_id, attacker_id=attacker.combatant_id)
            self._publish(
                DeathEvent(
                    attacker_id=attacker.combatant_id,
                    defender_id=target.combatant_id,
                    damage=damage,
                    critical=critical,
                    room_id=room_id,
                    correlation_id=correlation_id,
                ),
                warnings,
            )
            return ActionResult(
                result="dead",
                message=(
                    f"-# 💀 [ {attacker.name} has dealt the final blow! "
                    f"{target.name} has fallen permanently! ☠️ ]"
                ),
                damage=damage,
                lives_remaining=0,
                warnings=warnings,
            )

        await self._modifiers.clear_modifiers(target.combatant_id, DAMAGE_STAT)
        await self._stats.regenerate_stats(current)
        knocked_out = current.model_copy(
            update={
                "lives": lives,
                "status": CombatantStatus.KNOCKED_OUT,
                "knocked_out_until": add_ms(now, self.knockout_duration_ms),
            }
        )
        await self._combatants.save(knocked_out)
        await self._relocate(knocked_out, warnings)
        logger.info(
            "Combatant knocked out",
            combatant_id=target.combatant_id,
            attacker_id=attacker.combatant_id,
            lives_remaining=lives,
        )
        self._publish(
            KnockoutEvent(
                attacker_id=attacker.combatant_id,
                defender_id=target.combatant_id,
                damage=damage,
                lives_remaining=lives,
                critical=critical,
                room_id=room_id,
                correlation_id=correlation_id,
            ),
            warnings,
        )
        return ActionResult(
            result="knockout",
            message=(
                f"-# 💥 [ {attacker.name} knocked out {target.name} for {damage} damage! "
                f"{lives} lives remaining! 💫 ]"
            ),
            damage=damage,
            lives_remaining=lives,
            warnings=warnings,
        )

    async def recover_if_elapsed(self, combatant: Combatant) -> Combatant:
        """Return a knocked out combatant to ``alive`` once the recovery window has passed."""
        if not combatant.can_recover(self._now()):
            return combatant
        recovered = combatant.model_copy(update={"status": CombatantStatus.ALIVE, "knocked_out_until": None})
        await self._combatants.save(recovered)
        logger.info("Combatant recovered from knockout", combatant_id=combatant.combatant_id)
        return recovered

    # --- Defend -------------------------------------------------------------

    async def defend(self, combatant: Combatant) -> ActionResult:
        """Take a defensive stance (+2 AC until the next resolved attack). Idempotent."""
        stats = await self._stats.get_or_create_stats(combatant)
        if not stats.is_defending:
            await self._stats.update_stats(combatant, stats.model_copy(update={"is_defending": True}))
        logger.debug("Defensive stance taken", combatant_id=combatant.combatant_id)
        return ActionResult(
            result="success",
            message=(
                f"-# 🛡️ [ **{combatant.name}** takes a defensive stance! "
                "**AC increased by 2** until next attack. ]"
            ),
        )

    # --- Hide ---------------------------------------------------------------

    async def hide(
        self,
        combatant: Combatant,
        room_id: str,
        *,
        correlation_id: str | None = None,
    ) -> ActionResult:
        """
        Stealth check (d20 + DEX mod) against the highest passive perception in the room.

        Passive perception is 10 + WIS mod of each other combatant present, with
        a floor of 10. Success grants concealment and advantage on the next
        attack; failure only clears concealment.
        """
        warnings: list[str] = []
        others: list[Combatant] = []
        if self._locations is not None:
            snapshot = await self._locations.get_location_and_combatants(room_id)
            others = [c for c in snapshot.combatants if c.combatant_id != combatant.combatant_id]

        highest_passive = 10
        for other in others:
            other_stats = await self._stats.get_or_create_stats(other)
            highest_passive = max(highest_passive, 10 + ability_modifier(other_stats.wisdom))

        stats = await self._stats.get_or_create_stats(combatant)
        stealth = self._dice.roll_die(20) + ability_modifier(stats.dexterity)

        if stealth >= highest_passive:
            await self._stats.update_stats(
                combatant, stats.model_copy(update={"is_hidden": True, "advantage_next_attack": True})
            )
            self._publish(
                HideSuccessEvent(
                    combatant_id=combatant.combatant_id,
                    roll=stealth,
                    dc=highest_passive,
                    room_id=room_id,
                    correlation_id=correlation_id,
                ),
                warnings,
            )
            return ActionResult(
                result="success",
                message=(
                    f"-# 🫥 [ {combatant.name} slips into the shadows "
                    f"(Stealth {stealth} vs Passive {highest_passive}). Next attack has advantage. ]"
                ),
                roll=stealth,
                dc=highest_passive,
                warnings=warnings,
            )

        await self._stats.update_stats(combatant, stats.model_copy(update={"is_hidden": False}))
        self._publish(
            HideFailEvent(
                combatant_id=combatant.combatant_id,
                roll=stealth,
                dc=highest_passive,
                room_id=room_id,
                correlation_id=correlation_id,
            ),
            warnings,
        )
        return ActionResult(
            result="fail",
            message=f"-# 👀 [ {combatant.name} fails to hide (Stealth {stealth} vs Passive {highest_passive}). ]",
            roll=stealth,
            dc=highest_passive,
            warnings=warnings,
        )

    # --- Flee ---------------------------------------------------------------

    async def flee(
        self,
        combatant: Combatant,
        encounter: Encounter | None,
        *,
        correlation_id: str | None = None,
    ) -> ActionResult:
        """
        Attempt to escape the current encounter on the combatant's own turn.

        DEX check (d20 + DEX mod) against 10 + the highest DEX mod among
        conscious opponents, with a floor of 10. Success puts the combatant on
        combat cooldown, moves them to the recovery room and ends the
        encounter. Failure consumes the turn and leaves the encounter running.
        Calls out of turn or outside an active encounter return ``invalid``
        with an empty message and change nothing.
        """
        warnings: list[str] = []
        encounters = self.encounter_service
        if (
            encounters is None
            or encounter is None
            or encounter.state != EncounterState.ACTIVE
            or not encounters.is_turn(encounter, combatant.combatant_id)
        ):
            return ActionResult(result="invalid", message="")

        room_id = encounter.room_id
        self._publish(
            FleeAttemptEvent(combatant_id=combatant.combatant_id, room_id=room_id, correlation_id=correlation_id),
            warnings,
        )

        dc = 10
        for seat in encounter.combatants:
            if seat.combatant_id == combatant.combatant_id or not seat.is_conscious():
                continue
            opponent = await self._combatants.get(seat.combatant_id)
            if opponent is None:
                continue
            opponent_stats = await self._stats.get_or_create_stats(opponent)
            dc = max(dc, 10 + ability_modifier(opponent_stats.dexterity))

        stats = await self._stats.get_or_create_stats(combatant)
        roll = self._dice.roll_die(20) + ability_modifier(stats.dexterity)

        if roll >= dc:
            current = await self._combatants.get(combatant.combatant_id) or combatant
            resting = current.model_copy(
                update={"combat_cooldown_until": add_ms(self._now(), self.flee_cooldown_ms)}
            )
            await self._combatants.save(resting)
            await self._relocate(resting, warnings)
            await encounters.end_encounter(encounter, reason="fled")
            logger.info("Combatant fled", combatant_id=combatant.combatant_id, roll=roll, dc=dc)
            self._publish(
                FleeSuccessEvent(
                    combatant_id=combatant.combatant_id,
                    roll=roll,
                    dc=dc,
                    room_id=room_id,
                    correlation_id=correlation_id,
                ),
                warnings,
            )
            return ActionResult(
                result="success",
                message=f"-# 🏃 [ {combatant.name} flees to the Tavern! The duel ends. ]",
                roll=roll,
                dc=dc,
                warnings=warnings,
            )

        await encounters.next_turn(encounter)
        logger.info("Flee attempt failed", combatant_id=combatant.combatant_id, roll=roll, dc=dc)
        self._publish(
            FleeFailEvent(
                combatant_id=combatant.combatant_id,
                roll=roll,
                dc=dc,
                room_id=room_id,
                correlation_id=correlation_id,
            ),
            warnings,
        )
        return ActionResult(
            result="fail",
            message=f"-# 🏃 [ {combatant.name} fails to escape! ]",
            roll=roll,
            dc=dc,
            warnings=warnings,
        )
