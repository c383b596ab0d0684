"""
Encounter coordination for turn-based combat.

This service owns the in-memory encounter state for every room: creation,
initiative, turn order, end conditions, turn timeouts and cleanup. Encounter
summaries are persisted on a best-effort basis when an encounter ends.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..config.models import CombatConfig
from ..events.combat_events import EncounterEndedEvent, EncounterStartedEvent, TurnChangedEvent
from ..exceptions import CombatError, DatabaseError, FleeCooldownError, KnockoutCooldownError, create_error_context
from ..models.action_result import ActionResult
from ..models.combatant import Combatant
from ..models.encounter import Encounter, EncounterCombatant, EncounterState
from ..models.modifier import DAMAGE_STAT
from ..models.stats import ability_modifier
from ..persistence.protocols import (
    CombatantRepositoryProtocol,
    DiceProtocol,
    EncounterSummaryRepositoryProtocol,
)
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.time_utils import NowProvider, utc_now
from .combat_event_publisher import CombatEventPublisher
from .combatant_stats_service import CombatantStatsService
from .modifier_service import ModifierService

logger = get_logger(__name__)

ATTACK_VERBS = ("attack", "strike", "hit", "slash", "shoot", "stab", "punch", "cast")
DEFEND_VERBS = ("defend", "guard", "block")
DAMAGING_RESULTS = ("hit", "knockout", "dead")


@dataclass
class CombatIntent:
    """Heuristic reading of a free-text combat message."""

    action: str
    target: str | None
    description: str
    confidence: float = 0.4


def parse_combat_intent(message_content: str, combatants_in_location: list[Combatant]) -> CombatIntent | None:
    """
    Guess a combat action and target from free text.

    The first combat verb found decides between attack and defend; the target is
    the longest combatant name mentioned in the message.
    """
    lower = (message_content or "").lower()
    verb = next((v for v in ATTACK_VERBS + DEFEND_VERBS if v in lower), None)
    if verb is None:
        return None
    names = sorted((c.name for c in combatants_in_location), key=len, reverse=True)
    target = next((name for name in names if name.lower() in lower), None)
    return CombatIntent(
        action="defend" if verb in DEFEND_VERBS else "attack",
        target=target,
        description=message_content,
    )


class CombatEncounterService:
    """
    Manages room-scoped encounters: initiative, turn order and lifecycle.

    Encounters live only in memory; at most one open encounter exists per room.
    """

    def __init__(
        self,
        stats_service: CombatantStatsService,
        dice: DiceProtocol,
        combatant_repository: CombatantRepositoryProtocol | None = None,
        modifier_service: ModifierService | None = None,
        summary_repository: EncounterSummaryRepositoryProtocol | None = None,
        event_publisher: CombatEventPublisher | None = None,
        config: CombatConfig | None = None,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._stats = stats_service
        self._dice = dice
        self._combatants = combatant_repository
        self._modifiers = modifier_service
        self._summaries = summary_repository
        self._events = event_publisher
        self._config = config or CombatConfig()
        self._now = now_provider or utc_now
        self.encounters: dict[str, Encounter] = {}

    @property
    def turn_timeout(self) -> timedelta:
        return timedelta(seconds=self._config.turn_timeout_seconds)

    @property
    def enable_turn_enforcement(self) -> bool:
        return self._config.enable_turn_enforcement

    def _publish(self, event) -> None:
        if self._events is not None:
            self._events.publish(event)

    # --- Lookup -------------------------------------------------------------

    def get_encounter(self, room_id: str) -> Encounter | None:
        """Return the room's encounter, or None."""
        return self.encounters.get(room_id)

    def get_current_turn_combatant_id(self, encounter: Encounter) -> str | None:
        return encounter.current_turn_combatant_id()

    def is_turn(self, encounter: Encounter, combatant_id: str) -> bool:
        """Return True when it is the combatant's turn, or when turn enforcement is off."""
        if not self.enable_turn_enforcement:
            return True
        return encounter.current_turn_combatant_id() == combatant_id

    def find_active_encounter_for(self, combatant_id: str) -> Encounter | None:
        """Return the active encounter the combatant is seated in, in any room."""
        for encounter in self.encounters.values():
            if encounter.state == EncounterState.ACTIVE and encounter.get_combatant(combatant_id) is not None:
                return encounter
        return None

    def is_in_active_combat(self, room_id: str, combatant_id: str | None = None) -> bool:
        """
        Return True when the room has an active encounter.

        With a combatant id, the combatant must also be seated in it.
        """
        encounter = self.encounters.get(room_id)
        if encounter is None or encounter.state != EncounterState.ACTIVE:
            return False
        if combatant_id is None:
            return True
        return encounter.get_combatant(combatant_id) is not None

    # --- Creation -----------------------------------------------------------

    async def create_encounter(
        self,
        room_id: str,
        participants: list[Combatant],
        *,
        guild_id: str | None = None,
        source_message_id: str | None = None,
    ) -> Encounter:
        """
        Create a pending encounter, or return the room's open one.

        When the guild is at its encounter cap, the oldest open encounter of
        that guild is ended to make room.
        """
        existing = self.encounters.get(room_id)
        if existing is not None and existing.is_open():
            return existing

        if guild_id:
            open_for_guild = [e for e in self.encounters.values() if e.guild_id == guild_id and e.is_open()]
            if len(open_for_guild) >= self._config.max_encounters_per_guild:
                oldest = min(open_for_guild, key=lambda e: e.created_at)
                logger.info("Encounter cap reached, reclaiming oldest", guild_id=guild_id, room_id=oldest.room_id)
                await self.end_encounter(oldest, reason="capacity_reclaim")

        seats: dict[str, EncounterCombatant] = {}
        for participant in participants:
            if participant.combatant_id not in seats:
                seats[participant.combatant_id] = EncounterCombatant(
                    combatant_id=participant.combatant_id, name=participant.name
                )

        encounter = Encounter(
            room_id=room_id,
            guild_id=guild_id,
            combatants=list(seats.values()),
            created_at=self._now(),
            source_message_id=source_message_id,
        )
        self.encounters[room_id] = encounter
        logger.info("Encounter created", room_id=room_id, guild_id=guild_id, combatants=len(encounter.combatants))
        return encounter

    async def _seat_stats(self, seat: EncounterCombatant, combatant: Combatant | None) -> int:
        """Fill HP and AC for a seat from stored stats, returning the DEX modifier."""
        if combatant is None:
            return 0
        stats = await self._stats.get_or_create_stats(combatant)
        dex_mod = ability_modifier(stats.dexterity)
        damage = 0
        if self._modifiers is not None:
            damage = await self._modifiers.get_total_modifier(combatant.combatant_id, DAMAGE_STAT)
        seat.max_hp = stats.hp
        seat.current_hp = max(0, stats.hp - damage)
        seat.armor_class = 10 + dex_mod
        seat.is_defending = stats.is_defending
        return dex_mod

    async def _load_combatant(self, combatant_id: str, known: dict[str, Combatant]) -> Combatant | None:
        if combatant_id in known:
            return known[combatant_id]
        if self._combatants is None:
            return None
        return await self._combatants.get(combatant_id)

    async def roll_initiative(
        self, encounter: Encounter, participants: list[Combatant] | None = None
    ) -> Encounter:
        """
        Roll d20 + DEX modifier for every seat and start the encounter.

        Ties keep seating order. A seat whose stats cannot be loaded rolls a
        bare d20.
        """
        known = {c.combatant_id: c for c in participants or []}
        for seat in encounter.combatants:
            try:
                combatant = await self._load_combatant(seat.combatant_id, known)
                dex_mod = await self._seat_stats(seat, combatant)
            except DatabaseError as e:
                logger.warning("Stats unavailable for initiative", combatant_id=seat.combatant_id, error=str(e))
                dex_mod = 0
            seat.initiative = self._dice.roll_die(20) + dex_mod

        ordered = sorted(encounter.combatants, key=lambda c: -(c.initiative or 0))
        now = self._now()
        encounter.initiative_order = [c.combatant_id for c in ordered]
        encounter.state = EncounterState.ACTIVE
        encounter.started_at = now
        encounter.last_action_at = now
        encounter.round = 1
        encounter.current_turn_index = 0

        logger.info(
            "Initiative rolled",
            room_id=encounter.room_id,
            initiative_order=encounter.initiative_order,
        )
        self._publish(
            EncounterStartedEvent(
                room_id=encounter.room_id,
                initiative_order=list(encounter.initiative_order),
                initiatives={c.combatant_id: c.initiative or 0 for c in encounter.combatants},
            )
        )
        return encounter

    async def add_combatant(self, encounter: Encounter, combatant: Combatant) -> EncounterCombatant | None:
        """
        Seat a combatant mid-encounter, keeping the current turn with whoever holds it.

        Returns the new seat, or None when the combatant is already seated or
        the encounter has ended.
        """
        if not encounter.is_open() or encounter.get_combatant(combatant.combatant_id) is not None:
            return None
        seat = EncounterCombatant(combatant_id=combatant.combatant_id, name=combatant.name)
        dex_mod = await self._seat_stats(seat, combatant)
        seat.initiative = self._dice.roll_die(20) + dex_mod
        encounter.combatants.append(seat)

        current_id = encounter.current_turn_combatant_id()
        ordered = sorted(encounter.combatants, key=lambda c: -(c.initiative or 0))
        encounter.initiative_order = [c.combatant_id for c in ordered]
        if current_id in encounter.initiative_order:
            encounter.current_turn_index = encounter.initiative_order.index(current_id)
        else:
            encounter.current_turn_index = 0
        logger.info(
            "Combatant joined encounter",
            room_id=encounter.room_id,
            combatant_id=combatant.combatant_id,
            initiative=seat.initiative,
        )
        return seat

    def _check_cooldowns(self, combatants: list[Combatant]) -> None:
        now = self._now()
        for combatant in combatants:
            if combatant.has_combat_cooldown(now):
                raise FleeCooldownError(combatant.combatant_id, combatant.combat_cooldown_until)
            if combatant.is_recovering(now):
                raise KnockoutCooldownError(combatant.combatant_id, combatant.knocked_out_until)

    async def ensure_encounter_for_attack(
        self,
        room_id: str,
        attacker: Combatant,
        defender: Combatant,
        *,
        guild_id: str | None = None,
        defer_start: bool = False,
        source_message_id: str | None = None,
    ) -> Encounter:
        """
        Make sure an encounter covering both parties exists in the room.

        A new encounter is created and, unless ``defer_start`` is set, started
        by rolling initiative. A pending one is started; an active one gains
        whichever party is not yet seated.

        Raises:
            FleeCooldownError: Either party fled recently
            KnockoutCooldownError: Either party is still recovering from a knockout
            CombatError: Either party is fighting in another room
        """
        self._check_cooldowns([attacker, defender])
        for combatant in (attacker, defender):
            elsewhere = self.find_active_encounter_for(combatant.combatant_id)
            if elsewhere is not None and elsewhere.room_id != room_id:
                raise CombatError(
                    f"{combatant.combatant_id} is already fighting in {elsewhere.room_id}",
                    context=create_error_context(actor_id=combatant.combatant_id, room_id=room_id),
                    reason="already_in_encounter",
                    user_friendly=f"{combatant.name} is already in combat elsewhere.",
                )

        encounter = self.get_encounter(room_id)
        if encounter is None or not encounter.is_open():
            encounter = await self.create_encounter(
                room_id, [attacker, defender], guild_id=guild_id, source_message_id=source_message_id
            )
            if not defer_start:
                await self.roll_initiative(encounter, [attacker, defender])
        elif encounter.state == EncounterState.PENDING:
            if not defer_start:
                await self.roll_initiative(encounter, [attacker, defender])
        else:
            await self.add_combatant(encounter, attacker)
            await self.add_combatant(encounter, defender)
        return encounter

    # --- Turns --------------------------------------------------------------

    async def next_turn(self, encounter: Encounter, *, auto_defended: bool = False) -> None:
        """Advance to the next seat, starting a new round when the order wraps."""
        if encounter.state != EncounterState.ACTIVE:
            return
        encounter.advance_turn()
        encounter.last_action_at = self._now()
        current_id = encounter.current_turn_combatant_id()
        logger.debug("Turn advanced", room_id=encounter.room_id, round=encounter.round, combatant_id=current_id)
        self._publish(
            TurnChangedEvent(
                room_id=encounter.room_id,
                combatant_id=current_id,
                round=encounter.round,
                auto_defended=auto_defended,
            )
        )

    def begin_manual_action(self, encounter: Encounter) -> None:
        """Hold the turn timer while a multi-step action runs. Re-entrant."""
        encounter.manual_action_depth += 1

    def end_manual_action(self, encounter: Encounter) -> None:
        encounter.manual_action_depth = max(0, encounter.manual_action_depth - 1)
        if encounter.manual_action_depth == 0:
            encounter.last_action_at = self._now()

    @asynccontextmanager
    async def manual_action(self, encounter: Encounter) -> AsyncIterator[Encounter]:
        """Context manager pairing begin_manual_action and end_manual_action."""
        self.begin_manual_action(encounter)
        try:
            yield encounter
        finally:
            self.end_manual_action(encounter)

    def mark_hostile(self, encounter: Encounter) -> None:
        encounter.last_hostile_at = self._now()

    def apply_damage(self, encounter: Encounter, combatant_id: str, amount: int) -> None:
        """Lower a seat's tracked HP, flagging it unconscious at zero."""
        seat = encounter.get_combatant(combatant_id)
        if seat is None:
            return
        seat.current_hp = max(0, seat.current_hp - amount)
        if seat.current_hp == 0 and "unconscious" not in seat.conditions:
            seat.conditions.append("unconscious")

    async def handle_attack_result(
        self,
        encounter: Encounter | None,
        attacker_id: str,
        defender_id: str,
        result: ActionResult,
    ) -> None:
        """
        Fold an attack outcome into the encounter.

        Damage is mirrored onto the defender's seat, the encounter is checked
        for an end condition, and the turn passes if the attacker held it.
        """
        if encounter is None or encounter.state != EncounterState.ACTIVE:
            return
        if result.damage and result.result in DAMAGING_RESULTS:
            self.apply_damage(encounter, defender_id, result.damage)
            if result.result in ("knockout", "dead"):
                seat = encounter.get_combatant(defender_id)
                if seat is not None and seat.current_hp > 0:
                    self.apply_damage(encounter, defender_id, seat.current_hp)
            self.mark_hostile(encounter)
        defender_seat = encounter.get_combatant(defender_id)
        if defender_seat is not None:
            defender_seat.is_defending = False

        if await self.evaluate_end(encounter):
            return
        if encounter.current_turn_combatant_id() == attacker_id:
            await self.next_turn(encounter)

    async def evaluate_end(self, encounter: Encounter) -> bool:
        """
        End the encounter when at most one conscious combatant remains, or when
        no hostile action has happened for the configured number of rounds.
        """
        if encounter.state != EncounterState.ACTIVE:
            return False
        if len(encounter.conscious_combatants()) <= 1:
            await self.end_encounter(encounter, reason="single_combatant")
            return True
        if encounter.last_hostile_at is not None:
            idle = (self._now() - encounter.last_hostile_at) / self.turn_timeout
            if idle >= self._config.idle_end_rounds:
                await self.end_encounter(encounter, reason="idle")
                return True
        return False

    async def end_encounter(self, encounter: Encounter, reason: str | None = None) -> None:
        """End the encounter and store its summary. Ending twice is a no-op."""
        if encounter.state == EncounterState.ENDED:
            return
        encounter.state = EncounterState.ENDED
        encounter.ended_at = self._now()
        encounter.end_reason = reason or "unspecified"
        logger.info(
            "Encounter ended",
            room_id=encounter.room_id,
            reason=encounter.end_reason,
            rounds=encounter.round,
        )
        self._publish(EncounterEndedEvent(room_id=encounter.room_id, reason=encounter.end_reason, rounds=encounter.round))
        await self._persist_summary(encounter)

    async def _persist_summary(self, encounter: Encounter) -> None:
        if self._summaries is None:
            return
        try:
            await self._summaries.insert(encounter.to_summary())
        except (DatabaseError, OSError) as e:
            logger.warning("Encounter summary persist failed", room_id=encounter.room_id, error=str(e))

    # --- Maintenance --------------------------------------------------------

    async def process_turn_timeouts(self, now: datetime | None = None) -> int:
        """
        Auto-defend and advance every overdue turn.

        Turns are overdue when no action has happened for the turn timeout and
        no manual action is holding the encounter.

        Returns:
            int: Number of turns that timed out
        """
        now = now or self._now()
        timed_out = 0
        for encounter in list(self.encounters.values()):
            if encounter.state != EncounterState.ACTIVE or encounter.manual_action_depth > 0:
                continue
            last = encounter.last_action_at or encounter.started_at
            if last is None or now - last < self.turn_timeout:
                continue
            current_id = encounter.current_turn_combatant_id()
            if current_id is None:
                continue
            await self._auto_defend(encounter, current_id)
            await self.next_turn(encounter, auto_defended=True)
            timed_out += 1
        return timed_out

    async def _auto_defend(self, encounter: Encounter, combatant_id: str) -> None:
        seat = encounter.get_combatant(combatant_id)
        if seat is not None:
            seat.is_defending = True
        combatant = None
        if self._combatants is not None:
            combatant = await self._combatants.get(combatant_id)
        if combatant is None:
            return
        try:
            stats = await self._stats.get_or_create_stats(combatant)
            await self._stats.update_stats(combatant, stats.model_copy(update={"is_defending": True}))
        except DatabaseError as e:
            logger.warning("Auto-defend failed", room_id=encounter.room_id, combatant_id=combatant_id, error=str(e))
            return
        logger.info("Turn timed out, combatant auto-defends", room_id=encounter.room_id, combatant_id=combatant_id)

    async def cleanup_stale_encounters(self, now: datetime | None = None) -> int:
        """
        Drop ended encounters and end-then-drop open ones older than the stale age.

        Returns:
            int: Number of encounters removed
        """
        now = now or self._now()
        stale_after = timedelta(seconds=self._config.stale_encounter_seconds)
        removed = 0
        for room_id, encounter in list(self.encounters.items()):
            started = encounter.started_at or encounter.created_at
            ended = encounter.state == EncounterState.ENDED
            if not ended and now - started <= stale_after:
                continue
            if not ended:
                await self.end_encounter(encounter, reason="stale")
            del self.encounters[room_id]
            removed += 1
            logger.info("Encounter cleaned up", room_id=room_id, reason="ended" if ended else "stale")
        return removed

    def get_encounter_stats(self) -> dict[str, int]:
        """Return counts of tracked encounters by state."""
        counts = {state.value: 0 for state in EncounterState}
        for encounter in self.encounters.values():
            counts[encounter.state.value] += 1
        return counts

    def shutdown(self) -> None:
        """Forget every encounter."""
        self.encounters.clear()
