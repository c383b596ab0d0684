"""
Unit tests for CombatEncounterService: initiative, turns, lifecycle and maintenance.
"""

from datetime import timedelta

import pytest

from skirmish.config.models import CombatConfig
from skirmish.events.combat_events import TurnChangedEvent
from skirmish.exceptions import CombatError, FleeCooldownError, KnockoutCooldownError
from skirmish.models.action_result import ActionResult
from skirmish.models.combatant import Combatant
from skirmish.models.encounter import EncounterState
from skirmish.services.combat_encounter_service import CombatEncounterService, parse_combat_intent

# pylint: disable=redefined-outer-name  # Reason: pytest fixture parameter names must match fixture names


async def _started(encounter_service, dice, *combatants, rolls, room_id="arena", guild_id=None):
    encounter = await encounter_service.create_encounter(room_id, list(combatants), guild_id=guild_id)
    dice.push(*rolls)
    await encounter_service.roll_initiative(encounter, list(combatants))
    return encounter


# --- Initiative and turns --------------------------------------------------


@pytest.mark.asyncio
async def test_initiative_orders_by_roll_plus_dex(encounter_service, add_combatant, dice, publisher):
    alice = await add_combatant("alice", dexterity=8)
    bob = await add_combatant("bob", dexterity=16)
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[14, 12])

    assert encounter.state == EncounterState.ACTIVE
    assert encounter.round == 1
    assert encounter.initiative_order == ["bob", "alice"]
    assert encounter.get_combatant("bob").initiative == 15
    assert encounter.get_combatant("alice").initiative == 13
    assert "combat.encounter.started" in publisher.types()


@pytest.mark.asyncio
async def test_initiative_ties_keep_seating_order(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[12, 12])
    assert encounter.initiative_order == ["alice", "bob"]


@pytest.mark.asyncio
async def test_seats_take_hp_and_ac_from_stats_minus_damage(
    encounter_service, add_combatant, dice, modifier_service
):
    alice = await add_combatant("alice", dexterity=14, hp=12)
    bob = await add_combatant("bob")
    await modifier_service.create_modifier("damage", 5, combatant_id="alice")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[10, 10])

    seat = encounter.get_combatant("alice")
    assert seat.max_hp == 12
    assert seat.current_hp == 7
    assert seat.armor_class == 12


@pytest.mark.asyncio
async def test_next_turn_wraps_into_a_new_round(encounter_service, add_combatant, dice, publisher):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    await encounter_service.next_turn(encounter)
    assert encounter_service.get_current_turn_combatant_id(encounter) == "bob"
    assert encounter.round == 1

    await encounter_service.next_turn(encounter)
    assert encounter_service.get_current_turn_combatant_id(encounter) == "alice"
    assert encounter.round == 2
    assert publisher.types().count("combat.encounter.turn") == 2


@pytest.mark.asyncio
async def test_is_turn(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])
    assert encounter_service.is_turn(encounter, "alice")
    assert not encounter_service.is_turn(encounter, "bob")


@pytest.mark.asyncio
async def test_turn_enforcement_can_be_disabled(stats_service, dice, add_combatant):
    service = CombatEncounterService(stats_service, dice, config=CombatConfig(enable_turn_enforcement=False))
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(service, dice, alice, bob, rolls=[15, 5])
    assert service.is_turn(encounter, "bob")


@pytest.mark.asyncio
async def test_add_combatant_keeps_the_current_turn(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    carol = await add_combatant("carol")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 10])
    await encounter_service.next_turn(encounter)

    dice.push(20)
    seat = await encounter_service.add_combatant(encounter, carol)

    assert seat is not None
    assert encounter.initiative_order == ["carol", "alice", "bob"]
    assert encounter.current_turn_combatant_id() == "bob"
    assert await encounter_service.add_combatant(encounter, carol) is None


# --- Creation guards -------------------------------------------------------


@pytest.mark.asyncio
async def test_create_returns_the_open_encounter(encounter_service, add_combatant):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    first = await encounter_service.create_encounter("arena", [alice, bob])
    second = await encounter_service.create_encounter("arena", [alice])
    assert first is second


@pytest.mark.asyncio
async def test_guild_cap_reclaims_the_oldest(stats_service, dice, add_combatant, clock, summary_repository):
    service = CombatEncounterService(
        stats_service,
        dice,
        summary_repository=summary_repository,
        config=CombatConfig(max_encounters_per_guild=1),
        now_provider=clock,
    )
    alice = await add_combatant("alice")
    bob = await add_combatant("bob", room_id="cellar")
    old = await service.create_encounter("arena", [alice], guild_id="g1")
    clock.advance(seconds=5)
    await service.create_encounter("cellar", [bob], guild_id="g1")

    assert old.state == EncounterState.ENDED
    assert old.end_reason == "capacity_reclaim"
    assert summary_repository.summaries[0]["end_reason"] == "capacity_reclaim"


@pytest.mark.asyncio
async def test_ensure_starts_combat_unless_deferred(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")

    pending = await encounter_service.ensure_encounter_for_attack("arena", alice, bob, defer_start=True)
    assert pending.state == EncounterState.PENDING
    assert dice.calls == []

    dice.push(11, 9)
    started = await encounter_service.ensure_encounter_for_attack("arena", alice, bob)
    assert started is pending
    assert started.state == EncounterState.ACTIVE


@pytest.mark.asyncio
async def test_ensure_seats_a_newcomer_in_a_running_fight(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    carol = await add_combatant("carol")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    dice.push(7)
    same = await encounter_service.ensure_encounter_for_attack("arena", carol, alice)

    assert same is encounter
    assert encounter.get_combatant("carol") is not None
    assert encounter.current_turn_combatant_id() == "alice"


@pytest.mark.asyncio
async def test_ensure_refuses_recent_fleer(encounter_service, add_combatant, clock):
    alice = await add_combatant("alice", combatant_fields={"combat_cooldown_until": clock.now + timedelta(hours=2)})
    bob = await add_combatant("bob")
    with pytest.raises(FleeCooldownError):
        await encounter_service.ensure_encounter_for_attack("arena", alice, bob)


@pytest.mark.asyncio
async def test_ensure_refuses_recovering_defender(encounter_service, add_combatant, clock):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob", combatant_fields={"knocked_out_until": clock.now + timedelta(hours=2)})
    with pytest.raises(KnockoutCooldownError):
        await encounter_service.ensure_encounter_for_attack("arena", alice, bob)


@pytest.mark.asyncio
async def test_ensure_refuses_combatant_fighting_elsewhere(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    carol = await add_combatant("carol", room_id="cellar")
    await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    with pytest.raises(CombatError) as excinfo:
        await encounter_service.ensure_encounter_for_attack("cellar", alice, carol)
    assert excinfo.value.reason == "already_in_encounter"


# --- Attack results and end conditions -------------------------------------


@pytest.mark.asyncio
async def test_hit_lowers_seat_hp_and_passes_the_turn(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob", is_defending=True)
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    await encounter_service.handle_attack_result(
        encounter, "alice", "bob", ActionResult(result="hit", message="", damage=4)
    )

    seat = encounter.get_combatant("bob")
    assert seat.current_hp == 6
    assert not seat.is_defending
    assert encounter.last_hostile_at is not None
    assert encounter.current_turn_combatant_id() == "bob"


@pytest.mark.asyncio
async def test_knockout_ends_a_duel(encounter_service, add_combatant, dice, summary_repository):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    await encounter_service.handle_attack_result(
        encounter, "alice", "bob", ActionResult(result="knockout", message="", damage=3)
    )

    assert encounter.state == EncounterState.ENDED
    assert encounter.end_reason == "single_combatant"
    seat = encounter.get_combatant("bob")
    assert seat.current_hp == 0
    assert "unconscious" in seat.conditions
    summary = summary_repository.summaries[-1]
    assert summary["room_id"] == "arena"
    assert {c["combatant_id"]: c["final_hp"] for c in summary["combatants"]}["bob"] == 0


@pytest.mark.asyncio
async def test_miss_passes_the_turn_without_damage(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    await encounter_service.handle_attack_result(encounter, "alice", "bob", ActionResult(result="miss", message=""))

    assert encounter.get_combatant("bob").current_hp == 10
    assert encounter.last_hostile_at is None
    assert encounter.current_turn_combatant_id() == "bob"


@pytest.mark.asyncio
async def test_idle_encounter_ends(encounter_service, add_combatant, dice, clock):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])
    encounter_service.mark_hostile(encounter)

    clock.advance(seconds=60)
    assert not await encounter_service.evaluate_end(encounter)

    clock.advance(seconds=30)
    assert await encounter_service.evaluate_end(encounter)
    assert encounter.end_reason == "idle"


@pytest.mark.asyncio
async def test_end_encounter_twice_is_a_no_op(encounter_service, add_combatant, dice, summary_repository):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    await encounter_service.end_encounter(encounter, reason="first")
    await encounter_service.end_encounter(encounter, reason="second")

    assert encounter.end_reason == "first"
    assert len(summary_repository.summaries) == 1


@pytest.mark.asyncio
async def test_is_in_active_combat(encounter_service, add_combatant, dice):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    assert not encounter_service.is_in_active_combat("arena")
    await _started(encounter_service, dice, alice, bob, rolls=[15, 5])
    assert encounter_service.is_in_active_combat("arena")
    assert encounter_service.is_in_active_combat("arena", "bob")
    assert not encounter_service.is_in_active_combat("arena", "carol")


# --- Maintenance -----------------------------------------------------------


@pytest.mark.asyncio
async def test_overdue_turn_auto_defends_and_advances(
    encounter_service, add_combatant, dice, clock, stats_repository, publisher
):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    clock.advance(seconds=29)
    assert await encounter_service.process_turn_timeouts() == 0

    clock.advance(seconds=1)
    assert await encounter_service.process_turn_timeouts() == 1

    assert encounter.current_turn_combatant_id() == "bob"
    assert encounter.get_combatant("alice").is_defending
    assert (await stats_repository.get("alice")).is_defending
    turn_events = [e for e in publisher.events if isinstance(e, TurnChangedEvent)]
    assert turn_events[-1].auto_defended


@pytest.mark.asyncio
async def test_manual_action_holds_the_turn_timer(encounter_service, add_combatant, dice, clock):
    alice = await add_combatant("alice")
    bob = await add_combatant("bob")
    encounter = await _started(encounter_service, dice, alice, bob, rolls=[15, 5])

    async with encounter_service.manual_action(encounter):
        encounter_service.begin_manual_action(encounter)
        clock.advance(minutes=5)
        assert await encounter_service.process_turn_timeouts() == 0
        encounter_service.end_manual_action(encounter)
        assert await encounter_service.process_turn_timeouts() == 0

    assert encounter.manual_action_depth == 0
    assert encounter.last_action_at == clock.now
    assert await encounter_service.process_turn_timeouts() == 0
    assert encounter.current_turn_combatant_id() == "alice"


@pytest.mark.asyncio
async def test_cleanup_drops_ended_and_stale_encounters(stats_service, dice, add_combatant, clock):
    service = CombatEncounterService(
        stats_service, dice, config=CombatConfig(stale_encounter_seconds=600), now_provider=clock
    )
    alice = await add_combatant("alice")
    bob = await add_combatant("bob", room_id="cellar")
    carol = await add_combatant("carol", room_id="attic")

    stale = await service.create_encounter("arena", [alice])
    finished = await service.create_encounter("cellar", [bob])
    await service.end_encounter(finished, reason="single_combatant")
    clock.advance(seconds=601)
    await service.create_encounter("attic", [carol])

    removed = await service.cleanup_stale_encounters()

    assert removed == 2
    assert stale.end_reason == "stale"
    assert service.get_encounter("arena") is None
    assert service.get_encounter("cellar") is None
    assert service.get_encounter("attic") is not None
    assert service.get_encounter_stats() == {"pending": 1, "active": 0, "ended": 0}


# --- Intent heuristic ------------------------------------------------------


def _named(*names: str) -> list[Combatant]:
    return [Combatant(combatant_id=name.lower(), name=name) for name in names]


def test_intent_prefers_the_longest_name():
    intent = parse_combat_intent("I slash at Bobby with my sword", _named("Bob", "Bobby"))
    assert intent is not None
    assert intent.action == "attack"
    assert intent.target == "Bobby"


def test_intent_reads_defend_verbs():
    intent = parse_combat_intent("I raise my shield to block", _named("Bob"))
    assert intent.action == "defend"
    assert intent.target is None


def test_intent_none_without_a_verb():
    assert parse_combat_intent("hello there Bob", _named("Bob")) is None
