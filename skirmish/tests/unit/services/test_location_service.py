"""
Unit tests for LocationService.
"""

import pytest

from skirmish.models.combatant import CombatantStatus


@pytest.mark.asyncio
async def test_snapshot_lists_occupants_with_room_name(location_service, add_combatant):
    await add_combatant("alice")
    await add_combatant("bob", room_id="cellar")

    snapshot = await location_service.get_location_and_combatants("arena")

    assert snapshot.location_name == "The Arena"
    assert [c.combatant_id for c in snapshot.combatants] == ["alice"]
    assert snapshot.find_by_name("  ALICE ").combatant_id == "alice"
    assert snapshot.find_by_name("Ali") is None


@pytest.mark.asyncio
async def test_unknown_room_has_no_name(location_service):
    snapshot = await location_service.get_location_and_combatants("void")
    assert snapshot.location_name is None
    assert snapshot.combatants == []


@pytest.mark.asyncio
async def test_enter_room_registers_newcomer(location_service, combatant_repository, clock):
    created = await location_service.enter_room("dana", "Dana", "arena")

    assert created.created_at == clock.now
    assert created.lives == 3
    assert created.status == CombatantStatus.ALIVE
    assert await combatant_repository.get("dana") == created


@pytest.mark.asyncio
async def test_enter_room_moves_known_combatant(location_service, add_combatant, clock):
    alice = await add_combatant("alice")

    same = await location_service.enter_room("alice", "Whoever", "arena")
    moved = await location_service.enter_room("alice", "Whoever", "cellar")

    assert same == alice
    assert moved.room_id == "cellar"
    assert moved.name == "Alice"
    assert moved.created_at == alice.created_at


@pytest.mark.asyncio
async def test_relocate_missing_combatant_raises(location_service, add_combatant):
    ghost = (await add_combatant("ghost")).model_copy(update={"combatant_id": "nobody"})
    with pytest.raises(LookupError):
        await location_service.relocate(ghost, "cellar")
