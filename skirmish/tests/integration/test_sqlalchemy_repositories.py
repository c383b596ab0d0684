"""
SQLAlchemy repositories against a throwaway SQLite file.

Covers the durable backing end to end: schema creation, round-tripping of
aware timestamps through naive UTC columns, and a full container run with a
database URL configured.
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from skirmish.config.models import AppConfig, DatabaseConfig
from skirmish.container import ApplicationContainer
from skirmish.database import DatabaseManager
from skirmish.models.action_log import ActionLogEntry
from skirmish.models.combatant import Combatant, CombatantStatus
from skirmish.models.db import CombatantMemoryRecord, CombatEncounterRecord
from skirmish.models.modifier import DAMAGE_STAT, Modifier
from skirmish.persistence.repositories import (
    ActionLogRepository,
    CombatantRepository,
    CooldownRepository,
    EncounterSummaryRepository,
    MemoryRepository,
    ModifierRepository,
    StatsRepository,
)
from skirmish.tests.helpers import START, make_stats

# pylint: disable=redefined-outer-name  # Reason: pytest fixture parameter names must match fixture names

pytestmark = pytest.mark.integration


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path}/skirmish.db"


@pytest_asyncio.fixture
async def session_maker(database_url):
    manager = DatabaseManager(database_url=database_url)
    await manager.init_db()
    yield manager.get_session_maker()
    await manager.close()


@pytest.mark.asyncio
async def test_combatant_round_trip(session_maker):
    repository = CombatantRepository(session_maker)
    alice = Combatant(
        combatant_id="alice",
        name="Alice",
        room_id="arena",
        created_at=START,
        status=CombatantStatus.KNOCKED_OUT,
        lives=2,
        knocked_out_until=START + timedelta(hours=24),
    )

    await repository.save(alice)
    await repository.save(Combatant(combatant_id="bob", name="Bob", room_id="arena", created_at=START))

    assert await repository.get("alice") == alice
    assert await repository.get("nobody") is None
    assert [c.name for c in await repository.list_in_room("arena")] == ["Alice", "Bob"]

    moved = await repository.update_room("alice", "tavern")
    assert moved.room_id == "tavern"
    assert moved.knocked_out_until == alice.knocked_out_until
    assert await repository.update_room("nobody", "tavern") is None
    assert [c.name for c in await repository.list_in_room("arena")] == ["Bob"]


@pytest.mark.asyncio
async def test_stats_upsert(session_maker):
    repository = StatsRepository(session_maker)
    assert await repository.get("alice") is None

    await repository.save("alice", make_stats(strength=14))
    await repository.save("alice", make_stats(strength=14, is_defending=True))

    stored = await repository.get("alice")
    assert stored.combatant_id == "alice"
    assert stored.strength == 14
    assert stored.is_defending


@pytest.mark.asyncio
async def test_modifier_ledger(session_maker):
    repository = ModifierRepository(session_maker)
    await repository.insert(Modifier(combatant_id="bob", stat=DAMAGE_STAT, value=4, created_at=START))
    await repository.insert(
        Modifier(
            combatant_id="bob",
            stat=DAMAGE_STAT,
            value=2,
            created_at=START,
            expires_at=START + timedelta(minutes=1),
        )
    )
    await repository.insert(Modifier(combatant_id="bob", stat="strength", value=1, created_at=START))

    assert sum(m.value for m in await repository.find_active("bob", DAMAGE_STAT, START)) == 6
    later = await repository.find_active("bob", DAMAGE_STAT, START + timedelta(minutes=1))
    assert [m.value for m in later] == [4]

    assert await repository.delete_by_stat("bob", DAMAGE_STAT) == 2
    assert await repository.find_active("bob", DAMAGE_STAT, START) == []
    assert len(await repository.find_active("bob", "strength", START)) == 1


@pytest.mark.asyncio
async def test_cooldown_store(session_maker):
    store = CooldownRepository(session_maker)
    assert await store.get_last_used("alice", "attack") is None

    await store.set_last_used("alice", "attack", START)
    await store.set_last_used("alice", "attack", START + timedelta(seconds=5))

    assert await store.get_last_used("alice", "attack") == START + timedelta(seconds=5)
    assert await store.get_last_used("alice", "defend") is None


@pytest.mark.asyncio
async def test_action_log_returns_newest_oldest_first(session_maker):
    repository = ActionLogRepository(session_maker)
    for offset, action in enumerate(("attack", "defend", "hide")):
        await repository.append(
            ActionLogEntry(
                room_id="arena",
                actor_id="alice",
                actor_name="Alice",
                action=action,
                timestamp=START + timedelta(seconds=offset),
            )
        )

    entries = await repository.list_for_room("arena", limit=2)

    assert [e.action for e in entries] == ["defend", "hide"]
    assert entries[-1].timestamp == START + timedelta(seconds=2)
    assert await repository.list_for_room("cellar") == []


@pytest.mark.asyncio
async def test_summaries_and_memories_are_stored(session_maker):
    await EncounterSummaryRepository(session_maker).insert(
        {
            "room_id": "arena",
            "guild_id": None,
            "state": "ended",
            "round": 3,
            "created_at": START.isoformat(),
            "started_at": START.isoformat(),
            "ended_at": (START + timedelta(minutes=2)).isoformat(),
            "end_reason": "fled",
            "combatants": [],
        }
    )
    await MemoryRepository(session_maker, now_provider=lambda: START).add_memory("alice", "I fled the arena.")

    async with session_maker() as session:
        record = (await session.execute(select(CombatEncounterRecord))).scalar_one()
        memories = (await session.execute(select(func.count()).select_from(CombatantMemoryRecord))).scalar_one()

    assert record.end_reason == "fled"
    assert record.rounds == 3
    assert record.summary["state"] == "ended"
    assert memories == 1


@pytest.mark.asyncio
async def test_container_runs_on_the_database(database_url, clock, dice):
    container = ApplicationContainer(
        config=AppConfig(database=DatabaseConfig(url=database_url)),
        dice=dice,
        now_provider=clock,
    )
    await container.initialize()
    try:
        await container.location_service.enter_room("alice", "Alice", "arena")
        await container.location_service.enter_room("bob", "Bob", "arena")
        dice.push(20)

        result = await container.command_dispatcher.process_message("arena", "alice", "🫥")

        assert result.results[0].response.startswith("-# 🫥 [ Alice slips into the shadows")
        assert await container.cooldown_service.get_remaining_cooldown("alice", "hide", 15_000) == 15_000
        assert [e.action for e in await container.action_log.get_recent_actions("arena")] == ["hide"]
        assert (await container.stats_repository.get("alice")).advantage_next_attack
    finally:
        await container.shutdown()
