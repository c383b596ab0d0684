"""
Shared fixtures for the Skirmish test suite.

Dice are scripted and the clock is fixed so every combat outcome is exact.
Storage is the in-memory backing unless a test asks for SQLAlchemy.
"""

import os
from collections.abc import Awaitable, Callable
from datetime import timedelta

import pytest
import pytest_asyncio

os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")

from skirmish.config.models import AppConfig, CombatConfig, DatabaseConfig  # noqa: E402
from skirmish.container import ApplicationContainer  # noqa: E402
from skirmish.models.combatant import Combatant  # noqa: E402
from skirmish.persistence.memory import (  # noqa: E402
    InMemoryCombatantRepository,
    InMemoryEncounterSummaryRepository,
    InMemoryModifierRepository,
    InMemoryStatsRepository,
)
from skirmish.services.battle_service import BattleService  # noqa: E402
from skirmish.services.combat_encounter_service import CombatEncounterService  # noqa: E402
from skirmish.services.combatant_stats_service import CombatantStatsService  # noqa: E402
from skirmish.services.location_service import LocationService  # noqa: E402
from skirmish.services.modifier_service import ModifierService  # noqa: E402
from skirmish.tests.helpers import FixedClock, RecordingPublisher, ScriptedDice, make_stats  # noqa: E402

# pylint: disable=redefined-outer-name  # Reason: pytest fixture parameter names must match fixture names


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def dice() -> ScriptedDice:
    return ScriptedDice()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def combat_config() -> CombatConfig:
    return CombatConfig()


@pytest.fixture
def combatant_repository() -> InMemoryCombatantRepository:
    return InMemoryCombatantRepository()


@pytest.fixture
def stats_repository() -> InMemoryStatsRepository:
    return InMemoryStatsRepository()


@pytest.fixture
def modifier_repository() -> InMemoryModifierRepository:
    return InMemoryModifierRepository()


@pytest.fixture
def summary_repository() -> InMemoryEncounterSummaryRepository:
    return InMemoryEncounterSummaryRepository()


@pytest.fixture
def stats_service(stats_repository) -> CombatantStatsService:
    return CombatantStatsService(stats_repository)


@pytest.fixture
def modifier_service(modifier_repository, stats_repository, clock) -> ModifierService:
    return ModifierService(modifier_repository, stats_repository, now_provider=clock)


@pytest.fixture
def location_service(combatant_repository, clock) -> LocationService:
    return LocationService(combatant_repository, room_names={"arena": "The Arena"}, now_provider=clock)


@pytest.fixture
def encounter_service(
    stats_service, dice, combatant_repository, modifier_service, summary_repository, publisher, combat_config, clock
) -> CombatEncounterService:
    return CombatEncounterService(
        stats_service=stats_service,
        dice=dice,
        combatant_repository=combatant_repository,
        modifier_service=modifier_service,
        summary_repository=summary_repository,
        event_publisher=publisher,
        config=combat_config,
        now_provider=clock,
    )


@pytest.fixture
def battle_service(
    combatant_repository, stats_service, modifier_service, dice, location_service, publisher, encounter_service, clock
) -> BattleService:
    return BattleService(
        combatant_repository=combatant_repository,
        stats_service=stats_service,
        modifier_service=modifier_service,
        dice=dice,
        location_service=location_service,
        event_publisher=publisher,
        encounter_service=encounter_service,
        now_provider=clock,
    )


@pytest.fixture
def add_combatant(
    combatant_repository, stats_repository, clock
) -> Callable[..., Awaitable[Combatant]]:
    """Factory storing a combatant with explicit stats; extra keywords go to the stats."""

    async def _add(
        combatant_id: str,
        name: str | None = None,
        room_id: str | None = "arena",
        *,
        lives: int = 3,
        combatant_fields: dict | None = None,
        **stats: int | bool,
    ) -> Combatant:
        combatant = Combatant(
            combatant_id=combatant_id,
            name=name or combatant_id.capitalize(),
            room_id=room_id,
            created_at=clock.now - timedelta(days=30),
            lives=lives,
            **(combatant_fields or {}),
        )
        await combatant_repository.save(combatant)
        await stats_repository.save(combatant_id, make_stats(**stats))
        return combatant

    return _add


@pytest_asyncio.fixture
async def container(clock, dice):
    """Initialized container on in-memory storage with scripted dice and the fixed clock."""
    app_container = ApplicationContainer(
        config=AppConfig(database=DatabaseConfig(url=None)),
        dice=dice,
        now_provider=clock,
        room_names={"arena": "The Arena"},
    )
    await app_container.initialize()
    yield app_container
    await app_container.shutdown()


@pytest.fixture
def enlist(container, clock) -> Callable[..., Awaitable[Combatant]]:
    """Factory storing a combatant with explicit stats in the container's repositories."""

    async def _enlist(
        combatant_id: str,
        name: str | None = None,
        room_id: str | None = "arena",
        *,
        combatant_fields: dict | None = None,
        **stats: int | bool,
    ) -> Combatant:
        combatant = Combatant(
            combatant_id=combatant_id,
            name=name or combatant_id.capitalize(),
            room_id=room_id,
            created_at=clock.now - timedelta(days=30),
            **(combatant_fields or {}),
        )
        await container.combatant_repository.save(combatant)
        await container.stats_repository.save(combatant_id, make_stats(**stats))
        return combatant

    return _enlist
