"""
Unit tests for CombatantStatsService.
"""

from datetime import UTC, datetime

import pytest

from skirmish.exceptions import ConfigurationError
from skirmish.game.stats_generator import generate_stats
from skirmish.models.combatant import Combatant
from skirmish.services.combatant_stats_service import CombatantStatsService
from skirmish.tests.helpers import make_stats


def _combatant() -> Combatant:
    return Combatant(combatant_id="eve", name="Eve", created_at=datetime(1970, 1, 1, tzinfo=UTC))


@pytest.mark.asyncio
async def test_stats_generated_and_stored_on_first_access(stats_service, stats_repository):
    stats = await stats_service.get_or_create_stats(_combatant())
    assert stats.hp == 13
    stored = await stats_repository.get("eve")
    assert stored == stats


@pytest.mark.asyncio
async def test_stored_stats_returned_unchanged(stats_service, stats_repository):
    await stats_repository.save("eve", make_stats(strength=14, hp=12))
    stats = await stats_service.get_or_create_stats(_combatant())
    assert stats.strength == 14
    assert stats.hp == 12


@pytest.mark.asyncio
async def test_regenerate_resets_flags_and_rerolls_from_creation(stats_service, stats_repository):
    await stats_repository.save("eve", make_stats(is_defending=True, is_hidden=True, advantage_next_attack=True))
    regenerated = await stats_service.regenerate_stats(_combatant())
    expected = generate_stats(0)
    assert regenerated.abilities() == expected.abilities()
    assert not regenerated.is_defending
    assert not regenerated.is_hidden
    assert not regenerated.advantage_next_attack


def test_missing_repository_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        CombatantStatsService(None)
