"""
Unit tests for CooldownService.
"""

import pytest

from skirmish.persistence.memory import InMemoryCooldownStore
from skirmish.services.cooldown_service import CooldownService

# pylint: disable=redefined-outer-name  # Reason: pytest fixture parameter names must match fixture names


@pytest.fixture
def cooldowns(clock) -> CooldownService:
    return CooldownService(InMemoryCooldownStore(), now_provider=clock)


@pytest.mark.asyncio
async def test_unused_action_is_ready(cooldowns):
    assert await cooldowns.get_remaining_cooldown("alice", "attack", 30_000) == 0


@pytest.mark.asyncio
async def test_remaining_counts_down(cooldowns, clock):
    await cooldowns.set_used("alice", "attack")
    assert await cooldowns.get_remaining_cooldown("alice", "attack", 30_000) == 30_000

    clock.advance(seconds=12, milliseconds=500)
    assert await cooldowns.get_remaining_cooldown("alice", "attack", 30_000) == 17_500

    clock.advance(seconds=17.5)
    assert await cooldowns.get_remaining_cooldown("alice", "attack", 30_000) == 0


@pytest.mark.asyncio
async def test_cooldowns_are_per_actor_and_action(cooldowns):
    await cooldowns.set_used("alice", "attack")
    assert await cooldowns.get_remaining_cooldown("alice", "defend", 30_000) == 0
    assert await cooldowns.get_remaining_cooldown("bob", "attack", 30_000) == 0


@pytest.mark.asyncio
async def test_zero_cooldown_never_blocks(cooldowns):
    await cooldowns.set_used("alice", "wave")
    assert await cooldowns.get_remaining_cooldown("alice", "wave", 0) == 0


@pytest.mark.parametrize(
    ("remaining_ms", "minutes"),
    [(1, 1), (59_999, 1), (60_000, 1), (60_001, 2), (3_600_000, 60)],
)
def test_remaining_minutes_round_up(remaining_ms, minutes):
    assert CooldownService.remaining_minutes(remaining_ms) == minutes
