"""
Unit tests for the room action log.
"""

import pytest

from skirmish.persistence.memory import InMemoryActionLogRepository
from skirmish.services.action_log import ActionLog

# pylint: disable=redefined-outer-name  # Reason: pytest fixture parameter names must match fixture names


@pytest.fixture
def action_log(clock) -> ActionLog:
    return ActionLog(InMemoryActionLogRepository(max_entries_per_room=3), now_provider=clock)


@pytest.mark.asyncio
async def test_entries_are_stamped_and_scoped_by_room(action_log, clock):
    entry = await action_log.log_action(
        room_id="arena", actor_id="alice", actor_name="Alice", action="attack", emoji="🗡️", target="Bob"
    )
    await action_log.log_action(room_id="cellar", actor_id="bob", actor_name="Bob", action="hide")

    assert entry.timestamp == clock.now
    recent = await action_log.get_recent_actions("arena")
    assert [e.action for e in recent] == ["attack"]


@pytest.mark.asyncio
async def test_room_log_keeps_only_the_newest(action_log, clock):
    for action in ("attack", "defend", "hide", "flee"):
        await action_log.log_action(room_id="arena", actor_id="alice", actor_name="Alice", action=action)
        clock.advance(seconds=1)

    recent = await action_log.get_recent_actions("arena")
    assert [e.action for e in recent] == ["defend", "hide", "flee"]
    assert [e.action for e in await action_log.get_recent_actions("arena", limit=1)] == ["flee"]


@pytest.mark.asyncio
async def test_summary_lines(action_log):
    await action_log.log_action(
        room_id="arena", actor_id="alice", actor_name="Alice", action="attack", emoji="🗡️", target="Bob"
    )
    await action_log.log_action(room_id="arena", actor_id="bob", actor_name="Bob", action="dance", is_custom=True)

    assert await action_log.get_summary("arena") == "🗡️ Alice used attack Bob\nBob used dance"


@pytest.mark.asyncio
async def test_empty_room_summary(action_log):
    assert await action_log.get_summary("nowhere") == ""
