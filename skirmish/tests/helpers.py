"""
Test doubles shared across the Skirmish test suite.
"""

from datetime import UTC, datetime, timedelta

from skirmish.events.event_types import BaseEvent
from skirmish.models.stats import CombatantStats
from skirmish.services.combat_event_publisher import CombatEventPublisher

START = datetime(2024, 7, 1, 12, 0, tzinfo=UTC)


class ScriptedDice:
    """Dice that return pre-scripted values in order and record every roll."""

    def __init__(self, *rolls: int) -> None:
        self._rolls = list(rolls)
        self.calls: list[tuple[int, int]] = []

    def push(self, *rolls: int) -> None:
        self._rolls.extend(rolls)

    @property
    def remaining(self) -> int:
        return len(self._rolls)

    def roll_die(self, sides: int) -> int:
        assert self._rolls, f"ScriptedDice exhausted while rolling d{sides}"
        value = self._rolls.pop(0)
        assert 1 <= value <= sides, f"scripted {value} is not a d{sides} face"
        self.calls.append((sides, value))
        return value


class FixedClock:
    """Injectable now_provider that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingPublisher(CombatEventPublisher):
    """Publisher that keeps events in a list instead of queueing them."""

    def __init__(self) -> None:
        super().__init__(None)
        self.events: list[BaseEvent] = []

    def publish(self, event: BaseEvent) -> bool:
        self.events.append(event)
        return True

    def types(self) -> list[str]:
        return [event.event_type for event in self.events]


def make_stats(**overrides: int | bool) -> CombatantStats:
    """All-10 stats with 10 HP, overridden per test."""
    values: dict = {
        "strength": 10,
        "dexterity": 10,
        "constitution": 10,
        "intelligence": 10,
        "wisdom": 10,
        "charisma": 10,
        "hp": 10,
    }
    values.update(overrides)
    return CombatantStats(**values)
