"""
Encounter models for in-memory turn state.

Encounters live only in process memory while they are running. A summary is
written to storage when they end.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class EncounterState(str, Enum):
    """Lifecycle of an encounter: pending -> active -> ended."""

    PENDING = "pending"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class EncounterCombatant:
    """A combatant's seat in one encounter."""

    combatant_id: str
    name: str
    initiative: int | None = None
    current_hp: int = 10
    max_hp: int = 10
    armor_class: int = 10
    is_defending: bool = False
    conditions: list[str] = field(default_factory=list)
    side: str = "neutral"

    def is_conscious(self) -> bool:
        """Return True while the combatant still has hit points."""
        return self.current_hp > 0


@dataclass
class Encounter:
    """Room-scoped combat session with ordered turns."""

    room_id: str
    guild_id: str | None = None
    state: EncounterState = EncounterState.PENDING
    combatants: list[EncounterCombatant] = field(default_factory=list)
    initiative_order: list[str] = field(default_factory=list)
    current_turn_index: int = 0
    round: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    ended_at: datetime | None = None
    last_action_at: datetime | None = None
    last_hostile_at: datetime | None = None
    end_reason: str | None = None
    manual_action_depth: int = 0
    source_message_id: str | None = None

    def get_combatant(self, combatant_id: str) -> EncounterCombatant | None:
        """Return the seat for a combatant, or None."""
        for combatant in self.combatants:
            if combatant.combatant_id == combatant_id:
                return combatant
        return None

    def current_turn_combatant_id(self) -> str | None:
        """Return the id of the combatant whose turn it is."""
        if not self.initiative_order or self.current_turn_index >= len(self.initiative_order):
            return None
        return self.initiative_order[self.current_turn_index]

    def advance_turn(self) -> None:
        """Advance to the next turn, starting a new round when the order wraps."""
        self.current_turn_index += 1
        if self.current_turn_index >= len(self.initiative_order):
            self.current_turn_index = 0
            self.round += 1

    def conscious_combatants(self) -> list[EncounterCombatant]:
        """Get all combatants that still have hit points."""
        return [c for c in self.combatants if c.is_conscious()]

    def is_open(self) -> bool:
        """Return True for pending and active encounters."""
        return self.state != EncounterState.ENDED

    def to_summary(self) -> dict[str, Any]:
        """Serialize the encounter for summary persistence and the HTTP surface."""
        return {
            "room_id": self.room_id,
            "guild_id": self.guild_id,
            "state": self.state.value,
            "round": self.round,
            "current_turn": self.current_turn_combatant_id(),
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "end_reason": self.end_reason,
            "initiative_order": list(self.initiative_order),
            "combatants": [
                {
                    "combatant_id": c.combatant_id,
                    "name": c.name,
                    "initiative": c.initiative,
                    "final_hp": c.current_hp,
                    "max_hp": c.max_hp,
                    "armor_class": c.armor_class,
                    "is_defending": c.is_defending,
                    "conditions": list(c.conditions),
                    "side": c.side,
                }
                for c in self.combatants
            ],
        }
