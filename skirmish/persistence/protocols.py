"""
Repository protocols for the Skirmish persistence layer.

Explicit typing.Protocol definitions for every storage collaborator the combat
engine depends on. Services depend on these protocols; the container decides
whether the in-memory or the SQLAlchemy implementation backs them.
"""

# pylint: disable=unnecessary-ellipsis  # Reason: Protocol method bodies use ... per typing.Protocol convention

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from skirmish.models.action_log import ActionLogEntry
    from skirmish.models.combatant import Combatant
    from skirmish.models.modifier import Modifier
    from skirmish.models.stats import CombatantStats


class CombatantRepositoryProtocol(Protocol):
    """Protocol for combatant persistence operations."""

    async def get(self, combatant_id: str) -> Combatant | None:
        """Get a combatant by ID."""
        ...

    async def save(self, combatant: Combatant) -> Combatant:
        """Insert or replace a combatant snapshot."""
        ...

    async def list_in_room(self, room_id: str) -> list[Combatant]:
        """Get all combatants currently in a room."""
        ...

    async def update_room(self, combatant_id: str, room_id: str) -> Combatant | None:
        """Move a combatant to another room."""
        ...


class StatsRepositoryProtocol(Protocol):
    """Protocol for base stat persistence."""

    async def get(self, combatant_id: str) -> CombatantStats | None:
        """Get the stored stats for a combatant."""
        ...

    async def save(self, combatant_id: str, stats: CombatantStats) -> CombatantStats:
        """Insert or replace the stats for a combatant."""
        ...


class ModifierRepositoryProtocol(Protocol):
    """Protocol for the stat modifier ledger."""

    async def insert(self, modifier: Modifier) -> Modifier:
        """Append a modifier."""
        ...

    async def find_active(self, combatant_id: str, stat: str, now: datetime) -> list[Modifier]:
        """Return modifiers whose expiry is unset or strictly after ``now``."""
        ...

    async def delete_by_stat(self, combatant_id: str, stat: str) -> int:
        """Delete every modifier of one stat for a combatant, returning the count."""
        ...


class CooldownStoreProtocol(Protocol):
    """Protocol for keyed (actor, action) last-used timestamps."""

    async def get_last_used(self, actor_id: str, action: str) -> datetime | None:
        """Return when the actor last used the action successfully."""
        ...

    async def set_last_used(self, actor_id: str, action: str, used_at: datetime) -> None:
        """Record a successful use."""
        ...


class ActionLogRepositoryProtocol(Protocol):
    """Protocol for the append-only action log."""

    async def append(self, entry: ActionLogEntry) -> None:
        """Append an entry."""
        ...

    async def list_for_room(self, room_id: str, limit: int = 50) -> list[ActionLogEntry]:
        """Return the most recent entries for a room, oldest first."""
        ...


class EncounterSummaryRepositoryProtocol(Protocol):
    """Protocol for ended encounter summaries."""

    async def insert(self, summary: dict[str, Any]) -> None:
        """Store an encounter summary."""
        ...


class MemoryStoreProtocol(Protocol):
    """Protocol for per-combatant memory records."""

    async def add_memory(self, combatant_id: str, text: str) -> None:
        """Attach a memory to a combatant."""
        ...


class DiceProtocol(Protocol):
    """Protocol for the dice source."""

    def roll_die(self, sides: int) -> int:
        """Return a uniformly distributed integer in [1, sides]."""
        ...
