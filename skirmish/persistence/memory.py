"""
In-memory persistence backing.

Used when no database URL is configured and throughout the unit tests. Each
store keeps frozen snapshots, so callers can never mutate stored state by
accident.
"""

from collections import defaultdict
from datetime import datetime
from typing import Any

from skirmish.models.action_log import ActionLogEntry
from skirmish.models.combatant import Combatant
from skirmish.models.modifier import Modifier
from skirmish.models.stats import CombatantStats
from skirmish.structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class InMemoryCombatantRepository:
    """Combatant snapshots keyed by id."""

    def __init__(self, combatants: list[Combatant] | None = None) -> None:
        self._combatants: dict[str, Combatant] = {}
        for combatant in combatants or []:
            self._combatants[combatant.combatant_id] = combatant

    async def get(self, combatant_id: str) -> Combatant | None:
        return self._combatants.get(combatant_id)

    async def save(self, combatant: Combatant) -> Combatant:
        self._combatants[combatant.combatant_id] = combatant
        return combatant

    async def list_in_room(self, room_id: str) -> list[Combatant]:
        return [c for c in self._combatants.values() if c.room_id == room_id]

    async def update_room(self, combatant_id: str, room_id: str) -> Combatant | None:
        current = self._combatants.get(combatant_id)
        if current is None:
            return None
        moved = current.model_copy(update={"room_id": room_id})
        self._combatants[combatant_id] = moved
        return moved


class InMemoryStatsRepository:
    """Base stats keyed by combatant id."""

    def __init__(self) -> None:
        self._stats: dict[str, CombatantStats] = {}

    async def get(self, combatant_id: str) -> CombatantStats | None:
        return self._stats.get(combatant_id)

    async def save(self, combatant_id: str, stats: CombatantStats) -> CombatantStats:
        stored = stats.model_copy(update={"combatant_id": combatant_id})
        self._stats[combatant_id] = stored
        return stored


class InMemoryModifierRepository:
    """Append-only modifier ledger keyed by (combatant, stat)."""

    def __init__(self) -> None:
        self._modifiers: dict[tuple[str, str], list[Modifier]] = defaultdict(list)

    async def insert(self, modifier: Modifier) -> Modifier:
        self._modifiers[(modifier.combatant_id, modifier.stat)].append(modifier)
        return modifier

    async def find_active(self, combatant_id: str, stat: str, now: datetime) -> list[Modifier]:
        return [m for m in self._modifiers.get((combatant_id, stat), []) if m.is_active(now)]

    async def delete_by_stat(self, combatant_id: str, stat: str) -> int:
        removed = self._modifiers.pop((combatant_id, stat), [])
        return len(removed)


class InMemoryCooldownStore:
    """Last-used timestamps keyed by (actor, action)."""

    def __init__(self) -> None:
        self._last_used: dict[tuple[str, str], datetime] = {}

    async def get_last_used(self, actor_id: str, action: str) -> datetime | None:
        return self._last_used.get((actor_id, action))

    async def set_last_used(self, actor_id: str, action: str, used_at: datetime) -> None:
        self._last_used[(actor_id, action)] = used_at


class InMemoryActionLogRepository:
    """Bounded per-room action log."""

    def __init__(self, max_entries_per_room: int = 500) -> None:
        self.max_entries_per_room = max_entries_per_room
        self._entries: dict[str, list[ActionLogEntry]] = defaultdict(list)

    async def append(self, entry: ActionLogEntry) -> None:
        entries = self._entries[entry.room_id]
        entries.append(entry)
        if len(entries) > self.max_entries_per_room:
            del entries[: len(entries) - self.max_entries_per_room]

    async def list_for_room(self, room_id: str, limit: int = 50) -> list[ActionLogEntry]:
        return list(self._entries.get(room_id, [])[-limit:])


class InMemoryEncounterSummaryRepository:
    """Encounter summaries in insertion order."""

    def __init__(self) -> None:
        self.summaries: list[dict[str, Any]] = []

    async def insert(self, summary: dict[str, Any]) -> None:
        self.summaries.append(dict(summary))


class InMemoryMemoryStore:
    """Combatant memories in insertion order."""

    def __init__(self) -> None:
        self.memories: dict[str, list[str]] = defaultdict(list)

    async def add_memory(self, combatant_id: str, text: str) -> None:
        self.memories[combatant_id].append(text)
