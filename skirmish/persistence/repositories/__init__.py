"""
SQLAlchemy-backed repositories.

Each repository takes an async_sessionmaker and satisfies the matching
protocol in skirmish.persistence.protocols.
"""

from .action_log_repository import ActionLogRepository
from .combatant_repository import CombatantRepository
from .cooldown_repository import CooldownRepository
from .encounter_repository import EncounterSummaryRepository
from .memory_repository import MemoryRepository
from .modifier_repository import ModifierRepository
from .stats_repository import StatsRepository

__all__ = [
    "ActionLogRepository",
    "CombatantRepository",
    "CooldownRepository",
    "EncounterSummaryRepository",
    "MemoryRepository",
    "ModifierRepository",
    "StatsRepository",
]
