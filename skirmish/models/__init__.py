"""Domain models for Skirmish."""

from .action_log import ActionLogEntry
from .action_result import ActionResult
from .combatant import Combatant, CombatantStatus
from .encounter import Encounter, EncounterCombatant, EncounterState
from .modifier import DAMAGE_STAT, Modifier
from .stats import ABILITY_ORDER, CombatantStats, ability_modifier

__all__ = [
    "ABILITY_ORDER",
    "ActionLogEntry",
    "ActionResult",
    "Combatant",
    "CombatantStats",
    "CombatantStatus",
    "DAMAGE_STAT",
    "Encounter",
    "EncounterCombatant",
    "EncounterState",
    "Modifier",
    "ability_modifier",
]
