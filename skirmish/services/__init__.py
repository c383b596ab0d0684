"""
Services package for Skirmish.

Combat resolution, encounter coordination, modifiers, cooldowns and the
action log.
"""

from .action_log import ActionLog
from .battle_service import BattleService
from .combat_encounter_service import CombatEncounterService, CombatIntent, parse_combat_intent
from .combat_event_publisher import CombatEventPublisher
from .combatant_stats_service import CombatantStatsService
from .cooldown_service import CooldownService
from .location_service import LocationService, RoomSnapshot
from .modifier_service import ModifierService, round_half_up

__all__ = [
    "ActionLog",
    "BattleService",
    "CombatEncounterService",
    "CombatIntent",
    "parse_combat_intent",
    "CombatEventPublisher",
    "CombatantStatsService",
    "CooldownService",
    "LocationService",
    "RoomSnapshot",
    "ModifierService",
    "round_half_up",
]
