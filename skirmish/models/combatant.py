"""
Combatant models for Skirmish.

A combatant is a persistent actor that can take part in encounters. Snapshots
are frozen; state changes go through model_copy(update=...) followed by an
explicit save through the combatant repository.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CombatantStatus(str, Enum):
    """Lifecycle status of a combatant."""

    ALIVE = "alive"
    KNOCKED_OUT = "knocked_out"
    DEAD = "dead"


class Combatant(BaseModel):
    """Persistent actor capable of participating in combat."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    combatant_id: str = Field(..., description="Unique combatant identifier")
    name: str = Field(..., description="Display name used for target lookup")
    room_id: str | None = Field(default=None, description="Room the combatant currently occupies")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation time, seeds stat generation"
    )
    status: CombatantStatus = Field(default=CombatantStatus.ALIVE, description="Lifecycle status")
    lives: int = Field(default=3, description="Knockouts remaining before death")
    knocked_out_until: datetime | None = Field(default=None, description="End of knockout recovery")
    combat_cooldown_until: datetime | None = Field(default=None, description="End of post-flee combat cooldown")
    death_timestamp: datetime | None = Field(default=None, description="Time of permanent death")

    def is_dead(self) -> bool:
        """Return True when the combatant has fallen permanently."""
        return self.status == CombatantStatus.DEAD

    def is_recovering(self, now: datetime) -> bool:
        """Return True while a knockout recovery window is still running."""
        return self.knocked_out_until is not None and now < self.knocked_out_until

    def is_incapacitated(self, now: datetime) -> bool:
        """Return True when the combatant may not act: dead, knocked out, or still recovering."""
        if self.status in (CombatantStatus.DEAD, CombatantStatus.KNOCKED_OUT):
            return True
        return self.is_recovering(now)

    def can_recover(self, now: datetime) -> bool:
        """Return True for a knocked out combatant whose recovery window has elapsed."""
        return (
            self.status == CombatantStatus.KNOCKED_OUT
            and self.knocked_out_until is not None
            and now >= self.knocked_out_until
        )

    def has_combat_cooldown(self, now: datetime) -> bool:
        """Return True while a post-flee combat cooldown is running."""
        return self.combat_cooldown_until is not None and now < self.combat_cooldown_until
