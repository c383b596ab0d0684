"""
Ability score models for Skirmish.
"""

from pydantic import BaseModel, ConfigDict, Field

ABILITY_ORDER: tuple[str, ...] = ("strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma")
MIN_ABILITY = 8
MAX_ABILITY = 16


def ability_modifier(score: int | None) -> int:
    """Return the D&D style modifier for an ability score, treating missing scores as 10."""
    if score is None:
        score = 10
    return (score - 10) // 2


class CombatantStats(BaseModel):
    """Base ability scores, hit points and per-turn combat flags for one combatant."""

    model_config = ConfigDict(frozen=True)

    combatant_id: str | None = Field(default=None, description="Owning combatant")
    strength: int = Field(..., ge=MIN_ABILITY, le=MAX_ABILITY)
    dexterity: int = Field(..., ge=MIN_ABILITY, le=MAX_ABILITY)
    constitution: int = Field(..., ge=MIN_ABILITY, le=MAX_ABILITY)
    intelligence: int = Field(..., ge=MIN_ABILITY, le=MAX_ABILITY)
    wisdom: int = Field(..., ge=MIN_ABILITY, le=MAX_ABILITY)
    charisma: int = Field(..., ge=MIN_ABILITY, le=MAX_ABILITY)
    hp: int = Field(..., description="Base hit points derived from constitution")

    is_defending: bool = Field(default=False, description="+2 AC against the next resolved attack")
    is_hidden: bool = Field(default=False, description="Concealed until the next attack")
    advantage_next_attack: bool = Field(default=False, description="Roll twice on the next attack")

    def modifier(self, ability: str) -> int:
        """Return the modifier for a named ability."""
        return ability_modifier(getattr(self, ability))

    def base_value(self, stat: str) -> int:
        """Return the base value of a stat, 0 for stats this model does not track."""
        value = getattr(self, stat, None) if stat in (*ABILITY_ORDER, "hp") else None
        return value if isinstance(value, int) else 0

    def abilities(self) -> dict[str, int]:
        """Return ability scores in generation order."""
        return {name: getattr(self, name) for name in ABILITY_ORDER}
