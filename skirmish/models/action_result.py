"""
Result type returned by combat resolution.
"""

from pydantic import BaseModel, Field


class ActionResult(BaseModel):
    """
    Outcome of a combat action.

    ``result`` carries the primary outcome; ``warnings`` lists best-effort side
    effects (relocation, event publishing) that failed without affecting it.
    """

    result: str = Field(..., description="invalid, hit, miss, knockout, dead, success or fail")
    message: str = Field(..., description="Terse, in-character message for the room")
    damage: int | None = None
    current_hp: int | None = None
    max_hp: int | None = None
    critical: bool = False
    raw_roll: int | None = None
    attack_roll: int | None = None
    armor_class: int | None = None
    advantage_used: bool = False
    roll: int | None = None
    dc: int | None = None
    lives_remaining: int | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Return True for outcomes that changed combat state in the actor's favour."""
        return self.result in ("hit", "knockout", "dead", "success")
