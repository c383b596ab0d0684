"""
Combat domain events.

Every event carries the room and a correlation id (normally the inbound message
id) alongside the ids of the combatants involved.
"""

from dataclasses import dataclass, field

from skirmish.events.event_types import BaseEvent


@dataclass
class AttackBlockedEvent(BaseEvent):
    """An attack was refused because the attacker cannot act."""

    attacker_id: str
    reason: str = "status"
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.attack.blocked"


@dataclass
class AttackAttemptEvent(BaseEvent):
    """An attack roll was made."""

    attacker_id: str
    defender_id: str
    raw_roll: int
    attack_roll: int
    armor_class: int
    advantage_used: bool = False
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.attack.attempt"


@dataclass
class AttackHitEvent(BaseEvent):
    """An attack hit without knocking the defender out."""

    attacker_id: str
    defender_id: str
    damage: int
    current_hp: int
    attack_roll: int
    armor_class: int
    raw_roll: int
    critical: bool = False
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.attack.hit"


@dataclass
class AttackMissEvent(BaseEvent):
    """An attack missed."""

    attacker_id: str
    defender_id: str
    attack_roll: int
    armor_class: int
    raw_roll: int
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.attack.miss"


@dataclass
class KnockoutEvent(BaseEvent):
    """A combatant was knocked out and will recover."""

    attacker_id: str
    defender_id: str
    damage: int
    lives_remaining: int
    critical: bool = False
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.knockout"


@dataclass
class DeathEvent(BaseEvent):
    """A combatant fell permanently."""

    attacker_id: str
    defender_id: str
    damage: int
    critical: bool = False
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.death"


@dataclass
class HideSuccessEvent(BaseEvent):
    """A stealth check beat the room's passive perception."""

    combatant_id: str
    roll: int
    dc: int
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.hide.success"


@dataclass
class HideFailEvent(BaseEvent):
    """A stealth check failed."""

    combatant_id: str
    roll: int
    dc: int
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.hide.fail"


@dataclass
class FleeAttemptEvent(BaseEvent):
    """A combatant tried to flee on their turn."""

    combatant_id: str
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.flee.attempt"


@dataclass
class FleeSuccessEvent(BaseEvent):
    """A combatant escaped and the encounter ended."""

    combatant_id: str
    roll: int
    dc: int
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.flee.success"


@dataclass
class FleeFailEvent(BaseEvent):
    """A flee attempt failed and consumed the turn."""

    combatant_id: str
    roll: int
    dc: int
    room_id: str | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.flee.fail"


@dataclass
class EncounterStartedEvent(BaseEvent):
    """Initiative was rolled and turns began."""

    room_id: str
    initiative_order: list[str] = field(default_factory=list)
    initiatives: dict[str, int] = field(default_factory=dict)
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.encounter.started"


@dataclass
class TurnChangedEvent(BaseEvent):
    """The turn passed to another combatant."""

    room_id: str
    combatant_id: str | None
    round: int
    auto_defended: bool = False
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.encounter.turn"


@dataclass
class EncounterEndedEvent(BaseEvent):
    """An encounter reached its terminal state."""

    room_id: str
    reason: str
    rounds: int = 0
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "combat.encounter.ended"
