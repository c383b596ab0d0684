"""
Base class and invocation context for dispatchable actions.
"""

from dataclasses import dataclass, field
from typing import Any

from ...models.combatant import Combatant
from ...models.encounter import Encounter


@dataclass
class ActionContext:
    """Everything an action needs to know about the message that invoked it."""

    room_id: str
    actor: Combatant
    params: tuple[str, ...] = ()
    symbol: str | None = None
    guild_id: str | None = None
    message_id: str | None = None
    message_content: str = ""
    correlation_id: str | None = None
    encounter: Encounter | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def target(self) -> str:
        return " ".join(self.params).strip()


class BaseAction:
    """
    A chat action bound to a symbol.

    Subclasses set the class attributes and implement ``execute``. Returning
    None means the action produced no chat output.
    """

    name: str = ""
    symbol: str | None = None
    description: str = ""
    parameters: str = ""
    cooldown_ms: int | None = None
    turn_gated: bool = False
    show_in_help: bool = True

    async def execute(self, context: ActionContext) -> str | None:
        raise NotImplementedError(f"{type(self).__name__} must implement execute")

    def get_description(self) -> str:
        return self.description or "No description available."

    def get_syntax(self, symbol: str | None = None) -> str:
        """Return the usage line, e.g. ``🗡️ <target>``."""
        shown = symbol or self.symbol or self.name
        return f"{shown} {self.parameters}".strip()
