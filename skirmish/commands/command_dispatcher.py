"""
Command dispatcher for Skirmish.

Turns inbound chat messages into action invocations. Every action passes the
same gates in order: knocked out or dead actors are ignored silently, actions on
cooldown get a wait notice, and actors in an active encounter may only use the
combat actions. Turn-gated actions then run under a per-room lock so the turn
check and the turn advance cannot interleave with another action in the room.
"""

import asyncio
import uuid
import weakref
from contextlib import AbstractAsyncContextManager, nullcontext
from dataclasses import dataclass, field

from ..config.models import CommandConfig
from ..error_types import ErrorMessages
from ..exceptions import DatabaseError
from ..models.combatant import Combatant
from ..models.encounter import EncounterState
from ..persistence.protocols import CombatantRepositoryProtocol, MemoryStoreProtocol
from ..services.action_log import ActionLog
from ..services.battle_service import BattleService
from ..services.combat_encounter_service import CombatEncounterService
from ..services.cooldown_service import CooldownService
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once
from ..structured_logging.logging_context import bind_request_context, clear_request_context
from ..utils.time_utils import NowProvider, utc_now
from .actions.base import ActionContext, BaseAction
from .command_parser import ParsedCommands, SymbolTable

logger = get_logger(__name__)


@dataclass
class CommandOutcome:
    """Response to one command; ``response`` is None when nothing should be shown."""

    action: str
    symbol: str | None
    params: tuple[str, ...]
    response: str | None


@dataclass
class DispatchResult:
    """Responses for every command found in a message."""

    results: list[CommandOutcome] = field(default_factory=list)
    clean_text: str = ""
    command_lines: list[str] = field(default_factory=list)


class CommandDispatcher:
    """
    Parses messages into actions and runs them through the dispatch gates.

    Actions are registered with ``register_action``; the built-in combat
    actions are registered by the application container.
    """

    def __init__(
        self,
        combatant_repository: CombatantRepositoryProtocol,
        cooldown_service: CooldownService,
        encounter_service: CombatEncounterService | None = None,
        battle_service: BattleService | None = None,
        action_log: ActionLog | None = None,
        memory_store: MemoryStoreProtocol | None = None,
        config: CommandConfig | None = None,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._combatants = combatant_repository
        self._cooldowns = cooldown_service
        self._encounters = encounter_service
        self._battle = battle_service
        self._action_log = action_log
        self._memory = memory_store
        self._config = config or CommandConfig()
        self._now = now_provider or utc_now

        self._actions: dict[str, BaseAction] = {}
        self._custom_actions: set[str] = set()
        self._symbols = SymbolTable()
        self._guild_overrides: dict[str, dict[str, str]] = {
            guild_id: dict(overrides) for guild_id, overrides in self._config.symbol_overrides.items()
        }
        self._guild_tables: dict[str, SymbolTable] = {}
        self._room_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    # --- Registration and parsing ------------------------------------------

    @property
    def actions(self) -> dict[str, BaseAction]:
        return dict(self._actions)

    def register_action(self, action: BaseAction, *, symbol: str | None = None, is_custom: bool = True) -> None:
        """
        Register an action under its name and bind its symbol.

        Raises:
            ValueError: If the action has no name
        """
        if not action.name:
            raise ValueError("Action must have a name")
        self._actions[action.name] = action
        if is_custom:
            self._custom_actions.add(action.name)
        bound_symbol = symbol or action.symbol
        if bound_symbol:
            self._symbols.bind(bound_symbol, action.name)
        self._guild_tables.clear()
        logger.debug("Action registered", action=action.name, symbol=bound_symbol, is_custom=is_custom)

    def set_guild_overrides(self, guild_id: str, overrides: dict[str, str]) -> None:
        """Replace the action-to-symbol overrides for one guild."""
        self._guild_overrides[guild_id] = dict(overrides)
        self._guild_tables.pop(guild_id, None)

    def symbol_table(self, guild_id: str | None = None) -> SymbolTable:
        """Return the symbol table for a guild, built once per change of bindings."""
        if not guild_id or not self._guild_overrides.get(guild_id):
            return self._symbols
        table = self._guild_tables.get(guild_id)
        if table is None:
            table = self._symbols.with_overrides(self._guild_overrides[guild_id])
            self._guild_tables[guild_id] = table
        return table

    def extract_commands(self, text: str | None, guild_id: str | None = None) -> ParsedCommands:
        return self.symbol_table(guild_id).extract_commands(text)

    def cooldown_for(self, action: BaseAction) -> int:
        """Configured override, then the action's own cooldown, then the dispatcher default."""
        configured = self._config.action_cooldowns_ms.get(action.name.lower())
        if configured is not None:
            return configured
        if action.cooldown_ms is not None:
            return action.cooldown_ms
        return self._config.default_cooldown_ms

    def _allowed_actions_text(self, guild_id: str | None) -> str:
        table = self.symbol_table(guild_id)
        labels = []
        for name in self._config.combat_allowed_actions:
            symbol = table.symbol_for(name)
            labels.append(f"{symbol} {name}" if symbol else name)
        if len(labels) <= 1:
            return "".join(labels)
        return ", ".join(labels[:-1]) + ", or " + labels[-1]

    async def get_commands_description(self, guild_id: str | None = None, actor: Combatant | None = None) -> str:
        """List available actions with their syntax, skipping those the actor has on cooldown."""
        table = self.symbol_table(guild_id)
        sections = []
        for name, action in self._actions.items():
            if not action.show_in_help:
                continue
            if actor is not None:
                remaining = await self._cooldowns.get_remaining_cooldown(
                    actor.combatant_id, name, self.cooldown_for(action)
                )
                if remaining > 0:
                    continue
            syntax = action.get_syntax(table.symbol_for(name))
            sections.append(f"**{name}**\nCommand format: {syntax}\nDescription: {action.get_description()}")
        return "\n\n".join(sections)

    # --- Execution ----------------------------------------------------------

    def _room_lock(self, room_id: str, action: BaseAction) -> AbstractAsyncContextManager:
        if not (self._config.per_room_locking and action.turn_gated):
            return nullcontext()
        # Entries vanish once no holder or waiter references the lock.
        lock = self._room_locks.get(room_id)
        if lock is None:
            lock = asyncio.Lock()
            self._room_locks[room_id] = lock
        return lock

    def _out_of_turn(self, room_id: str, actor_id: str) -> bool:
        if self._encounters is None:
            return False
        encounter = self._encounters.get_encounter(room_id)
        if encounter is None or encounter.state != EncounterState.ACTIVE:
            return False
        if encounter.get_combatant(actor_id) is None:
            return False
        return not self._encounters.is_turn(encounter, actor_id)

    async def execute_action(
        self,
        action_name: str,
        actor: Combatant,
        params: tuple[str, ...] = (),
        *,
        room_id: str,
        guild_id: str | None = None,
        symbol: str | None = None,
        message_id: str | None = None,
        message_content: str = "",
        correlation_id: str | None = None,
    ) -> str | None:
        """
        Run one action through the dispatch gates.

        Returns:
            str | None: The message to show, or None for a silent rejection
        """
        action = self._actions.get(action_name)
        if action is None:
            return ErrorMessages.UNKNOWN_ACTION.format(action=action_name)

        if self._battle is not None:
            actor = await self._battle.recover_if_elapsed(actor)
        if actor.is_incapacitated(self._now()):
            logger.debug("Action from incapacitated actor ignored", action=action_name, status=actor.status.value)
            return None

        remaining = await self._cooldowns.get_remaining_cooldown(
            actor.combatant_id, action_name, self.cooldown_for(action)
        )
        if remaining > 0:
            minutes = CooldownService.remaining_minutes(remaining)
            return ErrorMessages.COOLDOWN_ACTIVE.format(minutes=minutes, action=action_name)

        if (
            self._encounters is not None
            and self._encounters.is_in_active_combat(room_id, actor.combatant_id)
            and action_name not in self._config.combat_allowed_actions
        ):
            return ErrorMessages.COMBAT_RESTRICTED.format(
                action=action_name, allowed=self._allowed_actions_text(guild_id)
            )

        context = ActionContext(
            room_id=room_id,
            actor=actor,
            params=tuple(params),
            symbol=symbol,
            guild_id=guild_id,
            message_id=message_id,
            message_content=message_content,
            correlation_id=correlation_id,
        )
        async with self._room_lock(room_id, action):
            if action.turn_gated and self._out_of_turn(room_id, actor.combatant_id):
                logger.debug("Out-of-turn action ignored", action=action_name)
                return None
            try:
                response = await action.execute(context)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: a handler failure becomes a user-facing notice
                log_exception_once(logger, "error", "Action handler failed", exc=e, action=action_name)
                return ErrorMessages.ACTION_FAILED.format(action=action_name.capitalize())

        await self._cooldowns.set_used(actor.combatant_id, action_name)
        await self._record(action, actor, context, response)
        return response

    async def _record(self, action: BaseAction, actor: Combatant, context: ActionContext, response: str | None) -> None:
        """Append the action log entry and the actor's memory; failures are logged only."""
        if self._action_log is not None:
            try:
                await self._action_log.log_action(
                    room_id=context.room_id,
                    actor_id=actor.combatant_id,
                    actor_name=actor.name,
                    action=action.name,
                    emoji=context.symbol or action.symbol,
                    target=context.target,
                    result=response,
                    is_custom=action.name in self._custom_actions,
                )
            except (DatabaseError, OSError) as e:
                logger.error("Failed to log action", action=action.name, error=str(e))
        if self._memory is not None and response:
            try:
                await self._memory.add_memory(actor.combatant_id, response)
            except (DatabaseError, OSError) as e:
                logger.warning("Failed to store action memory", action=action.name, error=str(e))

    async def process_message(
        self,
        room_id: str,
        actor_id: str,
        content: str,
        *,
        guild_id: str | None = None,
        message_id: str | None = None,
    ) -> DispatchResult:
        """Parse a chat message and run every command in it, in order."""
        correlation_id = bind_request_context(
            correlation_id=message_id or str(uuid.uuid4()), room_id=room_id, actor_id=actor_id
        )
        try:
            parsed = self.extract_commands(content, guild_id)
            result = DispatchResult(clean_text=parsed.clean_text, command_lines=list(parsed.command_lines))
            if not parsed.commands:
                return result
            logger.info("Commands parsed", commands=[c.action for c in parsed.commands])

            for command in parsed.commands:
                actor = await self._combatants.get(actor_id)
                if actor is None:
                    response: str | None = ErrorMessages.ACTOR_NOT_FOUND
                else:
                    response = await self.execute_action(
                        command.action,
                        actor,
                        command.params,
                        room_id=room_id,
                        guild_id=guild_id,
                        symbol=command.symbol,
                        message_id=message_id,
                        message_content=content,
                        correlation_id=correlation_id,
                    )
                result.results.append(
                    CommandOutcome(
                        action=command.action, symbol=command.symbol, params=command.params, response=response
                    )
                )
            return result
        finally:
            clear_request_context()
