"""
Chat surface endpoints for Skirmish.

Rooms receive chat messages containing command symbols; each command's
response is returned in order together with the message text left after the
commands were stripped.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from ..commands.command_dispatcher import CommandDispatcher
from ..container import ApplicationContainer
from ..dependencies import CommandDispatcherDep, ContainerDep, EncounterServiceDep, LocationServiceDep
from ..error_types import ErrorType, create_standard_error_response
from ..services.combat_encounter_service import CombatEncounterService
from ..services.location_service import LocationService
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

room_router = APIRouter(prefix="/rooms", tags=["rooms"])


class MessageRequest(BaseModel):
    """Inbound chat message."""

    actor_id: str = Field(..., min_length=1, description="Combatant sending the message")
    content: str = Field(..., description="Raw message text")
    guild_id: str | None = Field(default=None, description="Guild the room belongs to, for symbol overrides")
    message_id: str | None = Field(default=None, description="Platform message id, used as correlation id")


class CommandResponse(BaseModel):
    action: str
    symbol: str | None = None
    params: list[str] = Field(default_factory=list)
    response: str | None = None


class MessageResponse(BaseModel):
    results: list[CommandResponse] = Field(default_factory=list)
    clean_text: str = ""


@room_router.post("/{room_id}/messages", response_model=MessageResponse)
async def post_message(
    room_id: str,
    message: MessageRequest,
    dispatcher: CommandDispatcher = CommandDispatcherDep,
) -> MessageResponse:
    """Run every command in a chat message."""
    logger.debug("Message received", room_id=room_id, actor_id=message.actor_id)
    outcome = await dispatcher.process_message(
        room_id,
        message.actor_id,
        message.content,
        guild_id=message.guild_id,
        message_id=message.message_id,
    )
    return MessageResponse(
        results=[
            CommandResponse(action=r.action, symbol=r.symbol, params=list(r.params), response=r.response)
            for r in outcome.results
        ],
        clean_text=outcome.clean_text,
    )


@room_router.get("/{room_id}/encounter")
async def get_encounter(
    room_id: str,
    encounters: CombatEncounterService = EncounterServiceDep,
) -> dict[str, Any]:
    """Return the room's encounter snapshot."""
    encounter = encounters.get_encounter(room_id)
    if encounter is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=create_standard_error_response(
                ErrorType.RESOURCE_NOT_FOUND,
                f"No encounter in room {room_id}",
                user_friendly="There is no fight here.",
            ),
        )
    return encounter.to_summary()


@room_router.get("/{room_id}/actions")
async def get_recent_actions(
    room_id: str,
    limit: int = Query(20, ge=1, le=200, description="Maximum entries to return"),
    container: ApplicationContainer = ContainerDep,
) -> dict[str, Any]:
    """Return the room's most recent dispatched actions, oldest first."""
    if container.action_log is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=create_standard_error_response(ErrorType.CONFIGURATION_ERROR, "Action log not configured"),
        )
    entries = await container.action_log.get_recent_actions(room_id, limit=limit)
    return {"room_id": room_id, "actions": [entry.model_dump(mode="json") for entry in entries]}


class EnterRoomRequest(BaseModel):
    """A combatant arriving in a room."""

    combatant_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=128)


@room_router.post("/{room_id}/combatants")
async def enter_room(
    room_id: str,
    arrival: EnterRoomRequest,
    locations: LocationService = LocationServiceDep,
) -> dict[str, Any]:
    """Register a combatant on first sight, or move a known one into the room."""
    combatant = await locations.enter_room(arrival.combatant_id, arrival.name, room_id)
    return combatant.model_dump(mode="json")
