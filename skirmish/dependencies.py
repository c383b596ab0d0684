"""
FastAPI dependency providers for Skirmish.

Every provider reaches services through the ApplicationContainer stored on
app.state by the lifespan context.
"""

from fastapi import Depends, Request

from .commands.command_dispatcher import CommandDispatcher
from .container import ApplicationContainer
from .services.combat_encounter_service import CombatEncounterService
from .services.location_service import LocationService
from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def get_container(request: Request) -> ApplicationContainer:
    """
    Get the application container from request state.

    Raises:
        RuntimeError: If the lifespan context did not install a container
    """
    if not hasattr(request.app.state, "container"):
        raise RuntimeError(
            "ApplicationContainer not found in app.state - ensure container is initialized in lifespan context"
        )
    return request.app.state.container


def get_command_dispatcher(request: Request) -> CommandDispatcher:
    container = get_container(request)
    if container.command_dispatcher is None:
        raise RuntimeError("CommandDispatcher not initialized in container")
    return container.command_dispatcher


def get_encounter_service(request: Request) -> CombatEncounterService:
    container = get_container(request)
    if container.encounter_service is None:
        raise RuntimeError("CombatEncounterService not initialized in container")
    return container.encounter_service


CommandDispatcherDep = Depends(get_command_dispatcher)
EncounterServiceDep = Depends(get_encounter_service)
ContainerDep = Depends(get_container)


def get_location_service(request: Request) -> LocationService:
    container = get_container(request)
    if container.location_service is None:
        raise RuntimeError("LocationService not initialized in container")
    return container.location_service


LocationServiceDep = Depends(get_location_service)
