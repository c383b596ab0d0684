"""
Application lifespan management for Skirmish.

Builds the ApplicationContainer on startup, runs the encounter maintenance
loop in the background and tears everything down on shutdown.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..container import ApplicationContainer
from ..exceptions import ConfigurationError
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


async def encounter_maintenance_loop(container: ApplicationContainer, interval: float) -> None:
    """
    Sweep overdue turns and stale encounters until cancelled.

    A failing sweep is logged and the loop keeps going on the next interval.
    """
    logger.info("Encounter maintenance loop started", interval=interval)
    sweep_count = 0
    while True:
        try:
            await asyncio.sleep(interval)
            encounters = container.encounter_service
            if encounters is None:
                continue
            timed_out = await encounters.process_turn_timeouts()
            cleaned = await encounters.cleanup_stale_encounters()
            if timed_out or cleaned:
                logger.info("Encounter maintenance sweep", sweep=sweep_count, timed_out=timed_out, cleaned=cleaned)
            sweep_count += 1
        except asyncio.CancelledError:
            logger.info("Encounter maintenance loop cancelled")
            break
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: one failed sweep must not stop the loop
            logger.error("Error in encounter maintenance loop", sweep=sweep_count, error=str(e), exc_info=True)
            sweep_count += 1


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    A container pre-seeded on app.state (tests do this) is initialized and
    used as-is; otherwise a default one is built from configuration.
    """
    logger.info("Starting Skirmish server...")
    container: ApplicationContainer | None = getattr(app.state, "container", None)
    if container is None:
        container = ApplicationContainer()
    await container.initialize()
    app.state.container = container
    ApplicationContainer.set_instance(container)

    if container.config is None:
        raise ConfigurationError("ApplicationContainer initialized without a configuration", config_key="config")
    maintenance_task = asyncio.create_task(
        encounter_maintenance_loop(container, container.config.combat.maintenance_interval_seconds),
        name="lifecycle/encounter_maintenance",
    )
    app.state.maintenance_task = maintenance_task
    logger.info("Skirmish server started successfully")
    yield

    logger.info("Shutting down Skirmish server...")
    maintenance_task.cancel()
    try:
        await maintenance_task
    except asyncio.CancelledError:
        pass
    try:
        await container.shutdown()
    except (AttributeError, KeyError, TypeError, ValueError, RuntimeError) as e:
        logger.error("Critical shutdown failure", error=str(e), error_type=type(e).__name__, exc_info=True)
    ApplicationContainer.reset_instance()
    logger.info("Skirmish server shutdown complete")
