"""
FastAPI application factory for Skirmish.

This module handles FastAPI app creation, error handlers and router
registration.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..api.messages import room_router
from ..container import ApplicationContainer
from ..error_types import ErrorType, create_standard_error_response
from ..exceptions import SkirmishError
from ..structured_logging.enhanced_logging_config import get_logger
from .lifespan import lifespan

logger = get_logger(__name__)


async def skirmish_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render SkirmishError as the standard error envelope."""
    assert isinstance(exc, SkirmishError)
    logger.warning("Request failed", path=request.url.path, error_type=type(exc).__name__, error=exc.message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=create_standard_error_response(
            ErrorType.INVALID_INPUT,
            exc.message,
            user_friendly=exc.user_friendly,
            details=exc.details,
        ),
    )


def create_app(container: ApplicationContainer | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Optional pre-built container, initialized during lifespan startup

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title="Skirmish API",
        description="Turn-gated combat resolution for chat rooms",
        version="0.1.0",
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    app.add_exception_handler(SkirmishError, skirmish_error_handler)
    app.include_router(room_router, prefix="/api")
    return app
