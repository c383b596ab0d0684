"""HTTP API routers for Skirmish."""

from .messages import room_router

__all__ = ["room_router"]
