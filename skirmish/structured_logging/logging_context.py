"""
Context management utilities for structured logging.

This module provides functions for binding and clearing per-message logging
context (correlation id, room, actor) using structlog contextvars.
"""

import uuid
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def bind_request_context(
    correlation_id: str | None = None,
    room_id: str | None = None,
    actor_id: str | None = None,
    **kwargs: Any,
) -> str:
    """
    Bind message context to the current logging context.

    All subsequent log entries in the current task include the bound values.

    Args:
        correlation_id: Unique correlation ID for the inbound message
        room_id: Room the message was posted in
        actor_id: Combatant that sent the message
        **kwargs: Additional context variables

    Returns:
        The correlation id that was bound
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    context_vars = {
        "correlation_id": correlation_id,
        "room_id": room_id,
        "actor_id": actor_id,
        **kwargs,
    }
    bind_contextvars(**{k: v for k, v in context_vars.items() if v is not None})
    return correlation_id


def clear_request_context() -> None:
    """Clear the current message context from logging."""
    clear_contextvars()


def get_current_context() -> dict[str, Any]:
    """Get the current logging context."""
    try:
        return structlog.contextvars.get_contextvars()
    except (AttributeError, KeyError):
        return {}
