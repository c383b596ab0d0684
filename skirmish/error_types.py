"""
Centralized error types and constants for Skirmish.

This module defines standardized error types, user-facing notices, and the
error response shape returned by the HTTP chat surface.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Standardized error types for consistent categorization."""

    VALIDATION_ERROR = "validation_error"
    INVALID_INPUT = "invalid_input"

    RESOURCE_NOT_FOUND = "resource_not_found"

    GAME_LOGIC_ERROR = "game_logic_error"
    INVALID_COMMAND = "invalid_command"
    COMBAT_COOLDOWN = "combat_cooldown"

    DATABASE_ERROR = "database_error"

    CONFIGURATION_ERROR = "configuration_error"
    INTERNAL_ERROR = "internal_error"


class ErrorSeverity(Enum):
    """Error severity levels for logging and handling."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def create_standard_error_response(
    error_type: ErrorType,
    message: str,
    user_friendly: str | None = None,
    details: dict[str, Any] | None = None,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
) -> dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        error_type: The type of error
        message: Technical error message
        user_friendly: User-friendly error message (optional)
        details: Additional error details (optional)
        severity: Error severity level (optional)

    Returns:
        Standardized error response dictionary
    """
    return {
        "error": {
            "type": error_type.value,
            "message": message,
            "user_friendly": user_friendly or message,
            "details": details or {},
            "severity": severity.value,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    }


class ErrorMessages:
    """Terse, in-character notices shown to chat participants."""

    NO_TARGET = "-# [ ❌ Error: No target specified. ]"
    ACTOR_NOT_FOUND = "-# 🤔 [ The avatar can't be found! ]"
    COMBAT_UNAVAILABLE = "-# [ ❌ Combat system unavailable. ]"
    NOT_IN_COMBAT = "-# [ Not in combat. ]"
    UNKNOWN_ACTION = "Action '{action}' not found."
    ACTION_FAILED = "-# [ ❌ Error: {action} failed. Please try again later. ]"
    COOLDOWN_ACTIVE = "-# [ Please wait {minutes} more minute(s) before using '{action}' again. ]"
    COMBAT_RESTRICTED = "-# [ '{action}' not available during combat. Use {allowed}. ]"
