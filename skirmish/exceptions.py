"""
Exception hierarchy for Skirmish.

This module defines the exception hierarchy and error context used across the
engine. Expected, user-driven conditions (wrong turn, cooldown active, knocked
out actor) are never raised; they are answered with short notices by the
command layer. Exceptions are reserved for configuration defects, storage
failures, and the cooldown refusals raised by encounter creation.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from skirmish.structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """
    Contextual information for error handling.

    Provides structured context for error reporting and debugging.
    """

    actor_id: str | None = None
    room_id: str | None = None
    command: str | None = None
    correlation_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "actor_id": self.actor_id,
            "room_id": self.room_id,
            "command": self.command,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class SkirmishError(Exception):
    """
    Base exception for all Skirmish errors.

    Carries a technical message, a user-friendly message, structured details and
    an ErrorContext. The error is logged when constructed.
    """

    log_level = "error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize Skirmish error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now(UTC)

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with structured context."""
        log_method = getattr(logger, self.log_level, logger.error)
        log_method(
            "Skirmish error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ConfigurationError(SkirmishError):
    """Configuration and setup errors, e.g. a required collaborator is missing."""

    def __init__(self, message: str, context: ErrorContext | None = None, config_key: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.config_key = config_key
        if config_key:
            self.details["config_key"] = config_key


class DatabaseError(SkirmishError):
    """Database operation errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        operation: str = "unknown",
        table: str | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.operation = operation
        self.table = table
        self.details["operation"] = operation
        if table:
            self.details["table"] = table


class ValidationError(SkirmishError):
    """Data validation errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        field: str | None = None,
        value: Any | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.field = field
        self.value = value
        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = str(value)


class CombatError(SkirmishError):
    """Combat state errors that callers are expected to handle."""

    log_level = "info"

    def __init__(self, message: str, context: ErrorContext | None = None, reason: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.reason = reason or message
        self.details["reason"] = self.reason


class FleeCooldownError(CombatError):
    """A combatant recently fled and cannot be drawn into combat yet."""

    def __init__(self, combatant_id: str, until: datetime, context: ErrorContext | None = None):
        super().__init__(
            f"flee_cooldown: {combatant_id} cannot enter combat until {until.isoformat()}",
            context,
            reason="flee_cooldown",
            user_friendly="Combat cannot start: one combatant recently fled and is on cooldown.",
        )
        self.combatant_id = combatant_id
        self.until = until


class KnockoutCooldownError(CombatError):
    """A combatant is recovering from a knockout and cannot fight yet."""

    def __init__(self, combatant_id: str, until: datetime, context: ErrorContext | None = None):
        super().__init__(
            f"knockout_cooldown: {combatant_id} is recovering until {until.isoformat()}",
            context,
            reason="knockout_cooldown",
            user_friendly="Combat cannot start: one combatant is knocked out and cannot fight today.",
        )
        self.combatant_id = combatant_id
        self.until = until


def create_error_context(**kwargs) -> ErrorContext:
    """
    Create an error context with the given parameters.

    Args:
        **kwargs: Context parameters

    Returns:
        ErrorContext object
    """
    return ErrorContext(**kwargs)
