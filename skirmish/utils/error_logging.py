"""
Error logging utilities for Skirmish.

Standardized helpers that log an error with context before raising one of the
Skirmish exception types.
"""

from typing import Any, NoReturn

from skirmish.exceptions import ErrorContext, SkirmishError, create_error_context
from skirmish.structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

__all__ = ["create_error_context", "log_and_raise"]


def log_and_raise(
    exception_class: type[SkirmishError],
    message: str,
    context: ErrorContext | None = None,
    details: dict[str, Any] | None = None,
    user_friendly: str | None = None,
    logger_name: str | None = None,
) -> NoReturn:
    """
    Log an error and raise a Skirmish exception.

    Args:
        exception_class: The Skirmish exception class to raise
        message: Technical error message
        context: Error context information
        details: Additional error details
        user_friendly: User-friendly error message
        logger_name: Specific logger name to use (defaults to this module)

    Raises:
        The specified Skirmish exception
    """
    error_logger = get_logger(logger_name) if logger_name else logger

    if context is None:
        context = create_error_context()

    error_logger.error(
        f"Error logged and exception raised: {message}",
        error_type=exception_class.__name__,
        details=details or {},
        user_friendly=user_friendly,
    )

    raise exception_class(
        message=message,
        context=context,
        details=details,
        user_friendly=user_friendly,
    )
