"""
Enhanced structlog-based logging configuration for Skirmish.

This module is the main entry point for the logging system. It wires the
sanitizing and correlation processors into structlog and routes output through
the standard library logging module.
"""

import json
import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from skirmish.structured_logging.logging_context import (
    bind_request_context,
    clear_request_context,
    get_current_context,
)
from skirmish.structured_logging.logging_processors import add_correlation_id, sanitize_sensitive_data

__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_enhanced_structlog",
    "get_current_context",
    "get_logger",
    "setup_enhanced_logging",
]


class _LoggingState:  # pylint: disable=too-few-public-methods
    """State container for logging initialization to avoid global statements."""

    initialized: bool = False
    signature: str | None = None


_logging_state = _LoggingState()


def configure_enhanced_structlog(environment: str = "local", log_level: str = "INFO") -> None:
    """
    Configure structlog with sanitization, correlation IDs and contextvars.

    Args:
        environment: Environment name; "production" renders JSON, others key/value
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    renderer: Any
    if environment == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"])

    structlog.configure(
        processors=[
            merge_contextvars,
            sanitize_sensitive_data,
            add_correlation_id,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_enhanced_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from a configuration dictionary.

    Repeated calls with the logging system already initialized are no-ops
    unless ``force_reconfigure`` is set.

    Args:
        config: Dictionary with a "logging" section (environment, level)
        force_reconfigure: When True, reconfigure even if already initialized
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)
    if _logging_state.initialized and not force_reconfigure:
        get_logger(__name__).debug(
            "setup_enhanced_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment", "local")
    log_level = logging_config.get("level", "INFO")

    configure_enhanced_structlog(environment, log_level)

    get_logger(__name__).info("Enhanced logging system initialized", environment=environment, log_level=log_level)
    _logging_state.initialized = True
    _logging_state.signature = config_signature


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    This is the public API for obtaining loggers. All application code should
    use this function rather than calling structlog.get_logger() directly.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def log_exception_once(
    bound_logger: BoundLogger,
    level: str,
    message: str,
    *,
    exc: Exception | None = None,
    **kwargs: Any,
) -> None:
    """
    Log an exception once, skipping exceptions that have already been logged.

    Args:
        bound_logger: Structlog bound logger instance.
        level: Logging level to use (for example, "error" or "warning").
        message: Log message to emit.
        exc: Optional exception to include in the log entry.
        **kwargs: Additional key-value pairs for structured logging.
    """
    if exc is not None:
        if getattr(exc, "already_logged", False):
            return
        kwargs.setdefault("error_type", type(exc).__name__)
        kwargs.setdefault("error", str(exc))

    log_method = getattr(bound_logger, level.lower(), bound_logger.error)
    log_method(message, **kwargs)
