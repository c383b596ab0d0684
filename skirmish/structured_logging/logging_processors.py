"""
Logging processors for structlog event processing.

This module provides processors for sanitizing sensitive data and adding
correlation IDs to log entries.
"""

import re
import uuid
from typing import Any

# Sensitive patterns that should be redacted.
# These match whole words or specific suffixes/prefixes of field names.
_SENSITIVE_PATTERNS = [
    r"\bpassword\b",
    r"\btoken\b",
    r"\bsecret\b",
    r"_key\b",
    r"^key$",
    r"\bcredential\b",
    r"\bauth\b",
    r"\bauthorization\b",
]

# Field names that should never be redacted even if they match a pattern
_SAFE_FIELDS = {"room_key", "action_key", "cooldown_key"}


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """

    def sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
        sanitized: dict[str, Any] = {}
        for key, value in d.items():
            if isinstance(value, dict):
                sanitized[key] = sanitize_dict(value)
                continue
            key_lower = str(key).lower()
            if key_lower in _SAFE_FIELDS:
                sanitized[key] = value
            elif any(re.search(pattern, key_lower) for pattern in _SENSITIVE_PATTERNS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value
        return sanitized

    return sanitize_dict(event_dict)


def add_correlation_id(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Add correlation ID to log entries if not already present.

    A correlation ID bound through ``bind_request_context`` is merged in by the
    contextvars processor before this one runs, so only unbound entries get a
    fresh ID.
    """
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = str(uuid.uuid4())
    return event_dict
