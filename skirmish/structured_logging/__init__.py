"""
Structured logging package for Skirmish.

All imports should use explicit paths like
'from skirmish.structured_logging.enhanced_logging_config import get_logger'.

The directory is named 'structured_logging' rather than 'logging' to avoid
shadowing the standard library module.
"""

__all__: list[str] = []
