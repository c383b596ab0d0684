"""
Chat command layer: symbol parsing, dispatch gates and the built-in actions.
"""

from .command_dispatcher import CommandDispatcher, CommandOutcome, DispatchResult
from .command_parser import ParsedCommand, ParsedCommands, SymbolTable

__all__ = [
    "CommandDispatcher",
    "CommandOutcome",
    "DispatchResult",
    "ParsedCommand",
    "ParsedCommands",
    "SymbolTable",
]
