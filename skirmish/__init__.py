"""
Skirmish: combat resolution and turn-gated action engine.

Avatars in a chat-mediated role-playing world fight through this package:
stat derivation, time-bounded modifiers, attack/defend/hide/flee resolution,
knockout and death, and a cooldown-and-turn-gated command dispatcher.
"""

__version__ = "0.1.0"
