"""
Dice source for combat resolution.
"""

import random

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class DiceService:
    """Rolls independent, uniformly distributed dice."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed) if seed is not None else random.Random()

    def roll_die(self, sides: int) -> int:
        """
        Roll one die.

        Args:
            sides: Number of faces, at least 1

        Returns:
            int: Value in [1, sides]
        """
        if sides < 1:
            raise ValueError(f"A die needs at least one side, got {sides}")
        return self._rng.randint(1, sides)
